"""Networking command log reader.

Usage:
    from vmnetconf.networking import read_networking_config

    with open("/Library/Preferences/VMware Fusion/networking", "rb") as fd:
        config = read_networking_config(fd)
    config.name_into_devices("nat")    # ["vmnet8"]
"""
from .config import (
    DEFAULT_INTERFACE_TYPES,
    CommandReplayer,
    NetworkingConfig,
    local_interface_exists,
    read_networking_config,
    replay_networking_commands,
)
from .parser import (
    COMMAND_PARSERS,
    SUPPORTED_VERSION,
    parse_command,
    parse_networking_commands,
    read_version,
    split_rows,
    tokenize_networking_config,
)
from .schema import (
    INTERFACE_PREFIX,
    AddBridgeMapping,
    AddDhcpMacToIp,
    AddNatPortForward,
    AddNatPrefix,
    Answer,
    NetworkingCommand,
    NetworkingType,
    NetworkingVersion,
    RemoveAnswer,
    RemoveBridgeMapping,
    RemoveDhcpMacToIp,
    RemoveNatPortForward,
    RemoveNatPrefix,
    VnetKey,
)

__all__ = [
    "read_networking_config",
    "replay_networking_commands",
    "NetworkingConfig",
    "CommandReplayer",
    "local_interface_exists",
    "DEFAULT_INTERFACE_TYPES",
    "tokenize_networking_config",
    "split_rows",
    "read_version",
    "parse_command",
    "parse_networking_commands",
    "COMMAND_PARSERS",
    "SUPPORTED_VERSION",
    "INTERFACE_PREFIX",
    "NetworkingType",
    "NetworkingVersion",
    "VnetKey",
    "NetworkingCommand",
    "Answer",
    "RemoveAnswer",
    "AddNatPortForward",
    "RemoveNatPortForward",
    "AddDhcpMacToIp",
    "RemoveDhcpMacToIp",
    "AddBridgeMapping",
    "RemoveBridgeMapping",
    "AddNatPrefix",
    "RemoveNatPrefix",
]
