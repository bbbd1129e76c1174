"""Replay of networking commands and classification of vmnet interfaces."""
import logging
import socket
from dataclasses import dataclass, field
from typing import IO, Callable, Iterable

from ..base import NetworkNameMapper
from ..errors import NetworkNameError
from ..utils.addresses import IPAddress, format_mac
from ..utils.logging_config import timed
from ..utils.streams import consume_file
from .parser import (
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
    RemoveAnswer,
    RemoveBridgeMapping,
    RemoveDhcpMacToIp,
    RemoveNatPortForward,
    RemoveNatPrefix,
)

logger = logging.getLogger(__name__)

# Roles of the interfaces a fresh install creates
DEFAULT_INTERFACE_TYPES: dict[int, NetworkingType] = {
    0: NetworkingType.BRIDGED,
    1: NetworkingType.HOSTONLY,
    8: NetworkingType.NAT,
}


def local_interface_exists(name: str) -> bool:
    """Check whether this host has a network interface called `name`."""
    try:
        socket.if_nametoindex(name)
    except OSError:
        return False
    return True


@dataclass
class NetworkingConfig(NetworkNameMapper):
    """State left behind by replaying a networking command log."""
    answer: dict[int, dict[str, str]] = field(default_factory=dict)
    nat_portfwd: dict[int, dict[str, str]] = field(default_factory=dict)
    dhcp_mac_to_ip: dict[int, dict[str, IPAddress]] = field(default_factory=dict)
    bridge_mapping: dict[str, int] = field(default_factory=dict)
    nat_prefix: dict[int, list[int]] = field(default_factory=dict)
    interface_prefix: str = INTERFACE_PREFIX

    def interface_types(self) -> dict[int, NetworkingType]:
        """Classify every known vmnet index.

        Answers override the defaults and bridge mappings override answers.
        """
        result = dict(DEFAULT_INTERFACE_TYPES)

        for index, table in self.answer.items():
            if table.get("VIRTUAL_ADAPTER", "").lower() == "yes":
                if "HOSTONLY_SUBNET" not in table or "HOSTONLY_NETMASK" not in table:
                    logger.warning(
                        f"virtual adapter {self.interface_prefix}{index} "
                        f"is missing its subnet or netmask"
                    )
                if table.get("NAT", "").lower() == "yes":
                    result[index] = NetworkingType.NAT
                else:
                    result[index] = NetworkingType.HOSTONLY
            else:
                result[index] = NetworkingType.BRIDGED

        for index in self.bridge_mapping.values():
            result[index] = NetworkingType.BRIDGED

        return result

    def names_to_vmnet(self) -> dict[NetworkingType, list[int]]:
        """Group the sorted vmnet indices of each networking type."""
        result: dict[NetworkingType, list[int]] = {t: [] for t in NetworkingType}
        for index, kind in sorted(self.interface_types().items()):
            result[kind].append(index)
        return result

    def name_into_devices(self, name: str) -> list[str]:
        try:
            kind = NetworkingType(name.lower())
        except ValueError:
            raise NetworkNameError(f"error finding network name : {name}")

        indices = self.names_to_vmnet()[kind]
        if not indices:
            raise NetworkNameError(f"no devices found for network name : {name}")
        return [f"{self.interface_prefix}{i}" for i in indices]

    def device_into_name(self, device: str) -> str:
        lowered = device.lower()
        prefix = self.interface_prefix.lower()
        if not lowered.startswith(prefix):
            return device

        suffix = lowered[len(prefix):]
        if not suffix.isdigit():
            raise NetworkNameError(f"unable to parse vmnet index from device : {device}")

        kind = self.interface_types().get(int(suffix))
        if kind is None:
            raise NetworkNameError(f"error finding device name : {device}")
        return kind.value

    def to_dict(self) -> dict:
        return {
            "answer": {str(k): dict(v) for k, v in sorted(self.answer.items())},
            "nat_portfwd": {str(k): dict(v) for k, v in sorted(self.nat_portfwd.items())},
            "dhcp_mac_to_ip": {
                str(k): {mac: str(ip) for mac, ip in v.items()}
                for k, v in sorted(self.dhcp_mac_to_ip.items())
            },
            "bridge_mapping": dict(self.bridge_mapping),
            "nat_prefix": {str(k): list(v) for k, v in sorted(self.nat_prefix.items())},
            "interfaces": {
                f"{self.interface_prefix}{k}": v.value
                for k, v in sorted(self.interface_types().items())
            },
        }

    def __str__(self) -> str:
        lines = []
        for index, kind in sorted(self.interface_types().items()):
            lines.append(f"{self.interface_prefix}{index}: {kind.value}")
        for interface, index in sorted(self.bridge_mapping.items()):
            lines.append(f"{interface} -> {self.interface_prefix}{index}")
        for index, table in sorted(self.nat_portfwd.items()):
            for key, target in sorted(table.items()):
                lines.append(f"{self.interface_prefix}{index} {key} -> {target}")
        return "\n".join(lines)


class CommandReplayer:
    """Apply networking commands, in order, onto one NetworkingConfig.

    Removing something that is not there is logged and ignored. Bridge
    mappings naming an interface this host lacks are logged and still
    applied.
    """

    def __init__(
        self,
        config: NetworkingConfig,
        interface_exists: Callable[[str], bool] = local_interface_exists,
    ):
        self.config = config
        self.interface_exists = interface_exists
        self._handlers: dict[type, Callable] = {
            Answer: self._answer,
            RemoveAnswer: self._remove_answer,
            AddNatPortForward: self._add_nat_portfwd,
            RemoveNatPortForward: self._remove_nat_portfwd,
            AddDhcpMacToIp: self._add_dhcp_mac_to_ip,
            RemoveDhcpMacToIp: self._remove_dhcp_mac_to_ip,
            AddBridgeMapping: self._add_bridge_mapping,
            RemoveBridgeMapping: self._remove_bridge_mapping,
            AddNatPrefix: self._add_nat_prefix,
            RemoveNatPrefix: self._remove_nat_prefix,
        }

    def apply(self, command: NetworkingCommand) -> None:
        logger.debug(f"Replaying {command.describe()}")
        self._handlers[type(command)](command)

    def _answer(self, command: Answer) -> None:
        table = self.config.answer.setdefault(command.vnet.number, {})
        table[command.vnet.option] = command.value

    def _remove_answer(self, command: RemoveAnswer) -> None:
        table = self.config.answer.get(command.vnet.number)
        if table is None:
            logger.warning(f"unable to remove answer {command.vnet} : no answers for vmnet{command.vnet.number}")
            return
        if command.vnet.option not in table:
            logger.warning(f"unable to remove answer {command.vnet} : option was never set")
            return
        del table[command.vnet.option]

    def _add_nat_portfwd(self, command: AddNatPortForward) -> None:
        self.config.nat_portfwd.setdefault(command.vnet, {})[command.key] = command.target

    def _remove_nat_portfwd(self, command: RemoveNatPortForward) -> None:
        table = self.config.nat_portfwd.get(command.vnet)
        if table is None or command.key not in table:
            logger.warning(f"unable to remove nat port forward {command.key} from vmnet{command.vnet} : not found")
            return
        del table[command.key]

    def _add_dhcp_mac_to_ip(self, command: AddDhcpMacToIp) -> None:
        self.config.dhcp_mac_to_ip.setdefault(command.vnet, {})[format_mac(command.mac)] = command.ip

    def _remove_dhcp_mac_to_ip(self, command: RemoveDhcpMacToIp) -> None:
        mac = format_mac(command.mac)
        table = self.config.dhcp_mac_to_ip.get(command.vnet)
        if table is None or mac not in table:
            logger.warning(f"unable to remove dhcp mac {mac} from vmnet{command.vnet} : not found")
            return
        del table[mac]

    def _add_bridge_mapping(self, command: AddBridgeMapping) -> None:
        if not self.interface_exists(command.interface):
            logger.warning(f"bridge mapping names an interface missing from this host : {command.interface}")
        self.config.bridge_mapping[command.interface] = command.vnet

    def _remove_bridge_mapping(self, command: RemoveBridgeMapping) -> None:
        if not self.interface_exists(command.interface):
            logger.warning(f"bridge mapping names an interface missing from this host : {command.interface}")
        if command.interface not in self.config.bridge_mapping:
            logger.warning(f"unable to remove bridge mapping for {command.interface} : not found")
            return
        del self.config.bridge_mapping[command.interface]

    def _add_nat_prefix(self, command: AddNatPrefix) -> None:
        self.config.nat_prefix.setdefault(command.vnet, []).append(command.prefix)

    def _remove_nat_prefix(self, command: RemoveNatPrefix) -> None:
        prefixes = self.config.nat_prefix.get(command.vnet, [])
        if command.prefix not in prefixes:
            logger.warning(f"unable to remove nat prefix /{command.prefix} from vmnet{command.vnet} : not found")
            return
        prefixes.remove(command.prefix)


def replay_networking_commands(
    commands: Iterable[NetworkingCommand],
    interface_exists: Callable[[str], bool] = local_interface_exists,
    interface_prefix: str = INTERFACE_PREFIX,
) -> NetworkingConfig:
    """Build a NetworkingConfig by applying `commands` in order."""
    config = NetworkingConfig(interface_prefix=interface_prefix)
    replayer = CommandReplayer(config, interface_exists)
    for command in commands:
        replayer.apply(command)
    return config


@timed("read_networking_config")
def read_networking_config(
    handle: IO,
    interface_exists: Callable[[str], bool] = local_interface_exists,
    interface_prefix: str = INTERFACE_PREFIX,
) -> NetworkingConfig:
    """Read a networking command log.

    The version row is checked before any command is interpreted.

    Raises:
        ParseError: If the version row is missing or malformed
        UnsupportedVersionError: If the log is not version 1.0
    """
    rows = split_rows(tokenize_networking_config(consume_file(handle)))
    version = read_version(next(rows, None))
    logger.debug(f"Networking file version {version}")

    config = replay_networking_commands(
        parse_networking_commands(rows), interface_exists, interface_prefix
    )
    logger.debug(f"Replayed networking file with {len(config.answer)} answer tables")
    return config
