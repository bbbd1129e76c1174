"""Parser for the networking command log.

    VERSION=1,0
    answer VNET_1_DHCP yes
    answer VNET_1_HOSTONLY_SUBNET 172.16.41.0
    add_nat_portfwd 8 tcp 2222 172.16.41.129 22
    add_bridge_mapping en0 0

The version row is strict. Command rows are tolerant: an unknown verb or a
malformed row is logged and skipped so one bad line does not lose the file.
"""
import logging
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Optional

from ..errors import ParseError, UnsupportedVersionError
from ..utils.addresses import parse_ip, parse_mac
from .schema import (
    AddBridgeMapping,
    AddDhcpMacToIp,
    AddNatPortForward,
    AddNatPrefix,
    Answer,
    NetworkingCommand,
    NetworkingVersion,
    RemoveAnswer,
    RemoveBridgeMapping,
    RemoveDhcpMacToIp,
    RemoveNatPortForward,
    RemoveNatPrefix,
    VnetKey,
)

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = NetworkingVersion(major=1, minor=0)
PROTOCOLS = frozenset({"tcp", "udp"})


def tokenize_networking_config(source: Iterable[str]) -> Iterator[str]:
    """Split a character stream on blanks, emitting one "\\n" per run of line breaks.

    Carriage returns count as line breaks.
    """
    state: list[str] = []
    repeat_newline = False

    for ch in source:
        if ch in " \t":
            if state:
                yield "".join(state)
                state = []
            repeat_newline = False

        elif ch in "\r\n":
            if repeat_newline:
                continue
            if state:
                yield "".join(state)
                state = []
            yield "\n"
            repeat_newline = True

        else:
            state.append(ch)
            repeat_newline = False

    if state:
        yield "".join(state)


def split_rows(tokens: Iterable[str]) -> Iterator[list[str]]:
    """Group tokens between newline tokens into rows, dropping empty rows."""
    row: list[str] = []
    for token in tokens:
        if token == "\n":
            if row:
                yield row
            row = []
        else:
            row.append(token)

    if row:
        yield row


def read_version(row: Optional[list[str]]) -> NetworkingVersion:
    """Interpret the header row and enforce the supported version.

    Raises:
        ParseError: If the row is missing or not a version declaration
        UnsupportedVersionError: If the version is not 1.0
    """
    if not row:
        raise ParseError("networking file is missing its VERSION row")
    if len(row) != 1:
        raise ParseError(f"unexpected format for version : {row}")

    try:
        version = NetworkingVersion.parse(row[0])
    except ValueError as e:
        raise ParseError(str(e))

    if version != SUPPORTED_VERSION:
        raise UnsupportedVersionError(
            (version.major, version.minor),
            (SUPPORTED_VERSION.major, SUPPORTED_VERSION.minor),
        )
    return version


# --- Argument helpers ---

def _expect(args: list[str], count: int) -> None:
    if len(args) != count:
        raise ParseError(f"expected {count} argument{'s' if count != 1 else ''} but received {len(args)}")


def _integer(text: str, position: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise ParseError(f"unable to parse {position} argument as an integer : {text}")


def _vnet(text: str, position: str) -> int:
    """Log indices are one-based; stored indices are zero-based."""
    return _integer(text, position) - 1


def _protocol(text: str) -> str:
    protocol = text.lower()
    if protocol not in PROTOCOLS:
        raise ParseError(f'expected "tcp" or "udp" for second argument : {text}')
    return protocol


def _address(text: str, position: str):
    try:
        return parse_ip(text)
    except ValueError:
        raise ParseError(f"unable to parse {position} argument as an IP address : {text}")


def _mac(text: str, position: str) -> bytes:
    try:
        return parse_mac(text)
    except ValueError:
        raise ParseError(f"unable to parse {position} argument as hardware address : {text}")


def _vnet_key(text: str) -> VnetKey:
    try:
        return VnetKey.parse(text)
    except ValueError as e:
        raise ParseError(str(e))


def _prefix(text: str) -> int:
    if not text.startswith("/"):
        raise ParseError(f'expected second argument to begin with "/" : {text}')
    try:
        return int(text[1:])
    except ValueError:
        raise ParseError(f"unable to parse prefix from second argument : {text}")


# --- Command parsers ---

def parse_answer(args: list[str]) -> Answer:
    _expect(args, 2)
    return Answer(vnet=_vnet_key(args[0]), value=args[1])


def parse_remove_answer(args: list[str]) -> RemoveAnswer:
    _expect(args, 1)
    return RemoveAnswer(vnet=_vnet_key(args[0]))


def parse_add_nat_portfwd(args: list[str]) -> AddNatPortForward:
    _expect(args, 5)
    return AddNatPortForward(
        vnet=_vnet(args[0], "first"),
        protocol=_protocol(args[1]),
        port=_integer(args[2], "third"),
        target_host=_address(args[3], "fourth"),
        target_port=_integer(args[4], "fifth"),
    )


def parse_remove_nat_portfwd(args: list[str]) -> RemoveNatPortForward:
    _expect(args, 3)
    return RemoveNatPortForward(
        vnet=_vnet(args[0], "first"),
        protocol=_protocol(args[1]),
        port=_integer(args[2], "third"),
    )


def parse_add_dhcp_mac_to_ip(args: list[str]) -> AddDhcpMacToIp:
    _expect(args, 3)
    return AddDhcpMacToIp(
        vnet=_vnet(args[0], "first"),
        mac=_mac(args[1], "second"),
        ip=_address(args[2], "third"),
    )


def parse_remove_dhcp_mac_to_ip(args: list[str]) -> RemoveDhcpMacToIp:
    _expect(args, 2)
    return RemoveDhcpMacToIp(vnet=_vnet(args[0], "first"), mac=_mac(args[1], "second"))


def parse_add_bridge_mapping(args: list[str]) -> AddBridgeMapping:
    _expect(args, 2)
    return AddBridgeMapping(interface=args[0], vnet=_vnet(args[1], "second"))


def parse_remove_bridge_mapping(args: list[str]) -> RemoveBridgeMapping:
    _expect(args, 1)
    return RemoveBridgeMapping(interface=args[0])


def parse_add_nat_prefix(args: list[str]) -> AddNatPrefix:
    _expect(args, 2)
    return AddNatPrefix(vnet=_vnet(args[0], "first"), prefix=_prefix(args[1]))


def parse_remove_nat_prefix(args: list[str]) -> RemoveNatPrefix:
    _expect(args, 2)
    return RemoveNatPrefix(vnet=_vnet(args[0], "first"), prefix=_prefix(args[1]))


COMMAND_PARSERS: "MappingProxyType[str, Callable[[list[str]], NetworkingCommand]]" = MappingProxyType({
    Answer.verb: parse_answer,
    RemoveAnswer.verb: parse_remove_answer,
    AddNatPortForward.verb: parse_add_nat_portfwd,
    RemoveNatPortForward.verb: parse_remove_nat_portfwd,
    AddDhcpMacToIp.verb: parse_add_dhcp_mac_to_ip,
    RemoveDhcpMacToIp.verb: parse_remove_dhcp_mac_to_ip,
    AddBridgeMapping.verb: parse_add_bridge_mapping,
    RemoveBridgeMapping.verb: parse_remove_bridge_mapping,
    AddNatPrefix.verb: parse_add_nat_prefix,
    RemoveNatPrefix.verb: parse_remove_nat_prefix,
})


def parse_command(row: list[str]) -> NetworkingCommand:
    """Interpret one row as a command.

    Raises:
        ParseError: If the verb is unknown or its arguments are malformed
    """
    parser = COMMAND_PARSERS.get(row[0])
    if parser is None:
        raise ParseError(f"invalid command : {row}")
    return parser(row[1:])


def parse_networking_commands(rows: Iterable[list[str]]) -> Iterator[NetworkingCommand]:
    """Yield a command per row, logging and skipping rows that do not parse."""
    for row in rows:
        if not row:
            continue
        try:
            yield parse_command(row)
        except ParseError as e:
            logger.warning(f"unable to parse command : {e} {row}")
