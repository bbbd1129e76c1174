"""Parser for DHCP server configuration token streams.

Turns tokens into a ParseTree of raw scopes, and interprets raw lines into
typed parameters and declaration identities. Every rule here is strict: a
violation raises and nothing partial is produced.
"""
import ipaddress
from types import MappingProxyType
from typing import Callable, Iterable

from ..errors import ParameterError, ParseError
from .schema import (
    Address4,
    Address6,
    Boolean,
    ClientMatch,
    DeclarationIdentity,
    Expression,
    Grant,
    Group,
    Hardware,
    Host,
    Include,
    Option,
    Other,
    Parameter,
    ParseTree,
    Pool,
    Prefix6,
    Range4,
    Range6,
    SharedNetwork,
    Subnet4,
    Subnet6,
    TokenParameter,
)

GRANT_VERBS = frozenset({"allow", "deny", "ignore"})
BOOTP_MARKERS = frozenset({"bootp", "dynamic-bootp"})


def to_parameter(tokens: list[str]) -> TokenParameter:
    """Split a list of tokens into a keyword and its operands."""
    if not tokens:
        return TokenParameter()
    return TokenParameter(name=tokens[0], operands=list(tokens[1:]))


def parse_dhcp_config(tokens: Iterable[str]) -> ParseTree:
    """Build the raw scope tree from a token stream.

    Raises:
        ParseError: On a `}` at global scope, a `}` after an unterminated
            statement, or input that ends inside a scope or statement
    """
    tree = ParseTree()
    cursor = tree.root
    pending: list[str] = []

    for token in tokens:
        if token == "{":
            cursor = tree.add_child(cursor.index, to_parameter(pending))
            pending = []

        elif token == "}":
            if cursor.parent is None:
                raise ParseError("refused to close the global declaration")
            if pending:
                raise ParseError(f"list of tokens was left unterminated: {pending}")
            cursor = tree.nodes[cursor.parent]

        elif token == ";":
            # Empty statements (";;" or "};") carry nothing
            if pending:
                cursor.params.append(to_parameter(pending))
            pending = []

        else:
            pending.append(token)

    if pending:
        raise ParseError(f"list of tokens was left unterminated: {pending}")
    if cursor.parent is not None:
        ident = " ".join([cursor.ident.name] + cursor.ident.operands)
        raise ParseError(f"declaration was left unclosed: {ident}")

    return tree


# --- Address helpers ---

def _ipv4(keyword: str, operands: list[str], text: str) -> ipaddress.IPv4Address:
    try:
        return ipaddress.IPv4Address(text)
    except ValueError:
        raise ParameterError(keyword, operands, f"invalid IPv4 address {text!r}")


def _ipv6(keyword: str, operands: list[str], text: str) -> ipaddress.IPv6Address:
    try:
        return ipaddress.IPv6Address(text)
    except ValueError:
        raise ParameterError(keyword, operands, f"invalid IPv6 address {text!r}")


def _bits(keyword: str, operands: list[str], text: str, maximum: int) -> int:
    try:
        bits = int(text)
    except ValueError:
        raise ParameterError(keyword, operands, f"invalid prefix length {text!r}")
    if not 0 <= bits <= maximum:
        raise ParameterError(keyword, operands, f"prefix length {bits} out of range")
    return bits


def _require(keyword: str, operands: list[str], count: int, name: str) -> None:
    if len(operands) != count:
        raise ParameterError(keyword, operands, f"invalid number of parameters for {name}")


# --- Keyword interpreters ---

def _parse_include(keyword: str, operands: list[str]) -> Parameter:
    _require(keyword, operands, 1, "include")
    return Include(filename=operands[0])


def _parse_option(keyword: str, operands: list[str]) -> Parameter:
    _require(keyword, operands, 2, "option")
    return Option(name=operands[0], value=operands[1])


def _parse_grant(keyword: str, operands: list[str]) -> Parameter:
    if len(operands) < 1:
        raise ParameterError(keyword, operands, "invalid number of parameters for grant")
    return Grant(verb=keyword.lower(), attribute=" ".join(operands))


def _parse_range(keyword: str, operands: list[str]) -> Parameter:
    if len(operands) < 1:
        raise ParameterError(keyword, operands, "invalid number of parameters for range")

    start = 1 if operands[0].lower() in BOOTP_MARKERS else 0
    addresses = operands[start:]
    if not 1 <= len(addresses) <= 2:
        raise ParameterError(keyword, operands, "invalid number of parameters for range")

    low = _ipv4(keyword, operands, addresses[0])
    high = _ipv4(keyword, operands, addresses[-1])
    return Range4(start=low, end=high)


def _parse_range6(keyword: str, operands: list[str]) -> Parameter:
    if len(operands) == 1:
        address = operands[0]
        if "/" not in address:
            single = _ipv6(keyword, operands, address)
            return Range6(start=single, end=single)

        text, bits_text = address.split("/", 1)
        base = _ipv6(keyword, operands, text)
        bits = _bits(keyword, operands, bits_text, 128)
        network = ipaddress.IPv6Network((base, bits), strict=False)
        return Range6(start=network.network_address, end=network.broadcast_address)

    if len(operands) == 2:
        low = _ipv6(keyword, operands, operands[0])
        if operands[1].lower() == "temporary":
            return Range6(start=low, end=low)
        return Range6(start=low, end=_ipv6(keyword, operands, operands[1]))

    raise ParameterError(keyword, operands, "invalid number of parameters for range6")


def _parse_prefix6(keyword: str, operands: list[str]) -> Parameter:
    _require(keyword, operands, 3, "prefix6")
    low = _ipv6(keyword, operands, operands[0])
    high = _ipv6(keyword, operands, operands[1])
    bits = _bits(keyword, operands, operands[2], 128)
    return Prefix6(start=low, end=high, bits=bits)


def _parse_hardware(keyword: str, operands: list[str]) -> Parameter:
    _require(keyword, operands, 2, "hardware")

    octets = operands[1].split(":")
    if len(octets) != 6:
        raise ParameterError(keyword, operands, "invalid MAC address format")

    address = bytearray()
    for octet in octets:
        try:
            value = int(octet, 16)
        except ValueError:
            raise ParameterError(keyword, operands, f"invalid MAC address octet {octet!r}")
        if not 0 <= value <= 0xFF or len(octet) > 2:
            raise ParameterError(keyword, operands, f"invalid MAC address octet {octet!r}")
        address.append(value)

    return Hardware(hw_class=operands[0], address=bytes(address))


def _address_list(keyword: str, operands: list[str]) -> tuple[str, ...]:
    addresses = tuple(
        item.strip()
        for operand in operands
        for item in operand.split(",")
        if item.strip()
    )
    if not addresses:
        raise ParameterError(keyword, operands, "invalid number of parameters for fixed address")
    return addresses


def _parse_fixed_address(keyword: str, operands: list[str]) -> Parameter:
    return Address4(addresses=_address_list(keyword, operands))


def _parse_fixed_address6(keyword: str, operands: list[str]) -> Parameter:
    return Address6(addresses=_address_list(keyword, operands))


def _parse_host_identifier(keyword: str, operands: list[str]) -> Parameter:
    _require(keyword, operands, 3, "host-identifier")
    if operands[0] != "option":
        raise ParameterError(keyword, operands, f"invalid match parameter {operands[0]!r}")
    return ClientMatch(name=operands[1], data=operands[2])


def _parse_generic(keyword: str, operands: list[str]) -> Parameter:
    """Keywords without a dedicated rule."""
    if not operands:
        return Boolean(name=keyword, value=True)

    if len(operands) > 1 and operands[0] == "=":
        return Expression(name=keyword, expression="".join(operands[1:]))

    if len(operands) != 1:
        raise ParameterError(keyword, operands, "invalid number of parameters for parameter")

    if keyword.lower() == "not":
        return Boolean(name=operands[0], value=False)

    return Other(name=keyword, value=operands[0])


KEYWORD_PARSERS: "MappingProxyType[str, Callable[[str, list[str]], Parameter]]" = MappingProxyType({
    "include": _parse_include,
    "option": _parse_option,
    "range": _parse_range,
    "range6": _parse_range6,
    "prefix6": _parse_prefix6,
    "hardware": _parse_hardware,
    "fixed-address": _parse_fixed_address,
    "fixed-address6": _parse_fixed_address6,
    "host-identifier": _parse_host_identifier,
})


def parse_parameter(line: TokenParameter) -> Parameter:
    """Interpret one raw statement as a typed parameter.

    Raises:
        ParameterError: If the keyword's operand rules are violated
    """
    keyword, operands = line.name, list(line.operands)

    if keyword.lower() in GRANT_VERBS:
        return _parse_grant(keyword, operands)

    parser = KEYWORD_PARSERS.get(keyword, _parse_generic)
    return parser(keyword, operands)


def _parse_subnet(operands: list[str]) -> DeclarationIdentity:
    if len(operands) != 3:
        raise ParseError(f"invalid number of parameters for subnet : {operands}")
    if operands[1].lower() != "netmask":
        raise ParseError(f"invalid parameters for subnet : {operands}")

    octets = operands[2].split(".")
    if len(octets) != 4:
        raise ParseError(f"invalid netmask for subnet : {operands[2]}")
    for octet in octets:
        if not octet.isdigit() or int(octet) > 255:
            raise ParseError(f"invalid octet {octet!r} in netmask {operands[2]}")

    try:
        address = ipaddress.IPv4Address(operands[0])
        network = ipaddress.IPv4Network(f"{address}/{operands[2]}", strict=False)
    except ValueError as e:
        raise ParseError(f"invalid parameters for subnet : {operands} : {e}")
    return Subnet4(network=network)


def _parse_subnet6(operands: list[str]) -> DeclarationIdentity:
    if len(operands) != 1:
        raise ParseError(f"invalid number of parameters for subnet6 : {operands}")

    parts = operands[0].split("/", 1)
    if len(parts) != 2 or ":" not in parts[0]:
        raise ParseError(f"invalid parameters for subnet6 : {operands}")

    try:
        prefix = int(parts[1])
        network = ipaddress.IPv6Network((ipaddress.IPv6Address(parts[0]), prefix), strict=False)
    except ValueError as e:
        raise ParseError(f"invalid parameters for subnet6 : {operands} : {e}")
    return Subnet6(network=network)


def parse_declaration(ident: TokenParameter) -> DeclarationIdentity:
    """Interpret the statement that opened a scope.

    Raises:
        ParseError: If the declaration keyword or its operands are invalid
    """
    name, operands = ident.name, list(ident.operands)

    if name in ("group", "pool") and not operands:
        return Group() if name == "group" else Pool()

    if name == "host" and len(operands) == 1:
        return Host(name=operands[0])

    if name == "shared-network" and len(operands) == 1:
        return SharedNetwork(name=operands[0])

    if name == "subnet":
        return _parse_subnet(operands)

    if name == "subnet6":
        return _parse_subnet6(operands)

    raise ParseError(f"invalid declaration : {name or '<empty>'} : {operands}")
