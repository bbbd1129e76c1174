"""Inheritance resolution and queries over a DHCP server configuration.

Usage:
    with open("vmnetdhcp.conf", "rb") as fd:
        config = read_dhcp_configuration(fd)

    subnet = config.subnet_by_address("192.168.56.10")
    host = config.host_by_name("builder")
    print(host.hardware(), host.ip4())
"""
import ipaddress
import logging
import socket
from dataclasses import dataclass, field
from typing import IO, Iterator, Sequence, Union

from ..errors import (
    AddressError,
    AmbiguousDeclarationError,
    DeclarationNotFoundError,
)
from ..utils.addresses import IPAddress, format_mac
from ..utils.logging_config import timed
from ..utils.streams import consume_file, strip_comments
from .parser import parse_declaration, parse_dhcp_config, parse_parameter
from .schema import (
    Address4,
    Address6,
    Boolean,
    ClientMatch,
    Declaration,
    DeclarationIdentity,
    DeclarationTree,
    Expression,
    GlobalScope,
    Grant,
    GrantPolicy,
    GRANT_POLICIES,
    Hardware,
    Host,
    Option,
    Other,
    Parameter,
    ParseTree,
    Subnet4,
    Subnet6,
)
from .tokenizer import tokenize_dhcp_config

logger = logging.getLogger(__name__)


def flatten_dhcp_config(tree: ParseTree) -> DeclarationTree:
    """Interpret every raw scope of `tree` into a typed declaration.

    Node indices are preserved, so the result is in pre-order with the
    global scope at index 0.

    Raises:
        ParseError: If any declaration or parameter is invalid
    """
    result = DeclarationTree()
    for node in tree.nodes:
        if node.parent is None:
            identity: DeclarationIdentity = GlobalScope()
        else:
            identity = parse_declaration(node.ident)

        declaration = Declaration(
            index=node.index,
            identity=identity,
            parent=node.parent,
            parameters=[parse_parameter(p) for p in node.params],
            children=list(node.children),
        )
        result.declarations.append(declaration)
    return result


@dataclass
class ConfigDeclaration:
    """A declaration with every inherited parameter folded in.

    Scalar categories (options, grants, attributes, parameters, expressions)
    are last-write-wins from the global scope down; `address` and `hostid`
    accumulate across the whole chain.
    """
    identities: list[DeclarationIdentity] = field(default_factory=list)
    composites: list[Declaration] = field(default_factory=list)
    address: list[Parameter] = field(default_factory=list)
    options: dict[str, str] = field(default_factory=dict)
    grants: dict[str, GrantPolicy] = field(default_factory=dict)
    attributes: dict[str, bool] = field(default_factory=dict)
    parameters: dict[str, str] = field(default_factory=dict)
    expressions: dict[str, str] = field(default_factory=dict)
    hostid: list[ClientMatch] = field(default_factory=list)

    @property
    def identity(self) -> DeclarationIdentity:
        """Identity of the declaration itself (the last element of the path)."""
        return self.identities[-1]

    def __str__(self) -> str:
        lines = [",".join(str(i) for i in self.identities)]
        if self.address:
            lines.append(f"address : {','.join(str(a) for a in self.address)}")
        if self.options:
            lines.append(f"options : {self.options}")
        if self.grants:
            grants = {k: v.value for k, v in self.grants.items()}
            lines.append(f"grants : {grants}")
        if self.attributes:
            lines.append(f"attributes : {self.attributes}")
        if self.parameters:
            lines.append(f"parameters : {self.parameters}")
        if self.expressions:
            lines.append(f"parameter-expressions : {self.expressions}")
        if self.hostid:
            lines.append(f"hostid : {' '.join(str(h) for h in self.hostid)}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "scope": [str(i) for i in self.identities],
            "address": [str(a) for a in self.address],
            "options": dict(self.options),
            "grants": {k: v.value for k, v in self.grants.items()},
            "attributes": dict(self.attributes),
            "parameters": dict(self.parameters),
            "expressions": dict(self.expressions),
            "hostid": [str(h) for h in self.hostid],
        }

    def _addresses(self, kind: type) -> list[str]:
        result = []
        for entry in self.address:
            if isinstance(entry, kind):
                result.extend(entry.addresses)
        return result

    def _resolve(self, label: str, candidates: list[str], family: int) -> IPAddress:
        if len(candidates) > 1:
            raise AddressError(f"more than one {label} address returned : {candidates}")
        if not candidates:
            raise AddressError(f"no {label} address found")

        wanted = ipaddress.IPv4Address if family == socket.AF_INET else ipaddress.IPv6Address
        try:
            address = ipaddress.ip_address(candidates[0])
        except ValueError:
            # Not a literal, treat it as a host name.
            try:
                info = socket.getaddrinfo(candidates[0], None, family)
            except OSError as e:
                raise AddressError(f"unable to resolve {candidates[0]} : {e}")
            address = ipaddress.ip_address(info[0][4][0])

        if not isinstance(address, wanted):
            raise AddressError(f"{candidates[0]} is not an {label} address")
        return address

    def ip4(self) -> ipaddress.IPv4Address:
        """Return the single fixed IPv4 address of this declaration.

        Raises:
            AddressError: If zero or several addresses exist, or a host name
                cannot be resolved
        """
        return self._resolve("IPv4", self._addresses(Address4), socket.AF_INET)

    def ip6(self) -> ipaddress.IPv6Address:
        """Return the single fixed IPv6 address of this declaration."""
        return self._resolve("IPv6", self._addresses(Address6), socket.AF_INET6)

    def hardware(self) -> bytes:
        """Return the single hardware address of this declaration.

        Raises:
            AddressError: If zero or more than one hardware address exists
        """
        found = [entry for entry in self.address if isinstance(entry, Hardware)]
        if len(found) > 1:
            raise AddressError(
                "more than one hardware address returned : "
                f"{[format_mac(h.address) for h in found]}"
            )
        if not found:
            raise AddressError("no hardware address found")
        return found[0].address


def create_declaration(tree: DeclarationTree, index: int) -> ConfigDeclaration:
    """Resolve the declaration at `index` against all of its ancestors."""
    hierarchy = list(reversed(tree.ancestry(index)))  # global first

    result = ConfigDeclaration()
    for node in hierarchy:
        result.composites.append(node)
        result.identities.append(node.identity)

        for p in node.parameters:
            if isinstance(p, Option):
                result.options[p.name] = p.value
            elif isinstance(p, Grant):
                result.grants[p.attribute] = GRANT_POLICIES[p.verb]
            elif isinstance(p, Boolean):
                result.attributes[p.name] = p.value
            elif isinstance(p, ClientMatch):
                result.hostid.append(p)
            elif isinstance(p, Expression):
                result.expressions[p.name] = p.expression
            elif isinstance(p, Other):
                result.parameters[p.name] = p.value
            else:
                result.address.append(p)

    return result


def walk_declarations(tree: DeclarationTree, index: int = 0) -> Iterator[ConfigDeclaration]:
    """Yield resolved declarations in pre-order starting at `index`."""
    stack = [index]
    while stack:
        current = stack.pop()
        yield create_declaration(tree, current)
        stack.extend(reversed(tree[current].children))


class DhcpConfiguration(Sequence[ConfigDeclaration]):
    """Every resolved declaration of a DHCP configuration, global scope first."""

    def __init__(self, declarations: list[ConfigDeclaration]):
        self._declarations = list(declarations)

    def __len__(self) -> int:
        return len(self._declarations)

    def __getitem__(self, index):
        return self._declarations[index]

    def __repr__(self) -> str:
        return f"DhcpConfiguration({len(self._declarations)} declarations)"

    def global_declaration(self) -> ConfigDeclaration:
        """Return the resolved global scope."""
        if not self._declarations:
            raise RuntimeError("DHCP configuration has not been read")
        result = self._declarations[0]
        if len(result.identities) != 1 or not isinstance(result.identity, GlobalScope):
            raise RuntimeError(f"unexpected global declaration : {result.identities}")
        return result

    def subnet_by_address(
        self,
        address: Union[str, ipaddress.IPv4Address, ipaddress.IPv6Address],
    ) -> ConfigDeclaration:
        """Return the one subnet/subnet6 declaration containing `address`.

        Raises:
            AddressError: If `address` is not an IP literal
            DeclarationNotFoundError: If no subnet contains the address
            AmbiguousDeclarationError: If more than one does
        """
        if isinstance(address, str):
            try:
                address = ipaddress.ip_address(address)
            except ValueError:
                raise AddressError(f"not an IP address : {address}")

        result = [
            entry for entry in self._declarations
            if isinstance(entry.identity, (Subnet4, Subnet6))
            and address in entry.identity.network
        ]
        if not result:
            raise DeclarationNotFoundError(f"no network declarations containing {address} found")
        if len(result) > 1:
            raise AmbiguousDeclarationError(
                f"more than one network declaration found : {[str(e.identity) for e in result]}",
                result,
            )
        return result[0]

    def host_by_name(self, host: str) -> ConfigDeclaration:
        """Return the one host declaration named `host` (case-insensitive).

        Raises:
            DeclarationNotFoundError: If no host has that name
            AmbiguousDeclarationError: If more than one does
        """
        wanted = host.casefold()
        result = [
            entry for entry in self._declarations
            if isinstance(entry.identity, Host) and entry.identity.name.casefold() == wanted
        ]
        if not result:
            raise DeclarationNotFoundError(f"no host declarations containing {host} found")
        if len(result) > 1:
            raise AmbiguousDeclarationError(
                f"more than one host declaration found : {[str(e.identity) for e in result]}",
                result,
            )
        return result[0]

    def to_list(self) -> list[dict]:
        return [d.to_dict() for d in self._declarations]


@timed("read_dhcp_configuration")
def read_dhcp_configuration(handle: IO) -> DhcpConfiguration:
    """Read a DHCP server configuration file.

    Args:
        handle: Open file (binary or text); it is read to exhaustion but not closed

    Returns:
        DhcpConfiguration with one resolved declaration per scope

    Raises:
        ParseError: On any structural or keyword error
    """
    tokens = tokenize_dhcp_config(strip_comments(consume_file(handle)))
    parse_tree = parse_dhcp_config(tokens)
    tree = flatten_dhcp_config(parse_tree)

    result = DhcpConfiguration(list(walk_declarations(tree)))
    logger.debug(f"Read {len(result)} DHCP declarations")
    return result
