"""Schema definitions for DHCP server configuration files.

Three layers of shapes live here:
- Raw parse tree: TokenParameter lines grouped into ScopeNode scopes
- Typed parameters and declaration identities interpreted from those lines
- DeclarationTree, the typed tree that inheritance is resolved over

Both trees are arenas: nodes live in a list and refer to their parent and
children by index.
"""
import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Optional, Union

from ..utils.addresses import format_mac


# --- Raw parse tree ---

@dataclass
class TokenParameter:
    """A keyword and its operands, as read between terminators."""
    name: str = ""
    operands: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.name} [{','.join(self.operands)}]"


@dataclass
class ScopeNode:
    """One `{ ... }` scope of the raw parse tree."""
    index: int
    parent: Optional[int]
    ident: TokenParameter = field(default_factory=TokenParameter)
    params: list[TokenParameter] = field(default_factory=list)
    children: list[int] = field(default_factory=list)

    def __str__(self) -> str:
        ident = " ".join([self.ident.name] + self.ident.operands)
        config = "\n".join(str(p) for p in self.params)
        return f"{ident} {{\n{config}\n}}"


@dataclass
class ParseTree:
    """Arena of raw scopes. Index 0 is the implicit global scope."""
    nodes: list[ScopeNode] = field(default_factory=lambda: [ScopeNode(index=0, parent=None)])

    @property
    def root(self) -> ScopeNode:
        return self.nodes[0]

    def add_child(self, parent: int, ident: TokenParameter) -> ScopeNode:
        """Append a new scope under `parent` and return it."""
        node = ScopeNode(index=len(self.nodes), parent=parent, ident=ident)
        self.nodes.append(node)
        self.nodes[parent].children.append(node.index)
        return node


# --- Parameters ---

@dataclass(frozen=True)
class Include:
    filename: str

    def __str__(self) -> str:
        return f"include-file:filename={self.filename}"


@dataclass(frozen=True)
class Option:
    name: str
    value: str

    def __str__(self) -> str:
        return f"option:{self.name}={self.value}"


@dataclass(frozen=True)
class Grant:
    """allow/deny/ignore some-attribute"""
    verb: str
    attribute: str

    def __str__(self) -> str:
        return f"grant:{self.verb},{self.attribute}"


@dataclass(frozen=True)
class Address4:
    addresses: tuple[str, ...]

    def __str__(self) -> str:
        return f"fixed-address4:{','.join(self.addresses)}"


@dataclass(frozen=True)
class Address6:
    addresses: tuple[str, ...]

    def __str__(self) -> str:
        return f"fixed-address6:{','.join(self.addresses)}"


@dataclass(frozen=True)
class Hardware:
    """hardware ethernet 00:00:00:00:00:00"""
    hw_class: str
    address: bytes

    def __str__(self) -> str:
        return f"hardware-address:{self.hw_class}[{format_mac(self.address)}]"


@dataclass(frozen=True)
class Boolean:
    name: str
    value: bool

    def __str__(self) -> str:
        return f"boolean:{self.name}={str(self.value).lower()}"


@dataclass(frozen=True)
class ClientMatch:
    name: str
    data: str

    def __str__(self) -> str:
        return f"match-client:{self.name}={self.data}"


@dataclass(frozen=True)
class Range4:
    start: ipaddress.IPv4Address
    end: ipaddress.IPv4Address

    def __str__(self) -> str:
        return f"range4:{self.start}-{self.end}"


@dataclass(frozen=True)
class Range6:
    start: ipaddress.IPv6Address
    end: ipaddress.IPv6Address

    def __str__(self) -> str:
        return f"range6:{self.start}-{self.end}"


@dataclass(frozen=True)
class Prefix6:
    start: ipaddress.IPv6Address
    end: ipaddress.IPv6Address
    bits: int

    def __str__(self) -> str:
        return f"prefix6:/{self.bits}:{self.start}-{self.end}"


@dataclass(frozen=True)
class Other:
    """some-kind-of-parameter 1024"""
    name: str
    value: str

    def __str__(self) -> str:
        return f"parameter:{self.name}={self.value}"


@dataclass(frozen=True)
class Expression:
    name: str
    expression: str

    def __str__(self) -> str:
        return f'parameter-expression:{self.name}="{self.expression}"'


Parameter = Union[
    Include, Option, Grant, Address4, Address6, Hardware, Boolean,
    ClientMatch, Range4, Range6, Prefix6, Other, Expression,
]

# Parameters that accumulate into ConfigDeclaration.address
ADDRESS_PARAMETERS = (Include, Address4, Address6, Hardware, Range4, Range6, Prefix6)


class GrantPolicy(str, Enum):
    """Resolved value of an allow/deny/ignore statement."""
    ALLOW = "allow"
    IGNORE = "ignore"
    DENY = "deny"


GRANT_POLICIES = MappingProxyType({policy.value: policy for policy in GrantPolicy})


# --- Declaration identities ---

@dataclass(frozen=True)
class GlobalScope:
    def __str__(self) -> str:
        return "{global}"


@dataclass(frozen=True)
class SharedNetwork:
    name: str

    def __str__(self) -> str:
        return f"{{shared-network {self.name}}}"


@dataclass(frozen=True)
class Subnet4:
    network: ipaddress.IPv4Network

    def __str__(self) -> str:
        return f"{{subnet4 {self.network}}}"


@dataclass(frozen=True)
class Subnet6:
    network: ipaddress.IPv6Network

    def __str__(self) -> str:
        return f"{{subnet6 {self.network}}}"


@dataclass(frozen=True)
class Host:
    name: str

    def __str__(self) -> str:
        return f"{{host name:{self.name}}}"


@dataclass(frozen=True)
class Pool:
    def __str__(self) -> str:
        return "{pool}"


@dataclass(frozen=True)
class Group:
    def __str__(self) -> str:
        return "{group}"


DeclarationIdentity = Union[GlobalScope, SharedNetwork, Subnet4, Subnet6, Host, Pool, Group]


# --- Typed tree ---

@dataclass
class Declaration:
    """A typed scope: identity, local parameters and child indices."""
    index: int
    identity: DeclarationIdentity
    parent: Optional[int] = None
    parameters: list[Parameter] = field(default_factory=list)
    children: list[int] = field(default_factory=list)

    def short(self) -> str:
        return str(self.identity)


@dataclass
class DeclarationTree:
    """Arena of typed declarations in pre-order. Index 0 is the global scope."""
    declarations: list[Declaration] = field(default_factory=list)

    @property
    def root(self) -> Declaration:
        if not self.declarations:
            raise RuntimeError("declaration tree has not been built")
        return self.declarations[0]

    def __len__(self) -> int:
        return len(self.declarations)

    def __getitem__(self, index: int) -> Declaration:
        return self.declarations[index]

    def ancestry(self, index: int) -> list[Declaration]:
        """Return the declaration at `index` followed by its ancestors, closest first."""
        chain = []
        current: Optional[int] = index
        while current is not None:
            node = self.declarations[current]
            chain.append(node)
            current = node.parent
        return chain

    def render(self, index: int) -> str:
        """Multi-line description of one declaration, its parameters and children."""
        node = self.declarations[index]
        head = node.short()
        if node.parent is not None:
            head = f"{head} parent:{self.declarations[node.parent].short()}"

        parameters = "\n".join(str(p) for p in node.parameters)
        groups = "\n".join(f"-> {self.declarations[c].short()}" for c in node.children)
        return f"{head}\n{parameters}\n{groups}\n"
