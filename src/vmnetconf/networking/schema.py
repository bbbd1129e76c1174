"""Schema definitions for the networking command log.

Every row of the log after the version header is one command. Commands are
plain facts; replaying them in order builds a NetworkingConfig.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from ..utils.addresses import IPAddress, format_mac

INTERFACE_PREFIX = "vmnet"


class NetworkingType(str, Enum):
    """Role of a virtual network interface."""
    HOSTONLY = "hostonly"
    NAT = "nat"
    BRIDGED = "bridged"


@dataclass(frozen=True)
class NetworkingVersion:
    """VERSION=<major>,<minor> header row."""
    major: int
    minor: int

    @classmethod
    def parse(cls, text: str) -> "NetworkingVersion":
        """Parse `VERSION=1,0`.

        Raises:
            ValueError: If the text is not a version declaration
        """
        key, sep, value = text.partition("=")
        if not sep or key != "VERSION":
            raise ValueError(f"unexpected format for version : {text}")

        parts = value.split(",")
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise ValueError(f"unexpected format for version : {text}")
        return cls(major=int(parts[0]), minor=int(parts[1]))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class VnetKey:
    """VNET_<n>_<OPTION> token naming one answer of one interface."""
    number: int
    option: str

    @classmethod
    def parse(cls, text: str) -> "VnetKey":
        """Parse `VNET_8_HOSTONLY_SUBNET` into (8, "HOSTONLY_SUBNET").

        Raises:
            ValueError: If the token is not an upper-case VNET key
        """
        parts = text.split("_", 2)
        if len(parts) != 3 or parts[0] != "VNET" or text.upper() != text:
            raise ValueError(f"invalid format for VNET : {text}")
        if not parts[1].isdigit():
            raise ValueError(f"invalid format for VNET : {text}")
        return cls(number=int(parts[1]), option=parts[2])

    def __str__(self) -> str:
        return f"VNET_{self.number}_{self.option}"


# --- Commands ---

@dataclass(frozen=True)
class Answer:
    verb: ClassVar[str] = "answer"
    vnet: VnetKey
    value: str

    def describe(self) -> str:
        return f"{self.verb} -> vnet={self.vnet.number} option={self.vnet.option} value={self.value}"


@dataclass(frozen=True)
class RemoveAnswer:
    verb: ClassVar[str] = "remove_answer"
    vnet: VnetKey

    def describe(self) -> str:
        return f"{self.verb} -> vnet={self.vnet.number} option={self.vnet.option}"


@dataclass(frozen=True)
class AddNatPortForward:
    verb: ClassVar[str] = "add_nat_portfwd"
    vnet: int
    protocol: str
    port: int
    target_host: IPAddress
    target_port: int

    @property
    def key(self) -> str:
        return f"{self.protocol}/{self.port}"

    @property
    def target(self) -> str:
        return f"{self.target_host}:{self.target_port}"

    def describe(self) -> str:
        return f"{self.verb} -> vnet={self.vnet} {self.key} target={self.target}"


@dataclass(frozen=True)
class RemoveNatPortForward:
    verb: ClassVar[str] = "remove_nat_portfwd"
    vnet: int
    protocol: str
    port: int

    @property
    def key(self) -> str:
        return f"{self.protocol}/{self.port}"

    def describe(self) -> str:
        return f"{self.verb} -> vnet={self.vnet} {self.key}"


@dataclass(frozen=True)
class AddDhcpMacToIp:
    verb: ClassVar[str] = "add_dhcp_mac_to_ip"
    vnet: int
    mac: bytes
    ip: IPAddress

    def describe(self) -> str:
        return f"{self.verb} -> vnet={self.vnet} mac={format_mac(self.mac)} ip={self.ip}"


@dataclass(frozen=True)
class RemoveDhcpMacToIp:
    verb: ClassVar[str] = "remove_dhcp_mac_to_ip"
    vnet: int
    mac: bytes

    def describe(self) -> str:
        return f"{self.verb} -> vnet={self.vnet} mac={format_mac(self.mac)}"


@dataclass(frozen=True)
class AddBridgeMapping:
    verb: ClassVar[str] = "add_bridge_mapping"
    interface: str
    vnet: int

    def describe(self) -> str:
        return f"{self.verb} -> interface={self.interface} vnet={self.vnet}"


@dataclass(frozen=True)
class RemoveBridgeMapping:
    verb: ClassVar[str] = "remove_bridge_mapping"
    interface: str

    def describe(self) -> str:
        return f"{self.verb} -> interface={self.interface}"


@dataclass(frozen=True)
class AddNatPrefix:
    verb: ClassVar[str] = "add_nat_prefix"
    vnet: int
    prefix: int

    def describe(self) -> str:
        return f"{self.verb} -> vnet={self.vnet} prefix=/{self.prefix}"


@dataclass(frozen=True)
class RemoveNatPrefix:
    verb: ClassVar[str] = "remove_nat_prefix"
    vnet: int
    prefix: int

    def describe(self) -> str:
        return f"{self.verb} -> vnet={self.vnet} prefix=/{self.prefix}"


NetworkingCommand = Union[
    Answer, RemoveAnswer,
    AddNatPortForward, RemoveNatPortForward,
    AddDhcpMacToIp, RemoveDhcpMacToIp,
    AddBridgeMapping, RemoveBridgeMapping,
    AddNatPrefix, RemoveNatPrefix,
]
