"""vmnetconf - readers for desktop hypervisor virtual-network files.

Formats:
- DHCP server configuration (vmnetdhcp.conf / dhcpd.conf)
- Network name map (netmap.conf)
- Networking command log (networking)
- ISC dhcpd and macOS bootpd lease files

Usage:
    from vmnetconf import NetworkFiles, Settings

    files = NetworkFiles(Settings.load())
    files.name_mapper().name_into_devices("hostonly")
"""
from .base import NetworkNameMapper
from .config import Settings
from .dhcp import ConfigDeclaration, DhcpConfiguration, read_dhcp_configuration
from .errors import (
    AddressError,
    AmbiguousDeclarationError,
    DeclarationNotFoundError,
    LeaseEntryError,
    LeaseFileError,
    LookupFailedError,
    NetworkNameError,
    ParameterError,
    ParseError,
    UnsupportedVersionError,
    VmnetConfError,
)
from .leases import (
    AppleDhcpdLeaseEntry,
    DhcpdLeaseEntry,
    LeaseReadResult,
    read_apple_dhcpd_lease_entries,
    read_dhcpd_lease_entries,
)
from .loader import NetworkFiles
from .netmap import NetworkMap, read_network_map
from .networking import NetworkingConfig, NetworkingType, read_networking_config

__version__ = "0.1.0"

__all__ = [
    "NetworkFiles",
    "Settings",
    "NetworkNameMapper",
    "read_dhcp_configuration",
    "DhcpConfiguration",
    "ConfigDeclaration",
    "read_network_map",
    "NetworkMap",
    "read_networking_config",
    "NetworkingConfig",
    "NetworkingType",
    "read_dhcpd_lease_entries",
    "read_apple_dhcpd_lease_entries",
    "DhcpdLeaseEntry",
    "AppleDhcpdLeaseEntry",
    "LeaseReadResult",
    "VmnetConfError",
    "ParseError",
    "ParameterError",
    "UnsupportedVersionError",
    "LookupFailedError",
    "DeclarationNotFoundError",
    "AmbiguousDeclarationError",
    "NetworkNameError",
    "AddressError",
    "LeaseEntryError",
    "LeaseFileError",
]
