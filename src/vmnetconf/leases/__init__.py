"""Lease file readers (ISC dhcpd and macOS bootpd dialects)."""
from .apple import read_apple_dhcpd_lease_entries, read_apple_dhcpd_lease_entry
from .dhcpd import LEASE_TIME_FORMAT, read_dhcpd_lease_entries, read_dhcpd_lease_entry
from .schema import AppleDhcpdLeaseEntry, DhcpdLeaseEntry, LeaseReadResult

__all__ = [
    "DhcpdLeaseEntry",
    "AppleDhcpdLeaseEntry",
    "LeaseReadResult",
    "LEASE_TIME_FORMAT",
    "read_dhcpd_lease_entry",
    "read_dhcpd_lease_entries",
    "read_apple_dhcpd_lease_entry",
    "read_apple_dhcpd_lease_entries",
]
