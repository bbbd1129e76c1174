"""Lease entry models for the dhcpd and Apple bootpd lease dialects."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Optional, TypeVar

from ..errors import LeaseEntryError, LeaseFileError
from ..utils.addresses import format_mac


def _hex(value: Optional[bytes]) -> Optional[str]:
    return format_mac(value) if value is not None else None


@dataclass
class DhcpdLeaseEntry:
    """One `lease <address> { ... }` block of an ISC dhcpd lease file."""
    address: str
    starts: Optional[datetime] = None
    ends: Optional[datetime] = None
    starts_weekday: Optional[int] = None
    ends_weekday: Optional[int] = None
    ether: Optional[bytes] = None
    uid: Optional[bytes] = None
    extra: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "starts": self.starts.isoformat() if self.starts else None,
            "ends": self.ends.isoformat() if self.ends else None,
            "starts_weekday": self.starts_weekday,
            "ends_weekday": self.ends_weekday,
            "ether": _hex(self.ether),
            "uid": _hex(self.uid),
            "extra": list(self.extra),
        }


@dataclass
class AppleDhcpdLeaseEntry:
    """One `{ key=value ... }` block of the macOS bootpd lease file."""
    ip_address: str = ""
    hw_address: Optional[bytes] = None
    identifier: Optional[bytes] = None
    lease: str = ""
    name: str = ""
    extra: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "ip_address": self.ip_address,
            "hw_address": _hex(self.hw_address),
            "identifier": _hex(self.identifier),
            "lease": self.lease,
            "name": self.name,
            "extra": dict(self.extra),
        }


EntryT = TypeVar("EntryT")


@dataclass
class LeaseReadResult(Generic[EntryT]):
    """Entries read from a lease file alongside the blocks that failed."""
    entries: list[EntryT] = field(default_factory=list)
    errors: list[LeaseEntryError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise a LeaseFileError if any entry failed to parse."""
        if self.errors:
            raise LeaseFileError(self.errors, self.entries)

    def to_dict(self) -> dict:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "errors": [str(e) for e in self.errors],
        }
