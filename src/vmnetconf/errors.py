"""Error types raised by the vmnetconf readers and query operations.

Two families exist:
- Strict grammars (DHCP configuration, network map, networking version row)
  raise ParseError and abort the whole read.
- Tolerant grammars (networking commands, lease files) log and continue;
  lease readers hand back LeaseEntryError/LeaseFileError values that carry
  whatever could be parsed.
"""
from typing import Any, Optional


class VmnetConfError(Exception):
    """Base class for every error raised by this package."""
    pass


class ParseError(VmnetConfError):
    """Structural error in a strict grammar."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class ParameterError(ParseError):
    """A DHCP keyword was given operands it cannot accept."""

    def __init__(self, keyword: str, operands: list[str], reason: str):
        self.keyword = keyword
        self.operands = list(operands)
        self.reason = reason
        super().__init__(f"{reason} for {keyword} : {self.operands}")


class UnsupportedVersionError(ParseError):
    """Networking log declares a version this package cannot interpret."""

    def __init__(self, version: tuple[int, int], expected: tuple[int, int]):
        self.version = version
        self.expected = expected
        super().__init__(
            f"expected version {expected[0]}.{expected[1]} of networking file "
            f"but received version {version[0]}.{version[1]}"
        )


class LookupFailedError(VmnetConfError):
    """A query over a parsed model could not be answered."""
    pass


class DeclarationNotFoundError(LookupFailedError):
    """No DHCP declaration matched the query."""
    pass


class AmbiguousDeclarationError(LookupFailedError):
    """More than one DHCP declaration matched the query."""

    def __init__(self, message: str, matches: list[Any]):
        self.matches = matches
        super().__init__(message)


class NetworkNameError(LookupFailedError):
    """A network name or device could not be mapped."""
    pass


class AddressError(VmnetConfError):
    """Address accessor found zero, several, or unresolvable addresses."""
    pass


class LeaseEntryError(VmnetConfError):
    """A single lease block was malformed.

    The partially parsed entry is kept on `entry` so callers can report
    which record failed.
    """

    def __init__(self, message: str, entry: Any = None, index: Optional[int] = None):
        self.entry = entry
        self.index = index
        super().__init__(message)


class LeaseFileError(VmnetConfError):
    """Aggregate of every LeaseEntryError found while reading a lease file."""

    def __init__(self, errors: list[LeaseEntryError], entries: Optional[list[Any]] = None):
        self.errors = list(errors)
        self.entries = list(entries or [])
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(
            f"{len(self.errors)} lease entr{'y' if len(self.errors) == 1 else 'ies'} "
            f"could not be parsed: {details}"
        )
