"""Reader for the macOS bootpd lease file (/var/db/dhcpd_leases).

    {
        name=builder
        ip_address=192.168.64.3
        hw_address=1,a2:4:6b:c:1:1f
        identifier=1,a2:4:6b:c:1:1f
        lease=0x65f04a1c
    }
"""
import logging
from typing import IO, Iterator, Optional

from ..errors import LeaseEntryError
from ..utils.addresses import decode_colon_hex
from ..utils.logging_config import timed
from ..utils.streams import consume_file, consume_until, extract_bracketed, filter_chars, strip_comments
from .schema import AppleDhcpdLeaseEntry, LeaseReadResult

logger = logging.getLogger(__name__)

MANDATORY_FIELDS = frozenset({"ip_address", "hw_address", "identifier"})


def _decode_hardware(key: str, value: str, entry: AppleDhcpdLeaseEntry) -> Optional[bytes]:
    """Decode `<type>,<mac>`, where bootpd drops leading zeros of each octet."""
    if value.count(",") != 1:
        logger.warning(f"error {key} `{value}` is not properly formatted for entry {entry.name}")
        return None

    mac = value.split(",")[1]
    mac = ":".join(octet.zfill(2) if len(octet) == 1 else octet for octet in mac.split(":"))
    try:
        return decode_colon_hex(mac)
    except ValueError:
        logger.warning(f"error trying to parse {key} ({value}) for entry {entry.name} - {mac}")
        return None


def read_apple_dhcpd_lease_entry(stream: Iterator[str]) -> Optional[AppleDhcpdLeaseEntry]:
    """Read the next lease block from a character stream.

    Returns:
        The entry, or None once the stream holds no further blocks

    Raises:
        LeaseEntryError: If any mandatory field is missing; the partial
            entry is attached
    """
    entry = AppleDhcpdLeaseEntry()
    found: set[str] = set()

    block = extract_bracketed("{", "}", stream)
    if not block.opened:
        trailing = block.prefix.strip()
        if trailing:
            logger.warning(f"ignoring text after the last lease entry: `{trailing}`")
        return None

    more = True
    while more:
        line, more = consume_until("\n", block)
        line = line.strip()
        if "{" in line or "}" in line:
            continue

        key, sep, value = line.partition("=")
        if not sep:
            if line:
                logger.warning(f"error parsing invalid line: `{line}`")
            continue
        key, value = key.strip(), value.strip()

        if key == "ip_address":
            entry.ip_address = value
            found.add(key)
        elif key in ("hw_address", "identifier"):
            decoded = _decode_hardware(key, value, entry)
            if decoded is None:
                continue
            setattr(entry, key, decoded)
            found.add(key)
        elif key == "lease":
            entry.lease = value
        elif key == "name":
            entry.name = value
        else:
            entry.extra[key] = value

    if found != MANDATORY_FIELDS:
        missing = ", ".join(sorted(MANDATORY_FIELDS - found))
        raise LeaseEntryError(f"entry {entry.name or entry.ip_address!r} is missing mandatory information ({missing})", entry=entry)
    return entry


@timed("read_apple_dhcpd_lease_entries")
def read_apple_dhcpd_lease_entries(handle: IO) -> LeaseReadResult[AppleDhcpdLeaseEntry]:
    """Read every lease block of a bootpd lease file.

    Malformed blocks are logged and collected on the result instead of
    aborting the read.
    """
    stream = filter_chars("\r\v", strip_comments(consume_file(handle)))
    result: LeaseReadResult[AppleDhcpdLeaseEntry] = LeaseReadResult()

    index = 0
    while True:
        index += 1
        try:
            entry = read_apple_dhcpd_lease_entry(stream)
        except LeaseEntryError as e:
            e.index = index
            logger.warning(f"error parsing apple dhcpd lease entry #{index}: {e}")
            result.errors.append(e)
            continue

        if entry is None:
            break
        result.entries.append(entry)

    logger.debug(f"Read {len(result.entries)} apple dhcpd lease entries ({len(result.errors)} failed)")
    return result
