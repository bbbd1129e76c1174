"""Reader for ISC dhcpd lease files.

    lease 172.16.41.129 {
      starts 2 2024/03/12 09:41:07;
      ends 2 2024/03/12 10:11:07;
      hardware ethernet 00:0c:29:4a:5e:11;
      uid 01:00:0c:29:4a:5e:11;
      client-hostname "builder";
    }

Line breaks are filtered out before reading, so statements are delimited
only by `;` and blocks only by braces.
"""
import logging
import re
from datetime import datetime
from typing import IO, Iterator, Optional

from ..errors import LeaseEntryError
from ..utils.addresses import decode_colon_hex
from ..utils.logging_config import timed
from ..utils.streams import consume_file, consume_until, extract_bracketed, filter_chars, strip_comments
from .schema import DhcpdLeaseEntry, LeaseReadResult

logger = logging.getLogger(__name__)

LEASE_TIME_FORMAT = "%Y/%m/%d %H:%M:%S"

LEASE_RE = re.compile(r"lease\s+(.+?)\s*$")
STARTS_RE = re.compile(r"^\s*starts\s+(\d+)\s+(.+?)\s*$")
ENDS_RE = re.compile(r"^\s*ends\s+(\d+)\s+(.+?)\s*$")
ETHER_RE = re.compile(r"^\s*hardware\s+ethernet\s+(.+?)\s*$")
UID_RE = re.compile(r"^\s*uid\s+(.+?)\s*$")


def _parse_time(text: str, what: str, address: str) -> Optional[datetime]:
    try:
        return datetime.strptime(text, LEASE_TIME_FORMAT)
    except ValueError:
        logger.warning(f"error parsing {what} time ({text}) for entry {address}")
        return None


def _parse_bytes(text: str, what: str, address: str) -> Optional[bytes]:
    try:
        return decode_colon_hex(text)
    except ValueError:
        logger.warning(f"error parsing {what} ({text}) for entry {address}")
        return None


def _apply_statement(entry: DhcpdLeaseEntry, statement: str) -> None:
    match = STARTS_RE.match(statement)
    if match:
        entry.starts_weekday = int(match.group(1))
        entry.starts = _parse_time(match.group(2), "start", entry.address)
        return

    match = ENDS_RE.match(statement)
    if match:
        entry.ends_weekday = int(match.group(1))
        entry.ends = _parse_time(match.group(2), "end", entry.address)
        return

    match = ETHER_RE.match(statement)
    if match:
        entry.ether = _parse_bytes(match.group(1), "hardware ethernet address", entry.address)
        return

    match = UID_RE.match(statement)
    if match:
        entry.uid = _parse_bytes(match.group(1), "uid", entry.address)
        return

    entry.extra.append(statement)


def read_dhcpd_lease_entry(stream: Iterator[str]) -> Optional[DhcpdLeaseEntry]:
    """Read the next lease block from a newline-free character stream.

    Returns:
        The entry, or None once the stream holds no further blocks

    Raises:
        LeaseEntryError: If the block header is malformed; the rest of the
            block is consumed and the partial entry is attached
    """
    block = extract_bracketed("{", "}", stream)
    prefix = block.prefix.strip()

    if not prefix and not block.opened:
        return None

    match = LEASE_RE.search(prefix)
    if match is None:
        block.drain()
        raise LeaseEntryError(
            f"unable to parse lease entry ({prefix!r})",
            entry=DhcpdLeaseEntry(address="", extra=[prefix]),
        )

    entry = DhcpdLeaseEntry(address=match.group(1))
    if not block.opened:
        raise LeaseEntryError(f"missing parameters for lease entry {entry.address}", entry=entry)

    next(block)  # opening brace
    more = True
    while more:
        statement, more = consume_until(";", block)
        statement = statement.strip()
        if not statement or statement.endswith("}"):
            continue
        _apply_statement(entry, statement)

    return entry


@timed("read_dhcpd_lease_entries")
def read_dhcpd_lease_entries(handle: IO) -> LeaseReadResult[DhcpdLeaseEntry]:
    """Read every lease block of a dhcpd lease file.

    Malformed blocks are logged and collected on the result instead of
    aborting the read.
    """
    stream = filter_chars("\n\r\v", strip_comments(consume_file(handle)))
    result: LeaseReadResult[DhcpdLeaseEntry] = LeaseReadResult()

    index = 0
    while True:
        index += 1
        try:
            entry = read_dhcpd_lease_entry(stream)
        except LeaseEntryError as e:
            e.index = index
            logger.warning(f"error parsing dhcpd lease entry #{index}: {e}")
            result.errors.append(e)
            continue

        if entry is None:
            break
        result.entries.append(entry)

    logger.debug(f"Read {len(result.entries)} dhcpd lease entries ({len(result.errors)} failed)")
    return result
