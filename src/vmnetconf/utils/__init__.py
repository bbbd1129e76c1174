"""Utility modules for character streams, addresses and logging."""
from .addresses import (
    IPAddress,
    decode_colon_hex,
    format_mac,
    parse_ip,
    parse_mac,
)
from .logging_config import (
    setup_logging,
    timed,
    timed_section,
    perf_logger,
)
from .streams import (
    BracketedBlock,
    consume_file,
    consume_until,
    extract_bracketed,
    filter_chars,
    strip_comments,
)

__all__ = [
    "IPAddress",
    "decode_colon_hex",
    "format_mac",
    "parse_ip",
    "parse_mac",
    "setup_logging",
    "timed",
    "timed_section",
    "perf_logger",
    "BracketedBlock",
    "consume_file",
    "consume_until",
    "extract_bracketed",
    "filter_chars",
    "strip_comments",
]
