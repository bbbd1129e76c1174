"""IP and hardware address helpers."""
import ipaddress
import re
from typing import Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# 00:50:56:c0:00:08, 00-50-56-c0-00-08, 0050.56c0.0008
MAC_PATTERNS = (
    re.compile(r"^([0-9a-fA-F]{2})[:]([0-9a-fA-F]{2})[:]([0-9a-fA-F]{2})[:]"
               r"([0-9a-fA-F]{2})[:]([0-9a-fA-F]{2})[:]([0-9a-fA-F]{2})$"),
    re.compile(r"^([0-9a-fA-F]{2})[-]([0-9a-fA-F]{2})[-]([0-9a-fA-F]{2})[-]"
               r"([0-9a-fA-F]{2})[-]([0-9a-fA-F]{2})[-]([0-9a-fA-F]{2})$"),
    re.compile(r"^([0-9a-fA-F]{2})([0-9a-fA-F]{2})\.([0-9a-fA-F]{2})([0-9a-fA-F]{2})\."
               r"([0-9a-fA-F]{2})([0-9a-fA-F]{2})$"),
)


def parse_ip(text: str) -> IPAddress:
    """Parse an IPv4 or IPv6 literal.

    Raises:
        ValueError: If `text` is not an address literal
    """
    return ipaddress.ip_address(text.strip())


def parse_mac(text: str) -> bytes:
    """Parse a 6-octet hardware address in colon, dash or dotted form.

    Raises:
        ValueError: If `text` is not a hardware address
    """
    for pattern in MAC_PATTERNS:
        match = pattern.match(text.strip())
        if match:
            return bytes(int(octet, 16) for octet in match.groups())
    raise ValueError(f"invalid hardware address: {text!r}")


def format_mac(address: bytes) -> str:
    """Render bytes as lowercase colon-separated hex."""
    return ":".join(f"{b:02x}" for b in address)


def decode_colon_hex(text: str) -> bytes:
    """Decode `01:00:50:56:c0:00:01` style byte strings.

    Every group must be exactly two hex digits.

    Raises:
        ValueError: If the input is not well-formed
    """
    groups = text.split(":")
    for group in groups:
        if len(group) != 2:
            raise ValueError(f"bytes are not well-formed ({text})")
    try:
        return bytes.fromhex("".join(groups))
    except ValueError as e:
        raise ValueError(f"bytes are not well-formed ({text}): {e}") from e
