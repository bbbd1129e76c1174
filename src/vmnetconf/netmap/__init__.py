"""Network name map (netmap.conf) reader."""
from .parser import (
    NetworkMap,
    parse_network_map,
    read_network_map,
    tokenize_network_map,
    unquote,
)

__all__ = [
    "NetworkMap",
    "parse_network_map",
    "read_network_map",
    "tokenize_network_map",
    "unquote",
]
