"""Reader for network name maps (netmap.conf).

Each line assigns one attribute of one network:

    network0.name = "Bridged"
    network0.device = "vmnet0"

Lines are grouped by network key and exposed sorted by that key.
"""
import logging
import re
from typing import IO, Iterable, Iterator

from ..base import NetworkNameMapper
from ..errors import NetworkNameError, ParseError
from ..utils.logging_config import timed
from ..utils.streams import consume_file, strip_comments

logger = logging.getLogger(__name__)

SEPARATORS = frozenset(" \t\r")
PUNCTUATION = frozenset(".=")

SIMPLE_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r",
    "t": "\t", "v": "\v", "\\": "\\", '"': '"',
}
ESCAPE_RE = re.compile(
    r'\\(?:([abfnrtv\\"])|x([0-9a-fA-F]{2})|([0-7]{3})|(u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8})|(.))',
    re.DOTALL,
)


def tokenize_network_map(source: Iterable[str]) -> Iterator[str]:
    """Convert a comment-free character stream into network map tokens.

    `.`, `=` and newline are tokens of their own; runs of newlines collapse
    into one. Quoted values are kept whole, quotes included.
    """
    state: list[str] = []
    quote = False
    last_newline = False

    for ch in source:
        if quote:
            state.append(ch)
            if ch == '"':
                yield "".join(state)
                state, quote = [], False
            continue

        if ch == '"':
            quote = True
            state.append(ch)
            last_newline = False

        elif ch in SEPARATORS:
            if state:
                yield "".join(state)
                state = []
            last_newline = False

        elif ch == "\n":
            if last_newline:
                continue
            if state:
                yield "".join(state)
                state = []
            yield "\n"
            last_newline = True

        elif ch in PUNCTUATION:
            if state:
                yield "".join(state)
                state = []
            yield ch
            last_newline = False

        else:
            state.append(ch)
            last_newline = False

    if state:
        yield "".join(state)


def unquote(value: str) -> str:
    """Strip the double quotes around `value` and resolve its escapes.

    Accepts the escapes of a Go double-quoted string: `\\a \\b \\f \\n \\r
    \\t \\v \\\\ \\"`, `\\xNN` and three-digit octal bytes, and `\\uNNNN` /
    `\\UNNNNNNNN` code points. Byte escapes are decoded as UTF-8.

    Raises:
        ValueError: If the value is not a double-quoted string or holds an
            invalid escape
    """
    if len(value) < 2 or not value.startswith('"') or not value.endswith('"'):
        raise ValueError(f"value is not quoted: {value}")

    body = value[1:-1]
    result = bytearray()
    pos = 0

    def literal(text: str) -> None:
        if '"' in text or "\\" in text:
            raise ValueError(f"invalid quoted value: {value}")
        result.extend(text.encode("utf-8"))

    for match in ESCAPE_RE.finditer(body):
        literal(body[pos:match.start()])
        pos = match.end()
        simple, hex_byte, octal, code_point, bad = match.groups()

        if simple:
            result.extend(SIMPLE_ESCAPES[simple].encode("utf-8"))
        elif hex_byte:
            result.append(int(hex_byte, 16))
        elif octal:
            byte = int(octal, 8)
            if byte > 0xFF:
                raise ValueError(f"octal escape out of range in {value}")
            result.append(byte)
        elif code_point:
            number = int(code_point[1:], 16)
            if number > 0x10FFFF or 0xD800 <= number <= 0xDFFF:
                raise ValueError(f"invalid code point escape in {value}")
            result.extend(chr(number).encode("utf-8"))
        else:
            raise ValueError(f"invalid escape \\{bad} in {value}")

    literal(body[pos:])
    return result.decode("utf-8", errors="replace")


def parse_network_map(tokens: Iterable[str]) -> dict[str, dict[str, str]]:
    """Group `network.attribute = "value"` assignments by network key.

    Line numbers in errors count non-blank lines.

    Raises:
        ParseError: If an assignment is malformed
    """
    unsorted: dict[str, dict[str, str]] = {}
    state: list[str] = []
    line = 1

    def add_result() -> None:
        network, attribute, value = state
        try:
            unsorted.setdefault(network, {})[attribute] = unquote(value)
        except ValueError as e:
            raise ParseError(str(e), line=line)

    for token in tokens:
        if token == ".":
            if len(state) != 1:
                raise ParseError(f"network index missing : {state}", line=line)

        elif token == "=":
            if len(state) != 2:
                raise ParseError(f"assigned to empty attribute : {state}", line=line)

        elif token == "\n":
            if not state:
                continue
            if len(state) != 3:
                raise ParseError(f"invalid attribute assignment : {state}", line=line)
            add_result()
            state = []
            line += 1

        else:
            state.append(token)

    if state:
        if len(state) != 3:
            raise ParseError(f"invalid attribute assignment : {state}", line=line)
        add_result()

    return unsorted


class NetworkMap(NetworkNameMapper):
    """Networks declared in a network map, ordered by network key."""

    def __init__(self, networks: dict[str, dict[str, str]]):
        self.keys = sorted(networks)
        self.rows = [networks[k] for k in self.keys]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[dict[str, str]]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> dict[str, str]:
        return self.rows[index]

    def __str__(self) -> str:
        lines = []
        for key, row in zip(self.keys, self.rows):
            lines.append(f'{key}.name = "{row.get("name", "")}"')
            lines.append(f'{key}.device = "{row.get("device", "")}"')
        return "\n".join(lines)

    def name_into_devices(self, name: str) -> list[str]:
        wanted = name.casefold()
        devices = [
            row["device"] for row in self.rows
            if row.get("name", "").casefold() == wanted and row.get("device")
        ]
        if not devices:
            raise NetworkNameError(f"error finding network name : {name}")
        return devices

    def device_into_name(self, device: str) -> str:
        wanted = device.casefold()
        for row in self.rows:
            if row.get("device", "").casefold() == wanted:
                return row.get("name", "")
        raise NetworkNameError(f"error finding device name : {device}")

    def to_dict(self) -> dict:
        return {key: dict(row) for key, row in zip(self.keys, self.rows)}


@timed("read_network_map")
def read_network_map(handle: IO) -> NetworkMap:
    """Read a network map file.

    Raises:
        ParseError: If any line is malformed
    """
    tokens = tokenize_network_map(strip_comments(consume_file(handle)))
    result = NetworkMap(parse_network_map(tokens))
    logger.debug(f"Read {len(result)} networks from network map")
    return result
