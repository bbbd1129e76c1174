"""Character stream helpers shared by every tokenizer.

Each reader in this package is a chain of generators:

    consume_file(handle) -> strip_comments(...) -> filter_chars(...) -> tokenizer

Every stage pulls one character at a time from the previous one and never
looks back, so a whole file is processed without being held in memory.
"""
import codecs
from typing import IO, Iterable, Iterator, Union

CHUNK_SIZE = 4096


def consume_file(handle: IO, chunk_size: int = CHUNK_SIZE) -> Iterator[str]:
    """Yield the characters of an open file handle until it is exhausted.

    Binary handles are decoded as UTF-8 (invalid bytes are replaced), text
    handles are passed through. The handle is not closed.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk: Union[bytes, str] = handle.read(chunk_size)
        if not chunk:
            break
        if isinstance(chunk, bytes):
            chunk = decoder.decode(chunk)
        yield from chunk

    tail = decoder.decode(b"", final=True)
    yield from tail


def strip_comments(
    source: Iterable[str],
    marker: str = "#",
    keep_newline: bool = True,
) -> Iterator[str]:
    """Remove everything from `marker` up to the end of the line.

    The newline that ends a comment is emitted unless `keep_newline` is
    False, in which case it is culled along with the comment.
    """
    in_comment = False
    for ch in source:
        if ch == marker:
            in_comment = True
            continue

        if in_comment:
            if ch != "\n":
                continue
            in_comment = False
            if not keep_newline:
                continue

        yield ch


def filter_chars(ignore: Iterable[str], source: Iterable[str]) -> Iterator[str]:
    """Drop every character found in `ignore`."""
    ignored = frozenset(ignore)
    for ch in source:
        if ch not in ignored:
            yield ch


def consume_until(sentinel: str, source: Iterator[str]) -> tuple[str, bool]:
    """Read from `source` up to (not including) `sentinel`.

    Returns:
        (text, more) where `more` is False if the source ran out before the
        sentinel was seen.
    """
    collected = []
    for ch in source:
        if ch == sentinel:
            return "".join(collected), True
        collected.append(ch)
    return "".join(collected), False


class BracketedBlock:
    """One `open ... close` block lifted out of a character stream.

    Attributes:
        prefix: Characters discarded before the open character was found.
        opened: Whether the open character was actually present.

    Iterating yields the open character, the body, and the close character.
    If the source ends before the close character, it is synthesized so
    consumers always see a terminator. Nesting is not tracked: the first
    close character ends the block.
    """

    def __init__(self, open_char: str, close_char: str, source: Iterator[str]):
        self.open_char = open_char
        self.close_char = close_char
        self._source = source = iter(source)
        self._done = False

        discarded = []
        self.opened = False
        for ch in source:
            if ch == open_char:
                self.opened = True
                break
            discarded.append(ch)
        self.prefix = "".join(discarded)
        self._body = self._iter_body()

    def _iter_body(self) -> Iterator[str]:
        yield self.open_char
        for ch in self._source:
            yield ch
            if ch == self.close_char:
                break
        else:
            yield self.close_char
        self._done = True

    def __iter__(self) -> Iterator[str]:
        return self._body

    def __next__(self) -> str:
        return next(self._body)

    @property
    def exhausted(self) -> bool:
        return self._done

    def drain(self) -> None:
        """Consume whatever is left of the block."""
        for _ in self._body:
            pass
        self._done = True


def extract_bracketed(open_char: str, close_char: str, source: Iterator[str]) -> BracketedBlock:
    """Skip to the next `open_char` in `source` and return the block it starts."""
    return BracketedBlock(open_char, close_char, source)
