"""Tokenizer for DHCP server configuration files."""
from typing import Iterable, Iterator

WHITESPACE = frozenset(" \t\r\n")
STRUCTURAL = frozenset("{};")


def tokenize_dhcp_config(source: Iterable[str]) -> Iterator[str]:
    """Convert a comment-free character stream into tokens.

    - Quoted spans are kept whole, quotes included
    - Whitespace separates tokens and is discarded
    - `{`, `}` and `;` end the pending word and are tokens themselves

    Example:
        'subnet 10.0.0.0 netmask 255.0.0.0 {' ->
        ["subnet", "10.0.0.0", "netmask", "255.0.0.0", "{"]
    """
    state: list[str] = []
    quote = False

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

        elif ch in WHITESPACE:
            if state:
                yield "".join(state)
                state = []

        elif ch in STRUCTURAL:
            if state:
                yield "".join(state)
                state = []
            yield ch

        else:
            state.append(ch)

    if state:
        yield "".join(state)
