"""Extract the label under a cursor from build-file text.

Offsets are 0-based character indexes into the buffer text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

QUOTE_CHARS = "\"'"
LOAD_KEYWORD = "load"
_PATH_SEPARATORS = ("/", ":")
_ARGUMENT_SEPARATOR = ","
_FIRST_STRING_ARGUMENT = re.compile(r"""\s*(?P<quote>["'])(?P<value>[^"'\n]*)(?P=quote)""")


@dataclass(frozen=True, slots=True)
class LabelToken:
    """Quoted text found around a cursor.

    Attributes
    ----------
    text : str
        Characters between the quotes.
    start : int
        Offset of the first character after the opening quote.
    end : int
        Offset of the closing quote.
    """

    text: str
    start: int
    end: int

    @property
    def has_path_separator(self) -> bool:
        return any(separator in self.text for separator in _PATH_SEPARATORS)


@dataclass(frozen=True, slots=True)
class LoadContext:
    """A symbol imported by the ``load(...)`` call enclosing the cursor.

    Attributes
    ----------
    symbol : str
        Symbol name under the cursor.
    source : str
        First string argument of the call, the label of the defining file.
    paren : int
        Offset of the call's opening parenthesis.
    """

    symbol: str
    source: str
    paren: int


def extract_label_at(text: str, cursor: int) -> LabelToken | None:
    """Return the quoted token around ``cursor``.

    The opening quote is the nearest quote character at or before ``cursor``;
    the token runs up to the next quote character.

    Parameters
    ----------
    text : str
        Buffer contents.
    cursor : int
        Cursor offset, clamped to the buffer.

    Returns
    -------
    LabelToken | None
        The token, or ``None`` when there is no opening or closing quote, the
        token is blank, it spans a line break, or it is the separator between
        two strings (the cursor sat on a closing quote).
    """
    if not text:
        return None
    cursor = min(max(cursor, 0), len(text) - 1)
    opening = max(text.rfind(quote, 0, cursor + 1) for quote in QUOTE_CHARS)
    if opening < 0:
        return None
    start = opening + 1
    closings = [
        index for index in (text.find(quote, start) for quote in QUOTE_CHARS) if index >= 0
    ]
    if not closings:
        return None
    end = min(closings)
    token = text[start:end]
    if not token.strip() or "\n" in token or token.lstrip().startswith(_ARGUMENT_SEPARATOR):
        return None
    return LabelToken(text=token, start=start, end=end)


def _enclosing_paren(text: str, position: int) -> int | None:
    depth = 0
    for index in range(position - 1, -1, -1):
        char = text[index]
        if char == ")":
            depth += 1
        elif char == "(":
            if depth == 0:
                return index
            depth -= 1
    return None


def _is_load_call(text: str, paren: int) -> bool:
    keyword_start = paren - len(LOAD_KEYWORD)
    if keyword_start < 0 or text[keyword_start:paren] != LOAD_KEYWORD:
        return False
    if keyword_start == 0:
        return True
    previous = text[keyword_start - 1]
    return not (previous.isalnum() or previous == "_")


def load_context_at(text: str, cursor: int) -> LoadContext | None:
    """Return the load context when ``cursor`` is on a symbol of a ``load`` call.

    The token must have no path separators, its nearest unmatched opening
    parenthesis must follow the ``load`` keyword, and it must not be the
    call's first argument (that one names the file).

    Examples
    --------
    >>> text = 'load("//pkg:defs.bzl", "my_macro")'
    >>> load_context_at(text, text.index("my_macro"))
    LoadContext(symbol='my_macro', source='//pkg:defs.bzl', paren=4)
    """
    token = extract_label_at(text, cursor)
    if token is None or token.has_path_separator:
        return None
    paren = _enclosing_paren(text, token.start - 1)
    if paren is None or not _is_load_call(text, paren):
        return None
    first = _FIRST_STRING_ARGUMENT.match(text, paren + 1)
    if first is None or first.start("value") == token.start:
        return None
    return LoadContext(symbol=token.text, source=first.group("value"), paren=paren)


def is_inside_load(text: str, cursor: int) -> bool:
    """Return True when the token at ``cursor`` is a symbol imported by ``load``."""
    return load_context_at(text, cursor) is not None


__all__ = [
    "LabelToken",
    "LoadContext",
    "extract_label_at",
    "is_inside_load",
    "load_context_at",
]
