"""Token types, data structures, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    # Content (normal mode)
    TEXT = auto()  # character data up to the next '<'
    COMMENT = auto()  # <!-- ... -->: value is the inner text
    CDATA = auto()  # <![CDATA[ ... ]]>: value is the inner text
    DIRECTIVE = auto()  # <!DOCTYPE ...> or <?...?>, passed through verbatim

    # Tags
    START_TAG_OPEN = auto()  # <name
    END_TAG = auto()  # </name>: value is the name
    TAG_CLOSE = auto()  # >
    EMPTY_TAG_CLOSE = auto()  # />

    # Inside a start tag
    ATTR_NAME = auto()
    EQUALS = auto()  # =
    ATTR_VALUE = auto()  # quoted value, excluding the quotes
    WS = auto()  # whitespace between attributes (may include newlines)

    EOF = auto()


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based character offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position."""

    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token with resolved value and original source text."""

    type: TokenType
    value: str
    raw: str
    span: Span


def is_name_start_char(ch: str) -> bool:
    """Return True if ch may begin an element or attribute name."""
    return ch != "" and (ch.isalpha() or ch in "_:")


def is_name_char(ch: str) -> bool:
    """Return True if ch may appear inside an element or attribute name."""
    return ch != "" and (ch.isalnum() or ch in "_:-.")
