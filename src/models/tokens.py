"""
Token and block data structures

Plain value types shared by the scanner, tokenizer, matcher and parser
façade. Every instance is created fresh per parse call; none of them are
cached or shared between calls.
"""

from enum import Enum
from typing import List
from dataclasses import dataclass, field


class TokenType(str, Enum):
    """Classification of a recognized block keyword."""

    OPEN = "block_open"
    MIDDLE = "block_middle"
    CLOSE = "block_close"


@dataclass(frozen=True)
class ExcludedRegion:
    """
    Half-open character span ignored by keyword matching.

    Attributes:
        start: First excluded offset (inclusive)
        end: Offset just past the excluded span (exclusive)

    Example:
        For source 'x = "end"' the string literal yields
        ExcludedRegion(start=4, end=9)
    """

    start: int
    end: int

    def contains(self, pos: int) -> bool:
        return self.start <= pos < self.end


@dataclass(frozen=True)
class Token:
    """
    A single block keyword occurrence.

    Attributes:
        type: Open, middle or close classification
        value: Keyword text as it appears in the source
        start_offset: Offset of the first keyword character
        end_offset: Offset just past the keyword
        line: 0-based line number
        column: 0-based column, counted in characters
    """

    type: TokenType
    value: str
    start_offset: int
    end_offset: int
    line: int
    column: int


@dataclass
class OpenBlock:
    """Stack frame for an opener still waiting for its closer."""

    token: Token
    intermediates: List[Token] = field(default_factory=list)


@dataclass
class BlockPair:
    """
    A matched open/close pair with the middle keywords collected between them.

    Attributes:
        open_keyword: Token that opened the block
        close_keyword: Token that closed the block
        intermediates: Middle keywords in source order (e.g. else, elsif)
        nest_level: Number of blocks still open around this one when it closed
    """

    open_keyword: Token
    close_keyword: Token
    intermediates: List[Token]
    nest_level: int
