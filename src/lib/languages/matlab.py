"""
MATLAB grammar

Excluded regions: % comments, %{ ... %} block comments (the markers stand
alone on their lines and may nest), '...' strings with '' escapes and
"..." strings with "" escapes. A quote right after an identifier, a
closing bracket or a dot is the transpose operator, not a string.

Every block ends with 'end'. Inside (...) or {...} 'end' is the last
index (x(end), c{end-1}) and is ignored.
"""

import re
from typing import Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords
from ...models.tokens import ExcludedRegion
from ..scanner import (
    BLANKS,
    blankAfter_skip,
    char_get,
    lineBreak_skip,
    lineComment_match,
    lineEnd_find,
    lineStart_find,
    position_isExcluded,
    quotedString_match,
)

KEYWORDS = LanguageKeywords(
    block_open=(
        "function", "if", "for", "while", "switch", "try", "parfor", "spmd", "classdef", "methods",
        "properties", "events", "enumeration",
    ),
    block_close=("end",),
    block_middle=("else", "elseif", "case", "otherwise", "catch"),
)

TRANSPOSE_AFTER = re.compile(r"[A-Za-z0-9_)\]}.]")


def markerLine_is(source: str, pos: int, marker: str) -> bool:
    """True when marker at pos is alone on its line apart from blanks."""
    if not source.startswith(marker, pos):
        return False
    line_start = lineStart_find(source, pos)
    if source[line_start:pos].strip(BLANKS):
        return False
    return blankAfter_skip(source, pos + len(marker)) == lineEnd_find(source, pos)


def blockComment_lines(source: str, pos: int, opener: str, closer: str) -> Optional[ExcludedRegion]:
    """
    Line-oriented block comment (%{ ... %} or #{ ... #}).

    Both markers must stand on their own lines; inner opener lines nest.
    The region runs to the end of the closing marker's line.
    """
    if not markerLine_is(source, pos, opener):
        return None
    n = len(source)
    depth = 1
    i = lineEnd_find(source, pos)
    while i < n:
        line_start = lineBreak_skip(source, i)
        first = blankAfter_skip(source, line_start)
        line_end = lineEnd_find(source, line_start)
        if markerLine_is(source, first, opener):
            depth += 1
        elif source.startswith(closer, first):
            depth -= 1
            if depth == 0:
                return ExcludedRegion(pos, line_end)
        if line_end >= n:
            break
        i = line_end
    return ExcludedRegion(pos, n)


def transpose_is(source: str, pos: int) -> bool:
    """
    A quote after an identifier, ')' ']' '}' or '.' transposes.

    After a digit it still opens a string when a letter follows ([1'abc']).
    """
    before = char_get(source, pos - 1)
    if not before or not TRANSPOSE_AFTER.match(before):
        return False
    if before.isdigit():
        after = char_get(source, pos + 1)
        return not (after.isalpha() or after == "_")
    return True


def blockComment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    return blockComment_lines(source, pos, "%{", "%}")


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "%":
        return lineComment_match(source, pos)
    return None


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    ch = char_get(source, pos)
    if ch == "'" and not transpose_is(source, pos):
        return quotedString_match(source, pos, "'", backslash=False, doubled=True, single_line=True)
    if ch == '"':
        return quotedString_match(source, pos, '"', backslash=False, doubled=True, single_line=True)
    return None


def indexEnd_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when position sits inside (...) or {...} opened earlier on its line."""
    depth = 0
    for i in range(position - 1, lineStart_find(source, position) - 1, -1):
        ch = source[i]
        if ch not in "(){}" or position_isExcluded(i, regions):
            continue
        if ch in ")}":
            depth += 1
        elif depth == 0:
            return True
        else:
            depth -= 1
    return False


def close_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return not indexEnd_is(source, position, regions)


GRAMMAR = LanguageGrammar(
    name="matlab",
    keywords=KEYWORDS,
    region_matchers=(blockComment_match, comment_match, string_match),
    close_valid=close_valid,
    filenames=("*.m",),
)
