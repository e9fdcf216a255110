"""
Crystal grammar

Ruby-shaped syntax with its own literal rules: macro templates ({% %} and
nested {{ }}), heredocs excluded from the marker onwards, percent literals
without interpolation, and named tuple keys (if: value). Only if/unless
can be postfix modifiers.
"""

import re
from typing import List, Optional, Sequence, Tuple

from ...models.grammar import LanguageGrammar, LanguageKeywords
from ...models.tokens import ExcludedRegion
from ..scanner import (
    blankBefore_skip,
    char_findUnexcluded,
    char_get,
    lineComment_match,
    quotedString_match,
)
from .ruby import PAIRED_DELIMITERS, interpolatedString_match, modulo_is

KEYWORDS = LanguageKeywords(
    block_open=(
        "do", "if", "unless", "while", "until", "begin", "def", "class", "module", "case", "for",
        "macro", "lib", "struct", "enum", "union", "annotation", "select",
    ),
    block_close=("end",),
    block_middle=("else", "elsif", "rescue", "ensure", "when", "in"),
)

REGEX_FLAGS = "imx"
PERCENT_SPECIFIERS = "qQwWiIrx"
DIVISION_PRECEDERS = re.compile(r"[a-zA-Z0-9_)\]}\"'`]")
HEREDOC = re.compile(r"<<(-)?(['\"])?([A-Za-z_][A-Za-z0-9_]*)\2?")
LEADING_KEYWORDS = ("do", "then", "else", "elsif", "begin", "rescue", "ensure", "when", "in")


def macroString_skip(source: str, pos: int) -> int:
    """Skip a quoted string inside a macro template."""
    end = quotedString_match(source, pos).end
    return min(end, len(source))


def macro_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """{% ... %} statement or {{ ... }} expression, strings inside skipped."""
    n = len(source)
    if source.startswith("{%", pos):
        i = pos + 2
        while i < n:
            if source[i] in "\"'":
                i = macroString_skip(source, i)
                continue
            if source.startswith("%}", i):
                return ExcludedRegion(pos, i + 2)
            i += 1
        return ExcludedRegion(pos, n)

    if source.startswith("{{", pos):
        depth = 1
        i = pos + 2
        while i < n:
            if source[i] in "\"'":
                i = macroString_skip(source, i)
                continue
            if source.startswith("{{", i):
                depth += 1
                i += 2
                continue
            if source.startswith("}}", i):
                depth -= 1
                i += 2
                if depth == 0:
                    return ExcludedRegion(pos, i)
                continue
            i += 1
        return ExcludedRegion(pos, n)
    return None


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "#":
        return lineComment_match(source, pos)
    return None


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """Double-quoted strings and backtick commands skip #{...} interpolation."""
    ch = char_get(source, pos)
    if ch == '"' or ch == "`":
        return interpolatedString_match(source, pos)
    if ch == "'":
        return quotedString_match(source, pos, ch)
    return None


def regex_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) != "/":
        return None
    previous = blankBefore_skip(source, pos)
    if previous >= 0 and DIVISION_PRECEDERS.match(source[previous]):
        return None
    n = len(source)
    i = pos + 1
    while i < n:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == "/":
            i += 1
            while i < n and source[i] in REGEX_FLAGS:
                i += 1
            return ExcludedRegion(pos, i)
        if ch == "\n":
            return ExcludedRegion(pos, i)
        i += 1
    return ExcludedRegion(pos, i)


def heredoc_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """Heredoc markers on the line at pos and their bodies, excluded from the marker on."""
    n = len(source)
    line_end = source.find("\n", pos)
    if line_end < 0:
        line_end = n
    if HEREDOC.match(source, pos, line_end) is None:
        return None

    terminators: List[Tuple[str, bool]] = [
        (match.group(3), match.group(1) == "-") for match in HEREDOC.finditer(source, pos, line_end)
    ]
    index = 0
    i = min(line_end + 1, n)
    while i < n:
        end = source.find("\n", i)
        if end < 0:
            end = n
        line = source[i:end]
        if line.endswith("\r"):
            line = line[:-1]
        name, indented = terminators[index]
        if (line.lstrip() if indented else line) == name:
            index += 1
            if index == len(terminators):
                return ExcludedRegion(pos, min(end + 1, n))
        i = end + 1
    return ExcludedRegion(pos, n)


def percent_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """Percent literal; paired delimiters nest, no interpolation is tracked."""
    n = len(source)
    if char_get(source, pos) != "%" or pos + 1 >= n or modulo_is(source, pos):
        return None
    delimiter_pos = pos + 2 if source[pos + 1] in PERCENT_SPECIFIERS else pos + 1
    if delimiter_pos >= n:
        return None
    opener = source[delimiter_pos]
    if opener in PAIRED_DELIMITERS:
        closer = PAIRED_DELIMITERS[opener]
    elif re.match(r"[^\sa-zA-Z0-9]", opener):
        closer = opener
    else:
        return None

    depth = 1
    i = delimiter_pos + 1
    while i < n and depth > 0:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if opener != closer and ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
        i += 1
    return ExcludedRegion(pos, i)


def symbol_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) != ":":
        return None
    following = char_get(source, pos + 1)
    if not following or not re.match(r"[a-zA-Z_\"']", following):
        return None
    previous = char_get(source, pos - 1)
    if previous and re.match(r"[a-zA-Z0-9_)\]}>]", previous):
        return None
    if following in "\"'":
        return ExcludedRegion(pos, quotedString_match(source, pos + 1).end)
    i = pos + 1
    while i < len(source) and re.match(r"[a-zA-Z0-9_!?]", source[i]):
        i += 1
    return ExcludedRegion(pos, i)


def postfixConditional_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    line_start = source.rfind("\n", 0, position) + 1
    semicolon = char_findUnexcluded(source, ";", line_start, position, regions, reverse=True)
    before = source[semicolon + 1 if semicolon >= 0 else line_start : position].strip()
    if not before:
        return False
    for keyword in LEADING_KEYWORDS:
        if before == keyword or before.endswith(" " + keyword):
            return False
    return not re.search(r"[=&|,(\[{:?]$", before)


def namedTupleKey_is(source: str, position: int, keyword: str) -> bool:
    return char_get(source, position + len(keyword)) == ":"


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if namedTupleKey_is(source, position, keyword):
        return False
    if keyword in ("if", "unless"):
        return not postfixConditional_is(source, position, regions)
    return True


def label_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return not namedTupleKey_is(source, position, keyword)


GRAMMAR = LanguageGrammar(
    name="crystal",
    keywords=KEYWORDS,
    region_matchers=(
        comment_match,
        macro_match,
        string_match,
        regex_match,
        heredoc_match,
        percent_match,
        symbol_match,
    ),
    open_valid=open_valid,
    middle_valid=label_valid,
    close_valid=label_valid,
    filenames=("*.cr",),
    aliases=("cr",),
)
