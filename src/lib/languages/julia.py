"""
Julia grammar

Excluded regions: # comments and nestable #= =# blocks, strings and
triple-quoted strings with $(...) interpolation, string macros (r"...",
raw"...", b"...", custom prefixes), command literals (`...` and ```...```),
character literals (told apart from the ' transpose operator) and symbols
(:name, :+).

Context rules:
    - [x for x in xs if x > 0]   comprehension for/if, not blocks
    - (x for x in xs)            generator for/if, not blocks
    - a[end], a[2:end]           'end' as an index inside [...]
    - abstract type / primitive type ... end
"""

import re
from typing import Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords
from ...models.tokens import ExcludedRegion
from ..scanner import blockComment_match, char_get, lineComment_match, position_isExcluded

KEYWORDS = LanguageKeywords(
    block_open=(
        "if", "function", "for", "while", "struct", "begin", "try", "let", "module", "baremodule",
        "macro", "quote", "do", "abstract", "primitive",
    ),
    block_close=("end",),
    block_middle=("elseif", "else", "catch", "finally"),
)

ALL_KEYWORDS = frozenset(KEYWORDS.block_open + KEYWORDS.block_close + KEYWORDS.block_middle)
OPERATOR_CHARS = "!%&*+-/<=>?\\^|~@"
TYPE_FOLLOWS = re.compile(r"\s+type\b", re.ASCII)
STRING_PREFIX = re.compile(r"[a-zA-Z][a-zA-Z0-9_]*")


def _word(ch: str) -> bool:
    """ASCII identifier character or any non-ASCII character."""
    return bool(ch) and (ch.isascii() and (ch.isalnum() or ch == "_") or not ch.isascii())


# ----------------------------------------------------------------------------
# Interpolated literals
# ----------------------------------------------------------------------------


def interpolation_skip(source: str, pos: int) -> int:
    """
    Skip a $( ... ) interpolation body starting at pos (after '$(').

    Comments, character literals, command literals and nested strings
    inside are skipped whole so their parentheses do not count.
    """
    n = len(source)
    depth = 1
    i = pos
    while i < n and depth > 0:
        ch = source[i]
        if source.startswith("#=", i):
            region = blockComment_match(source, i, "#=", "=#", nested=True)
            i = region.end if region else i + 2
            continue
        if ch == "#":
            while i < n and source[i] not in "\r\n":
                i += 1
            continue
        if ch == "'" and not transpose_is(source, i):
            i = charLiteral_end(source, i)
            continue
        if ch == "`":
            i = delimited_end(source, i, "```" if source.startswith("```", i) else "`")
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == '"':
            i = delimited_end(source, i, '"""' if source.startswith('"""', i) else '"')
            continue
        i += 1
    return i


def delimited_end(source: str, pos: int, delimiter: str, interpolating: bool = True) -> int:
    """
    End of a string or command literal opened by delimiter at pos.

    Backslash escapes the next character; $(...) is skipped when the
    literal interpolates.
    """
    n = len(source)
    i = pos + len(delimiter)
    while i < n:
        if source[i] == "\\" and i + 1 < n:
            i += 2
            continue
        if interpolating and source.startswith("$(", i):
            i = interpolation_skip(source, i + 2)
            continue
        if source.startswith(delimiter, i):
            return i + len(delimiter)
        i += 1
    return n


def transpose_is(source: str, pos: int) -> bool:
    """True when the quote at pos follows an operand (x', A[1]', f(x)')."""
    previous = char_get(source, pos - 1)
    return previous in (")", "]", "}") or _word(previous)


def charLiteral_end(source: str, pos: int) -> int:
    n = len(source)
    i = pos + 1
    while i < n:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == "'":
            return i + 1
        if ch in "\r\n":
            return i
        i += 1
    return i


# ----------------------------------------------------------------------------
# Region matchers
# ----------------------------------------------------------------------------


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if source.startswith("#=", pos):
        return blockComment_match(source, pos, "#=", "=#", nested=True)
    if char_get(source, pos) == "#":
        return lineComment_match(source, pos)
    return None


def symbol_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """:name or :operator; a ':' after an operand is a range or ternary, '::' a type assertion."""
    if char_get(source, pos) != ":":
        return None
    first = char_get(source, pos + 1)
    if not first or not (_word(first) or first in OPERATOR_CHARS):
        return None
    previous = char_get(source, pos - 1)
    if previous == ":" or previous in (")", "]", "}", ">") or _word(previous):
        return None

    n = len(source)
    i = pos + 1
    if _word(first):
        while i < n and (_word(source[i]) or source[i] == "!"):
            i += 1
    else:
        while i < n and source[i] in OPERATOR_CHARS:
            i += 1
    return ExcludedRegion(pos, i)


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if source.startswith('"""', pos):
        return ExcludedRegion(pos, delimited_end(source, pos, '"""'))
    if char_get(source, pos) == '"':
        return ExcludedRegion(pos, delimited_end(source, pos, '"'))
    return None


def prefixedString_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """String macro literal: prefix"..." or prefix\"\"\"...\"\"\" (r and raw do not interpolate)."""
    if _word(char_get(source, pos - 1)):
        return None
    match = STRING_PREFIX.match(source, pos)
    if match is None or char_get(source, match.end()) != '"':
        return None
    prefix = match.group(0)
    if prefix in ALL_KEYWORDS:
        return None
    interpolating = prefix not in ("r", "raw")
    quote_at = match.end()
    delimiter = '"""' if source.startswith('"""', quote_at) else '"'
    return ExcludedRegion(pos, delimited_end(source, quote_at, delimiter, interpolating))


def charLiteral_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "'" and not transpose_is(source, pos):
        return ExcludedRegion(pos, charLiteral_end(source, pos))
    return None


def command_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if source.startswith("```", pos):
        return ExcludedRegion(pos, delimited_end(source, pos, "```"))
    if char_get(source, pos) == "`":
        return ExcludedRegion(pos, delimited_end(source, pos, "`"))
    return None


# ----------------------------------------------------------------------------
# Validators
# ----------------------------------------------------------------------------


def enclosing_get(source: str, position: int, regions: Sequence[ExcludedRegion], brackets: str) -> str:
    """
    Innermost unclosed bracket before position among brackets ("[", "(" or "[(").

    Returns the opening character, or '' when none encloses position.
    """
    depth = {"[": 0, "(": 0}
    closers = {"]": "[", ")": "("}
    for i in range(position - 1, -1, -1):
        ch = source[i]
        if ch not in "[]()" or position_isExcluded(i, regions):
            continue
        if ch in closers:
            if closers[ch] in brackets:
                depth[closers[ch]] += 1
        elif ch in brackets:
            if depth[ch] == 0:
                return ch
            depth[ch] -= 1
    return ""


def insideBrackets_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return enclosing_get(source, position, regions, "[") == "["


def insideParentheses_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return enclosing_get(source, position, regions, "(") == "("


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword in ("abstract", "primitive"):
        return TYPE_FOLLOWS.match(source, position + len(keyword)) is not None
    if keyword in ("for", "if"):
        return not (
            insideBrackets_is(source, position, regions) or insideParentheses_is(source, position, regions)
        )
    # Block expressions are fine inside (...), only [...] rules them out
    return enclosing_get(source, position, regions, "[(") != "["


def close_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return not insideBrackets_is(source, position, regions)


GRAMMAR = LanguageGrammar(
    name="julia",
    keywords=KEYWORDS,
    region_matchers=(
        comment_match,
        symbol_match,
        string_match,
        prefixedString_match,
        charLiteral_match,
        command_match,
    ),
    word_chars="A-Za-z0-9_\u0080-\U0010ffff",
    open_valid=open_valid,
    close_valid=close_valid,
    filenames=("*.jl",),
    aliases=("jl",),
)
