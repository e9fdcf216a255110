"""
Erlang grammar

Excluded regions: % comments, "..." strings, \"\"\" triple-quoted strings
(OTP 27, the closing quotes start their own line), '...' quoted atoms and
$c character literals ($\\n, $\\x{1F600}, $\\101 ...).

Every block ends with 'end', which closes the innermost block. Middles
belong to specific openers: 'of' to case and try, 'after' to receive and
try, 'catch' to try, 'else' to if, try and maybe.

Not blocks:
    fun lists:map/2, fun foo/1   function references
    -spec f(fun(() -> ok)) -> ok.  fun types in attributes
    #{begin => 1}                keywords used as map keys
"""

import re
from typing import Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion
from ..scanner import (
    char_get,
    lineComment_matcher,
    lineStart_find,
    matches_unexcluded,
    quotedString_match,
)

KEYWORDS = LanguageKeywords(
    block_open=("begin", "if", "case", "receive", "try", "fun", "maybe"),
    block_close=("end",),
    block_middle=("of", "after", "catch", "else"),
)

CHARACTER_LITERAL = re.compile(r"\$(?:\\(?:x\{[0-9a-fA-F]*\}?|x[0-9a-fA-F]{0,2}|[0-7]{1,3}|\^.|.)|.)", re.DOTALL)
MAP_KEY = re.compile(r"\s*=>")
ATOM = r"(?:[a-z_][A-Za-z0-9_@]*|'(?:[^'\\]|\\.)*')"
FUNCTION_REFERENCE = re.compile(rf"\s+(?:{ATOM}\s*:\s*)?{ATOM}\s*/\s*\d")
TYPE_ATTRIBUTE = re.compile(r"^[ \t]*-\s*(?:spec|type|callback|opaque)\b", re.MULTILINE)
FORM_END = re.compile(r"\.(?=\s|%|$)")


def characterLiteral_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    match = CHARACTER_LITERAL.match(source, pos)
    if match is None:
        return None
    return ExcludedRegion(pos, match.end())


def tripleString_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """Triple-quoted string; the closing quotes must have only blanks before them on their line."""
    if not source.startswith('"""', pos):
        return None
    closing = source.find('"""', pos + 3)
    while closing >= 0:
        line_start = lineStart_find(source, closing)
        if line_start > pos and not source[line_start:closing].strip():
            return ExcludedRegion(pos, closing + 3)
        closing = source.find('"""', closing + 1)
    return ExcludedRegion(pos, len(source))


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    ch = char_get(source, pos)
    if ch == '"' or ch == "'":
        return quotedString_match(source, pos, ch)
    return None


def mapKey_is(keyword: str, source: str, position: int) -> bool:
    return MAP_KEY.match(source, position + len(keyword)) is not None


def typeContext_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when position lies inside a -spec / -type / -callback / -opaque form."""
    last = None
    for last in matches_unexcluded(TYPE_ATTRIBUTE, source, 0, position, regions):
        pass
    if last is None:
        return False
    return not any(True for _ in matches_unexcluded(FORM_END, source, last.end(), position, regions))


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if mapKey_is(keyword, source, position):
        return False
    if keyword != "fun":
        return True
    after = position + len(keyword)
    if FUNCTION_REFERENCE.match(source, after):
        return False
    return not typeContext_is(source, position, regions)


def keyword_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return not mapKey_is(keyword, source, position)


GRAMMAR = LanguageGrammar(
    name="erlang",
    keywords=KEYWORDS,
    region_matchers=(
        characterLiteral_match,
        lineComment_matcher("%"),
        tripleString_match,
        string_match,
    ),
    word_chars="A-Za-z0-9_@",
    open_valid=open_valid,
    middle_valid=keyword_valid,
    close_valid=keyword_valid,
    match_rules=MatchRules.rules_make(
        middle_openers={
            "of": ["case", "try"],
            "after": ["receive", "try"],
            "catch": ["try"],
            "else": ["if", "try", "maybe"],
        },
    ),
    filenames=("*.erl", "*.hrl", "*.escript"),
    aliases=("erl",),
)
