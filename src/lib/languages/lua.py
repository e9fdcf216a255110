"""
Lua grammar

Excluded regions: -- comments, --[[ ]] / --[==[ ]==] long comments,
[[ ]] / [==[ ]==] long strings and quoted strings.

Pairing: 'until' closes only 'repeat', 'end' closes everything but
'repeat'. The 'do' of 'while ... do' and 'for ... do' belongs to the loop
and does not open a block of its own.
"""

import re
from typing import Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion
from ..scanner import char_get, lineComment_match, matches_unexcluded, quotedString_match, word_pattern

KEYWORDS = LanguageKeywords(
    block_open=("if", "while", "for", "repeat", "function", "do"),
    block_close=("end", "until"),
    block_middle=("then", "else", "elseif"),
)

LOOP_KEYWORDS = word_pattern(("while", "for"))
LONG_BRACKET = re.compile(r"\[(=*)\[")


def longString_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """[[ ... ]] or [=[ ... ]=] with the same number of '=' on both ends."""
    opener = LONG_BRACKET.match(source, pos)
    if opener is None:
        return None
    closer = "]" + opener.group(1) + "]"
    close_at = source.find(closer, opener.end())
    if close_at < 0:
        return ExcludedRegion(pos, len(source))
    return ExcludedRegion(pos, close_at + len(closer))


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if not source.startswith("--", pos):
        return None
    long_comment = longString_match(source, pos + 2)
    if long_comment is not None:
        return ExcludedRegion(pos, long_comment.end)
    return lineComment_match(source, pos)


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    ch = char_get(source, pos)
    if ch == '"' or ch == "'":
        return quotedString_match(source, pos, ch)
    return None


def loopDo_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when a live while/for precedes the 'do' at position on its line."""
    line_start = source.rfind("\n", 0, position) + 1
    return any(True for _ in matches_unexcluded(LOOP_KEYWORDS, source, line_start, position, regions))


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword == "do":
        return not loopDo_is(source, position, regions)
    return True


GRAMMAR = LanguageGrammar(
    name="lua",
    keywords=KEYWORDS,
    region_matchers=(comment_match, longString_match, string_match),
    open_valid=open_valid,
    match_rules=MatchRules.rules_make(
        closer_openers={"until": ["repeat"]},
        closer_excluded={"end": ["repeat"]},
    ),
    filenames=("*.lua",),
)
