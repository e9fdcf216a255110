"""
AppleScript grammar

Case-insensitive, with multi-word keywords (end tell, using terms from,
on error, else if). Excluded regions: -- and # comments, nested (* *)
comments, "..." strings and |pipe quoted| identifiers.

'end tell', 'end if' ... close only their own opener; a bare 'end' (or
'end handlerName') closes the innermost block. 'on' and 'to' open handlers
only at the start of a line, so 'set x to 5' is not a block. One-line
forms have no end:

    tell application "Finder" to quit
    if x > 1 then return x
"""

import re
from typing import Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion
from ..scanner import (
    blankAfter_skip,
    blankBefore_skip,
    blockComment_matcher,
    char_get,
    lineComment_matcher,
    lineEnd_find,
    matches_unexcluded,
    position_isExcluded,
    quotedString_match,
    word_pattern,
)

END_TO_OPEN = {
    "end tell": "tell",
    "end if": "if",
    "end repeat": "repeat",
    "end try": "try",
    "end considering": "considering",
    "end ignoring": "ignoring",
    "end using terms from": "using terms from",
    "end timeout": "with timeout",
    "end transaction": "with transaction",
    "end script": "script",
}

KEYWORDS = LanguageKeywords(
    block_open=(
        "tell", "if", "repeat", "try", "considering", "ignoring", "using terms from", "with timeout",
        "with transaction", "script", "on", "to",
    ),
    block_close=("end",) + tuple(END_TO_OPEN),
    block_middle=("else if", "else", "on error"),
)

THEN_WORD = word_pattern(("then",), flags=re.IGNORECASE)
TO_WORD = word_pattern(("to",), flags=re.IGNORECASE)


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == '"':
        return quotedString_match(source, pos, '"')
    return None


def pipeIdentifier_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "|":
        return quotedString_match(source, pos, "|", single_line=True)
    return None


def statementStart_is(source: str, position: int) -> bool:
    before = blankBefore_skip(source, position)
    return before < 0 or source[before] in "\r\n"


def trailingCode_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when code other than blanks and comments follows position on its line."""
    i = blankAfter_skip(source, position)
    return i < lineEnd_find(source, position) and not position_isExcluded(i, regions)


def oneLiner_is(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True for 'tell ... to statement' and 'if ... then statement' on one line."""
    line_end = lineEnd_find(source, position)
    separator = TO_WORD if keyword == "tell" else THEN_WORD
    for match in matches_unexcluded(separator, source, position + len(keyword), line_end, regions):
        return trailingCode_is(source, match.end(), regions)
    return False


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword in ("on", "to"):
        return statementStart_is(source, position)
    if keyword in ("tell", "if"):
        return not oneLiner_is(keyword, source, position, regions)
    return True


GRAMMAR = LanguageGrammar(
    name="applescript",
    keywords=KEYWORDS,
    region_matchers=(
        lineComment_matcher("--"),
        lineComment_matcher("#"),
        blockComment_matcher("(*", "*)", nested=True),
        string_match,
        pipeIdentifier_match,
    ),
    case_sensitive=False,
    open_valid=open_valid,
    match_rules=MatchRules.rules_make(
        closer_openers={closer: [opener] for closer, opener in END_TO_OPEN.items()},
        middle_openers={"on error": ["try"], "else": ["if"], "else if": ["if"]},
    ),
    filenames=("*.applescript",),
    aliases=("osascript",),
)
