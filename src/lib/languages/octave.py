"""
Octave grammar

MATLAB plus # comments, #{ ... #} block comments, backslash escapes in
"..." strings and '...' continuations (the rest of the line is ignored).

Besides the generic 'end', each block has its own closer (endfunction,
endif, end_try_catch, end_unwind_protect ...) which closes only that
kind. do ... until is a loop that only 'until' closes.
"""

from typing import Optional

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion
from ..scanner import char_get, lineComment_match, quotedString_match
from .matlab import blockComment_lines, close_valid, transpose_is
from .matlab import blockComment_match as percentBlock_match

CLOSE_TO_OPEN = {
    "endfunction": "function",
    "endif": "if",
    "endfor": "for",
    "endwhile": "while",
    "endswitch": "switch",
    "end_try_catch": "try",
    "endparfor": "parfor",
    "endspmd": "spmd",
    "end_unwind_protect": "unwind_protect",
    "endclassdef": "classdef",
    "endmethods": "methods",
    "endproperties": "properties",
    "endevents": "events",
    "endenumeration": "enumeration",
    "until": "do",
}

KEYWORDS = LanguageKeywords(
    block_open=(
        "function", "if", "for", "while", "do", "switch", "try", "parfor", "spmd", "classdef",
        "methods", "properties", "events", "enumeration", "unwind_protect",
    ),
    block_close=("end",) + tuple(CLOSE_TO_OPEN),
    block_middle=("else", "elseif", "case", "otherwise", "catch", "unwind_protect_cleanup"),
)


def hashBlock_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    return blockComment_lines(source, pos, "#{", "#}")


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) in ("%", "#") or source.startswith("...", pos):
        return lineComment_match(source, pos)
    return None


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    ch = char_get(source, pos)
    if ch == "'" and not transpose_is(source, pos):
        return quotedString_match(source, pos, "'", backslash=False, doubled=True, single_line=True)
    if ch == '"':
        return quotedString_match(source, pos, '"', backslash=True, doubled=True, single_line=True)
    return None


GRAMMAR = LanguageGrammar(
    name="octave",
    keywords=KEYWORDS,
    region_matchers=(percentBlock_match, hashBlock_match, comment_match, string_match),
    close_valid=close_valid,
    match_rules=MatchRules.rules_make(
        closer_openers={closer: [opener] for closer, opener in CLOSE_TO_OPEN.items()},
        closer_excluded={"end": ["do"]},
    ),
    filenames=("*.m",),
)
