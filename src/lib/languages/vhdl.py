"""
VHDL grammar

Case-insensitive. Excluded regions: -- comments, /* */ comments
(VHDL-2008), "..." strings with "" escapes, 'x' character literals and
attribute names after a tick (sig'event, arr'range).

Closing forms:
    end if / end process / end loop ...   close the nearest opener of that kind,
                                          or the innermost block when none is open
    end generate                          closes 'generate' and the for/if/while
                                          header right beneath it
    end; / end Name;                      closes the innermost block

False openers rejected here:
    wait for 10 ns;              timing, not a loop
    for i in 0 to 7 loop         the 'loop' belongs to the 'for'
    u1: entity work.foo ...      direct instantiation
    function f(x : t) return t;  declarations without a body

'when' is a middle of 'case' only; the when/else of a conditional signal
assignment (q <= a when s else b;) is dropped.
"""

import re
from typing import Dict, List, Optional, Sequence

from ...config import appsettings
from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion
from ..scanner import (
    blockComment_matcher,
    char_findUnexcluded,
    char_get,
    lineComment_matcher,
    matches_unexcluded,
    position_isExcluded,
    quotedString_match,
)

COMPOUND_END_TYPES = (
    "entity", "architecture", "process", "if", "case", "loop", "function", "procedure", "package",
    "component", "generate", "block", "record", "configuration", "protected",
)

GENERATE_HEADERS = ("for", "while", "if")

KEYWORDS = LanguageKeywords(
    block_open=COMPOUND_END_TYPES + ("for", "while"),
    block_close=("end",) + tuple(f"end {kind}" for kind in COMPOUND_END_TYPES),
    block_middle=("else", "elsif", "when", "then", "is", "begin"),
)

WORD_BEFORE = re.compile(r"[A-Za-z0-9_]+$")
LOOP_WORDS = re.compile(r"\b(?:for|while|loop|generate)\b", re.ASCII | re.IGNORECASE)
ENTITY_INSTANCE = re.compile(r"(?:\buse[ \t]+|:\s*)$", re.ASCII | re.IGNORECASE)
SUBPROGRAM_SCAN = re.compile(r"[();]|\bis\b", re.ASCII | re.IGNORECASE)
ASSIGNMENT_SCAN = re.compile(
    r"<=|\b(?:then|begin|loop|generate|else|elsif|is)\b", re.ASCII | re.IGNORECASE
)


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == '"':
        return quotedString_match(source, pos, '"', backslash=False, doubled=True, single_line=True)
    return None


def tick_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """'x' character literal, or a tick plus the attribute name after it."""
    if char_get(source, pos) != "'":
        return None
    if char_get(source, pos + 2) == "'":
        return ExcludedRegion(pos, pos + 3)
    i = pos + 1
    while i < len(source) and re.match(r"[a-zA-Z0-9_]", source[i]):
        i += 1
    return ExcludedRegion(pos, i)


def previousWord_get(source: str, position: int, regions: Sequence[ExcludedRegion], max_lines: int) -> str:
    """
    Lower-cased word ending at the nearest code character before position.

    Whitespace and excluded regions are skipped, but no further back than
    max_lines line breaks. Returns '' when nothing qualifies.
    """
    i = position - 1
    breaks = 0
    while i >= 0:
        if source[i] == "\n":
            breaks += 1
            if breaks > max_lines:
                return ""
        if source[i] in " \t\r\n" or position_isExcluded(i, regions):
            i -= 1
            continue
        break
    if i < 0:
        return ""
    match = WORD_BEFORE.search(source, max(0, i - 64), i + 1)
    return match.group(0).lower() if match else ""


def windowStart_find(source: str, position: int, lines: int) -> int:
    """Start of the line lines above the one holding position."""
    start = position
    for _ in range(lines + 1):
        start = source.rfind("\n", 0, start)
        if start < 0:
            return 0
    return start + 1


def waitFor_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return previousWord_get(source, position, regions, appsettings.lookahead_lines) == "wait"


def loopOwned_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when a for/while header in the same statement owns this 'loop'."""
    window_start = windowStart_find(source, position, appsettings.lookahead_lines)
    statement_start = char_findUnexcluded(source, ";", window_start, position, regions, reverse=True) + 1
    last = None
    for last in matches_unexcluded(LOOP_WORDS, source, max(window_start, statement_start), position, regions):
        pass
    return last is not None and last.group(0).lower() in ("for", "while")


def subprogramBody_follows(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when 'is' comes before the declaration's ';' outside parentheses."""
    depth = 0
    for match in matches_unexcluded(SUBPROGRAM_SCAN, source, position, len(source), regions):
        text = match.group(0)
        if text == "(":
            depth += 1
        elif text == ")":
            depth -= 1
        elif depth == 0:
            return text != ";"
    return False


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword == "for":
        return not waitFor_is(source, position, regions)
    if keyword == "entity":
        line_start = source.rfind("\n", 0, position) + 1
        return ENTITY_INSTANCE.search(source, line_start, position) is None
    if keyword in ("function", "procedure"):
        return subprogramBody_follows(source, position + len(keyword), regions)
    if keyword == "loop":
        return not loopOwned_is(source, position, regions)
    return True


def signalAssignment_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when a '<=' earlier in the statement makes when/else part of an assignment."""
    statement_start = char_findUnexcluded(source, ";", 0, position, regions, reverse=True) + 1
    last = None
    for last in matches_unexcluded(ASSIGNMENT_SCAN, source, statement_start, position, regions):
        pass
    return last is not None and last.group(0) == "<="


def middle_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword in ("when", "else"):
        return not signalAssignment_is(source, position, regions)
    return True


def _compound_ends() -> Dict[str, List[str]]:
    closers = {f"end {kind}": [kind] for kind in COMPOUND_END_TYPES}
    closers["end loop"] = ["for", "while", "loop"]
    return closers


GRAMMAR = LanguageGrammar(
    name="vhdl",
    keywords=KEYWORDS,
    region_matchers=(
        lineComment_matcher("--"),
        blockComment_matcher("/*", "*/"),
        string_match,
        tick_match,
    ),
    case_sensitive=False,
    open_valid=open_valid,
    middle_valid=middle_valid,
    match_rules=MatchRules.rules_make(
        closer_openers=_compound_ends(),
        middle_openers={"when": ["case"]},
        fallback_closers=[kind for kind in KEYWORDS.block_close if kind != "end generate"],
        chain_openers={"end generate": GENERATE_HEADERS},
    ),
    filenames=("*.vhd", "*.vhdl"),
)
