"""
Ada grammar

Case-insensitive. Excluded regions: -- comments, "..." strings with ""
escapes and 'x' character literals; an attribute tick (A'Length) is
excluded on its own so it never starts a literal.

Closing forms:
    end if / end loop / end case / ...   close the nearest opener of that kind
    end; / end Name;                     close the nearest 'begin' together with
                                         the unit declared right beneath it
                                         (procedure ... is ... begin ... end)

'loop' after a 'for' or 'while' header belongs to that loop; quantified
expressions (for all ...) and use clauses (for T'Size use ...) are not loops.
The short-circuit forms 'and then' and 'or else' are not middles.
"""

import re
from typing import Dict, List, Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion
from ..scanner import (
    blankBefore_skip,
    char_findUnexcluded,
    char_get,
    lineComment_matcher,
    matches_unexcluded,
    position_isExcluded,
    quotedString_match,
    region_find,
)

COMPOUND_END_TYPES = (
    "if", "loop", "case", "select", "record", "procedure", "function", "package", "task", "protected",
    "accept",
)

# Units whose 'begin' shares the simple 'end'
BEGIN_CONTEXT = ("declare", "procedure", "function", "task", "protected", "package", "entry", "accept")

KEYWORDS = LanguageKeywords(
    block_open=(
        "if", "loop", "for", "while", "case", "select", "record", "declare", "begin", "procedure",
        "function", "package", "task", "protected", "accept", "entry",
    ),
    block_close=("end",) + tuple(f"end {kind}" for kind in COMPOUND_END_TYPES),
    block_middle=("else", "elsif", "when", "then", "exception", "or", "is"),
)

LOOP_WORDS = re.compile(r"\b(?:for|while|loop)\b", re.ASCII | re.IGNORECASE)
SHORT_CIRCUIT_BEFORE = {
    "then": re.compile(r"\band\s+$", re.ASCII | re.IGNORECASE),
    "else": re.compile(r"\bor\s+$", re.ASCII | re.IGNORECASE),
}
OR_ELSE = re.compile(r"or\s+else\b", re.ASCII | re.IGNORECASE)
UNIT_SCAN = re.compile(r"[();]|\b(?:is|do)\b", re.ASCII | re.IGNORECASE)
NO_BODY = re.compile(r"\s*(?:new|separate|abstract|null|<>|\()", re.ASCII | re.IGNORECASE)
LOOP_HEADER = re.compile(r";|\bloop\b", re.ASCII | re.IGNORECASE)
NULL_BEFORE = re.compile(r"\bnull\s+$", re.ASCII | re.IGNORECASE)


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == '"':
        return quotedString_match(source, pos, '"', backslash=False, doubled=True, single_line=True)
    return None


def characterLiteral_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) != "'":
        return None
    if char_get(source, pos + 2) == "'":
        return ExcludedRegion(pos, pos + 3)
    return ExcludedRegion(pos, pos + 1)


def body_follows(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """
    True when the unit declared at position has a body.

    Declarations end with ';' before any 'is' (or 'do' for accept), and
    instantiations, renamings and stubs (is new, is separate, is abstract,
    is null, is (expr)) have no 'end' either.
    """
    depth = 0
    for match in UNIT_SCAN.finditer(source, position):
        if position_isExcluded(match.start(), regions):
            continue
        text = match.group(0)
        if text == "(":
            depth += 1
        elif text == ")":
            depth = max(depth - 1, 0)
        elif depth > 0:
            continue
        elif text == ";":
            return False
        else:
            return NO_BODY.match(source, match.end()) is None
    return False


def loopHeader_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when 'loop' comes before the statement's ';' (not a quantifier or a use clause)."""
    for match in LOOP_HEADER.finditer(source, position):
        if not position_isExcluded(match.start(), regions):
            return match.group(0) != ";"
    return False


def loopOwned_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when a for/while header earlier in the statement owns this 'loop'."""
    statement_start = char_findUnexcluded(source, ";", 0, position, regions, reverse=True) + 1
    last = None
    for last in matches_unexcluded(LOOP_WORDS, source, statement_start, position, regions):
        pass
    return last is not None and last.group(0).lower() != "loop"


def unterminatedString_is(source: str, region: ExcludedRegion) -> bool:
    """True for a "..." region cut off at its line end."""
    text = source[region.start : region.end]
    return text.startswith('"') and not text[1:].replace('""', "").endswith('"')


def expression_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """
    (if ...) and (case ...) expressions have no end.

    The walk back to the '(' crosses line breaks and excluded regions, but
    stops at a string left open on an earlier line.
    """
    i = blankBefore_skip(source, position)
    while i >= 0:
        if source[i] in "\r\n":
            i = blankBefore_skip(source, i)
            continue
        region = region_find(i, regions)
        if region is None:
            break
        if unterminatedString_is(source, region):
            return False
        i = blankBefore_skip(source, region.start)
    return i >= 0 and source[i] == "("


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword in BEGIN_CONTEXT and keyword != "declare":
        return body_follows(source, position + len(keyword), regions)
    if keyword in ("for", "while"):
        return loopHeader_is(source, position + len(keyword), regions)
    if keyword in ("if", "case"):
        return not expression_is(source, position, regions)
    if keyword == "record":
        return NULL_BEFORE.search(source, 0, position) is None
    if keyword == "loop":
        return not loopOwned_is(source, position, regions)
    return True


def middle_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword == "or":
        return OR_ELSE.match(source, position) is None
    short_circuit = SHORT_CIRCUIT_BEFORE.get(keyword)
    if short_circuit is not None:
        line_start = source.rfind("\n", 0, position) + 1
        return short_circuit.search(source, line_start, position) is None
    return True


def _compound_ends() -> Dict[str, List[str]]:
    closers = {f"end {kind}": [kind] for kind in COMPOUND_END_TYPES}
    closers["end loop"] = ["for", "while", "loop"]
    closers["end"] = ["begin"]
    return closers


GRAMMAR = LanguageGrammar(
    name="ada",
    keywords=KEYWORDS,
    region_matchers=(lineComment_matcher("--"), string_match, characterLiteral_match),
    case_sensitive=False,
    keyword_gap=r"\s+",
    open_valid=open_valid,
    middle_valid=middle_valid,
    match_rules=MatchRules.rules_make(
        closer_openers=_compound_ends(),
        fallback_closers=KEYWORDS.block_close,
        chain_openers={"end": BEGIN_CONTEXT},
    ),
    filenames=("*.adb", "*.ads", "*.ada"),
    aliases=("ada95", "ada2005", "ada2012"),
)
