"""
Pascal / Delphi grammar

Case-insensitive. Excluded regions: // line comments, { } and (* *)
comments (compiler directives {$...} included) and '...' strings with ''
escapes that cannot span lines.

'class', 'object' and 'interface' open a block only in a type definition
(TFoo = class ... end). Forward declarations (class; class(TBase);),
class references (class of) and modifiers (class function) do not. A
variant part inside a record (case Tag: T of) has no 'end' of its own.
"""

import re
from typing import Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion
from ..scanner import (
    blockComment_matcher,
    char_get,
    lineComment_matcher,
    position_isExcluded,
    quotedString_match,
    region_find,
    word_pattern,
)

KEYWORDS = LanguageKeywords(
    block_open=("begin", "case", "repeat", "try", "record", "class", "object", "interface", "asm"),
    block_close=("end", "until"),
    block_middle=("else", "except", "finally", "of"),
)

TAGGED_VARIANT = re.compile(r"\s+[a-zA-Z_]\w*\s*:", re.ASCII)
TAGLESS_VARIANT = re.compile(r"\s+[a-zA-Z_][\w.]*\s+of\b", re.ASCII | re.IGNORECASE)
CLASS_REFERENCE = re.compile(r"\s+of\b", re.ASCII | re.IGNORECASE)
RECORD_SCOPE = word_pattern(("begin", "end", "record", "object"), flags=re.IGNORECASE)
WHITESPACE = " \t\r\n"


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "'":
        return quotedString_match(source, pos, "'", backslash=False, doubled=True, single_line=True)
    return None


def insideRecord_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when position lies in an unclosed record/object declaration."""
    depth = 0
    words = [m for m in RECORD_SCOPE.finditer(source, 0, position) if not position_isExcluded(m.start(), regions)]
    for match in reversed(words):
        word = match.group(0).lower()
        if word == "end":
            depth += 1
        elif word == "begin":
            depth = max(depth - 1, 0)
        elif depth == 0:
            return True
        else:
            depth -= 1
    return False


def forwardDeclaration_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """class; or class(TBase, IFoo); declares a class without a body."""
    n = len(source)
    j = position
    while j < n and source[j] in " \t":
        j += 1
    if char_get(source, j) == ";":
        return True
    if char_get(source, j) != "(":
        return False

    depth = 1
    j += 1
    while j < n and depth > 0:
        if not position_isExcluded(j, regions):
            if source[j] == "(":
                depth += 1
            elif source[j] == ")":
                depth -= 1
        j += 1
    while j < n:
        region = region_find(j, regions)
        if region is not None:
            j = region.end
        elif source[j] in WHITESPACE:
            j += 1
        else:
            break
    return char_get(source, j) == ";"


def typeDefinition_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when the nearest code character before position is '='."""
    i = position - 1
    while i >= 0 and (source[i] in WHITESPACE or position_isExcluded(i, regions)):
        i -= 1
    return i >= 0 and source[i] == "="


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    after = position + len(keyword)
    if keyword == "case":
        if TAGGED_VARIANT.match(source, after):
            return False
        if TAGLESS_VARIANT.match(source, after) and insideRecord_is(source, position, regions):
            return False
        return True

    if keyword not in ("class", "object", "interface"):
        return True
    if keyword == "class":
        if CLASS_REFERENCE.match(source, after) or forwardDeclaration_is(source, after, regions):
            return False
    return typeDefinition_is(source, position, regions)


GRAMMAR = LanguageGrammar(
    name="pascal",
    keywords=KEYWORDS,
    region_matchers=(
        lineComment_matcher("//"),
        blockComment_matcher("{", "}"),
        blockComment_matcher("(*", "*)"),
        string_match,
    ),
    case_sensitive=False,
    open_valid=open_valid,
    match_rules=MatchRules.rules_make(
        closer_openers={"until": ["repeat"]},
        closer_excluded={"end": ["repeat"]},
    ),
    filenames=("*.pas", "*.pp", "*.dpr", "*.lpr", "*.inc"),
    aliases=("delphi", "objectpascal"),
)
