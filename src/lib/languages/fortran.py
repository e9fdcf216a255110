"""
Fortran grammar

Case-insensitive, free and fixed form. Excluded regions: ! comments,
fixed-form comment lines ('*' or 'C' in column 1) and '...' / "..."
strings with doubled-quote escapes.

End forms may be written apart or glued (end do / enddo, end if / endif);
both spell the same keyword. A compound end closes only its own kind, a
bare 'end' closes the innermost block. 'else if' (or 'elseif') is a
single middle keyword.

False openers rejected here:
    if (x) y = 1                 logical if without 'then'
    select &                     'select' needs 'case', 'type' or 'rank'
    type is (real)               type guard inside select type
    type(point) :: p             type specifier in a declaration
    where (m) a = 0              single-statement where / forall
    procedure(f), pointer :: p   procedure declarations
    module procedure foo         separate module procedure (module is a prefix)
    integer :: end, do           anything after '::' on a declaration line
    end = 5 / end(2) = 1         'end' as a variable

Continuation lines ('&' at the end of a line, optionally repeated at the
start of the next) are followed by the 'then', 'select' and where/forall
checks.
"""

import re
from typing import Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion
from ..scanner import (
    blankAfter_skip,
    char_get,
    lineComment_match,
    lineEnd_find,
    lineBreak_skip,
    lineStart_find,
    position_atLineStart,
    position_isExcluded,
    quotedString_match,
    region_find,
)

COMPOUND_END_TYPES = (
    "program", "subroutine", "function", "module", "submodule", "if", "do", "select", "block",
    "associate", "critical", "forall", "where", "interface", "type", "enum", "procedure",
)

KEYWORDS = LanguageKeywords(
    block_open=COMPOUND_END_TYPES,
    block_close=("end",) + tuple(f"end {kind}" for kind in COMPOUND_END_TYPES),
    block_middle=("else if", "else", "case", "then", "contains"),
)

WORD = re.compile(r"[A-Za-z0-9_]+")
WORD_CHAR = re.compile(r"[A-Za-z0-9_]")
THEN_WORD = re.compile(r"then(?![A-Za-z0-9_])", re.IGNORECASE)
TYPE_GUARD = re.compile(r"\s+is\s*\(", re.IGNORECASE)
MODULE_PROCEDURE = re.compile(r"\s+(?:procedure|function|subroutine)\b", re.ASCII | re.IGNORECASE)
END_OF_CONSTRUCT = re.compile(r"end\s*(where|forall)?\b", re.ASCII | re.IGNORECASE)
SELECT_KINDS = ("case", "type", "rank")


def fixedComment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """Column-1 '*' or 'C' comment line; 'call', 'count' ... are code."""
    if not position_atLineStart(source, pos):
        return None
    ch = char_get(source, pos)
    if ch == "*" or (ch in ("c", "C") and not WORD_CHAR.match(char_get(source, pos + 1))):
        return lineComment_match(source, pos)
    return None


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "!":
        return lineComment_match(source, pos)
    return None


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    ch = char_get(source, pos)
    if ch == "'" or ch == '"':
        return quotedString_match(source, pos, ch, backslash=False, doubled=True, single_line=True)
    return None


# ----------------------------------------------------------------------------
# Continuation-aware navigation
# ----------------------------------------------------------------------------


def previousWord_get(source: str, position: int, regions: Sequence[ExcludedRegion]) -> str:
    """
    Lower-cased word before position in the same statement.

    A line break is crossed only when the line before it ends with '&'.
    """
    i = position - 1
    need_ampersand = False
    while i >= 0:
        ch = source[i]
        if ch in " \t\r" or position_isExcluded(i, regions):
            i -= 1
        elif ch == "\n":
            need_ampersand = True
            i -= 1
        elif ch == "&":
            need_ampersand = False
            i -= 1
        elif need_ampersand or not WORD_CHAR.match(ch):
            return ""
        else:
            start = i
            while start > 0 and WORD_CHAR.match(source[start - 1]):
                start -= 1
            return source[start : i + 1].lower()
    return ""


def nextWord_get(source: str, position: int, regions: Sequence[ExcludedRegion]) -> str:
    """Lower-cased word after position, following '&' continuation lines."""
    n = len(source)
    i = position
    continued = False
    while i < n:
        region = region_find(i, regions)
        if region is not None:
            i = region.end
            continue
        ch = source[i]
        if ch in " \t":
            i += 1
        elif ch in "\r\n":
            if not continued:
                return ""
            i += 1
        elif ch == "&":
            continued = True
            i += 1
        else:
            match = WORD.match(source, i)
            return match.group(0).lower() if match else ""
    return ""


def thenFollows_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when 'then' ends the if-statement starting at position."""
    n = len(source)
    i = position
    last = ""
    while i < n:
        region = region_find(i, regions)
        if region is not None:
            i = region.end
            continue
        ch = source[i]
        if ch == "\n" or (ch == "\r" and char_get(source, i + 1) != "\n"):
            if last != "&":
                return False
            i += 1
            continue
        if ch in " \t\r":
            i += 1
            continue
        if THEN_WORD.match(source, i) and not WORD_CHAR.match(char_get(source, i - 1)):
            return True
        last = ch
        i += 1
    return False


def declaration_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when an unexcluded '::' precedes position on its line."""
    line_start = lineStart_find(source, position)
    colons = source.find("::", line_start, position)
    while colons >= 0:
        if not position_isExcluded(colons, regions):
            return True
        colons = source.find("::", colons + 2, position)
    return False


def lineContinued_is(source: str, start: int, line_end: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when the code in source[start:line_end] ends with '&' (trailing comments ignored)."""
    i = line_end - 1
    while i >= start and (source[i] in " \t\r" or position_isExcluded(i, regions)):
        i -= 1
    return i >= start and source[i] == "&"


def parenthesis_end(source: str, pos: int, regions: Sequence[ExcludedRegion]) -> int:
    """Index past the ')' closing the '(' at pos, or -1 if it never closes."""
    n = len(source)
    depth = 1
    i = pos + 1
    while i < n:
        if not position_isExcluded(i, regions):
            if source[i] == "(":
                depth += 1
            elif source[i] == ")":
                depth -= 1
                if depth == 0:
                    return i + 1
        i += 1
    return -1


# ----------------------------------------------------------------------------
# Per-keyword checks
# ----------------------------------------------------------------------------


def typeSpecifier_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """type(name) followed by '::' or ',' declares a variable."""
    i = blankAfter_skip(source, position)
    if char_get(source, i) != "(":
        return False
    end = parenthesis_end(source, i, regions)
    if end < 0:
        return False
    i = blankAfter_skip(source, end)
    return source.startswith("::", i) or char_get(source, i) == ","


def procedureDeclaration_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """'::' later in the statement makes 'procedure' a declaration."""
    n = len(source)
    i = position
    while i < n:
        line_end = lineEnd_find(source, i)
        colons = source.find("::", i, line_end)
        while colons >= 0:
            if not position_isExcluded(colons, regions):
                return True
            colons = source.find("::", colons + 2, line_end)
        if not lineContinued_is(source, i, line_end, regions):
            return False
        i = lineBreak_skip(source, line_end)
    return False


def constructBlock_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """
    where (mask) / forall (spec) opening a construct rather than a statement.

    Nothing but a comment may follow the parenthesis on its line. After a
    '&' continuation, the construct is a block unless the line after the
    continued statement is an 'end' other than end where / end forall.
    """
    i = blankAfter_skip(source, position)
    if char_get(source, i) != "(":
        return False
    i = parenthesis_end(source, i, regions)
    if i < 0:
        return False

    i = blankAfter_skip(source, i)
    if i >= len(source) or source[i] in "\r\n" or position_isExcluded(i, regions):
        return True
    if source[i] != "&":
        return False

    # Follow continuation lines to the end of the statement
    line_end = lineEnd_find(source, i)
    while True:
        if line_end >= len(source):
            return True
        line_start = lineBreak_skip(source, line_end)
        line_end = lineEnd_find(source, line_start)
        first = blankAfter_skip(source, line_start)
        if first >= line_end or position_isExcluded(first, regions):
            return True
        if not lineContinued_is(source, line_start, line_end, regions):
            break

    if line_end >= len(source):
        return False
    following = blankAfter_skip(source, lineBreak_skip(source, line_end))
    end = END_OF_CONSTRUCT.match(source, following)
    if end is None:
        return True
    return end.group(1) is not None


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if declaration_is(source, position, regions):
        return False
    after = position + len(keyword)

    if keyword == "type":
        if previousWord_get(source, position, regions) == "select":
            return False
        return not (TYPE_GUARD.match(source, after) or typeSpecifier_is(source, after, regions))
    if keyword == "select":
        return nextWord_get(source, after, regions) in SELECT_KINDS
    if keyword == "module":
        return MODULE_PROCEDURE.match(source, after) is None
    if keyword == "procedure":
        return not procedureDeclaration_is(source, after, regions)
    if keyword in ("where", "forall"):
        return constructBlock_is(source, after, regions)
    if keyword == "if":
        if previousWord_get(source, position, regions) == "else":
            return False
        return thenFollows_is(source, after, regions)
    return True


def middle_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if declaration_is(source, position, regions):
        return False
    # 'select case' is the header, not a branch
    if keyword == "case":
        return previousWord_get(source, position, regions) != "select"
    return True


def close_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if declaration_is(source, position, regions):
        return False
    if keyword != "end":
        return True
    i = blankAfter_skip(source, position + len(keyword))
    while char_get(source, i) == "(":
        end = parenthesis_end(source, i, regions)
        if end < 0:
            return True
        i = blankAfter_skip(source, end)
    return not (char_get(source, i) == "=" and char_get(source, i + 1) != "=")


GRAMMAR = LanguageGrammar(
    name="fortran",
    keywords=KEYWORDS,
    region_matchers=(fixedComment_match, comment_match, string_match),
    case_sensitive=False,
    keyword_gap=r"[ \t]*",
    open_valid=open_valid,
    middle_valid=middle_valid,
    close_valid=close_valid,
    match_rules=MatchRules.rules_make(
        closer_openers={f"end {kind}": [kind] for kind in COMPOUND_END_TYPES},
        middle_openers={"then": ["if"], "case": ["select"]},
    ),
    filenames=("*.f", "*.for", "*.f77", "*.f90", "*.f95", "*.f03", "*.f08"),
    aliases=("f90", "f95", "fortran90"),
)
