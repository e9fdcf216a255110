"""
Ruby grammar

Excluded regions: # comments, =begin/=end blocks, __END__ data, single and
double quoted strings, backtick commands, regex literals (told apart from
division), heredocs (several per line, <<ID / <<-ID / <<~ID / quoted
forms), percent literals (%w[] %q() %r{} ...) and symbols.

Keyword filters:
    - obj.class, obj.end          member access, not keywords
    - end:, if?, begin!, do=      hash keys and method names
    - x = y if cond               postfix conditionals
    - while cond do               loop separator 'do', not a block
    - risky rescue nil            postfix rescue
"""

import re
from typing import List, Optional, Sequence, Tuple

from ...models.grammar import LanguageGrammar, LanguageKeywords
from ...models.tokens import ExcludedRegion
from ..scanner import (
    BLANKS,
    blankBefore_skip,
    char_findUnexcluded,
    char_get,
    lineBreak_skip,
    lineComment_match,
    lineEnd_find,
    lineStart_find,
    matches_unexcluded,
    position_atLineStart,
    quotedString_match,
    word_pattern,
)

KEYWORDS = LanguageKeywords(
    block_open=("do", "if", "unless", "while", "until", "begin", "def", "class", "module", "case", "for"),
    block_close=("end",),
    block_middle=("else", "elsif", "rescue", "ensure", "when", "in", "then"),
)

REGEX_FLAGS = "imxo"
PERCENT_SPECIFIERS = "qQwWiIrsx"
PAIRED_DELIMITERS = {"(": ")", "[": "]", "{": "}", "<": ">"}

# A slash after one of these is division
DIVISION_PRECEDERS = re.compile(r"[a-zA-Z0-9_?!)\]}\"'`]")
IDENT_CHAR = re.compile(r"[a-zA-Z0-9_]")

REGEX_PRECEDING_KEYWORDS = frozenset(
    {
        "if", "unless", "while", "until", "when", "case", "and", "or", "not", "return", "yield",
        "puts", "print", "raise", "in", "then", "else", "elsif", "do", "begin", "rescue", "ensure",
    }
)

HEREDOC = re.compile(r"<<([~-]?)(['\"`])([A-Za-z_][A-Za-z0-9_]*)\2|<<([~-]?)([A-Za-z_][A-Za-z0-9_]*)")

POSTFIX_CAPABLE = frozenset({"if", "unless", "while", "until"})
LEADING_KEYWORDS = ("do", "then", "else", "elsif", "begin", "rescue", "ensure", "when", "in", "not", "and", "or")
RESCUE_LEADING_KEYWORDS = ("do", "then", "else", "elsif", "begin", "rescue", "ensure", "when", "in")
LOOP_KEYWORDS = word_pattern(("while", "until", "for"))
DO_KEYWORD = word_pattern(("do",))


# ----------------------------------------------------------------------------
# Shared helpers (also used by the Crystal grammar)
# ----------------------------------------------------------------------------


def matchingDelimiter_get(opener: str) -> Optional[str]:
    """Closing delimiter for a percent literal, or None if opener cannot delimit."""
    if opener in PAIRED_DELIMITERS:
        return PAIRED_DELIMITERS[opener]
    if opener and re.match(r"[^\sa-zA-Z0-9]", opener):
        return opener
    return None


def statement_prefix(source: str, position: int, regions: Sequence[ExcludedRegion]) -> Tuple[int, str]:
    """
    Text before position on its line, starting after the last live ';'.

    Returns:
        (offset where the statement starts, stripped text before position)
    """
    line_start = lineStart_find(source, position)
    semicolon = char_findUnexcluded(source, ";", line_start, position, regions, reverse=True)
    start = semicolon + 1 if semicolon >= 0 else line_start
    return start, source[start:position].strip()


def endsWith_keyword(text: str, keywords: Sequence[str]) -> bool:
    """True when text is one of keywords or ends with ' kw' / '\\tkw'."""
    for keyword in keywords:
        if text == keyword or text.endswith(" " + keyword) or text.endswith("\t" + keyword):
            return True
    return False


# ----------------------------------------------------------------------------
# Interpolation
# ----------------------------------------------------------------------------


def interpolation_skip(source: str, pos: int, regex_aware: bool = True) -> int:
    """
    Skip the body of a #{...} interpolation starting at pos (after '#{').

    Nested strings, backtick commands, percent literals, # comments and,
    when regex_aware, regex literals are skipped whole so their braces do
    not count.

    Returns:
        Offset just past the closing brace, or len(source)
    """
    n = len(source)
    depth = 1
    i = pos
    while i < n and depth > 0:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == "#" and char_get(source, i + 1) != "{":
            while i < n and source[i] != "\n":
                i += 1
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch in "\"'":
            i = nestedString_skip(source, i)
            continue
        elif ch == "`":
            i = nestedString_skip(source, i)
            continue
        elif ch == "/" and regex_aware and _interpolation_regexStart(source, i, pos):
            i = nestedRegex_skip(source, i)
            continue
        elif ch == "%" and i + 1 < n and not modulo_is(source, i):
            end = percentLiteral_end(source, i)
            if end is not None:
                i = end
                continue
        i += 1
    return i


def _interpolation_regexStart(source: str, pos: int, interp_start: int) -> bool:
    j = pos - 1
    while j >= interp_start and source[j] in BLANKS:
        j -= 1
    if j < interp_start:
        return True
    return source[j] in "(,=!~|&{[:"


def nestedString_skip(source: str, pos: int) -> int:
    """Skip a quoted string or backtick command inside an interpolation."""
    quote = source[pos]
    n = len(source)
    i = pos + 1
    while i < n:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if quote != "'" and ch == "#" and char_get(source, i + 1) == "{":
            i = interpolation_skip(source, i + 2)
            continue
        if ch == quote:
            return i + 1
        i += 1
    return i


def nestedRegex_skip(source: str, pos: int) -> int:
    n = len(source)
    i = pos + 1
    while i < n:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == "#" and char_get(source, i + 1) == "{":
            i = interpolation_skip(source, i + 2)
            continue
        if ch == "/":
            i += 1
            while i < n and source[i] in REGEX_FLAGS:
                i += 1
            return i
        if ch == "\n":
            return i
        i += 1
    return i


def interpolatedString_match(source: str, pos: int) -> ExcludedRegion:
    """String or command literal with #{} interpolation, closed by the quote at pos."""
    return ExcludedRegion(pos, nestedString_skip(source, pos))


# ----------------------------------------------------------------------------
# Literals
# ----------------------------------------------------------------------------


def modulo_is(source: str, pos: int) -> bool:
    """True when the '%' at pos follows an operand and is the modulo operator."""
    i = blankBefore_skip(source, pos)
    if i < 0:
        return False
    return bool(re.match(r"[a-zA-Z0-9_)\]}\"'`/]", source[i]))


def percentLiteral_end(source: str, pos: int) -> Optional[int]:
    """
    End offset of a percent literal at pos (%w[...], %q(...), %{...}).

    Paired delimiters nest; interpolating forms skip #{}. Returns None when
    no valid delimiter follows.
    """
    n = len(source)
    specifier = char_get(source, pos + 1)
    delimiter_pos = pos + 1
    interpolating = True
    if specifier and specifier in PERCENT_SPECIFIERS:
        delimiter_pos = pos + 2
        interpolating = specifier not in "qwis"
    if delimiter_pos >= n:
        return None

    opener = source[delimiter_pos]
    closer = matchingDelimiter_get(opener)
    if closer is None:
        return None

    paired = opener != closer
    depth = 1
    i = delimiter_pos + 1
    while i < n and depth > 0:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if interpolating and ch == "#" and char_get(source, i + 1) == "{":
            i = interpolation_skip(source, i + 2)
            continue
        if paired and ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
        i += 1
    return i


def regexStart_is(source: str, pos: int) -> bool:
    """True when the '/' at pos opens a regex literal rather than dividing."""
    i = blankBefore_skip(source, pos)
    if i < 0:
        return True
    if not DIVISION_PRECEDERS.match(source[i]):
        return True
    if re.match(r"[a-zA-Z_]", source[i]):
        word_start = i
        while word_start > 0 and IDENT_CHAR.match(source[word_start - 1]):
            word_start -= 1
        return source[word_start : i + 1] in REGEX_PRECEDING_KEYWORDS
    return False


def regexLiteral_match(source: str, pos: int) -> ExcludedRegion:
    n = len(source)
    i = pos + 1
    while i < n:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == "#" and char_get(source, i + 1) == "{":
            i = interpolation_skip(source, i + 2, regex_aware=False)
            continue
        if ch == "/":
            i += 1
            while i < n and source[i] in REGEX_FLAGS:
                i += 1
            return ExcludedRegion(pos, i)
        if ch in "\r\n":
            return ExcludedRegion(pos, i)
        i += 1
    return ExcludedRegion(pos, i)


def symbolStart_is(source: str, pos: int) -> bool:
    """True when the ':' at pos starts a symbol (not ternary, hash key or ::)."""
    following = char_get(source, pos + 1)
    if not following or not re.match(r"[a-zA-Z_\"']", following):
        return False
    previous = char_get(source, pos - 1)
    if previous == ":":
        return False
    return not (previous and re.match(r"[a-zA-Z0-9_)\]}>]", previous))


def symbolLiteral_match(source: str, pos: int) -> ExcludedRegion:
    following = char_get(source, pos + 1)
    if following == '"':
        return ExcludedRegion(pos, nestedString_skip(source, pos + 1))
    if following == "'":
        return ExcludedRegion(pos, quotedString_match(source, pos + 1).end)
    i = pos + 1
    n = len(source)
    while i < n and re.match(r"[a-zA-Z0-9_!?]", source[i]):
        i += 1
    return ExcludedRegion(pos, i)


def heredoc_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """
    Heredoc bodies opened on the line at pos.

    Every heredoc marker from pos to the line end is collected; the bodies
    follow in order, each ending at a line equal to its identifier
    (leading whitespace allowed for <<- and <<~). The region covers the
    bodies only and so starts on the next line.
    """
    if not source.startswith("<<", pos):
        return None
    line_end = lineEnd_find(source, pos)
    first = HEREDOC.match(source, pos, line_end)
    if first is None:
        return None

    # After an operand, bare <<ID is a shift; only flagged forms are heredocs
    previous = blankBefore_skip(source, pos)
    if previous >= 0 and re.match(r"[a-zA-Z0-9_)\]}]", source[previous]):
        if char_get(source, pos + 2) not in ("~", "-"):
            return None

    terminators: List[Tuple[str, bool]] = []
    for match in HEREDOC.finditer(source, pos, line_end):
        name = match.group(3) or match.group(5)
        flag = match.group(1) or match.group(4)
        terminators.append((name, flag in ("~", "-")))

    n = len(source)
    content_start = lineBreak_skip(source, line_end)
    if content_start >= n:
        return None

    i = content_start
    index = 0
    while i < n:
        end = lineEnd_find(source, i)
        line = source[i:end]
        name, indented = terminators[index]
        if (line.lstrip() if indented else line) == name:
            index += 1
            if index == len(terminators):
                return ExcludedRegion(content_start, lineBreak_skip(source, end) if end < n else end)
        i = lineBreak_skip(source, end) if end < n else n
    return ExcludedRegion(content_start, n)


# ----------------------------------------------------------------------------
# Region matchers
# ----------------------------------------------------------------------------


def dataSection_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if source.startswith("__END__", pos) and position_atLineStart(source, pos):
        if char_get(source, pos + 7) in ("", "\n", "\r", " ", "\t"):
            return ExcludedRegion(pos, len(source))
    return None


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "#":
        return lineComment_match(source, pos)
    return None


def _marker_line(source: str, pos: int, marker: str) -> bool:
    return source.startswith(marker, pos) and char_get(source, pos + len(marker)) in ("", " ", "\t", "\n", "\r")


def docComment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """=begin ... =end block; both markers at line start, the =end line included."""
    if not (position_atLineStart(source, pos) and _marker_line(source, pos, "=begin")):
        return None
    n = len(source)
    i = pos + 6
    while i < n:
        if source[i] == "=" and position_atLineStart(source, i) and _marker_line(source, i, "=end"):
            return ExcludedRegion(pos, lineEnd_find(source, i + 4))
        i += 1
    return ExcludedRegion(pos, n)


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    ch = char_get(source, pos)
    if ch == '"' or ch == "`":
        return interpolatedString_match(source, pos)
    if ch == "'":
        return quotedString_match(source, pos, "'")
    return None


def regex_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "/" and regexStart_is(source, pos):
        return regexLiteral_match(source, pos)
    return None


def percent_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "%" and pos + 1 < len(source) and not modulo_is(source, pos):
        end = percentLiteral_end(source, pos)
        if end is not None:
            return ExcludedRegion(pos, end)
    return None


def symbol_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == ":" and symbolStart_is(source, pos):
        return symbolLiteral_match(source, pos)
    return None


# ----------------------------------------------------------------------------
# Validators
# ----------------------------------------------------------------------------


def loopDo_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when the 'do' at position separates a while/until/for condition from its body."""
    start, _ = statement_prefix(source, position, regions)
    for loop in matches_unexcluded(LOOP_KEYWORDS, source, start, position, regions):
        for do in matches_unexcluded(DO_KEYWORD, source, loop.end(), position + 2, regions):
            if do.start() == position:
                return True
            break
    return False


def postfixConditional_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True for 'value if cond' style modifiers."""
    _, before = statement_prefix(source, position, regions)
    if not before:
        return False
    if endsWith_keyword(before, LEADING_KEYWORDS):
        return False
    # save! if ...  /  valid? if ...  are method calls, the keyword is postfix
    if re.search(r"[a-zA-Z0-9_][!?]$", before):
        return True
    # An operator expecting an operand: x = if cond
    if re.search(r"[=&|,(\[{:?+\-*/%<>^~!.]$", before):
        return False
    return True


def postfixRescue_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    _, before = statement_prefix(source, position, regions)
    if not before:
        return False
    return not endsWith_keyword(before, RESCUE_LEADING_KEYWORDS)


def keywordUsage_ok(source: str, position: int, keyword: str) -> bool:
    """Reject member access (obj.end), hash keys (end:) and method names (end? begin! do=)."""
    if char_get(source, position - 1) == ".":
        return False
    return char_get(source, position + len(keyword)) not in (":", "?", "!", "=")


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if not keywordUsage_ok(source, position, keyword):
        return False
    if keyword == "do":
        return not loopDo_is(source, position, regions)
    if keyword in POSTFIX_CAPABLE:
        return not postfixConditional_is(source, position, regions)
    return True


def middle_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if not keywordUsage_ok(source, position, keyword):
        return False
    if keyword == "rescue":
        return not postfixRescue_is(source, position, regions)
    return True


def close_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return keywordUsage_ok(source, position, keyword)


GRAMMAR = LanguageGrammar(
    name="ruby",
    keywords=KEYWORDS,
    region_matchers=(
        dataSection_match,
        comment_match,
        docComment_match,
        string_match,
        regex_match,
        heredoc_match,
        percent_match,
        symbol_match,
    ),
    open_valid=open_valid,
    middle_valid=middle_valid,
    close_valid=close_valid,
    filenames=("*.rb", "*.rake", "*.gemspec", "*.ru", "Rakefile", "Gemfile"),
    aliases=("rb",),
)
