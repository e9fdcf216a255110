"""
Bash grammar

Excluded regions, tried in this order at each position:

    # comment            (not the '#' of ${#var})
    $'...'               ANSI-C string, backslash escapes
    ${...}               parameter expansion, nested braces
    $(...) / $((...))    command substitution / arithmetic
    $[...]               legacy arithmetic
    <<EOF ... EOF        heredoc, from the marker to the terminator line
    '...'  "..."  `...`  quoting

Brace groups '{ ...; }' are added as an extra open/close pair by a token
pass; brace expansion ({a,b}) and parameter expansion braces are left out.
"""

import re
from typing import List, Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion, Token, TokenType
from ..scanner import BLANKS, char_get, lineComment_match, position_isExcluded, quotedString_match
from ..tokenizer import LineIndex

KEYWORDS = LanguageKeywords(
    block_open=("if", "case", "for", "while", "until", "select"),
    block_close=("fi", "esac", "done"),
    block_middle=("then", "else", "elif", "do"),
)

HEREDOC = re.compile(r"<<(-)?(['\"])?([A-Za-z_][A-Za-z0-9_]*)\2?")
GROUP_CLOSE_AFTER = ("fi", "done", "esac")


def quoted_end(source: str, pos: int) -> int:
    """End of the '...' or "..." string opened at pos."""
    quote = source[pos]
    return quotedString_match(source, pos, quote, backslash=quote == '"').end


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) != "#":
        return None
    if pos >= 2 and source[pos - 2 : pos] == "${":
        return None
    return lineComment_match(source, pos)


def ansiString_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if not source.startswith("$'", pos):
        return None
    region = quotedString_match(source, pos + 1, "'")
    return ExcludedRegion(pos, region.end)


def parameterExpansion_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """${...} with nested braces; quotes and $( inside are skipped whole."""
    if not source.startswith("${", pos):
        return None
    n = len(source)
    depth = 1
    i = pos + 2
    while i < n and depth > 0:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if source.startswith("$'", i):
            i = ansiString_match(source, i).end
            continue
        if ch in ("'", '"'):
            i = quoted_end(source, i)
            continue
        if source.startswith("$(", i):
            i = commandSubstitution_match(source, i).end
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        i += 1
    return ExcludedRegion(pos, i)


def commandSubstitution_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """
    $(...) or $((...)).

    Parentheses are counted with quoted strings skipped; a nested $( opens
    a substitution of its own.
    """
    if not source.startswith("$(", pos):
        return None
    n = len(source)
    arithmetic = source.startswith("$((", pos)
    depth = 2 if arithmetic else 1
    i = pos + (3 if arithmetic else 2)
    while i < n and depth > 0:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch in ("'", '"'):
            i = quoted_end(source, i)
            continue
        if not arithmetic and source.startswith("$(", i):
            i = commandSubstitution_match(source, i).end
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        i += 1
    return ExcludedRegion(pos, i)


def arithmeticBracket_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if not source.startswith("$[", pos):
        return None
    n = len(source)
    depth = 1
    i = pos + 2
    while i < n and depth > 0:
        if source[i] == "[":
            depth += 1
        elif source[i] == "]":
            depth -= 1
        i += 1
    return ExcludedRegion(pos, i)


def heredoc_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """
    <<WORD, <<-WORD, <<'WORD' or <<"WORD" through its terminator line.

    The '-' form allows the terminator to be indented with tabs. Here
    strings (<<<) are not heredocs.
    """
    if not source.startswith("<<", pos) or char_get(source, pos + 2) == "<" or char_get(source, pos - 1) == "<":
        return None
    marker = HEREDOC.match(source, pos)
    if marker is None:
        return None
    name = marker.group(3)
    strip_tabs = marker.group(1) == "-"

    n = len(source)
    line_end = source.find("\n", marker.end())
    if line_end < 0:
        return ExcludedRegion(pos, n)
    i = line_end + 1
    while i < n:
        end = source.find("\n", i)
        if end < 0:
            end = n
        line = source[i:end]
        if line.endswith("\r"):
            line = line[:-1]
        if strip_tabs:
            line = line.lstrip("\t")
        if line == name:
            return ExcludedRegion(pos, min(end + 1, n))
        i = end + 1
    return ExcludedRegion(pos, n)


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    ch = char_get(source, pos)
    if ch == "'":
        return quotedString_match(source, pos, "'", backslash=False)
    if ch == '"':
        return quotedString_match(source, pos, '"')
    return None


def backtick_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """`...` where only \\`, \\\\ and \\$ are escapes."""
    if char_get(source, pos) != "`":
        return None
    n = len(source)
    i = pos + 1
    while i < n:
        if source[i] == "\\" and char_get(source, i + 1) in ("`", "\\", "$"):
            i += 2
            continue
        if source[i] == "`":
            return ExcludedRegion(pos, i + 1)
        i += 1
    return ExcludedRegion(pos, n)


# ----------------------------------------------------------------------------
# Brace groups
# ----------------------------------------------------------------------------


def insideParameterExpansion_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """True when the '}' at position closes an unexcluded ${ before it."""
    depth = 0
    for i in range(position - 1, -1, -1):
        if position_isExcluded(i, regions):
            continue
        if source[i] == "}":
            depth += 1
        elif source[i] == "{" and char_get(source, i - 1) == "$":
            if depth == 0:
                return True
            depth -= 1
    return False


def groupOpen_is(source: str, position: int) -> bool:
    if char_get(source, position - 1) == "$":
        return False
    return char_get(source, position + 1) in ("", " ", "\t", "\r", "\n")


def groupClose_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """'}' ends a command list: after ';', a line break, or fi/done/esac."""
    if insideParameterExpansion_is(source, position, regions):
        return False
    j = position - 1
    while j >= 0 and source[j] in BLANKS:
        j -= 1
    if j < 0 or source[j] in (";", "\n"):
        return True
    for keyword in GROUP_CLOSE_AFTER:
        start = j - len(keyword) + 1
        if start >= 0 and source[start : j + 1] == keyword:
            if start == 0 or not re.match(r"[a-zA-Z0-9_]", source[start - 1]):
                return True
    return False


def braceGroups_add(
    tokens: List[Token], source: str, regions: Sequence[ExcludedRegion], lines: LineIndex
) -> List[Token]:
    for match in re.finditer(r"[{}]", source):
        i = match.start()
        if position_isExcluded(i, regions):
            continue
        if match.group(0) == "{":
            if groupOpen_is(source, i):
                tokens.append(lines.token_make(TokenType.OPEN, "{", i))
        elif groupClose_is(source, i, regions):
            tokens.append(lines.token_make(TokenType.CLOSE, "}", i))
    tokens.sort(key=lambda token: token.start_offset)
    return tokens


GRAMMAR = LanguageGrammar(
    name="bash",
    keywords=KEYWORDS,
    region_matchers=(
        comment_match,
        ansiString_match,
        parameterExpansion_match,
        commandSubstitution_match,
        arithmeticBracket_match,
        heredoc_match,
        string_match,
        backtick_match,
    ),
    token_pass=braceGroups_add,
    match_rules=MatchRules.rules_make(
        closer_openers={
            "fi": ["if"],
            "esac": ["case"],
            "done": ["for", "while", "until", "select"],
            "}": ["{"],
        }
    ),
    filenames=("*.sh", "*.bash", "*.zsh", ".bashrc", ".bash_profile"),
    aliases=("sh", "shell", "zsh"),
)
