"""
Elixir grammar

Block openers only open a block when a trailing 'do' follows them
(def foo(x) do ... end); 'fn' is closed by 'end' directly. One-liners
written with the keyword-list form (if x, do: y) and keyword-list keys
(if: 1, end: 2) are not blocks.

Excluded regions: # comments, strings, charlists, heredocs (triple
quotes), sigils (~r/.../i, ~s(...), ~S\"\"\"...\"\"\"), atoms and character
literals (?a). Strings, charlists, heredocs and lowercase sigils skip
#{...} interpolation bodies, so quotes inside them do not end the literal.
"""

import re
from typing import Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords
from ...models.tokens import ExcludedRegion
from ..scanner import (
    char_get,
    lineComment_match,
    region_find,
)

KEYWORDS = LanguageKeywords(
    block_open=(
        "def", "defp", "defmodule", "defmacro", "defmacrop", "defguard", "defguardp", "defprotocol",
        "defimpl", "if", "case", "cond", "unless", "for", "with", "try", "receive", "fn", "quote",
    ),
    block_close=("end",),
    block_middle=("else", "rescue", "catch", "after"),
)

# Openers that also have a ', do: value' one-line form
DO_COLON_KEYWORDS = frozenset(
    {
        "if", "unless", "case", "cond", "for", "with", "try", "receive", "def", "defp",
        "defmacro", "defmacrop", "defguard", "defguardp", "quote",
    }
)

SIGIL_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}


def _space_or_end(ch: str) -> bool:
    return ch == "" or ch.isspace()


def comment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == "#":
        return lineComment_match(source, pos)
    return None


def interpolation_skip(source: str, pos: int) -> int:
    """
    Skip the body of a #{...} interpolation starting at pos (after '#{').

    Nested strings, charlists, sigils and # comments are skipped whole so
    their braces and quotes do not count.

    Returns:
        Offset just past the closing brace, or len(source)
    """
    n = len(source)
    depth = 1
    i = pos
    while i < n:
        ch = source[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == "#" and char_get(source, i + 1) != "{":
            while i < n and source[i] not in "\r\n":
                i += 1
            continue
        if ch in "\"'":
            delimiter = ch * 3 if source.startswith(ch * 3, i) else ch
            i = literal_end(source, i + len(delimiter), delimiter)
            continue
        if ch == "~":
            region = sigil_match(source, i)
            if region is not None:
                i = region.end
                continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return n


def literal_end(
    source: str,
    pos: int,
    closer: str,
    opener: str = "",
    escapes: bool = True,
    interpolates: bool = True,
) -> int:
    """
    End of a literal whose body starts at pos.

    Args:
        closer: Closing delimiter (one character or a triple quote)
        opener: Opening delimiter of a nesting pair, empty when symmetric
        escapes: Backslash escapes the next character
        interpolates: #{...} bodies are skipped whole

    Returns:
        Offset just past the closing delimiter, or len(source)
    """
    n = len(source)
    depth = 1
    i = pos
    while i < n:
        if escapes and source[i] == "\\" and i + 1 < n:
            i += 2
            continue
        if interpolates and source.startswith("#{", i):
            i = interpolation_skip(source, i + 2)
            continue
        if opener and source.startswith(opener, i):
            depth += 1
        elif source.startswith(closer, i):
            depth -= 1
            if depth == 0:
                return i + len(closer)
        i += 1
    return n


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    for delimiter in ('"""', "'''"):
        if source.startswith(delimiter, pos):
            return ExcludedRegion(pos, literal_end(source, pos + 3, delimiter))
    ch = char_get(source, pos)
    if ch == '"' or ch == "'":
        return ExcludedRegion(pos, literal_end(source, pos + 1, ch))
    return None


def sigil_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """
    Sigil literal at pos.

    Paired delimiters nest, symmetric ones do not. Lowercase sigils honor
    backslash escapes and #{} interpolation, uppercase (raw) ones do not.
    Trailing modifier letters belong to the literal.
    """
    n = len(source)
    if char_get(source, pos) != "~":
        return None
    letter = char_get(source, pos + 1)
    if not letter or not re.match(r"[a-zA-Z]", letter):
        return None

    delimiter_pos = pos + 2
    while delimiter_pos < n and re.match(r"[a-zA-Z]", source[delimiter_pos]):
        delimiter_pos += 1
    if delimiter_pos >= n:
        return None

    opener = source[delimiter_pos]
    if opener in SIGIL_PAIRS:
        closer = SIGIL_PAIRS[opener]
    elif re.match(r"[^a-zA-Z0-9\s]", opener):
        closer = opener
    else:
        return None

    lowercase = letter.islower()
    triple = source[delimiter_pos : delimiter_pos + 3]
    if triple in ('"""', "'''"):
        end = literal_end(source, delimiter_pos + 3, triple, escapes=lowercase, interpolates=lowercase)
    else:
        end = literal_end(
            source,
            delimiter_pos + 1,
            closer,
            opener if opener != closer else "",
            escapes=lowercase,
            interpolates=lowercase,
        )
    return ExcludedRegion(pos, _modifiers_skip(source, end))


def _modifiers_skip(source: str, pos: int) -> int:
    n = len(source)
    while pos < n and re.match(r"[a-zA-Z]", source[pos]):
        pos += 1
    return pos


def atom_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """:atom, :"quoted atom" or :'quoted atom'; not a keyword-list colon."""
    if char_get(source, pos) != ":":
        return None
    following = char_get(source, pos + 1)
    if not following or not re.match(r"[a-zA-Z_\"']", following):
        return None
    previous = char_get(source, pos - 1)
    if previous and re.match(r"[a-zA-Z0-9_)\]}>]", previous):
        return None
    if following in "\"'":
        return ExcludedRegion(pos, literal_end(source, pos + 2, following))
    i = pos + 1
    while i < len(source) and re.match(r"[a-zA-Z0-9_!?@]", source[i]):
        i += 1
    return ExcludedRegion(pos, i)


def charLiteral_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """?a, ?\\n, ?" character literals; a '?' ending an identifier is left alone."""
    if char_get(source, pos) != "?" or pos + 1 >= len(source):
        return None
    previous = char_get(source, pos - 1)
    if previous and re.match(r"[a-zA-Z0-9_)\]}\"'?!]", previous):
        return None
    following = source[pos + 1]
    if following.isspace():
        return None
    if following == "\\" and pos + 2 < len(source):
        return ExcludedRegion(pos, pos + 3)
    return ExcludedRegion(pos, pos + 2)


def keywordArgument_is(source: str, position: int) -> bool:
    return char_get(source, position) == ":"


def doKeyword_follows(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """
    True when a block 'do' follows position outside parentheses.

    Excluded regions are skipped whole. The scan gives up at a standalone
    'end', which would belong to an earlier block.
    """
    n = len(source)
    i = position
    depth = 0
    while i < n:
        region = region_find(i, regions)
        if region is not None:
            i = region.end
            continue

        ch = source[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1

        if depth == 0:
            if i > 0 and source[i - 1].isspace() and source.startswith("do", i):
                if _space_or_end(char_get(source, i + 2)):
                    return True
            if source.startswith(", do", i) and _space_or_end(char_get(source, i + 4)):
                return True
            if source.startswith("end", i):
                before = source[i - 1] if i > 0 else " "
                if before.isspace() and _space_or_end(char_get(source, i + 3)):
                    return False
        i += 1
    return False


def doColonOneLiner_is(keyword: str, source: str, position: int) -> bool:
    """True for 'if cond, do: value' on the keyword's line; the colon abuts 'do'."""
    if keyword not in DO_COLON_KEYWORDS:
        return False
    n = len(source)
    i = position + len(keyword)
    while i < n and source[i] not in "\r\n":
        do_start = -1
        if source.startswith(", do", i):
            do_start = i + 2
        elif source.startswith(",do", i) or source.startswith(" do", i) or source.startswith("\tdo", i):
            do_start = i + 1
        if do_start >= 0 and char_get(source, do_start + 2) == ":":
            return True
        i += 1
    return False


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keywordArgument_is(source, position + len(keyword)):
        return False
    if keyword == "fn":
        return True
    if not doKeyword_follows(source, position + len(keyword), regions):
        return False
    return not doColonOneLiner_is(keyword, source, position)


def label_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    return not keywordArgument_is(source, position + len(keyword))


GRAMMAR = LanguageGrammar(
    name="elixir",
    keywords=KEYWORDS,
    region_matchers=(comment_match, string_match, sigil_match, atom_match, charLiteral_match),
    open_valid=open_valid,
    middle_valid=label_valid,
    close_valid=label_valid,
    filenames=("*.ex", "*.exs"),
    aliases=("ex", "exs"),
)
