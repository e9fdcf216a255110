"""
Keyword tokenizer

Walks the source with one compiled keyword pattern per grammar, skips hits
inside excluded regions, classifies the rest as open / middle / close and
hands each candidate to the grammar's validators.

Keywords are matched at identifier boundaries: the character before and the
character after must not be identifier characters of the language. Longer
keywords are tried first, so multi-word keywords such as "end if" win over
their first word.

A rejected candidate resumes the search one character past its start, so a
keyword overlapping the rejected one is still found.
"""

import re
from bisect import bisect_left
from typing import Dict, List, Sequence, Tuple

from ..models.grammar import KeywordValidator, LanguageGrammar
from ..models.tokens import ExcludedRegion, Token, TokenType
from .scanner import region_find


class LineIndex:
    """
    Offset to (line, column) conversion.

    Line breaks are \\n, \\r\\n and a bare \\r, each counting as one
    terminator. Lookups are binary searches over the break offsets.

    Example:
        >>> LineIndex("a\\r\\nb\\rc").position_get(5)
        (2, 0)
    """

    def __init__(self, source: str):
        self.breaks: List[int] = []
        n = len(source)
        for i, ch in enumerate(source):
            if ch == "\n":
                self.breaks.append(i)
            elif ch == "\r" and (i + 1 >= n or source[i + 1] != "\n"):
                self.breaks.append(i)

    def position_get(self, offset: int) -> Tuple[int, int]:
        line = bisect_left(self.breaks, offset)
        line_start = self.breaks[line - 1] + 1 if line > 0 else 0
        return line, offset - line_start

    def token_make(self, token_type: TokenType, value: str, start: int) -> Token:
        line, column = self.position_get(start)
        return Token(
            type=token_type,
            value=value,
            start_offset=start,
            end_offset=start + len(value),
            line=line,
            column=column,
        )


def keyword_regex(grammar: LanguageGrammar) -> "re.Pattern[str]":
    """
    Build the keyword pattern for a grammar.

    Alternatives are ordered longest first. The spaces of multi-word
    keywords become the grammar's gap pattern.
    """
    words = sorted(
        set(grammar.keywords.block_open + grammar.keywords.block_middle + grammar.keywords.block_close),
        key=len,
        reverse=True,
    )
    alternatives = [grammar.keyword_gap.join(re.escape(part) for part in word.split(" ")) for word in words]
    boundary = grammar.word_chars
    flags = 0 if grammar.case_sensitive else re.IGNORECASE
    return re.compile(rf"(?<![{boundary}])(?:{'|'.join(alternatives)})(?![{boundary}])", flags)


class Tokenizer:
    """
    Keyword tokenizer bound to one grammar.

    The compiled pattern is built once; tokenize() itself keeps no state
    between calls.
    """

    def __init__(self, grammar: LanguageGrammar):
        self.grammar = grammar
        self.pattern = keyword_regex(grammar)
        self.validators: Dict[TokenType, KeywordValidator] = {}
        if grammar.open_valid:
            self.validators[TokenType.OPEN] = grammar.open_valid
        if grammar.middle_valid:
            self.validators[TokenType.MIDDLE] = grammar.middle_valid
        if grammar.close_valid:
            self.validators[TokenType.CLOSE] = grammar.close_valid

    def tokenize(self, source: str, regions: Sequence[ExcludedRegion]) -> List[Token]:
        """
        Find validated block keywords in source order.

        Args:
            source: Full source text
            regions: Excluded regions from the scanner, sorted by start

        Returns:
            Tokens in source order, after the grammar's token pass
        """
        tokens: List[Token] = []
        lines = LineIndex(source)
        pos = 0
        n = len(source)
        while pos < n:
            match = self.pattern.search(source, pos)
            if match is None:
                break
            start = match.start()

            region = region_find(start, regions)
            if region is not None:
                pos = max(region.end, start + 1)
                continue

            text = match.group(0)
            entry = self.grammar.keyword_lookup(text)
            if entry is None:
                pos = start + 1
                continue
            token_type, keyword = entry

            validator = self.validators.get(token_type)
            if validator is not None and not validator(keyword, source, start, regions):
                pos = start + 1
                continue

            tokens.append(lines.token_make(token_type, text, start))
            pos = max(match.end(), start + 1)

        if self.grammar.token_pass is not None:
            tokens = self.grammar.token_pass(tokens, source, regions, lines)
        return tokens
