"""
Pygments lexer driven by the block engine

Highlights source text the way the engine sees it, which makes pairing
problems easy to spot in a terminal.

Token types:
- Comment: Excluded regions (comments, strings and other literals)
- Keyword: Block keywords that belong to a matched pair
- Error: Block keywords the matcher left unpaired
- Text: Everything else
"""

from typing import Iterator, List, Set, Tuple

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexer import Lexer
from pygments.token import Comment, Error, Keyword, Text, _TokenType

from .languages import parser_get


class BlockKeywordLexer(Lexer):
    """
    Lexer for any language the engine supports

    Args:
        language: Registry name or alias of the language
        **options: Standard pygments lexer options

    Example:
        >>> lexer = BlockKeywordLexer("lua")
        >>> [(t, v) for _, t, v in lexer.get_tokens_unprocessed("do end")]
        [(Token.Keyword, 'do'), (Token.Text, ' '), (Token.Keyword, 'end')]
    """

    name = "Block keywords"
    aliases = ["blockmatch"]

    def __init__(self, language: str, **options):
        # Offsets must stay those of the text we are given
        options.setdefault("stripnl", False)
        super().__init__(**options)
        self.block_parser = parser_get(language)

    def get_tokens_unprocessed(self, text: str) -> Iterator[Tuple[int, _TokenType, str]]:
        regions = self.block_parser.excludedRegions_get(text)
        tokens = self.block_parser.tokens_get(text, regions)
        pairs = self.block_parser.tokens_match(tokens)

        paired: Set[int] = set()
        for pair in pairs:
            paired.add(pair.open_keyword.start_offset)
            paired.add(pair.close_keyword.start_offset)
            paired.update(token.start_offset for token in pair.intermediates)

        spans: List[Tuple[int, int, _TokenType]] = [(r.start, r.end, Comment) for r in regions]
        spans.extend(
            (t.start_offset, t.end_offset, Keyword if t.start_offset in paired else Error) for t in tokens
        )
        spans.sort(key=lambda span: span[0])

        pos = 0
        for start, end, tokentype in spans:
            if start > pos:
                yield pos, Text, text[pos:start]
            yield start, tokentype, text[start:end]
            pos = end
        if pos < len(text):
            yield pos, Text, text[pos:]


def get_lexer(language: str) -> BlockKeywordLexer:
    """
    Get a BlockKeywordLexer for a language

    Raises:
        KeyError: unknown language
    """
    return BlockKeywordLexer(language)


def source_highlight(source: str, language: str) -> str:
    """Source rendered with ANSI colors for a terminal."""
    return highlight(source, get_lexer(language), TerminalFormatter())
