"""
Block parser façade

Composes the excluded-region scanner, the keyword tokenizer and the block
matcher behind four entry points:

    parse(source)                -> List[BlockPair]
    tokens_get(source)           -> List[Token]
    tokens_match(tokens)         -> List[BlockPair]
    excludedRegions_get(source)  -> List[ExcludedRegion]

Data flows one way: source text -> excluded regions -> validated tokens ->
block pairs. A parser holds only the immutable grammar and objects compiled
from it, so one instance can serve any number of documents, from any
number of threads.

The engine never raises for string input: unterminated literals run to end
of source, unmatched keywords are simply left out of the result.

Example:
    >>> from blockmatch.lib.languages import parser_get
    >>> parser = parser_get("ruby")
    >>> pairs = parser.parse("if x\\n  y\\nend")
    >>> pairs[0].open_keyword.value, pairs[0].close_keyword.value
    ('if', 'end')
"""

from typing import List, Optional

from ..config import AppSettings, appsettings
from ..models.grammar import BlockMatchStrategy, LanguageGrammar
from ..models.tokens import BlockPair, ExcludedRegion, Token
from .log import LOG
from .matcher import StackMatcher, containment_renest
from .scanner import regions_scan
from .tokenizer import Tokenizer


class BlockParser:
    """
    Block-pairing engine for one language.

    Args:
        grammar: Language configuration
        settings: Optional settings override; defaults to the process-wide
                  appsettings singleton

    Attributes:
        grammar: The grammar this parser was built for
        tokenizer: Compiled keyword tokenizer
        matcher: Block matching strategy (StackMatcher unless the grammar
                 supplies its own factory)
    """

    def __init__(self, grammar: LanguageGrammar, settings: Optional[AppSettings] = None):
        self.grammar = grammar
        self.settings = settings or appsettings
        self.tokenizer = Tokenizer(grammar)
        self.matcher: BlockMatchStrategy = (
            grammar.matcher_factory(grammar) if grammar.matcher_factory else StackMatcher(grammar)
        )

    def __repr__(self) -> str:
        return f"BlockParser({self.grammar.name!r})"

    def excludedRegions_get(self, source: str) -> List[ExcludedRegion]:
        """
        Comments, literals and other spans where keywords are ignored.

        Returns:
            Regions sorted by start, non-overlapping, each non-empty
        """
        regions = regions_scan(source, self.grammar.region_matchers)
        LOG(f"{self.grammar.name}: {len(regions)} excluded regions", level=3)
        return regions

    def tokens_get(self, source: str, regions: Optional[List[ExcludedRegion]] = None) -> List[Token]:
        """Validated block keyword tokens in source order; regions are scanned when not given."""
        if regions is None:
            regions = self.excludedRegions_get(source)
        return self.tokenizer.tokenize(source, regions)

    def tokens_match(self, tokens: List[Token]) -> List[BlockPair]:
        """Pair an already validated token list (see tokens_get)."""
        pairs = self.matcher.blocks_match(tokens)
        if self.settings.nest_level_mode == "containment":
            containment_renest(pairs)
        LOG(f"{self.grammar.name}: {len(tokens)} tokens, {len(pairs)} pairs", level=3)
        return pairs

    def parse(self, source: str) -> List[BlockPair]:
        """
        Match block keywords in source.

        Args:
            source: Full source text of one document

        Returns:
            Matched pairs in closing order (sort by open_keyword line and
            column for source order)
        """
        return self.tokens_match(self.tokens_get(source))
