"""
Language grammar configuration

A LanguageGrammar bundles everything the generic engine needs to know about
one block-structured language: its keyword tables, the matchers that find
comments and literals, the validators that reject false keyword hits, and
the pairing rules used by the stack matcher.

Grammars are built once at import time and never mutated, so a single
instance can be shared by any number of parsers and threads.
"""

import re
from functools import cached_property
from typing import (
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TYPE_CHECKING,
)
from dataclasses import dataclass, field

from .tokens import BlockPair, ExcludedRegion, Token, TokenType

# Forward reference for type hint - avoid circular import
if TYPE_CHECKING:
    from ..lib.tokenizer import LineIndex


# (source, pos) -> region starting at or after pos, or None
RegionMatcher = Callable[[str, int], Optional[ExcludedRegion]]

# (keyword, source, position, regions) -> accept?
KeywordValidator = Callable[[str, str, int, Sequence[ExcludedRegion]], bool]

# (tokens, source, regions, line index) -> tokens
TokenPass = Callable[[List[Token], str, Sequence[ExcludedRegion], "LineIndex"], List[Token]]


class BlockMatchStrategy(Protocol):
    """Turns a validated token stream into block pairs."""

    def blocks_match(self, tokens: Sequence[Token]) -> List[BlockPair]:
        ...


def _frozen(mapping: Mapping[str, Sequence[str]]) -> Dict[str, FrozenSet[str]]:
    return {key: frozenset(values) for key, values in mapping.items()}


@dataclass(frozen=True)
class LanguageKeywords:
    """
    Keyword tables for one language.

    Multi-word keywords (e.g. "end if", "using terms from") are written with
    single spaces; the tokenizer widens the space to the grammar's gap pattern.
    """

    block_open: Tuple[str, ...]
    block_close: Tuple[str, ...]
    block_middle: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchRules:
    """
    Declarative pairing rules for the stack matcher.

    All keys and values are canonical keywords (lower case for
    case-insensitive languages).

    Attributes:
        closer_openers: closer -> the only openers it may close. Closers
            missing from the mapping are generic and close any opener.
        closer_excluded: closer -> openers it must never close
            (Lua 'end' never closes 'repeat').
        middle_openers: middle -> openers that accept it. The middle is
            dropped unless the top frame's opener is listed.
        fallback_closers: closers that close the top frame when no
            compatible opener is on the stack.
        chain_openers: closer -> frame kinds that, when found directly
            beneath the frame it closes, are closed by the same token.
    """

    closer_openers: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    closer_excluded: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    middle_openers: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    fallback_closers: FrozenSet[str] = frozenset()
    chain_openers: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    @classmethod
    def rules_make(
        cls,
        closer_openers: Optional[Mapping[str, Sequence[str]]] = None,
        closer_excluded: Optional[Mapping[str, Sequence[str]]] = None,
        middle_openers: Optional[Mapping[str, Sequence[str]]] = None,
        fallback_closers: Sequence[str] = (),
        chain_openers: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> "MatchRules":
        """
        Build rules from plain lists.

        Example:
            >>> rules = MatchRules.rules_make(closer_openers={"fi": ["if"]})
            >>> rules.closer_openers["fi"]
            frozenset({'if'})
        """
        return cls(
            closer_openers=_frozen(closer_openers or {}),
            closer_excluded=_frozen(closer_excluded or {}),
            middle_openers=_frozen(middle_openers or {}),
            fallback_closers=frozenset(fallback_closers),
            chain_openers=_frozen(chain_openers or {}),
        )


@dataclass(frozen=True)
class LanguageGrammar:
    """
    Complete, immutable description of one language for the block engine.

    Attributes:
        name: Registry name (e.g. "ruby")
        keywords: Open/middle/close keyword tables
        region_matchers: Matchers tried in priority order at each position
            by the excluded-region scanner
        case_sensitive: False for languages such as Pascal or Ada
        word_chars: Regex character-class body of identifier characters,
            used for keyword boundaries
        keyword_gap: Regex placed between the words of multi-word keywords
        open_valid / middle_valid / close_valid: Optional validators; a
            candidate is dropped when its validator returns False
        token_pass: Optional hook run over the validated token list
        match_rules: Pairing rules for the default stack matcher
        matcher_factory: Optional factory replacing the default matcher
        filenames: Glob patterns of source files in this language
        aliases: Alternative registry names
    """

    name: str
    keywords: LanguageKeywords
    region_matchers: Tuple[RegionMatcher, ...] = ()
    case_sensitive: bool = True
    word_chars: str = "A-Za-z0-9_"
    keyword_gap: str = r"[ \t]+"
    open_valid: Optional[KeywordValidator] = None
    middle_valid: Optional[KeywordValidator] = None
    close_valid: Optional[KeywordValidator] = None
    token_pass: Optional[TokenPass] = None
    match_rules: MatchRules = field(default_factory=MatchRules)
    matcher_factory: Optional[Callable[["LanguageGrammar"], BlockMatchStrategy]] = None
    filenames: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.keywords.block_open or not self.keywords.block_close:
            raise ValueError(f"Grammar '{self.name}' needs at least one open and one close keyword")

    def keyword_key(self, text: str) -> str:
        """
        Normalize keyword text for table lookup.

        Whitespace inside multi-word keywords is removed so "end  do",
        "end do" and "enddo" share a key; case is folded for
        case-insensitive grammars.
        """
        key = re.sub(r"\s+", "", text)
        return key if self.case_sensitive else key.lower()

    @cached_property
    def keyword_table(self) -> Dict[str, Tuple[TokenType, str]]:
        """Key -> (token type, canonical keyword). Close wins over middle, middle over open."""
        table: Dict[str, Tuple[TokenType, str]] = {}
        groups = (
            (TokenType.CLOSE, self.keywords.block_close),
            (TokenType.MIDDLE, self.keywords.block_middle),
            (TokenType.OPEN, self.keywords.block_open),
        )
        for token_type, words in groups:
            for word in words:
                canonical = word if self.case_sensitive else word.lower()
                table.setdefault(self.keyword_key(word), (token_type, canonical))
        return table

    def keyword_lookup(self, text: str) -> Optional[Tuple[TokenType, str]]:
        return self.keyword_table.get(self.keyword_key(text))

    def keyword_canonical(self, text: str) -> str:
        """Canonical table spelling of a keyword occurrence, or its folded text."""
        entry = self.keyword_lookup(text)
        if entry:
            return entry[1]
        return text if self.case_sensitive else text.lower()
