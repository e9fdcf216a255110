"""
Stack-based block matcher

Consumes the validated token stream and pairs openers with closers.

    open    push a new frame
    middle  append to the top frame (if the grammar allows that pairing)
    close   find the nearest compatible frame, remove it, emit a BlockPair

A closer with no compatible frame is discarded; frames still open at the
end of input are dropped. Nothing here raises for any token sequence.

Languages with pairing quirks either describe them declaratively with
MatchRules or subclass StackMatcher and override one step.
"""

from typing import List, Optional, Sequence

from ..models.grammar import LanguageGrammar, MatchRules
from ..models.tokens import BlockPair, OpenBlock, Token, TokenType


class StackMatcher:
    """
    Default block matcher driven by a grammar's MatchRules.

    Args:
        grammar: Grammar supplying keyword canonicalization and rules

    Example:
        >>> matcher = StackMatcher(grammar)
        >>> pairs = matcher.blocks_match(tokens)
    """

    def __init__(self, grammar: LanguageGrammar):
        self.grammar = grammar
        self.rules: MatchRules = grammar.match_rules

    def kind(self, token: Token) -> str:
        """Canonical keyword of a token, used for all rule lookups."""
        return self.grammar.keyword_canonical(token.value)

    def blocks_match(self, tokens: Sequence[Token]) -> List[BlockPair]:
        pairs: List[BlockPair] = []
        stack: List[OpenBlock] = []
        for token in tokens:
            if token.type == TokenType.OPEN:
                self.open_handle(token, stack)
            elif token.type == TokenType.MIDDLE:
                self.middle_handle(token, stack)
            else:
                pairs.extend(self.close_handle(token, stack))
        return pairs

    def open_handle(self, token: Token, stack: List[OpenBlock]) -> None:
        stack.append(OpenBlock(token))

    def middle_handle(self, token: Token, stack: List[OpenBlock]) -> None:
        if not stack:
            return
        allowed = self.rules.middle_openers.get(self.kind(token))
        if allowed is not None and self.kind(stack[-1].token) not in allowed:
            return
        stack[-1].intermediates.append(token)

    def opener_accepts(self, closer: str, opener: str) -> bool:
        """True when a frame opened by opener may be closed by closer."""
        allowed = self.rules.closer_openers.get(closer)
        if allowed is not None and opener not in allowed:
            return False
        excluded = self.rules.closer_excluded.get(closer)
        if excluded is not None and opener in excluded:
            return False
        return True

    def frame_find(self, token: Token, stack: List[OpenBlock]) -> Optional[int]:
        """
        Index of the frame this closer terminates, or None.

        Searches from the top of the stack down for the nearest compatible
        opener; fallback closers settle for the top frame.
        """
        closer = self.kind(token)
        for index in range(len(stack) - 1, -1, -1):
            if self.opener_accepts(closer, self.kind(stack[index].token)):
                return index
        if stack and closer in self.rules.fallback_closers:
            return len(stack) - 1
        return None

    def close_handle(self, token: Token, stack: List[OpenBlock]) -> List[BlockPair]:
        index = self.frame_find(token, stack)
        if index is None:
            return []
        closer = self.kind(token)
        frame = stack.pop(index)
        pairs = [BlockPair(frame.token, token, frame.intermediates, len(stack))]

        # Only a regular close chains; a fallback close takes the top frame alone
        chained = self.rules.chain_openers.get(closer)
        if (
            chained
            and index > 0
            and self.opener_accepts(closer, self.kind(frame.token))
            and self.kind(stack[index - 1].token) in chained
        ):
            outer = stack.pop(index - 1)
            pairs.append(BlockPair(outer.token, token, outer.intermediates, len(stack)))
        return pairs


def containment_renest(pairs: List[BlockPair]) -> List[BlockPair]:
    """
    Recompute nest levels from the pairs themselves.

    A pair's level becomes the number of other pairs that open before it and
    close at or after its closer, so unmatched openers left on the stack no
    longer inflate the level.
    """
    for pair in pairs:
        level = 0
        for other in pairs:
            if (
                other is not pair
                and other.open_keyword.start_offset < pair.open_keyword.start_offset
                and other.close_keyword.start_offset >= pair.close_keyword.start_offset
            ):
                level += 1
        pair.nest_level = level
    return pairs
