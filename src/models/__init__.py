"""
Models package for blockmatch

Contains the token, region and pair value types, the grammar
configuration types and the CLI pipeline state.
"""

from .state import ProgramState, pipeline
from .tokens import BlockPair, ExcludedRegion, OpenBlock, Token, TokenType
from .grammar import LanguageGrammar, LanguageKeywords, MatchRules

__all__ = [
    "ProgramState",
    "pipeline",
    "BlockPair",
    "ExcludedRegion",
    "OpenBlock",
    "Token",
    "TokenType",
    "LanguageGrammar",
    "LanguageKeywords",
    "MatchRules",
]
