"""
COBOL grammar

Case-insensitive. Hyphens are identifier characters, so PERFORM-COUNT and
END-IF-FLAG are plain names. Excluded regions: *> comments, fixed-format
comment lines (* or / in column 7 after a sequence area) and '...' /
"..." literals with doubled-quote escapes.

A verb opens a block only when its explicit scope terminator (END-IF,
END-PERFORM ...) follows; a verb ended by a period has no closer. ELSE
belongs to IF, WHEN to EVALUATE and SEARCH.
"""

import re
from typing import Dict, List, Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import ExcludedRegion, Token, TokenType
from ..scanner import char_get, lineComment_match, lineComment_matcher, lineStart_find, quotedString_match
from ..tokenizer import LineIndex

VERBS = (
    "perform", "if", "evaluate", "read", "write", "rewrite", "delete", "start", "return", "search",
    "string", "unstring", "accept", "display", "call", "invoke", "compute", "add", "subtract",
    "multiply", "divide",
)

KEYWORDS = LanguageKeywords(
    block_open=VERBS,
    block_close=tuple(f"end-{verb}" for verb in VERBS),
    block_middle=("else", "when"),
)

SEQUENCE_AREA = re.compile(r"[\d \t]{6}")


def fixedComment_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    """Indicator-area comment: '*' or '/' in column 7 after digits or blanks."""
    if char_get(source, pos) not in ("*", "/"):
        return None
    line_start = lineStart_find(source, pos)
    if pos - line_start == 6 and SEQUENCE_AREA.fullmatch(source, line_start, pos):
        return lineComment_match(source, pos)
    return None


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    ch = char_get(source, pos)
    if ch == "'" or ch == '"':
        return quotedString_match(source, pos, ch, backslash=False, doubled=True, single_line=True)
    return None


def terminatedVerbs_keep(
    tokens: List[Token], source: str, regions: Sequence[ExcludedRegion], lines: LineIndex
) -> List[Token]:
    """
    Drop verbs that no scope terminator of their kind closes.

    Each verb kind is matched like brackets on its own; a verb left without
    a terminator is an ordinary period-ended statement.
    """
    pending: Dict[str, List[Token]] = {}
    terminated = set()
    for token in tokens:
        kind = token.value.lower()
        if token.type == TokenType.OPEN:
            pending.setdefault(kind, []).append(token)
        elif token.type == TokenType.CLOSE:
            openers = pending.get(kind[len("end-") :])
            if openers:
                terminated.add(id(openers.pop()))
    return [token for token in tokens if token.type != TokenType.OPEN or id(token) in terminated]


GRAMMAR = LanguageGrammar(
    name="cobol",
    keywords=KEYWORDS,
    region_matchers=(lineComment_matcher("*>"), fixedComment_match, string_match),
    case_sensitive=False,
    word_chars="A-Za-z0-9_-",
    token_pass=terminatedVerbs_keep,
    match_rules=MatchRules.rules_make(
        closer_openers={f"end-{verb}": [verb] for verb in VERBS},
        middle_openers={"else": ["if"], "when": ["evaluate", "search"]},
    ),
    filenames=("*.cob", "*.cbl", "*.cpy", "*.cobol"),
    aliases=("cbl", "cob"),
)
