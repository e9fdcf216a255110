"""
Verilog / SystemVerilog grammar

Excluded regions: // and /* */ comments, "..." strings.

Dedicated closers (endmodule, endcase, join_any, `endif ...) close their
own openers. 'end' closes the nearest 'begin' and, when the begin belongs
to a control keyword (always @(posedge clk) begin, if (x) begin), that
keyword too. An 'else if (...) begin ... end' chain is folded into one
pair opened by 'else', with the 'if' as an intermediate.

Control keywords open a block only when a 'begin' follows them; a single
statement body has no closer.
"""

import re
from typing import List, Optional, Sequence

from ...models.grammar import LanguageGrammar, LanguageKeywords, MatchRules
from ...models.tokens import BlockPair, ExcludedRegion, OpenBlock, Token
from ..matcher import StackMatcher
from ..scanner import (
    blankAfter_skip,
    blockComment_matcher,
    char_findUnexcluded,
    char_get,
    lineComment_matcher,
    position_isExcluded,
    quotedString_match,
)

CLOSE_TO_OPEN = {
    "endmodule": ["module"],
    "endfunction": ["function"],
    "endtask": ["task"],
    "endcase": ["case", "casez", "casex"],
    "endgenerate": ["generate"],
    "join": ["fork"],
    "join_any": ["fork"],
    "join_none": ["fork"],
    "endclass": ["class"],
    "endinterface": ["interface"],
    "endprogram": ["program"],
    "endpackage": ["package"],
    "endproperty": ["property"],
    "endsequence": ["sequence"],
    "endchecker": ["checker"],
    "endclocking": ["clocking"],
    "end": ["begin"],
    "`endif": ["`ifdef", "`ifndef"],
}

# Closed together with the 'begin' that follows them
CONTROL_KEYWORDS = (
    "always", "always_comb", "always_ff", "always_latch", "initial", "if", "else", "for", "while",
    "repeat", "forever",
)

KEYWORDS = LanguageKeywords(
    block_open=(
        "module", "function", "task", "begin", "case", "casez", "casex", "generate", "fork", "class",
        "interface", "program", "package", "property", "sequence", "checker", "clocking",
        "`ifdef", "`ifndef",
    )
    + CONTROL_KEYWORDS,
    block_close=tuple(CLOSE_TO_OPEN),
    block_middle=("default", "`else", "`elsif"),
)

WORD_CHARS = "A-Za-z0-9_$"
CONTROL_WORD = re.compile(rf"(?:{'|'.join(sorted(CONTROL_KEYWORDS, key=len, reverse=True))})(?![{WORD_CHARS}])")
BEGIN_WORD = re.compile(rf"begin(?![{WORD_CHARS}])")
PREVIOUS_WORD = re.compile(rf"([{WORD_CHARS}]+)\s*$")
PROTOTYPE_WORDS = re.compile(r"\b(?:extern|pure|import)\b")

# Openers that are declarations, not blocks, after these words
DECLARATION_AFTER = {
    "class": ("typedef",),
    "interface": ("virtual",),
    "fork": ("wait", "disable"),
}


def string_match(source: str, pos: int) -> Optional[ExcludedRegion]:
    if char_get(source, pos) == '"':
        return quotedString_match(source, pos, '"', single_line=True)
    return None


def parenthesis_skip(source: str, pos: int, regions: Sequence[ExcludedRegion]) -> int:
    """Index just past the ')' matching the '(' at pos."""
    n = len(source)
    depth = 1
    i = pos + 1
    while i < n and depth > 0:
        if not position_isExcluded(i, regions):
            if source[i] == "(":
                depth += 1
            elif source[i] == ")":
                depth -= 1
        i += 1
    return i


def beginFollows_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """
    True when 'begin' follows position, possibly after conditions,
    sensitivity lists (@(...), @*) and further control keywords.
    """
    n = len(source)
    i = position
    while i < n:
        if source[i].isspace() or position_isExcluded(i, regions):
            i += 1
            continue
        if BEGIN_WORD.match(source, i):
            return True
        control = CONTROL_WORD.match(source, i)
        if control is not None:
            i = control.end()
            continue
        if source[i] == "@":
            i = blankAfter_skip(source, i + 1)
            while i < n and source[i] in "\r\n":
                i = blankAfter_skip(source, i + 1)
            if char_get(source, i) == "(":
                i = parenthesis_skip(source, i, regions)
            elif char_get(source, i) == "*":
                i += 1
            continue
        if source[i] == "(":
            i = parenthesis_skip(source, i, regions)
            continue
        return False
    return False


def previousWord_get(source: str, position: int) -> str:
    line_start = source.rfind("\n", 0, position) + 1
    match = PREVIOUS_WORD.search(source, line_start, position)
    return match.group(1) if match else ""


def prototype_is(source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    """extern / pure virtual / DPI import declarations have no body."""
    line_start = source.rfind("\n", 0, position) + 1
    statement_start = char_findUnexcluded(source, ";", line_start, position, regions, reverse=True) + 1
    return PROTOTYPE_WORDS.search(source, max(line_start, statement_start), position) is not None


def open_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword in DECLARATION_AFTER:
        return previousWord_get(source, position) not in DECLARATION_AFTER[keyword]
    if keyword in ("function", "task"):
        return not prototype_is(source, position, regions)
    if keyword not in CONTROL_KEYWORDS:
        return True
    if char_get(source, position - 1) == "`":
        return False
    return beginFollows_is(source, position + len(keyword), regions)


def middle_valid(keyword: str, source: str, position: int, regions: Sequence[ExcludedRegion]) -> bool:
    if keyword == "default":
        return char_get(source, blankAfter_skip(source, position + len(keyword))) == ":"
    return True


class VerilogMatcher(StackMatcher):
    """StackMatcher that folds 'else' into the control block it prefixes."""

    def close_handle(self, token: Token, stack: List[OpenBlock]) -> List[BlockPair]:
        index = self.frame_find(token, stack)
        pairs = super().close_handle(token, stack)
        if len(pairs) < 2 or self.kind(pairs[1].open_keyword) == "else":
            return pairs

        else_index = index - 2
        if else_index < 0 or self.kind(stack[else_index].token) != "else":
            return pairs
        branch = stack.pop(else_index)
        control = pairs[1]
        pairs[1] = BlockPair(
            branch.token,
            token,
            branch.intermediates + [control.open_keyword] + control.intermediates,
            len(stack),
        )
        return pairs


GRAMMAR = LanguageGrammar(
    name="verilog",
    keywords=KEYWORDS,
    region_matchers=(lineComment_matcher("//"), blockComment_matcher("/*", "*/"), string_match),
    word_chars=WORD_CHARS,
    open_valid=open_valid,
    middle_valid=middle_valid,
    match_rules=MatchRules.rules_make(
        closer_openers=CLOSE_TO_OPEN,
        middle_openers={"`else": ["`ifdef", "`ifndef"], "`elsif": ["`ifdef", "`ifndef"]},
        chain_openers={"end": CONTROL_KEYWORDS},
    ),
    matcher_factory=VerilogMatcher,
    filenames=("*.v", "*.vh", "*.sv", "*.svh"),
    aliases=("systemverilog", "sv"),
)
