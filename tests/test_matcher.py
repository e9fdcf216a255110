"""
Stack matcher tests

Pairing rules, middle attachment, unmatched keywords, chained closes and
nest levels, on a small hand-built grammar.
"""

from blockmatch.lib.matcher import StackMatcher, containment_renest
from blockmatch.lib.tokenizer import Tokenizer
from blockmatch.models.grammar import LanguageGrammar, LanguageKeywords, MatchRules

KEYWORDS = LanguageKeywords(
    block_open=("begin", "repeat", "if", "proc"),
    block_close=("end", "until", "endif"),
    block_middle=("else", "then"),
)


def match(source: str, **rules):
    grammar = LanguageGrammar(name="toy", keywords=KEYWORDS, match_rules=MatchRules.rules_make(**rules))
    tokens = Tokenizer(grammar).tokenize(source, [])
    pairs = StackMatcher(grammar).blocks_match(tokens)
    return sorted(pairs, key=lambda pair: pair.open_keyword.start_offset)


def summary(pairs):
    return [
        (p.open_keyword.value, p.close_keyword.value, p.nest_level, [t.value for t in p.intermediates])
        for p in pairs
    ]


class TestBasicPairing:
    """Test plain last-in first-out pairing"""

    def test_nested_pairs(self):
        """Inner blocks close first and sit one level deeper"""
        assert summary(match("begin begin end end")) == [
            ("begin", "end", 0, []),
            ("begin", "end", 1, []),
        ]

    def test_stray_closer_discarded(self):
        """A closer with nothing open is dropped"""
        assert summary(match("end begin end")) == [("begin", "end", 0, [])]

    def test_unclosed_opener_dropped(self):
        """Openers left at end of input produce no pair"""
        assert summary(match("begin begin end")) == [("begin", "end", 1, [])]

    def test_empty_stream(self):
        """No tokens, no pairs"""
        assert match("") == []

    def test_middles_attach_to_top(self):
        """Middles join the innermost open block"""
        assert summary(match("if then begin else end endif")) == [
            ("if", "endif", 0, ["then"]),
            ("begin", "end", 1, ["else"]),
        ]

    def test_middle_without_block_dropped(self):
        """A middle with nothing open is ignored"""
        assert summary(match("else begin end")) == [("begin", "end", 0, [])]


class TestRules:
    """Test declarative pairing rules"""

    def test_specific_closer_skips_frames(self):
        """A closer reaches past incompatible frames to its own opener"""
        pairs = match("repeat begin until end", closer_openers={"until": ["repeat"]})
        assert summary(pairs) == [("repeat", "until", 1, []), ("begin", "end", 0, [])]

    def test_excluded_opener(self):
        """A closer never closes an excluded opener"""
        pairs = match("repeat end until", closer_excluded={"end": ["repeat"]}, closer_openers={"until": ["repeat"]})
        assert summary(pairs) == [("repeat", "until", 0, [])]

    def test_specific_closer_without_opener(self):
        """A specific closer with no compatible frame is discarded"""
        pairs = match("begin endif end", closer_openers={"endif": ["if"]})
        assert summary(pairs) == [("begin", "end", 0, [])]

    def test_fallback_closer(self):
        """A fallback closer settles for the top frame"""
        pairs = match("begin endif", closer_openers={"endif": ["if"]}, fallback_closers=["endif"])
        assert summary(pairs) == [("begin", "endif", 0, [])]

    def test_middle_restricted(self):
        """Restricted middles only join their own openers"""
        pairs = match("if begin else end endif", middle_openers={"else": ["if"]})
        assert summary(pairs) == [("if", "endif", 0, []), ("begin", "end", 1, [])]


class TestChainedClose:
    """Test closers that also close the frame beneath"""

    def test_chain_closes_both(self):
        """'end' closes the begin and the proc that owns it"""
        pairs = match(
            "proc begin end",
            closer_openers={"end": ["begin"]},
            fallback_closers=["end"],
            chain_openers={"end": ["proc"]},
        )
        assert summary(pairs) == [("proc", "end", 0, []), ("begin", "end", 1, [])]
        assert pairs[0].close_keyword is pairs[1].close_keyword

    def test_chain_needs_adjacent_frame(self):
        """Only the frame directly beneath is chained"""
        pairs = match(
            "proc if begin end",
            closer_openers={"end": ["begin"]},
            chain_openers={"end": ["proc"]},
        )
        assert summary(pairs) == [("begin", "end", 2, [])]

    def test_fallback_close_does_not_chain(self):
        """A fallback close takes the top frame alone"""
        pairs = match(
            "proc if end",
            closer_openers={"end": ["begin"]},
            fallback_closers=["end"],
            chain_openers={"end": ["proc"]},
        )
        assert summary(pairs) == [("if", "end", 1, [])]


class TestContainmentNesting:
    """Test nest levels recomputed from the pairs"""

    def test_unmatched_opener_ignored(self):
        """Containment counts enclosing pairs, not open frames"""
        pairs = containment_renest(match("begin begin end"))
        assert [p.nest_level for p in pairs] == [0]

    def test_enclosing_pairs_counted(self):
        """Each enclosing pair adds one level"""
        pairs = containment_renest(match("begin begin begin end end end"))
        assert sorted(p.nest_level for p in pairs) == [0, 1, 2]
