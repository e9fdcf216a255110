"""
Engine-wide properties

Checks that hold for every registered language: the engine is total over
arbitrary text, and its regions, tokens and pairs are always well formed.
"""

import pytest

from blockmatch.config import AppSettings
from blockmatch.lib.languages import grammar_get, languages_list, parser_get
from blockmatch.lib.parser import BlockParser

AWKWARD_SOURCES = [
    "",
    "\n",
    "\r\n\r",
    "end end end",
    "'",
    '"',
    '"""',
    "`",
    "/* unterminated",
    "(* unterminated",
    "--[[ unterminated",
    "<<EOF\nif\n",
    "%w[if",
    "#{",
    '"#{"',
    '~s"""#{',
    "%{",
    "begin if do function case",
    "\x00\t\x0b\x0c",
    "é if ü end ∀ do",
    "if x then\n  while y do\n    begin 'end\" end\n  end\nend\n" * 3,
]


@pytest.fixture(params=languages_list())
def parser(request) -> BlockParser:
    return parser_get(request.param)


class TestTotality:
    """Test that no input makes the engine raise"""

    @pytest.mark.parametrize("source", AWKWARD_SOURCES)
    def test_awkward_sources(self, parser, source):
        """Every entry point accepts any string"""
        parser.excludedRegions_get(source)
        parser.tokens_get(source)
        parser.parse(source)

    def test_parser_is_reusable(self, parser):
        """One parser gives the same answer every time"""
        source = AWKWARD_SOURCES[-1]
        first = [(p.open_keyword, p.close_keyword) for p in parser.parse(source)]
        second = [(p.open_keyword, p.close_keyword) for p in parser.parse(source)]
        assert first == second

    def test_staged_entry_points(self, parser):
        """Scanning, tokenizing and matching in stages gives the parse result"""
        source = AWKWARD_SOURCES[-1]
        regions = parser.excludedRegions_get(source)
        tokens = parser.tokens_get(source, regions)
        assert tokens == parser.tokens_get(source)
        staged = [(p.open_keyword, p.close_keyword, p.nest_level) for p in parser.tokens_match(tokens)]
        direct = [(p.open_keyword, p.close_keyword, p.nest_level) for p in parser.parse(source)]
        assert staged == direct


class TestWellFormedOutput:
    """Test structural guarantees on regions, tokens and pairs"""

    @pytest.mark.parametrize("source", AWKWARD_SOURCES)
    def test_regions(self, parser, source):
        """Regions are non-empty, sorted, disjoint and inside the source"""
        regions = parser.excludedRegions_get(source)
        for region in regions:
            assert 0 <= region.start < region.end <= len(source)
        for left, right in zip(regions, regions[1:]):
            assert left.end <= right.start

    @pytest.mark.parametrize("source", AWKWARD_SOURCES)
    def test_tokens(self, parser, source):
        """Tokens are ordered, disjoint and never start inside a region"""
        regions = parser.excludedRegions_get(source)
        tokens = parser.tokens_get(source)
        for left, right in zip(tokens, tokens[1:]):
            assert left.end_offset <= right.start_offset
        for token in tokens:
            assert source[token.start_offset : token.end_offset] == token.value
            assert not any(region.contains(token.start_offset) for region in regions)

    @pytest.mark.parametrize("source", AWKWARD_SOURCES)
    def test_pairs(self, parser, source):
        """Openers precede closers and nest levels are never negative"""
        for pair in parser.parse(source):
            assert pair.open_keyword.start_offset < pair.close_keyword.start_offset
            assert pair.nest_level >= 0
            for middle in pair.intermediates:
                assert pair.open_keyword.start_offset < middle.start_offset < pair.close_keyword.start_offset


class TestNestLevelModes:
    """Test the stack and containment nest level settings"""

    SOURCE = "if a\n  if b\n  end\n"

    def test_stack_counts_unclosed_openers(self):
        """By default the level is the open-block count at close time"""
        parser = BlockParser(grammar_get("ruby"), settings=AppSettings(nest_level_mode="stack"))
        assert [p.nest_level for p in parser.parse(self.SOURCE)] == [1]

    def test_containment_counts_matched_pairs(self):
        """Containment mode ignores openers that never close"""
        parser = BlockParser(grammar_get("ruby"), settings=AppSettings(nest_level_mode="containment"))
        assert [p.nest_level for p in parser.parse(self.SOURCE)] == [0]

    def test_modes_agree_on_balanced_input(self):
        """Fully balanced sources get the same levels either way"""
        source = "def f\n  if a\n    while b do\n    end\n  end\nend\n"
        grammar = grammar_get("ruby")
        stack = BlockParser(grammar, settings=AppSettings(nest_level_mode="stack")).parse(source)
        containment = BlockParser(grammar, settings=AppSettings(nest_level_mode="containment")).parse(source)
        assert [p.nest_level for p in stack] == [p.nest_level for p in containment] == [2, 1, 0]
