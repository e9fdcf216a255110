"""
Tokenizer tests

Keyword boundaries, classification, multi-word keywords, case folding,
validators and line/column positions, on small hand-built grammars.
"""

import pytest

from blockmatch.lib.tokenizer import LineIndex, Tokenizer
from blockmatch.models.grammar import LanguageGrammar, LanguageKeywords
from blockmatch.models.tokens import ExcludedRegion, TokenType


def toy_grammar(**overrides) -> LanguageGrammar:
    settings = dict(
        name="toy",
        keywords=LanguageKeywords(
            block_open=("if", "begin", "loop"),
            block_close=("end", "end if", "end loop"),
            block_middle=("else", "else if"),
        ),
    )
    settings.update(overrides)
    return LanguageGrammar(**settings)


class TestLineIndex:
    """Test offset to line/column conversion"""

    def test_mixed_terminators(self):
        """\\n, \\r\\n and bare \\r each end one line"""
        index = LineIndex("a\r\nb\rc")
        assert index.position_get(0) == (0, 0)
        assert index.position_get(3) == (1, 0)
        assert index.position_get(5) == (2, 0)

    def test_column_counts_characters(self):
        """Columns count characters, not bytes"""
        index = LineIndex("é if")
        assert index.position_get(2) == (0, 2)


class TestBoundaries:
    """Test identifier boundaries around keywords"""

    def test_keyword_inside_identifier(self):
        """Keywords embedded in identifiers are not tokens"""
        tokens = Tokenizer(toy_grammar()).tokenize("endless begin_x xif", [])
        assert tokens == []

    def test_punctuation_is_a_boundary(self):
        """Punctuation next to a keyword does not block it"""
        tokens = Tokenizer(toy_grammar()).tokenize("(if)", [])
        assert [t.value for t in tokens] == ["if"]

    def test_custom_word_chars(self):
        """A grammar's word characters decide the boundary"""
        grammar = toy_grammar(word_chars="A-Za-z0-9_-")
        tokens = Tokenizer(grammar).tokenize("end-if if", [])
        assert [t.value for t in tokens] == ["if"]


class TestClassification:
    """Test open/middle/close classification"""

    def test_types_and_positions(self):
        """Every token carries its type, offsets, line and column"""
        tokens = Tokenizer(toy_grammar()).tokenize("if x\n  else\nend", [])
        assert [(t.type, t.value) for t in tokens] == [
            (TokenType.OPEN, "if"),
            (TokenType.MIDDLE, "else"),
            (TokenType.CLOSE, "end"),
        ]
        assert (tokens[1].start_offset, tokens[1].end_offset) == (7, 11)
        assert (tokens[1].line, tokens[1].column) == (1, 2)
        assert (tokens[2].line, tokens[2].column) == (2, 0)

    def test_multi_word_keyword_wins(self):
        """The longest keyword is taken first"""
        tokens = Tokenizer(toy_grammar()).tokenize("end  if end loop end", [])
        assert [t.value for t in tokens] == ["end  if", "end loop", "end"]
        assert all(t.type == TokenType.CLOSE for t in tokens)

    def test_multi_word_gap_pattern(self):
        """A grammar may allow glued multi-word keywords"""
        grammar = toy_grammar(keyword_gap=r"[ \t]*")
        tokens = Tokenizer(grammar).tokenize("endif", [])
        assert [(t.type, t.value) for t in tokens] == [(TokenType.CLOSE, "endif")]

    def test_close_beats_middle_beats_open(self):
        """A word listed in several tables takes the highest priority class"""
        grammar = toy_grammar(
            keywords=LanguageKeywords(block_open=("do", "end"), block_close=("end",), block_middle=("do",))
        )
        tokens = Tokenizer(grammar).tokenize("do end", [])
        assert [t.type for t in tokens] == [TokenType.MIDDLE, TokenType.CLOSE]


class TestCaseFolding:
    """Test case-sensitive and case-insensitive grammars"""

    def test_case_sensitive_default(self):
        """Upper-case words are not keywords by default"""
        assert Tokenizer(toy_grammar()).tokenize("IF x END", []) == []

    def test_case_insensitive_keeps_source_text(self):
        """Tokens keep the source spelling"""
        tokens = Tokenizer(toy_grammar(case_sensitive=False)).tokenize("If x End If", [])
        assert [t.value for t in tokens] == ["If", "End If"]

    def test_validators_see_canonical_keyword(self):
        """Validators receive the lower-case table spelling"""
        seen = []

        def record(keyword, source, position, regions):
            seen.append(keyword)
            return True

        grammar = toy_grammar(case_sensitive=False, open_valid=record, close_valid=record)
        Tokenizer(grammar).tokenize("BEGIN END\tIF", [])
        assert seen == ["begin", "end if"]


class TestRegionsAndValidators:
    """Test excluded regions and rejection handling"""

    def test_keywords_in_regions_skipped(self):
        """A keyword starting in an excluded region is ignored"""
        tokens = Tokenizer(toy_grammar()).tokenize("if 'end' end", [ExcludedRegion(3, 8)])
        assert [t.start_offset for t in tokens] == [0, 9]

    def test_rejected_candidate_resumes_inside(self):
        """After a rejected multi-word keyword, its later words are still found"""

        def no_compound(keyword, source, position, regions):
            return keyword != "end if"

        grammar = toy_grammar(close_valid=no_compound)
        tokens = Tokenizer(grammar).tokenize("end if", [])
        assert [(t.type, t.value) for t in tokens] == [(TokenType.OPEN, "if")]

    def test_token_pass_runs_last(self):
        """The token pass sees and may replace the validated tokens"""

        def drop_middles(tokens, source, regions, lines):
            return [t for t in tokens if t.type != TokenType.MIDDLE]

        tokens = Tokenizer(toy_grammar(token_pass=drop_middles)).tokenize("if else end", [])
        assert [t.value for t in tokens] == ["if", "end"]


class TestGrammarConstruction:
    """Test grammar validation"""

    def test_empty_keyword_tables_rejected(self):
        """A grammar without openers or closers is a programming error"""
        with pytest.raises(ValueError):
            LanguageGrammar(name="bad", keywords=LanguageKeywords(block_open=(), block_close=("end",)))
