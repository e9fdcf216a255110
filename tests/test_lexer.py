"""
Pygments lexer tests
"""

import pytest
from pygments.token import Comment, Error, Keyword, Text

from blockmatch.lib.lexer import BlockKeywordLexer, get_lexer, source_highlight

SOURCE = "if x then -- end\n  y()\nend end"


class TestBlockKeywordLexer:
    """Test token spans produced from the engine"""

    def test_spans_cover_text(self):
        """Token values concatenate back to the input, in offset order"""
        parts = list(BlockKeywordLexer("lua").get_tokens_unprocessed(SOURCE))
        assert "".join(value for _, _, value in parts) == SOURCE
        offsets = [index for index, _, _ in parts]
        assert offsets == sorted(offsets) and offsets[0] == 0

    def test_token_types(self):
        """Paired keywords, stray keywords and excluded regions differ"""
        parts = BlockKeywordLexer("lua").get_tokens_unprocessed(SOURCE)
        assert [(tokentype, value) for _, tokentype, value in parts if tokentype is not Text] == [
            (Keyword, "if"),
            (Keyword, "then"),
            (Comment, "-- end"),
            (Keyword, "end"),
            (Error, "end"),
        ]

    def test_unknown_language(self):
        with pytest.raises(KeyError):
            get_lexer("klingon")

    def test_terminal_highlight(self):
        rendered = source_highlight(SOURCE, "lua")
        assert "\x1b[" in rendered
        assert "if" in rendered
