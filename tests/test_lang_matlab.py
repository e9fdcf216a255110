"""
MATLAB and Octave grammar tests
"""


class TestMatlab:
    """Test MATLAB blocks, index 'end' and transposes"""

    def test_function_with_index_end(self, blocks):
        source = (
            "function y = f(x)\n  if x > 0\n    y = x(end);\n  elseif x < 0\n    y = -x;\n"
            "  else\n    y = 0;\n  end\nend\n"
        )
        assert blocks("matlab", source) == [
            ("function", "end", 0, []),
            ("if", "end", 1, ["elseif", "else"]),
        ]

    def test_cell_index_end(self, blocks):
        assert blocks("matlab", "for k = 1:n\n  c{end-1} = k;\nend") == [("for", "end", 0, [])]

    def test_switch(self, blocks):
        source = "switch v\n  case 1\n    x = 1;\n  otherwise\n    x = 2;\nend\n"
        assert blocks("matlab", source) == [("switch", "end", 0, ["case", "otherwise"])]

    def test_transpose_and_strings(self, keywords):
        """b' is a transpose; 'end' and \"if\" are strings"""
        assert keywords("matlab", "a = b';\ns = 'end';\nt = \"if\";\n% for\n") == []

    def test_block_comment(self, blocks):
        source = "%{\nif x\n%}\nfor i = 1:3\nend\n"
        assert blocks("matlab", source) == [("for", "end", 0, [])]


class TestOctave:
    """Test Octave specific closers and comments"""

    def test_specific_closers(self, blocks):
        source = "function r = f(x)\n  if x\n    r = 1;\n  endif\n  do\n    x--;\n  until x < 0\nendfunction\n"
        assert blocks("octave", source) == [
            ("function", "endfunction", 0, []),
            ("if", "endif", 1, []),
            ("do", "until", 1, []),
        ]

    def test_end_does_not_close_do(self, blocks):
        assert blocks("octave", "do\n  if a\n  end\nuntil b") == [("do", "until", 0, []), ("if", "end", 1, [])]

    def test_unwind_protect(self, blocks):
        source = "unwind_protect\n  x = 1;\nunwind_protect_cleanup\n  y = 2;\nend_unwind_protect\n"
        assert blocks("octave", source) == [
            ("unwind_protect", "end_unwind_protect", 0, ["unwind_protect_cleanup"]),
        ]

    def test_comments_strings_and_continuations(self, keywords):
        source = '# if\n#{\nfor\n#}\nx = "a\\"end";\ny = 1 ... while\n'
        assert keywords("octave", source) == []
