"""
Ruby and Crystal grammar tests
"""


class TestRubyBlocks:
    """Test Ruby block pairing"""

    def test_if_else(self, blocks):
        source = "if x\n  y\nelse\n  z\nend\n"
        assert blocks("ruby", source) == [("if", "end", 0, ["else"])]

    def test_nested_def_do_if(self, blocks):
        """Each block closes at one level deeper than its parent"""
        source = "def foo\n  items.each do |i|\n    if i\n      puts i\n    end\n  end\nend\n"
        assert blocks("ruby", source) == [
            ("def", "end", 0, []),
            ("do", "end", 1, []),
            ("if", "end", 2, []),
        ]

    def test_case_when(self, blocks):
        source = "case x\nwhen 1 then y\nelse z\nend"
        assert blocks("ruby", source) == [("case", "end", 0, ["when", "then", "else"])]

    def test_begin_rescue_ensure(self, blocks):
        """A postfix rescue is not a middle of the enclosing begin"""
        source = "begin\n  x = risky rescue nil\nrescue Err\n  y\nensure\n  z\nend\n"
        assert blocks("ruby", source) == [("begin", "end", 0, ["rescue", "ensure"])]


class TestRubyFilters:
    """Test keyword validation"""

    def test_postfix_conditional(self, blocks):
        assert blocks("ruby", "x = 1 if y\nputs x unless z\n") == []

    def test_assigned_conditional(self, blocks):
        """'x = if cond' opens a block"""
        assert blocks("ruby", "x = if y\n  1\nend\n") == [("if", "end", 0, [])]

    def test_loop_do(self, blocks):
        """The 'do' of while/until/for is a separator"""
        assert blocks("ruby", "while x do\n  y\nend") == [("while", "end", 0, [])]
        assert blocks("ruby", "for i in 1..3 do\n  p i\nend") == [("for", "end", 0, ["in"])]

    def test_member_access_and_hash_keys(self, keywords):
        assert keywords("ruby", "h = { if: 1 }\nobj.class\nx.end\n") == []

    def test_predicate_method_names(self, keywords):
        assert keywords("ruby", "x.do? y.begin! z.end?") == []


class TestRubyRegions:
    """Test Ruby excluded regions"""

    def test_comments_and_strings(self, keywords):
        source = "# if\nputs 'end'\nputs \"#{if x then 1 end}\"\n"
        assert keywords("ruby", source) == []

    def test_doc_comment_and_data_section(self, keywords):
        source = "=begin\nif\n=end\nwhile x\nend\n__END__\nif\n"
        assert keywords("ruby", source) == ["while", "end"]

    def test_heredoc_body(self, blocks):
        """Heredoc bodies start on the next line and end at the terminator"""
        source = "x = <<~EOS\n  if y\n  end\nEOS\nif z\nend\n"
        assert blocks("ruby", source) == [("if", "end", 0, [])]

    def test_regex_literal(self, blocks):
        assert blocks("ruby", "if a =~ /end/\nend") == [("if", "end", 0, [])]

    def test_symbols_and_percent_literals(self, keywords):
        assert keywords("ruby", "x = :end\ny = %w[if end]\n") == []


class TestCrystal:
    """Test the Crystal grammar"""

    def test_basic_blocks(self, blocks):
        source = "def foo\n  if x\n    y\n  end\nend\n"
        assert blocks("crystal", source) == [("def", "end", 0, []), ("if", "end", 1, [])]

    def test_postfix_conditional(self, blocks):
        assert blocks("crystal", "return 1 if x\n") == []

    def test_macro_templates_excluded(self, blocks):
        source = "{% if x %}\n  y\n{% end %}\nwhile z\nend\n"
        assert blocks("crystal", source) == [("while", "end", 0, [])]

    def test_named_tuple_key(self, keywords):
        assert keywords("crystal", "t = {if: 1, end: 2}\n") == []

    def test_interpolation_with_quotes(self, keywords):
        """Quotes inside #{} do not end the enclosing string"""
        assert keywords("crystal", 'if x\n  y = "a #{"end"} b"\nend') == ["if", "end"]
        assert keywords("crystal", 'if x\n  y = `echo #{"end"}`\nend') == ["if", "end"]

    def test_character_literal(self, keywords):
        assert keywords("crystal", "c = 'e'\nif x\nend\n") == ["if", "end"]
