"""
Verilog and Fortran grammar tests
"""


class TestVerilog:
    """Test begin/end folding and dedicated closers"""

    def test_always_if_else(self, blocks):
        """'end' closes a begin together with the control keyword that owns it"""
        source = (
            "module top(input clk);\n  always @(posedge clk) begin\n    if (rst) begin\n      q <= 0;\n"
            "    end else begin\n      q <= d;\n    end\n  end\nendmodule\n"
        )
        assert blocks("verilog", source) == [
            ("module", "endmodule", 0, []),
            ("always", "end", 1, []),
            ("begin", "end", 2, []),
            ("if", "end", 3, []),
            ("begin", "end", 4, []),
            ("else", "end", 3, []),
            ("begin", "end", 4, []),
        ]

    def test_else_if_folded(self, blocks):
        """An else-if chain link is one pair opened by 'else'"""
        source = "if (a) begin\n  x = 1;\nend else if (b) begin\n  x = 2;\nend\n"
        pairs = blocks("verilog", source)
        assert [pair[0] for pair in pairs] == ["if", "begin", "else", "begin"]
        assert ("else", "end", 0, ["if"]) in pairs

    def test_single_statement_bodies(self, blocks):
        """Control keywords without a begin have no closer"""
        assert blocks("verilog", "always @* if (a) x = 1;\n") == []

    def test_case_default(self, blocks):
        source = "case (sel)\n  0: y = a;\n  default: y = b;\nendcase\n"
        assert blocks("verilog", source) == [("case", "endcase", 0, ["default"])]

    def test_preprocessor_conditionals(self, blocks):
        source = "`ifdef FOO\n  wire a;\n`else\n  wire b;\n`endif\n"
        assert blocks("verilog", source) == [("`ifdef", "`endif", 0, ["`else"])]

    def test_typedef_class(self, blocks):
        source = "typedef class Foo;\nclass Foo;\nendclass\n"
        assert blocks("verilog", source) == [("class", "endclass", 0, [])]

    def test_comments_and_strings(self, keywords):
        assert keywords("verilog", '// begin\n/* end */\n$display("begin end");\n') == []


class TestFortran:
    """Test Fortran end forms and false openers"""

    def test_program_do_if(self, blocks):
        source = (
            "program main\n  integer :: i\n  do i = 1, 3\n    if (i > 1) then\n      print *, i\n"
            "    else if (i == 0) then\n      stop\n    else\n      cycle\n    end if\n  end do\nend program main\n"
        )
        assert blocks("fortran", source) == [
            ("program", "end program", 0, []),
            ("do", "end do", 1, []),
            ("if", "end if", 2, ["then", "else if", "then", "else"]),
        ]

    def test_logical_if_and_glued_end(self, blocks):
        source = "if (x) y = 1\nif (a) then\n  b = 1\nendif\n"
        assert blocks("fortran", source) == [("if", "endif", 0, ["then"])]

    def test_keywords_as_variables(self, keywords):
        assert keywords("fortran", "integer :: end, do\nend = 5\n") == []

    def test_select_case(self, blocks):
        source = "select case (n)\ncase (1)\n  x = 1\ncase default\n  x = 2\nend select\n"
        assert blocks("fortran", source) == [("select", "end select", 0, ["case", "case"])]

    def test_type_specifier_and_definition(self, blocks):
        source = "type(point) :: p\ntype point\n  real :: x\nend type\n"
        assert blocks("fortran", source) == [("type", "end type", 0, [])]

    def test_module_procedure(self, blocks):
        """'module procedure' is a procedure, not a module"""
        source = "module m\ncontains\n  module procedure foo\n  end procedure\nend module\n"
        assert blocks("fortran", source) == [
            ("module", "end module", 0, ["contains"]),
            ("procedure", "end procedure", 1, []),
        ]

    def test_comments_and_strings(self, keywords):
        source = "! if (x) then\nC     do i = 1, 2\n* end do\ncall foo('end do')\n"
        assert keywords("fortran", source) == []
