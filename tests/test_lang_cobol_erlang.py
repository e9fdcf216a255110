"""
COBOL and Erlang grammar tests
"""


class TestCobol:
    """Test scope terminators and COBOL literals"""

    def test_if_else(self, blocks):
        source = (
            "       IF X > 0\n           DISPLAY 'yes'\n       ELSE\n"
            "           DISPLAY 'no'\n       END-IF.\n"
        )
        assert blocks("cobol", source) == [("IF", "END-IF", 0, ["ELSE"])]

    def test_unterminated_verbs_dropped(self, blocks):
        """A verb ended by a period has no closer"""
        source = "       PERFORM PARA-1.\n       PERFORM UNTIL X > 5\n           ADD 1 TO X\n       END-PERFORM.\n"
        assert blocks("cobol", source) == [("PERFORM", "END-PERFORM", 0, [])]

    def test_evaluate(self, blocks):
        source = "EVALUATE X\n  WHEN 1\n    CONTINUE\n  WHEN OTHER\n    CONTINUE\nEND-EVALUATE\n"
        assert blocks("cobol", source) == [("EVALUATE", "END-EVALUATE", 0, ["WHEN", "WHEN"])]

    def test_nested_if(self, blocks):
        source = "IF A\n  IF B\n    DISPLAY 1\n  END-IF\nEND-IF\n"
        assert blocks("cobol", source) == [("IF", "END-IF", 0, []), ("IF", "END-IF", 1, [])]

    def test_hyphenated_names_and_comments(self, keywords):
        source = (
            "       MOVE PERFORM-COUNT TO END-IF-FLAG\n      * IF comment line\n"
            "000100* END-IF\n       DISPLAY 'END-IF' *> IF\n"
        )
        assert keywords("cobol", source) == []


class TestErlang:
    """Test Erlang blocks and middle ownership"""

    def test_case_begin_receive(self, blocks):
        source = (
            "f(X) ->\n    case X of\n        1 -> begin ok end;\n        _ -> receive\n"
            "            M -> M\n        after 100 -> timeout\n        end\n    end.\n"
        )
        assert blocks("erlang", source) == [
            ("case", "end", 0, ["of"]),
            ("begin", "end", 1, []),
            ("receive", "end", 1, ["after"]),
        ]

    def test_try_middles(self, blocks):
        source = "try f() of\n    ok -> ok\ncatch\n    _:_ -> error\nafter\n    cleanup()\nend"
        assert blocks("erlang", source) == [("try", "end", 0, ["of", "catch", "after"])]

    def test_middle_owner_restricted(self, blocks):
        """'else' never joins a case"""
        assert blocks("erlang", "case X of\n  1 -> ok\nelse\nend") == [("case", "end", 0, ["of"])]

    def test_function_references(self, blocks):
        source = "F = fun lists:map/2,\nG = fun foo/1,\nH = fun(X) -> X end.\n"
        assert blocks("erlang", source) == [("fun", "end", 0, [])]

    def test_fun_type_in_spec(self, keywords):
        source = "-spec apply(fun((integer()) -> ok)) -> ok.\napply(F) -> F(1).\n"
        assert keywords("erlang", source) == []

    def test_map_keys_and_literals(self, keywords):
        source = "M = #{begin => 1, 'end' => 2},\nX = $e, Y = \"end\", % begin\nZ = 'if'.\n"
        assert keywords("erlang", source) == []
