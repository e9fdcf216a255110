"""
Language registry tests
"""

import importlib
import pkgutil

import pytest

import blockmatch
from blockmatch.lib.languages import (
    LANGUAGES,
    grammar_forFilename,
    grammar_get,
    languages_list,
    parser_get,
)


class TestLookup:
    """Test name and alias lookup"""

    def test_all_languages_registered(self):
        assert languages_list() == [
            "ruby", "crystal", "elixir", "julia", "lua", "bash", "pascal", "ada", "vhdl", "verilog",
            "fortran", "cobol", "matlab", "octave", "erlang", "applescript",
        ]
        assert len({grammar.name for grammar in LANGUAGES}) == len(LANGUAGES)

    def test_aliases_and_case(self):
        """Lookups fold case and surrounding blanks"""
        assert grammar_get(" RB ") is grammar_get("ruby")
        assert grammar_get("sh") is grammar_get("bash")
        assert grammar_get("SystemVerilog").name == "verilog"

    def test_unknown_language(self):
        """The error lists the languages that do exist"""
        with pytest.raises(KeyError, match="Unknown language 'klingon'.*fortran"):
            grammar_get("klingon")

    def test_parser_get(self):
        parser = parser_get("erl")
        assert parser.grammar.name == "erlang"
        assert repr(parser) == "BlockParser('erlang')"


class TestFilenames:
    """Test language inference from file names"""

    @pytest.mark.parametrize(
        "path, language",
        [
            ("app/models/user.rb", "ruby"),
            ("Rakefile", "ruby"),
            ("deploy.sh", "bash"),
            ("src/solver.F90", "fortran"),
            ("top.sv", "verilog"),
            ("PAYROLL.CBL", "cobol"),
            ("foo.m", "matlab"),
            ("server.erl", "erlang"),
        ],
    )
    def test_known_patterns(self, path, language):
        assert grammar_forFilename(path).name == language

    def test_unknown_pattern(self):
        assert grammar_forFilename("notes.txt") is None


class TestModules:
    """Test that every module of the package imports"""

    @pytest.mark.parametrize(
        "module_name",
        sorted(info.name for info in pkgutil.walk_packages(blockmatch.__path__, "blockmatch.")),
    )
    def test_import(self, module_name):
        assert importlib.import_module(module_name) is not None

    def test_grammar_modules(self):
        """Each language module exposes the grammar registered under its name"""
        for name in languages_list():
            module = importlib.import_module(f"blockmatch.lib.languages.{name}")
            assert module.GRAMMAR is grammar_get(name)
