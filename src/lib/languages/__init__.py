"""
Language grammar registry

Every supported language is a module in this package exposing a GRAMMAR.
The registry maps names and aliases to grammars and builds parsers on
demand.

Usage:
    from blockmatch.lib.languages import parser_get, grammar_forFilename

    parser = parser_get("fortran")
    grammar = grammar_forFilename("build.sh")   # -> bash grammar
"""

from fnmatch import fnmatch
from pathlib import PurePath
from typing import Dict, List, Optional

from ...models.grammar import LanguageGrammar
from ..parser import BlockParser
from . import (
    ada,
    applescript,
    bash,
    cobol,
    crystal,
    elixir,
    erlang,
    fortran,
    julia,
    lua,
    matlab,
    octave,
    pascal,
    ruby,
    verilog,
    vhdl,
)

# Registration order decides ties between file patterns (*.m is MATLAB)
LANGUAGES: List[LanguageGrammar] = [
    module.GRAMMAR
    for module in (
        ruby, crystal, elixir, julia, lua, bash, pascal, ada, vhdl, verilog, fortran, cobol, matlab,
        octave, erlang, applescript,
    )
]

GRAMMARS: Dict[str, LanguageGrammar] = {}
for _grammar in LANGUAGES:
    GRAMMARS[_grammar.name] = _grammar
    for _alias in _grammar.aliases:
        GRAMMARS.setdefault(_alias, _grammar)


def languages_list() -> List[str]:
    """Registry names of all languages (aliases excluded)."""
    return [grammar.name for grammar in LANGUAGES]


def grammar_get(language: str) -> LanguageGrammar:
    """
    Grammar registered under a name or alias (case-insensitive).

    Raises:
        KeyError: unknown language; the message lists the known names
    """
    grammar = GRAMMARS.get(language.strip().lower())
    if grammar is None:
        raise KeyError(f"Unknown language '{language}'. Known languages: {', '.join(languages_list())}")
    return grammar


def parser_get(language: str) -> BlockParser:
    """A BlockParser for the named language."""
    return BlockParser(grammar_get(language))


def grammar_forFilename(path: str) -> Optional[LanguageGrammar]:
    """Grammar whose file patterns match the file name of path, or None."""
    name = PurePath(path).name
    for grammar in LANGUAGES:
        if any(fnmatch(name, pattern) for pattern in grammar.filenames):
            return grammar
    lowered = name.lower()
    for grammar in LANGUAGES:
        if any(fnmatch(lowered, pattern.lower()) for pattern in grammar.filenames):
            return grammar
    return None


__all__ = [
    "GRAMMARS",
    "LANGUAGES",
    "grammar_forFilename",
    "grammar_get",
    "languages_list",
    "parser_get",
]
