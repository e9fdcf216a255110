#!/usr/bin/env python3
"""
blockmatch - Block keyword pairing for block-structured languages

Reads one source file, finds its block keywords (if/end, begin/end,
do/done ...) outside comments and literals, and prints every matched
block with its position, nesting level and middle keywords.

Philosophy:
    - Text-first: the engine works on raw source, no compiler front end
    - Forgiving: unterminated literals and stray keywords never abort a run
    - One grammar per language: comments, literals and pairing rules in
      one declarative table

Supported languages:
    Ruby, Crystal, Elixir, Julia, Lua, Bash, Pascal, Ada, VHDL, Verilog,
    Fortran, COBOL, MATLAB, Octave, Erlang, AppleScript

Usage:
    blockmatch FILE [--language NAME] [--tokens] [--regions] [--highlight]

    The language is taken from --language, then from the file name, then
    from BLOCKMATCH_DEFAULT_LANGUAGE.

Examples:
    # Pairs of a Ruby file
    blockmatch app/models/user.rb

    # Force a language and show the keyword tokens too
    blockmatch build.inc --language pascal --tokens

    # See what the engine treats as comments and literals
    blockmatch script.sh --highlight

    # Engine trace on stderr
    blockmatch main.f90 -vvv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter
from typing import List, Optional

from .config import appsettings
from .lib import __version__, LOG, logger_setup, state_connectToLogger
from .lib.languages import grammar_forFilename, grammar_get, languages_list, parser_get
from .lib.lexer import source_highlight
from .models import BlockPair, ProgramState, pipeline


DISPLAY_TITLE = r"""
  _     _            _                    _       _
 | |__ | | ___   ___| | ___ __ ___   __ _| |_ ___| |__
 | '_ \| |/ _ \ / __| |/ / '_ ` _ \ / _` | __/ __| '_ \
 | |_) | | (_) | (__|   <| | | | | | (_| | || (__| | | |
 |_.__/|_|\___/ \___|_|\_\_| |_| |_|\__,_|\__\___|_| |_|

  Block keyword pairing
"""

# Define CLI arguments
parser = ArgumentParser(
    description="blockmatch - pair block keywords in source code",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument("inputFile", type=str, help="Source file to analyze")

parser.add_argument(
    "--language",
    default=None,
    type=str,
    help=f"Language of the source file (one of: {', '.join(languages_list())}). "
    "Inferred from the file name when omitted",
)

parser.add_argument("--tokens", action="store_true", help="Also list the validated keyword tokens")

parser.add_argument("--regions", action="store_true", help="Also list the excluded regions")

parser.add_argument(
    "--highlight",
    action="store_true",
    help="Print the source with paired keywords, unpaired keywords and excluded regions colored",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=0,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate the input file and settle the language.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to the source file
            - languageName: Registry name of the language
            - envOK: True if environment is valid

    Exits:
        1 if the file is missing or no known language applies
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    input_file = Path(state.inputFile)
    if not input_file.is_file():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    try:
        if state.language:
            grammar = grammar_get(state.language)
        else:
            grammar = grammar_forFilename(str(input_file))
            if grammar is None and appsettings.default_language:
                grammar = grammar_get(appsettings.default_language)
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    if grammar is None:
        print(f"Error: Cannot infer the language of {input_file.name}; use --language", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.languageName = grammar.name
    LOG(f"Language: {grammar.name}", level=2)

    state.envOK = True
    return state


def source_read(inputstate: ProgramState) -> ProgramState:
    """
    Read the source file as UTF-8 text.

    Args:
        inputstate: Program state with inputSourceFile path set

    Returns:
        ProgramState with added field:
            - sourceText: File contents

    Exits:
        1 if the file cannot be read or decoded
    """

    state = inputstate.copy()

    LOG("Reading source file...", level=1)

    try:
        state.sourceText = state.inputSourceFile.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)
    LOG(f"Read {len(state.sourceText)} characters from {state.inputSourceFile.name}", level=2)
    return state


def blocks_parse(inputstate: ProgramState) -> ProgramState:
    """
    Run the block engine over the source text.

    Args:
        inputstate: Program state with sourceText and languageName

    Returns:
        ProgramState with added fields:
            - regionList: Excluded regions
            - tokenList: Validated keyword tokens
            - blockPairs: Matched pairs sorted by opening position
    """

    state = inputstate.copy()

    LOG(f"Matching {state.languageName} blocks...", level=1)

    block_parser = parser_get(state.languageName)
    state.regionList = block_parser.excludedRegions_get(state.sourceText)
    state.tokenList = block_parser.tokens_get(state.sourceText, state.regionList)
    state.blockPairs = sorted(
        block_parser.tokens_match(state.tokenList),
        key=lambda pair: pair.open_keyword.start_offset,
    )
    LOG(f"Matched {len(state.blockPairs)} blocks", level=2)
    return state


def pair_format(pair: BlockPair) -> str:
    """One report line: 1-based line:column of both ends, nest level and middles."""
    opened = pair.open_keyword
    closed = pair.close_keyword
    line = (
        f"{opened.line + 1}:{opened.column + 1} {opened.value} -> "
        f"{closed.line + 1}:{closed.column + 1} {closed.value} (nest {pair.nest_level})"
    )
    if pair.intermediates:
        line += f" [{', '.join(token.value for token in pair.intermediates)}]"
    return line


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Print the matched blocks, and the tokens, regions or highlighted
    source when asked for.

    Args:
        inputstate: Program state with blockPairs populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if blockPairs is None
    """
    state: ProgramState = inputstate.copy()
    if state.blockPairs is None:
        print("Error: Matching failed", file=sys.stderr)
        sys.exit(1)

    if state.highlight:
        print(source_highlight(state.sourceText, state.languageName), end="")

    if state.regions:
        print("# excluded regions")
        for region in state.regionList or []:
            print(f"{region.start}-{region.end} {state.sourceText[region.start:region.end][:40]!r}")

    if state.tokens:
        print("# tokens")
        for token in state.tokenList or []:
            print(f"{token.line + 1}:{token.column + 1} {token.type.value} {token.value}")

    if state.regions or state.tokens:
        print("# blocks")
    for pair in state.blockPairs:
        print(pair_format(pair))

    LOG(f"{len(state.blockPairs)} blocks in {state.inputSourceFile.name}", level=1)
    return state


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point - pair the block keywords of one source file.

    Orchestrates the full pipeline:
        1. env_check: Validate the file and settle the language
        2. source_read: Read the file as text
        3. blocks_parse: Find regions, tokens and pairs
        4. results_report: Print the results

    Args:
        argv: Command line arguments; sys.argv[1:] when None

    Returns:
        0 on success (errors exit with status 1)
    """

    options: Namespace = parser.parse_args(argv)
    state: ProgramState = ProgramState.state_createFromNamespace(options)

    logger_setup()
    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, source_read, blocks_parse, results_report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
