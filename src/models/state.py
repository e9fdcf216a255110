"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

import dataclasses
from pathlib import Path
from argparse import Namespace
from functools import reduce
from typing import Any, Optional, Type, TypeVar, List, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the CLI pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as the run progresses.

    Pipeline stages and their state additions:
        - Initial: inputFile, language, tokens, regions, highlight, verbosity
        - env_check: inputSourceFile, languageName, envOK
        - source_read: sourceText
        - blocks_parse: blockPairs, tokenList, regionList
        - results_report: (no additions, terminal stage)

    Attributes:
        inputFile: Source file to analyze
        language: Language name given on the command line, if any
        tokens: Also report the validated keyword tokens
        regions: Also report the excluded regions
        highlight: Print the source with block keywords highlighted
        verbosity: Logging verbosity level (0-3)
        envOK: Environment validation passed
        inputSourceFile: Resolved path to the source file
        languageName: Registry name of the language in use
        sourceText: Decoded contents of the source file
        blockPairs: Matched block pairs (List[BlockPair] at runtime)
        tokenList: Validated tokens (List[Token] at runtime)
        regionList: Excluded regions (List[ExcludedRegion] at runtime)
    """

    # CLI arguments
    inputFile: str = field(default="")
    language: Optional[str] = field(default=None)
    tokens: bool = field(default=False)
    regions: bool = field(default=False)
    highlight: bool = field(default=False)
    verbosity: int = field(default=0)

    # Pipeline state
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    languageName: str = field(default="")
    sourceText: str = field(default="")
    blockPairs: Optional[List[Any]] = field(default=None)
    tokenList: Optional[List[Any]] = field(default=None)
    regionList: Optional[List[Any]] = field(default=None)

    @classmethod
    def state_createFromNamespace(cls: Type["ProgramState"], options: Namespace) -> "ProgramState":
        """
        Create ProgramState from an argparse Namespace.

        Options without a matching field are ignored.

        Args:
            options: Parsed CLI arguments (inputFile, language, etc.)

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options = {k: v for k, v in vars(options).items() if k in valid_fields}
        return cls(**filtered_options)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            source_read,
            blocks_parse,
            results_report
        )

    This is equivalent to:
        results_report(blocks_parse(source_read(env_check(initial_state))))

    But reads left-to-right instead of inside-out.
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
