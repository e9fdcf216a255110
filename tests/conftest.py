"""
Shared test helpers

Fixtures that run the engine and flatten its output into plain tuples, so
tests can compare whole results at once.
"""

from typing import Callable, List, Tuple

import pytest

from blockmatch.lib.languages import parser_get
from blockmatch.models.tokens import BlockPair


def pair_summary(pair: BlockPair) -> Tuple[str, str, int, List[str]]:
    """(open text, close text, nest level, middle texts) of one pair"""
    return (
        pair.open_keyword.value,
        pair.close_keyword.value,
        pair.nest_level,
        [token.value for token in pair.intermediates],
    )


@pytest.fixture
def blocks() -> Callable[[str, str], List[Tuple[str, str, int, List[str]]]]:
    """Parse source and summarize its pairs in opening order"""

    def run(language: str, source: str) -> List[Tuple[str, str, int, List[str]]]:
        pairs = parser_get(language).parse(source)
        pairs.sort(key=lambda pair: pair.open_keyword.start_offset)
        return [pair_summary(pair) for pair in pairs]

    return run


@pytest.fixture
def keywords() -> Callable[[str, str], List[str]]:
    """Validated keyword texts in source order"""

    def run(language: str, source: str) -> List[str]:
        return [token.value for token in parser_get(language).tokens_get(source)]

    return run
