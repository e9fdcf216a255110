"""
blockmatch - Block keyword pairing for block-structured languages

Finds the open, middle and close keywords of code blocks and pairs them,
ignoring comments and literals.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .log import LOG, logger_setup, state_connectToLogger
from .parser import BlockParser
from .languages import grammar_get, grammar_forFilename, languages_list, parser_get

__all__ = [
    "BlockParser",
    "grammar_get",
    "grammar_forFilename",
    "languages_list",
    "parser_get",
    "LOG",
    "logger_setup",
    "state_connectToLogger",
    "__version__",
]
