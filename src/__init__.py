"""
blockmatch - Block keyword pairing for block-structured languages

Finds the open, middle and close keywords of code blocks and pairs them,
ignoring comments and literals.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .lib import BlockParser, parser_get, grammar_get, LOG, state_connectToLogger

__all__ = ["BlockParser", "parser_get", "grammar_get", "LOG", "state_connectToLogger", "__version__"]
