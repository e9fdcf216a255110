"""
Centralized logging using Loguru with context-aware verbosity.

LOG() respects the verbosity of the ProgramState connected to the current
context, so engine modules can trace their work without passing state
around. When no state is connected (library use) the engine stays silent
unless BLOCKMATCH_DEBUG_MODE is set.

Usage:
    from blockmatch.lib.log import LOG, logger_setup, state_connectToLogger

    # Once, in a command line entry point:
    logger_setup()

    # At start of pipeline function:
    state_connectToLogger(state)

    # Anywhere in that context:
    LOG("This message appears if verbosity >= 1", level=1)
    LOG("Token counts appear if verbosity >= 3", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

from ..config import appsettings

# Context variable to hold current ProgramState
_program_state: ContextVar[Optional[Any]] = ContextVar("program_state", default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)


def logger_setup() -> None:
    """
    Replace loguru's default sink with the blockmatch stderr format.

    Called by the command line entry point only; importing blockmatch
    leaves an embedding application's sinks alone.
    """
    logger.remove()
    logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Connect a ProgramState to the logging context.

    Args:
        state: ProgramState instance with verbosity attribute

    Example:
        def blocks_parse(inputstate: ProgramState) -> ProgramState:
            state = inputstate.copy()
            state_connectToLogger(state)
            LOG("Matching blocks...", level=1)
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if current state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=debug)
        **kwargs: Additional loguru metadata

    Example:
        LOG("Read 1024 characters", level=2)
        LOG("Found 12 excluded regions", level=3)
    """
    state = _program_state.get()

    if state is None:
        if appsettings.debug_mode:
            logger.opt(depth=1).debug(message, **kwargs)
        return

    if getattr(state, "verbosity", 0) >= level:
        logger.opt(depth=1).debug(message, **kwargs)
