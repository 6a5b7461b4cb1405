"""Runtime boundary invoked by every rewritten entry point.

The dispatcher runs the original body, consumes an
:class:`~clean_exit.core.signal.ExitSignal` if one arrives and lets
every other exception continue outward untouched.

Two steps are kept separate:

1. :func:`run` / :func:`run_async` — establish the boundary and produce an
   :class:`~clean_exit.core.models.Outcome`.  No process-level effect.
2. :func:`report` — turn a terminal outcome into :func:`sys.exit`.  By the
   time it runs the boundary has closed, so all cleanup between the
   signal and the entry point has completed.

:func:`dispatch` and :func:`dispatch_async` chain both steps; they are
what the ``main`` directive calls.
"""

from __future__ import annotations

import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

from clean_exit.core.models import Outcome
from clean_exit.core.signal import ExitSignal
from clean_exit.utils.logging import get_logger

R = TypeVar("R")

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Catching boundary
# ---------------------------------------------------------------------------

def run(body: Callable[[], R]) -> Outcome[R]:
    """Call *body* and classify how it ended."""
    try:
        value = body()
    except ExitSignal as signal:
        logger.debug("exit signal caught with code %d", signal.code)
        return Outcome.terminal(signal.code)
    return Outcome.normal(value)


async def run_async(body: Callable[[], Awaitable[R]]) -> Outcome[R]:
    """Await *body()* and classify how it ended."""
    try:
        value = await body()
    except ExitSignal as signal:
        logger.debug("exit signal caught with code %d", signal.code)
        return Outcome.terminal(signal.code)
    return Outcome.normal(value)


# ---------------------------------------------------------------------------
# Termination
# ---------------------------------------------------------------------------

def report(outcome: Outcome[R]) -> R:
    """Return the normal value, or exit the process for a terminal outcome."""
    if outcome.is_terminal:
        logger.debug("exiting with code %d", outcome.exit_code)
        sys.exit(outcome.exit_code)
    return outcome.value  # type: ignore[return-value]


def dispatch(body: Callable[[], R]) -> R:
    return report(run(body))


async def dispatch_async(body: Callable[[], Awaitable[R]]) -> R:
    return report(await run_async(body))
