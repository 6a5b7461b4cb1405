"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.

Scripts executed with ``clean-exit run`` choose their own status; these
constants only cover what the tool itself reports.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Clean exit — command completed without error."""

GENERAL_ERROR: int = 1
"""A known CleanExitError (e.g. directive misuse) was caught and reported."""

SCRIPT_FAILURE: int = 1
"""A script run by ``clean-exit run`` raised an unhandled exception.

Matches the status the interpreter itself uses for an uncaught exception.
"""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""
