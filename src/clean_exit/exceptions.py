"""Custom exception hierarchy for clean-exit.

Every error this package raises on purpose inherits from
:class:`CleanExitError`.  Exceptions raised by the user's own entry point
are never wrapped or recast — they propagate exactly as they would
without the directive.

The exit signal itself is deliberately *not* part of this hierarchy; see
:mod:`clean_exit.core.signal`.

Hierarchy
---------
CleanExitError
├── DirectiveError
│   ├── ArgumentsNotAcceptedError
│   ├── NotMainError
│   └── NotAFunctionError
└── ScriptNotFoundError
"""

from __future__ import annotations

from clean_exit.core.models import SourceLocation


class CleanExitError(Exception):
    """Base exception for all clean-exit errors.

    Every user-visible error condition maps to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Directive misuse ------------------------------------------------------

class DirectiveError(CleanExitError):
    """Raised when the ``main`` directive is applied incorrectly.

    These are raised while a declaration is being decorated or rewritten,
    never when the entry point later runs.
    """

    def __init__(
        self,
        message: str,
        *,
        location: SourceLocation | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.location: SourceLocation | None = location
        """Most specific source position the error could be attached to."""

    def format(self) -> str:
        """Render as ``file:line:col: error: message``."""
        if self.location is None:
            return f"error: {self}"
        return f"{self.location}: error: {self}"


class ArgumentsNotAcceptedError(DirectiveError):
    """Raised when the directive is given any argument."""

    def __init__(self, *, location: SourceLocation | None = None) -> None:
        super().__init__(
            "arguments are not accepted",
            location=location,
            hint="Use `@clean_exit.main` or `@clean_exit.main()`.",
        )


class NotMainError(DirectiveError):
    """Raised when the directive targets a function not named ``main``."""

    def __init__(self, name: str, *, location: SourceLocation | None = None) -> None:
        super().__init__(
            "`clean_exit.main` can only be attached to `main`",
            location=location,
            hint=f"Rename `{name}` to `main` or call it from `main`.",
        )
        self.name: str = name


class NotAFunctionError(DirectiveError):
    """Raised when the directive targets something other than a function."""

    def __init__(self, kind: str, *, location: SourceLocation | None = None) -> None:
        super().__init__(
            f"`clean_exit.main` can only be attached to a function, not {kind}",
            location=location,
        )
        self.kind: str = kind


# --- Script execution ------------------------------------------------------

class ScriptNotFoundError(CleanExitError):
    """Raised when the script given to ``clean-exit`` cannot be read."""
