"""Value objects shared by the rewriter and the dispatcher.

All models are **frozen** dataclasses with no behaviour beyond data
access and a little formatting.  They carry zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

R = TypeVar("R")


# ---------------------------------------------------------------------------
# Dispatcher result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Outcome(Generic[R]):
    """Result of running an entry-point body under a dispatcher boundary.

    Exactly one of the two is meaningful: the body's ``value`` when it
    returned normally, or the ``exit_code`` requested through
    :func:`~clean_exit.core.signal.with_code`.  The exit signal object
    itself is never stored, so nothing keeps the unwound frames alive.
    """

    value: R | None = None
    """Return value of the body.  Always ``None`` for terminal outcomes."""

    exit_code: int | None = None
    """Requested process exit status, or ``None`` for normal outcomes."""

    def __post_init__(self) -> None:
        if self.exit_code is not None and self.value is not None:
            raise ValueError("an outcome cannot carry both a value and an exit code")

    @classmethod
    def normal(cls, value: R) -> Outcome[R]:
        return cls(value=value)

    @classmethod
    def terminal(cls, exit_code: int) -> Outcome[R]:
        return cls(exit_code=exit_code)

    @property
    def is_terminal(self) -> bool:
        return self.exit_code is not None


# ---------------------------------------------------------------------------
# Source positions
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SourceLocation:
    """A position in a source file used to anchor diagnostics."""

    filename: str
    """Path or pseudo-name (e.g. ``<string>``) of the source."""

    line: int
    """1-based line number."""

    column: int = 0
    """0-based column offset."""

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column + 1}"


# ---------------------------------------------------------------------------
# Directive target
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class EntryDeclaration:
    """Shape of a function declaration the directive is attached to.

    Only the parts a reader needs to inspect are broken out; the rest of
    the declaration is carried through rewriting untouched.
    """

    name: str
    location: SourceLocation
    is_async: bool
    parameters: tuple[str, ...]
    """Parameter names in declaration order, with ``*``/``**`` prefixes."""

    returns: str | None
    """Return annotation as source text, or ``None`` when absent."""

    type_params: tuple[str, ...]
    """PEP 695 type parameters as source text."""

    decorators: tuple[str, ...]
    """Decorators other than the directive, outermost first."""

    applications: int
    """Number of times the directive was stacked on the declaration."""
