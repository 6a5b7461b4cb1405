"""CLI console helpers built on Rich.

All diagnostics go to stderr so that ``clean-exit rewrite`` can stream
rewritten source on stdout untouched.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from clean_exit.exceptions import CleanExitError, DirectiveError

console = Console(stderr=True)


def print_error(exc: CleanExitError) -> None:
    """Render a known error with its location and hint."""
    if isinstance(exc, DirectiveError):
        message = escape(exc.format())
    else:
        message = f"[bold red]Error:[/bold red] {escape(str(exc))}"
    console.print(message)
    if exc.hint:
        console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")


def print_syntax_error(exc: SyntaxError) -> None:
    """Render a syntax error the way the interpreter locates it."""
    where = f"{exc.filename}:{exc.lineno}:{exc.offset or 1}"
    console.print(f"{escape(where)}: error: {escape(exc.msg)}")
    if exc.text:
        console.print(f"    {escape(exc.text.rstrip())}")
