"""CLI application entry point and command routing for clean-exit.

This module is the **sole error boundary** for the tool itself.  It
catches :class:`~clean_exit.exceptions.CleanExitError`, ``SyntaxError``
in the inspected source, ``KeyboardInterrupt`` and any unexpected
``Exception``, rendering messages via Rich and returning well-defined
exit codes.

Scripts executed with ``clean-exit run`` are the exception to the rule:
their own exceptions are reported with the interpreter's standard
traceback, and their ``SystemExit`` passes straight through, so the
process ends with exactly the status the script chose.

Commands
--------
* ``clean-exit check FILE``            — list and validate entry points
* ``clean-exit rewrite FILE [-o OUT]`` — print or write rewritten source
* ``clean-exit run FILE [ARGS...]``    — run the rewritten script
"""

from __future__ import annotations

import argparse
import ast
import sys
from pathlib import Path
from types import TracebackType

from clean_exit.cli import exit_codes
from clean_exit.cli.console import console, print_error, print_syntax_error
from clean_exit.exceptions import CleanExitError
from clean_exit.utils.logging import configure_logging
from clean_exit.version import __version__


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="clean-exit",
        description="Rewrite and run Python entry points that exit with "
        "a custom status after all cleanup has run.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log rewriting and dispatching decisions to stderr.",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    check = commands.add_parser(
        "check",
        help="Validate and list the entry points in a file.",
    )
    check.add_argument("file", type=Path)

    rewrite = commands.add_parser(
        "rewrite",
        help="Print the rewritten source of a file.",
    )
    rewrite.add_argument("file", type=Path)
    rewrite.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write to this path instead of stdout.",
    )

    run = commands.add_parser(
        "run",
        help="Run a script with its entry point rewritten.",
    )
    run.add_argument("file", type=Path)
    run.add_argument("args", nargs=argparse.REMAINDER)

    return parser


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

def _handle_check(path: Path) -> int:
    """Validate every directive target in *path* and show a summary table."""
    from rich.markup import escape
    from rich.table import Table

    from clean_exit.core.rewriter import find_entry_points
    from clean_exit.infra.script_runner import read_script

    source = read_script(path)
    tree = ast.parse(source, filename=str(path))
    entry_points = find_entry_points(tree, filename=str(path), source=source)

    if not entry_points:
        console.print(f"[yellow]No entry points found in[/yellow] {escape(str(path))}")
        return exit_codes.SUCCESS

    table = Table(
        title=f"clean-exit check — {escape(str(path))}",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Line", style="bold", justify="right")
    table.add_column("Signature")
    table.add_column("Returns")
    table.add_column("Applied", justify="center")

    for entry in entry_points:
        prefix = "async def" if entry.is_async else "def"
        type_params = f"[{', '.join(entry.type_params)}]" if entry.type_params else ""
        signature = f"{prefix} {entry.name}{type_params}({', '.join(entry.parameters)})"
        table.add_row(
            f"{entry.location.line}:{entry.location.column + 1}",
            escape(signature),
            escape(entry.returns or "-"),
            str(entry.applications),
        )

    console.print(table)
    console.print("[bold green]All entry points are valid.[/bold green]")
    return exit_codes.SUCCESS


def _handle_rewrite(path: Path, output: Path | None) -> int:
    """Emit the rewritten source of *path*."""
    from clean_exit.core.rewriter import rewrite_source
    from clean_exit.infra.script_runner import read_script

    rewritten = rewrite_source(read_script(path), str(path))
    if output is None:
        sys.stdout.write(rewritten)
    else:
        output.write_text(rewritten, encoding="utf-8")
        console.print(f"[green]Wrote[/green] {output}")
    return exit_codes.SUCCESS


def _handle_run(path: Path, args: list[str]) -> int:
    """Run the rewritten script, reporting its failures like the interpreter."""
    from clean_exit.infra.script_runner import execute_script, load_script

    script = load_script(path)
    try:
        execute_script(script, args)
    except Exception as exc:
        sys.excepthook(type(exc), exc, _script_traceback(exc, script.path))
        return exit_codes.SCRIPT_FAILURE
    return exit_codes.SUCCESS


def _script_traceback(exc: BaseException, path: Path) -> TracebackType | None:
    """Drop the runner's own frames from the front of *exc*'s traceback."""
    tb = exc.__traceback__
    while tb is not None and tb.tb_frame.f_code.co_filename != str(path):
        tb = tb.tb_next
    return tb if tb is not None else exc.__traceback__


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the clean-exit CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    if args.command == "check":
        return _handle_check(args.file)
    if args.command == "rewrite":
        return _handle_rewrite(args.file, args.output)
    return _handle_run(args.file, args.args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the tool never exits
    with a raw stack trace of its own during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except CleanExitError as exc:
        print_error(exc)
        sys.exit(exit_codes.GENERAL_ERROR)
    except SyntaxError as exc:
        print_syntax_error(exc)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
