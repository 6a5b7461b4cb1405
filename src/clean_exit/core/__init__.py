"""Core layer — the exit signal, the dispatcher and both directive forms.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O.
* No imports from ``cli`` or ``infra``.
"""

from clean_exit.core.models import EntryDeclaration, Outcome, SourceLocation
from clean_exit.core.signal import with_code
from clean_exit.core.dispatcher import dispatch, dispatch_async, report, run, run_async
from clean_exit.core.directive import main
from clean_exit.core.rewriter import (
    RewriteResult,
    compile_source,
    find_entry_points,
    rewrite_source,
    rewrite_tree,
)

__all__: list[str] = [
    "EntryDeclaration",
    "Outcome",
    "RewriteResult",
    "SourceLocation",
    "compile_source",
    "dispatch",
    "dispatch_async",
    "find_entry_points",
    "main",
    "report",
    "rewrite_source",
    "rewrite_tree",
    "run",
    "run_async",
    "with_code",
]
