"""Infrastructure: load a Python script from disk and run it rewritten.

This is the filesystem side of the source-level directive.  The script
is read, every ``@clean_exit.main`` declaration in it is rewritten, and
the result is compiled under the script's own path so tracebacks point
at the original lines.

Rules
-----
* No ``print()`` — callers handle user-facing output.
* Exceptions raised *by the script* are never caught here; they belong
  to the script and must reach the caller unchanged.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from types import CodeType
from typing import Any

from clean_exit.core.rewriter import compile_source
from clean_exit.exceptions import ScriptNotFoundError
from clean_exit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CompiledScript:
    """A rewritten, compiled script ready to execute."""

    path: Path
    source: str
    code: CodeType


def read_script(path: Path) -> str:
    """Return the text of *path* or raise :class:`ScriptNotFoundError`."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ScriptNotFoundError(
            f"No such script: {path}",
            hint="Check the path and try again.",
        ) from exc
    except IsADirectoryError as exc:
        raise ScriptNotFoundError(f"Not a file: {path}") from exc
    except UnicodeDecodeError as exc:
        raise ScriptNotFoundError(f"Script is not valid UTF-8: {path}") from exc


def load_script(path: Path) -> CompiledScript:
    """Read, rewrite and compile the script at *path*.

    Raises
    ------
    ScriptNotFoundError
        When the file cannot be read.
    SyntaxError
        When the file is not valid Python.
    DirectiveError
        When the ``main`` directive is misused in the file.
    """
    source = read_script(path)
    code = compile_source(source, str(path))
    logger.debug("compiled %s", path)
    return CompiledScript(path=path, source=source, code=code)


def execute_script(script: CompiledScript, argv: Sequence[str] = ()) -> dict[str, Any]:
    """Execute *script* as ``__main__`` and return its globals.

    ``sys.argv`` is set to the script path followed by *argv* for the
    duration of the call and restored afterwards, whatever way the
    script ends.
    """
    exec_globals: dict[str, Any] = {
        "__name__": "__main__",
        "__file__": str(script.path),
        "__builtins__": __builtins__,
    }

    saved_argv = sys.argv
    sys.argv = [str(script.path), *argv]
    try:
        exec(script.code, exec_globals)
    finally:
        sys.argv = saved_argv
    return exec_globals
