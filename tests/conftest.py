"""Shared pytest fixtures and configuration for the clean-exit test suite.

Guidelines
----------
* Core tests are pure function calls — no subprocesses, no files.
* Process-level properties (exit status, cleanup output) are checked by
  launching a fresh interpreter on a temporary script.
* Tests must not depend on OS state.
"""

from __future__ import annotations

import os
import subprocess
import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"

RunScript = Callable[..., subprocess.CompletedProcess[str]]


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str], Path]:
    """Write dedented *source* to ``program.py`` and return its path."""

    def _write(source: str, name: str = "program.py") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def run_script(write_script: Callable[[str], Path]) -> RunScript:
    """Run *source* in a fresh interpreter.

    With ``rewrite=True`` the script goes through ``python -m clean_exit
    run`` instead of being executed directly.
    """

    def _run(
        source: str, *args: str, rewrite: bool = False
    ) -> subprocess.CompletedProcess[str]:
        script = write_script(source)
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(SRC_DIR), env.get("PYTHONPATH", "")) if p
        )
        if rewrite:
            command = [sys.executable, "-m", "clean_exit", "run", str(script), *args]
        else:
            command = [sys.executable, str(script), *args]
        return subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=env,
            timeout=60,
            check=False,
        )

    return _run
