"""Process-level tests — exit status and cleanup output of real programs.

Each test writes a small program to a temporary directory and runs it in
a fresh interpreter, either directly (decorator form) or through
``python -m clean_exit run`` (source form).

Coverage:
* Empty entry point exits 0.
* Requested codes are reported exactly, after cleanup output.
* Unrelated exceptions produce the same failure as without the directive.
* Return values follow the usual ``sys.exit(main())`` convention.
* A signal with no boundary fails like any unhandled exception.
* A signal raised in another thread ends only that thread.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable

import pytest

RunScript = Callable[..., subprocess.CompletedProcess[str]]

DROPPER = """
import sys

import clean_exit


class Dropped:
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        print("dropped")
        return False


def exit_with(code):
    clean_exit.with_code(code)


@clean_exit.main
def main():
    with Dropped():
        exit_with(int(sys.argv[1]))
        print("unreachable")


if __name__ == "__main__":
    main()
"""


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    @pytest.mark.parametrize("rewrite", [False, True], ids=["decorator", "rewritten"])
    def test_empty_main_exits_zero(self, run_script: RunScript, rewrite: bool) -> None:
        result = run_script(
            """
            import clean_exit

            @clean_exit.main
            def main():
                pass

            main()
            """,
            rewrite=rewrite,
        )
        assert result.returncode == 0
        assert result.stdout == ""

    @pytest.mark.parametrize("rewrite", [False, True], ids=["decorator", "rewritten"])
    @pytest.mark.parametrize("code", [0, 1, 2, 10, 255])
    def test_code_fidelity_with_cleanup(
        self, run_script: RunScript, code: int, rewrite: bool
    ) -> None:
        result = run_script(DROPPER, str(code), rewrite=rewrite)
        assert result.returncode == code, result.stderr
        assert result.stdout == "dropped\n"

    def test_destructor_runs_before_atexit(self, run_script: RunScript) -> None:
        result = run_script(
            """
            import atexit

            import clean_exit


            class Dropped:
                def __del__(self):
                    print("dropped", flush=True)


            atexit.register(print, "atexit")


            @clean_exit.main
            def main():
                _resource = Dropped()
                clean_exit.with_code(4)


            main()
            """
        )
        assert result.returncode == 4
        assert result.stdout == "dropped\natexit\n"


# ---------------------------------------------------------------------------
# Non-interference
# ---------------------------------------------------------------------------

class TestUnrelatedFailures:
    def test_same_failure_with_and_without_directive(self, run_script: RunScript) -> None:
        plain = run_script(
            """
            def main():
                raise RuntimeError("boom")

            main()
            """
        )
        wrapped = run_script(
            """
            import clean_exit

            @clean_exit.main
            def main():
                raise RuntimeError("boom")

            main()
            """
        )
        assert plain.returncode == wrapped.returncode == 1
        assert plain.stderr.strip().splitlines()[-1] == "RuntimeError: boom"
        assert wrapped.stderr.strip().splitlines()[-1] == "RuntimeError: boom"
        assert "Traceback (most recent call last)" in wrapped.stderr

    def test_rewritten_failure_reported_like_interpreter(
        self, run_script: RunScript
    ) -> None:
        result = run_script(
            """
            import clean_exit

            @clean_exit.main
            def main():
                raise RuntimeError("boom")

            main()
            """,
            rewrite=True,
        )
        assert result.returncode == 1
        assert "Traceback (most recent call last)" in result.stderr
        assert result.stderr.strip().splitlines()[-1] == "RuntimeError: boom"
        assert "program.py" in result.stderr
        assert "cli/app.py" not in result.stderr


# ---------------------------------------------------------------------------
# Return-value convention
# ---------------------------------------------------------------------------

class TestReturnConvention:
    def test_returned_status_used_by_sys_exit(self, run_script: RunScript) -> None:
        result = run_script(
            """
            import sys

            import clean_exit

            @clean_exit.main
            def main() -> int:
                return 3

            sys.exit(main())
            """
        )
        assert result.returncode == 3

    def test_returned_message_reported_as_failure(self, run_script: RunScript) -> None:
        result = run_script(
            """
            import sys

            import clean_exit

            @clean_exit.main
            def main() -> str:
                return "configuration missing"

            sys.exit(main())
            """
        )
        assert result.returncode == 1
        assert "configuration missing" in result.stderr


# ---------------------------------------------------------------------------
# Degraded cases
# ---------------------------------------------------------------------------

class TestDegraded:
    def test_signal_without_boundary_fails_loudly(self, run_script: RunScript) -> None:
        result = run_script(
            """
            import clean_exit

            def main():
                try:
                    clean_exit.with_code(7)
                finally:
                    print("released")

            main()
            """
        )
        assert result.returncode == 1
        assert result.stdout == "released\n"
        assert "ExitSignal" in result.stderr

    def test_signal_in_thread_ends_only_that_thread(self, run_script: RunScript) -> None:
        result = run_script(
            """
            import threading

            import clean_exit

            threading.excepthook = lambda args: print("thread ended:", args.exc_type.__name__)

            @clean_exit.main
            def main():
                worker = threading.Thread(target=clean_exit.with_code, args=(5,))
                worker.start()
                worker.join()
                print("continued")

            main()
            """
        )
        assert result.returncode == 0
        assert result.stdout == "thread ended: ExitSignal\ncontinued\n"

    def test_misnamed_entry_point_fails_at_import(self, run_script: RunScript) -> None:
        result = run_script(
            """
            import clean_exit

            print("module loading")

            @clean_exit.main
            def start():
                print("never runs")
            """
        )
        assert result.returncode == 1
        assert result.stdout == "module loading\n"
        assert "NotMainError" in result.stderr
