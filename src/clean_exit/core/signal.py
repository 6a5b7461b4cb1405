"""The exit signal and the function that raises it.

:class:`ExitSignal` derives from :class:`BaseException`, like
:class:`SystemExit` and :class:`KeyboardInterrupt`, so that ordinary
``except Exception`` handlers between the call site and the entry point
let it through while ``with`` blocks and ``finally`` clauses still run.

The class is not exported from the package root.  The dispatcher
recognises it by identity, so no user-defined exception can be mistaken
for it.
"""

from __future__ import annotations

import operator
from typing import NoReturn


class ExitSignal(BaseException):
    """Carries a requested exit status up to the nearest dispatcher.

    Not an error.  Raised only by :func:`with_code`.
    """

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code: int = code

    def __repr__(self) -> str:
        return f"ExitSignal(code={self.code})"


def with_code(code: int) -> NoReturn:
    """Cleanly exit the program with *code*.

    The stack is unwound up to the entry point decorated with
    :func:`clean_exit.main`, running every cleanup handler on the way,
    and only then does the process exit.

    Restrictions
    ------------
    * The entry point must carry the ``main`` directive.  Without it the
      signal reaches the top of the stack like any unhandled exception:
      a traceback is printed and the status is ``1``.
    * Called from a thread whose exceptions are never propagated, only
      that thread ends.
    * Must not be called from a callback invoked through a C extension
      that does not propagate Python exceptions; use :func:`os._exit`
      there instead.
    * A bare ``except:`` or ``except BaseException:`` that does not
      re-raise will swallow the signal.

    Raises
    ------
    TypeError
        When *code* is not an integer.
    """
    raise ExitSignal(operator.index(code))
