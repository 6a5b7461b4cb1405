"""clean-exit — exit with a custom status code without skipping cleanup.

Attach :func:`main` to the program's entry point, then call
:func:`with_code` from anywhere below it.  The stack unwinds normally, so
``with`` blocks and ``finally`` clauses run before the process exits.

Example
-------
::

    import clean_exit

    def read_args(argv):
        if len(argv) > 1:
            print("too many arguments", file=sys.stderr)
            clean_exit.with_code(1)

    @clean_exit.main
    def main():
        read_args(sys.argv)
"""

from clean_exit.core.directive import main
from clean_exit.core.models import Outcome
from clean_exit.core.rewriter import rewrite_source
from clean_exit.core.signal import with_code
from clean_exit.version import __version__

__all__: list[str] = [
    "Outcome",
    "__version__",
    "main",
    "rewrite_source",
    "with_code",
]
