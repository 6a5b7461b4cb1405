"""Allow ``python -m clean_exit`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m clean_exit`` behaves identically to the ``clean-exit``
console script.
"""

from __future__ import annotations

from clean_exit.cli.app import cli

if __name__ == "__main__":
    cli()
