"""Logger access for clean-exit modules.

Library code only ever *emits* records; the package logger carries a
:class:`logging.NullHandler` so importing programs see nothing unless
they configure logging themselves.  The CLI calls
:func:`configure_logging` to route records through Rich.
"""

from __future__ import annotations

import logging

_ROOT_LOGGER_NAME = "clean_exit"

logging.getLogger(_ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the package logger."""
    if name != _ROOT_LOGGER_NAME and not name.startswith(f"{_ROOT_LOGGER_NAME}."):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(*, verbose: bool = False) -> None:
    """Attach a Rich handler on stderr to the package logger.

    Calling this more than once replaces the previously installed handler
    instead of stacking a second one.
    """
    from rich.console import Console
    from rich.logging import RichHandler

    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
