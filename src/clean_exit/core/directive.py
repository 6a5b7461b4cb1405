"""The ``main`` directive in decorator form.

Decorating the entry point swaps its body for a call into the
dispatcher while leaving everything a caller can observe — name,
docstring, signature, annotations, type parameters, sync or async —
exactly as declared.

Misuse is rejected when the decorator is applied, i.e. when the module
defining ``main`` is imported, never when ``main`` is later called.
"""

from __future__ import annotations

import functools
import inspect
import sys
from collections.abc import Callable
from types import FrameType
from typing import Any, TypeVar

from clean_exit.core.dispatcher import dispatch, dispatch_async
from clean_exit.core.models import SourceLocation
from clean_exit.exceptions import (
    ArgumentsNotAcceptedError,
    NotAFunctionError,
    NotMainError,
)
from clean_exit.utils.logging import get_logger

F = TypeVar("F", bound=Callable[..., Any])

ENTRY_MARKER = "__clean_exit_entry__"
"""Attribute set on wrappers so stacked directives install one boundary."""

logger = get_logger(__name__)

_MISSING: Any = object()


def main(target: Any = _MISSING, /, *args: Any, **kwargs: Any) -> Any:
    """Modify the entry point to exit with the code passed to ``with_code``.

    Always attach this to the program's ``main`` function; otherwise the
    exit status of the program may be incorrect.

    Both ``@main`` and ``@main()`` are accepted.  A generator function is
    accepted too, but only the call that creates the generator runs inside
    the boundary; signals raised while iterating it are not caught.

    Raises
    ------
    ArgumentsNotAcceptedError
        When the directive is given any argument, including a function
        other than the one it decorates.
    NotAFunctionError
        When the target is a class or another non-function callable.
    NotMainError
        When the target function is not named ``main``; located at the
        name in its ``def`` line.
    """
    frame = _caller_frame()
    site = _frame_location(frame)
    if args or kwargs:
        raise ArgumentsNotAcceptedError(location=site)
    if target is _MISSING:
        return _directive
    if not callable(target) or not _decorates_definition(target, frame):
        raise ArgumentsNotAcceptedError(location=site)
    return _install(target, site)


def _directive(target: F) -> F:
    return _install(target, _frame_location(_caller_frame()))


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------

def _install(target: Any, site: SourceLocation | None) -> Any:
    if getattr(target, ENTRY_MARKER, False):
        return target

    if inspect.isclass(target):
        raise NotAFunctionError(f"class `{target.__name__}`", location=site)
    if not inspect.isfunction(target):
        raise NotAFunctionError(f"`{type(target).__name__}` object", location=site)

    code = target.__code__
    if target.__name__ != "main":
        raise NotMainError(target.__name__, location=_definition_location(target))

    if inspect.iscoroutinefunction(target):
        wrapper = _wrap_async(target)
    else:
        wrapper = _wrap_sync(target)
    setattr(wrapper, ENTRY_MARKER, True)

    logger.debug(
        "installed exit boundary on %s (%s:%d)",
        target.__qualname__,
        code.co_filename,
        code.co_firstlineno,
    )
    return wrapper


def _wrap_sync(function: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(function)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return dispatch(lambda: function(*args, **kwargs))

    return wrapper


def _wrap_async(function: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(function)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        return await dispatch_async(lambda: function(*args, **kwargs))

    return wrapper


def _caller_frame() -> FrameType | None:
    """Frame of the code applying the directive.

    Two frames up: this helper, then the directive function itself.
    """
    try:
        return sys._getframe(2)
    except ValueError:
        return None


def _frame_location(frame: FrameType | None) -> SourceLocation | None:
    if frame is None:
        return None
    return SourceLocation(frame.f_code.co_filename, frame.f_lineno)


def _decorates_definition(target: Any, frame: FrameType | None) -> bool:
    """Whether *target* is the function being defined at *frame*'s line.

    Bare ``@main`` is called while its decorator block runs, so the
    caller's current line lies between the first decorator of the target
    and the first line of its body.  In ``@main(helper)`` the argument was
    defined elsewhere and the line falls outside that range.
    """
    if frame is None or frame.f_lineno is None:
        return True
    function = inspect.unwrap(target)
    if inspect.isclass(function):
        return True
    code = getattr(function, "__code__", None)
    if code is None:
        return False
    if function.__name__ == "<lambda>" or code.co_filename != frame.f_code.co_filename:
        return False
    body_lines = [
        line for _, _, line in code.co_lines() if line is not None and line > code.co_firstlineno
    ]
    return code.co_firstlineno <= frame.f_lineno <= min(body_lines, default=frame.f_lineno)


def _definition_location(function: Callable[..., Any]) -> SourceLocation:
    """Location of the name in *function*'s ``def`` line.

    Falls back to the first decorator line when the source is unavailable.
    """
    code = function.__code__
    try:
        lines, start = inspect.getsourcelines(function)
    except (OSError, TypeError):
        return SourceLocation(code.co_filename, code.co_firstlineno)
    for offset, text in enumerate(lines):
        if text.lstrip().startswith(("def ", "async def ")):
            column = text.find(function.__name__, text.find("def ") + 4)
            return SourceLocation(code.co_filename, start + offset, max(column, 0))
    return SourceLocation(code.co_filename, code.co_firstlineno)
