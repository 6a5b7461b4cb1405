"""Source-level form of the ``main`` directive.

Every function decorated with ``clean_exit.main`` (under whatever name
the module imported it as) is rewritten so that its body runs under the
dispatcher.  The declaration head is left exactly as written —
decorators other than the directive, ``async``, type parameters,
parameters with their defaults and annotations, return annotation —
and only the body changes::

    @clean_exit.main
    def main(argv=None) -> None:
        "Docstring."
        ...

becomes::

    def main(argv=None) -> None:
        "Docstring."
        def __clean_exit_body__(argv):
            ...
        return __clean_exit_dispatch__(lambda: __clean_exit_body__(argv))

The nested body receives the parameters explicitly so that rebinding a
parameter inside the original body keeps working.  An ``async def main``
that yields is an async generator function; it becomes a plain ``def``
returning the generator, the same passthrough the decorator form gives
generator entry points.

Stacked directives are all consumed and produce one boundary; output
without directives is returned unchanged, so rewriting is stable under
repetition.

Every function in this module is pure: no I/O, no execution.
"""

from __future__ import annotations

import ast
from collections.abc import Sequence
from dataclasses import dataclass
from types import CodeType

from clean_exit.core.models import EntryDeclaration, SourceLocation
from clean_exit.exceptions import (
    ArgumentsNotAcceptedError,
    NotAFunctionError,
    NotMainError,
)
from clean_exit.utils.logging import get_logger

DIRECTIVE_MODULES: frozenset[str] = frozenset(
    {"clean_exit", "clean_exit.core.directive"},
)
DIRECTIVE_NAME = "main"
BODY_NAME = "__clean_exit_body__"
DISPATCH_NAME = "__clean_exit_dispatch__"
DISPATCH_ASYNC_NAME = "__clean_exit_dispatch_async__"

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RewriteResult:
    """Rewritten module plus the entry points that were adapted."""

    tree: ast.Module
    entry_points: tuple[EntryDeclaration, ...]

    @property
    def changed(self) -> bool:
        return bool(self.entry_points)


# ---------------------------------------------------------------------------
# Directive recognition
# ---------------------------------------------------------------------------

def directive_spellings(tree: ast.AST) -> frozenset[str]:
    """Return the dotted names under which the directive is reachable.

    ``clean_exit.main`` is always recognised.  Aliased imports anywhere in
    the module add their own spelling.
    """
    spellings = {f"clean_exit.{DIRECTIVE_NAME}"}
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname is None:
                    continue
                if alias.name in DIRECTIVE_MODULES:
                    spellings.add(f"{alias.asname}.{DIRECTIVE_NAME}")
        elif isinstance(node, ast.ImportFrom):
            if node.level != 0 or node.module not in DIRECTIVE_MODULES:
                continue
            for alias in node.names:
                if alias.name == DIRECTIVE_NAME:
                    spellings.add(alias.asname or DIRECTIVE_NAME)
    return frozenset(spellings)


def _dotted_name(node: ast.expr) -> str | None:
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))


def _is_directive(decorator: ast.expr, spellings: frozenset[str]) -> bool:
    target = decorator.func if isinstance(decorator, ast.Call) else decorator
    return _dotted_name(target) in spellings


# ---------------------------------------------------------------------------
# Visitor
# ---------------------------------------------------------------------------

_FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


class _EntryPointVisitor(ast.NodeTransformer):
    """Validate directive targets in source order and optionally rewrite them."""

    def __init__(
        self,
        spellings: frozenset[str],
        *,
        filename: str,
        source_lines: Sequence[str],
        rewrite: bool,
    ) -> None:
        self._spellings = spellings
        self._filename = filename
        self._source_lines = source_lines
        self._rewrite = rewrite
        self.entry_points: list[EntryDeclaration] = []
        self.uses_sync = False
        self.uses_async = False

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        return self._visit_function(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> ast.AST:
        return self._visit_function(node)

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.AST:
        if any(_is_directive(d, self._spellings) for d in node.decorator_list):
            raise NotAFunctionError(f"class `{node.name}`", location=self._location(node))
        self.generic_visit(node)
        return node

    def _visit_function(self, node: _FunctionNode) -> ast.AST:
        directives = [d for d in node.decorator_list if _is_directive(d, self._spellings)]
        if directives:
            self._validate(node, directives)
            self.entry_points.append(self._describe(node, len(directives)))
        self.generic_visit(node)
        if directives and self._rewrite:
            return self._adapt(node)
        return node

    # -- validation ---------------------------------------------------------

    def _validate(self, node: _FunctionNode, directives: list[ast.expr]) -> None:
        for decorator in directives:
            if isinstance(decorator, ast.Call) and (decorator.args or decorator.keywords):
                first = min(
                    [*decorator.args, *decorator.keywords],
                    key=lambda arg: (
                        getattr(arg, "lineno", decorator.lineno),
                        getattr(arg, "col_offset", decorator.col_offset),
                    ),
                )
                raise ArgumentsNotAcceptedError(
                    location=self._location(first if hasattr(first, "lineno") else decorator),
                )
        if node.name != DIRECTIVE_NAME:
            raise NotMainError(node.name, location=self._identifier_location(node))

    def _location(self, node: ast.AST) -> SourceLocation:
        return SourceLocation(
            self._filename,
            getattr(node, "lineno", 1),
            getattr(node, "col_offset", 0),
        )

    def _identifier_location(self, node: _FunctionNode) -> SourceLocation:
        column = node.col_offset
        if 0 < node.lineno <= len(self._source_lines):
            line = self._source_lines[node.lineno - 1]
            def_column = line.find("def", node.col_offset)
            if def_column != -1:
                found = line.find(node.name, def_column + 3)
                if found != -1:
                    column = found
        return SourceLocation(self._filename, node.lineno, column)

    def _describe(self, node: _FunctionNode, applications: int) -> EntryDeclaration:
        args = node.args
        parameters = [a.arg for a in (*args.posonlyargs, *args.args)]
        if args.vararg is not None:
            parameters.append(f"*{args.vararg.arg}")
        parameters.extend(a.arg for a in args.kwonlyargs)
        if args.kwarg is not None:
            parameters.append(f"**{args.kwarg.arg}")
        return EntryDeclaration(
            name=node.name,
            location=self._identifier_location(node),
            is_async=isinstance(node, ast.AsyncFunctionDef),
            parameters=tuple(parameters),
            returns=ast.unparse(node.returns) if node.returns is not None else None,
            type_params=tuple(ast.unparse(p) for p in getattr(node, "type_params", ())),
            decorators=tuple(
                ast.unparse(d)
                for d in node.decorator_list
                if not _is_directive(d, self._spellings)
            ),
            applications=applications,
        )

    # -- rewriting ----------------------------------------------------------

    def _adapt(self, node: _FunctionNode) -> _FunctionNode:
        is_async = isinstance(node, ast.AsyncFunctionDef)
        # An async generator is returned, not awaited: dispatch it synchronously.
        awaited = is_async and not _contains_yield(node.body)
        if awaited:
            self.uses_async = True
        else:
            self.uses_sync = True

        docstring: list[ast.stmt] = []
        body = list(node.body)
        if (
            body
            and isinstance(body[0], ast.Expr)
            and isinstance(body[0].value, ast.Constant)
            and isinstance(body[0].value.value, str)
        ):
            docstring = [body.pop(0)]

        inner, call = _boundary_template(node.args, is_async=is_async, awaited=awaited)
        for new_node in (inner, call):
            for child in ast.walk(new_node):
                ast.copy_location(child, node)
        inner.body = body or [ast.copy_location(ast.Pass(), node)]

        node.body = [*docstring, inner, call]
        node.decorator_list = [
            d for d in node.decorator_list if not _is_directive(d, self._spellings)
        ]
        logger.debug(
            "rewrote entry point %s at %s:%d",
            node.name,
            self._filename,
            node.lineno,
        )
        if is_async and not awaited:
            node = ast.copy_location(
                ast.FunctionDef(**{field: getattr(node, field) for field in node._fields}),
                node,
            )
        return node


def _contains_yield(body: Sequence[ast.stmt]) -> bool:
    """Whether *body* yields, ignoring nested functions and classes."""
    pending: list[ast.AST] = list(body)
    while pending:
        node = pending.pop()
        if isinstance(node, (ast.Yield, ast.YieldFrom)):
            return True
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda, ast.ClassDef)):
            pending.extend(ast.iter_child_nodes(node))
    return False


def _boundary_template(
    arguments: ast.arguments,
    *,
    is_async: bool,
    awaited: bool,
) -> tuple[_FunctionNode, ast.stmt]:
    """Build the nested body definition and the dispatching ``return``.

    The nodes are produced by parsing a small template so that every
    field the running interpreter's AST expects is populated.
    """
    parameters = [a.arg for a in (*arguments.posonlyargs, *arguments.args)]
    forwarded = list(parameters)
    if arguments.vararg is not None:
        parameters.append(f"*{arguments.vararg.arg}")
        forwarded.append(f"*{arguments.vararg.arg}")
    elif arguments.kwonlyargs:
        parameters.append("*")
    for kwonly in arguments.kwonlyargs:
        parameters.append(kwonly.arg)
        forwarded.append(f"{kwonly.arg}={kwonly.arg}")
    if arguments.kwarg is not None:
        parameters.append(f"**{arguments.kwarg.arg}")
        forwarded.append(f"**{arguments.kwarg.arg}")

    prefix = "async " if is_async else ""
    outer_prefix = "async " if awaited else ""
    await_ = "await " if awaited else ""
    dispatcher = DISPATCH_ASYNC_NAME if awaited else DISPATCH_NAME
    template = (
        f"{outer_prefix}def __template__():\n"
        f"    {prefix}def {BODY_NAME}({', '.join(parameters)}):\n"
        f"        pass\n"
        f"    return {await_}{dispatcher}(lambda: {BODY_NAME}({', '.join(forwarded)}))\n"
    )
    outer = ast.parse(template).body[0]
    assert isinstance(outer, (ast.FunctionDef, ast.AsyncFunctionDef))
    inner, call = outer.body
    assert isinstance(inner, (ast.FunctionDef, ast.AsyncFunctionDef))
    return inner, call


def _dispatcher_import(*, sync: bool, async_: bool) -> ast.stmt:
    names = []
    if sync:
        names.append(f"dispatch as {DISPATCH_NAME}")
    if async_:
        names.append(f"dispatch_async as {DISPATCH_ASYNC_NAME}")
    return ast.parse(f"from clean_exit.core.dispatcher import {', '.join(names)}").body[0]


def _import_insertion_index(body: Sequence[ast.stmt]) -> int:
    """Index after the module docstring and ``from __future__`` imports."""
    index = 0
    if (
        body
        and isinstance(body[0], ast.Expr)
        and isinstance(body[0].value, ast.Constant)
        and isinstance(body[0].value.value, str)
    ):
        index = 1
    while (
        index < len(body)
        and isinstance(body[index], ast.ImportFrom)
        and body[index].module == "__future__"
    ):
        index += 1
    return index


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def find_entry_points(
    tree: ast.Module,
    *,
    filename: str = "<string>",
    source: str | None = None,
) -> list[EntryDeclaration]:
    """Validate every directive target in *tree* and describe it.

    Raises the same :class:`~clean_exit.exceptions.DirectiveError`
    subclasses as :func:`rewrite_tree`; *tree* is not modified.
    """
    visitor = _EntryPointVisitor(
        directive_spellings(tree),
        filename=filename,
        source_lines=source.splitlines() if source is not None else (),
        rewrite=False,
    )
    visitor.visit(tree)
    return visitor.entry_points


def rewrite_tree(
    tree: ast.Module,
    *,
    filename: str = "<string>",
    source: str | None = None,
) -> RewriteResult:
    """Rewrite every directive target in *tree* in place.

    *source*, when given, lets diagnostics point at the exact column of
    a misnamed identifier.
    """
    visitor = _EntryPointVisitor(
        directive_spellings(tree),
        filename=filename,
        source_lines=source.splitlines() if source is not None else (),
        rewrite=True,
    )
    visitor.visit(tree)
    if visitor.entry_points:
        index = _import_insertion_index(tree.body)
        tree.body.insert(
            index,
            _dispatcher_import(sync=visitor.uses_sync, async_=visitor.uses_async),
        )
        ast.fix_missing_locations(tree)
    return RewriteResult(tree=tree, entry_points=tuple(visitor.entry_points))


def rewrite_source(source: str, filename: str = "<string>") -> str:
    """Return *source* with every directive target rewritten.

    Source without directive targets is returned verbatim, comments and
    formatting included.

    Raises
    ------
    SyntaxError
        When *source* is not valid Python.
    DirectiveError
        When the directive is misused.
    """
    tree = ast.parse(source, filename=filename)
    result = rewrite_tree(tree, filename=filename, source=source)
    if not result.changed:
        return source
    return ast.unparse(result.tree) + "\n"


def compile_source(source: str, filename: str = "<string>") -> CodeType:
    """Rewrite and compile *source* into a module code object."""
    tree = ast.parse(source, filename=filename, mode="exec")
    rewrite_tree(tree, filename=filename, source=source)
    return compile(tree, filename, "exec", dont_inherit=True)
