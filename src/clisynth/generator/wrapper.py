"""Assemble the module that surrounds the argument-parsing chain.

The emitted module always has this layout::

    import sys
    import yargs                       # or a load-from-path block in stdin mode
    <entry statements | reference imports>
    __all__ = ['cli']
    def cli(args: list[str] = sys.argv[1:]) -> None:
        <body>
    cli(['a', 'b'])                    # only when runnable or in stdin mode

Whether the original function is inlined or imported is decided once, up
front, by :func:`resolve_module_source`, which returns either an
:class:`InlineSource` or an :class:`ImportedReferences`.
"""

from __future__ import annotations

import ast
import copy
import importlib.util
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from clisynth.exceptions import ModuleResolutionError
from clisynth.generator.chain import make_call
from clisynth.models import Context, RenderOptions, SourceFile, TransformResult

logger = logging.getLogger(__name__)

ARGS_PARAM = "args"
"""Name of the wrapper's single parameter."""

RUNTIME_MODULES = ("sys", "asyncio", "importlib")
"""Module names the generated code binds at top level for its own use."""


# ---------------------------------------------------------------------------
# Options and module-source variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WrapperOptions:
    """Everything :func:`make_wrapper` needs besides the wrapper body.

    Attributes:
        output_file: Path the generated module will be written to; reference
            imports are computed relative to its directory.
        entry_file: The upstream entry module (inlined in stdin mode).
        result: The transform result being rendered.
        context: Per-invocation context (stdin mode, baked-in args).
        options: Fully merged render options.
    """

    output_file: Path
    entry_file: SourceFile
    result: TransformResult
    context: Context
    options: RenderOptions


@dataclass(frozen=True)
class InlineSource:
    """The original function's module is copied verbatim into the output."""

    statements: list[ast.stmt] = field(default_factory=list)


@dataclass(frozen=True)
class ImportedReferences:
    """The original function is imported from the referenced source files."""

    imports: list[ast.ImportFrom] = field(default_factory=list)


ModuleSource = Union[InlineSource, ImportedReferences]


def resolve_module_source(options: WrapperOptions) -> ModuleSource:
    """Choose how the original function becomes reachable from the wrapper."""
    if options.context.stdin:
        return InlineSource(copy.deepcopy(list(options.entry_file.tree.body)))
    return ImportedReferences(make_ref_import_nodes(options.output_file, options.result))


# ---------------------------------------------------------------------------
# Module assembly
# ---------------------------------------------------------------------------


def make_wrapper(body: Sequence[ast.stmt], options: WrapperOptions) -> list[ast.stmt]:
    """Build the complete list of top-level statements around *body*.

    Steps, in order:

    1. Runtime imports (``sys``, plus ``asyncio`` for an awaited async
       self-invocation) and the argument-parsing library import.
    2. Either the entry module's statements (stdin mode) or one
       ``from ... import ...`` per referenced source file.
    3. ``__all__`` and the wrapper function definition.
    4. A self-invocation when ``options.runnable`` or stdin mode is set.

    Args:
        body: Statements that make up the wrapper function's body.
        options: Output location, entry module, transform result, context,
            and render options.

    Returns:
        The top-level statements of the generated module.
    """
    render_opts = options.options
    context = options.context
    source = resolve_module_source(options)
    invoke = render_opts.runnable or context.stdin

    nodes: list[ast.stmt] = []
    future_imports: list[ast.stmt] = []
    inlined: list[ast.stmt] = []
    if isinstance(source, InlineSource):
        future_imports, inlined = _split_future_imports(source.statements)
    nodes.extend(future_imports)

    nodes.append(_make_import("sys"))
    if render_opts.async_function and invoke:
        nodes.append(_make_import("asyncio"))
    nodes.extend(make_lib_import_nodes(render_opts.lib, render_opts.lib, context))

    if isinstance(source, InlineSource):
        logger.debug("Inlining %d entry statement(s)", len(inlined))
        nodes.extend(inlined)
    else:
        logger.debug("Importing from %d referenced module(s)", len(source.imports))
        nodes.extend(source.imports)

    nodes.append(make_exports_node(render_opts.function_name))
    nodes.append(make_wrapper_function(body, render_opts))

    if invoke:
        nodes.append(
            make_cli_call_node(
                render_opts.function_name,
                context.args,
                async_function=render_opts.async_function,
            )
        )

    return nodes


def _split_future_imports(
    statements: list[ast.stmt],
) -> tuple[list[ast.stmt], list[ast.stmt]]:
    """Separate ``from __future__`` imports, which must open the module."""
    future = [stmt for stmt in statements if _is_future_import(stmt)]
    rest = [stmt for stmt in statements if not _is_future_import(stmt)]
    return future, rest


def _is_future_import(stmt: ast.stmt) -> bool:
    return isinstance(stmt, ast.ImportFrom) and stmt.module == "__future__"


# ---------------------------------------------------------------------------
# Library import
# ---------------------------------------------------------------------------


def make_lib_import_nodes(module: str, alias: str, context: Context) -> list[ast.stmt]:
    """Import the argument-parsing library *module* bound to *alias*.

    Normally this is a plain ``import module``. In stdin mode the generated
    code runs without normal module resolution, so the library is located
    on disk now and loaded from that absolute path::

        import importlib.util
        _yargs_spec = importlib.util.spec_from_file_location('yargs', '/abs/yargs/__init__.py')
        yargs = importlib.util.module_from_spec(_yargs_spec)
        sys.modules['yargs'] = yargs
        _yargs_spec.loader.exec_module(yargs)

    Raises:
        ModuleResolutionError: In stdin mode, if *module* cannot be found.
    """
    if not context.stdin:
        return [_make_import(module, alias)]

    path = resolve_module_path(module)
    spec_name = f"_{alias}_spec"
    util = ast.Attribute(
        value=ast.Name(id="importlib", ctx=ast.Load()), attr="util", ctx=ast.Load()
    )

    def util_call(attr: str, *args: ast.expr) -> ast.Call:
        return ast.Call(
            func=ast.Attribute(value=copy.deepcopy(util), attr=attr, ctx=ast.Load()),
            args=list(args),
            keywords=[],
        )

    return [
        _make_import("importlib.util"),
        _make_assign(
            spec_name,
            util_call(
                "spec_from_file_location",
                ast.Constant(value=module),
                ast.Constant(value=str(path)),
            ),
        ),
        _make_assign(alias, util_call("module_from_spec", ast.Name(id=spec_name, ctx=ast.Load()))),
        ast.Assign(
            targets=[
                ast.Subscript(
                    value=ast.Attribute(
                        value=ast.Name(id="sys", ctx=ast.Load()), attr="modules", ctx=ast.Load()
                    ),
                    slice=ast.Constant(value=module),
                    ctx=ast.Store(),
                )
            ],
            value=ast.Name(id=alias, ctx=ast.Load()),
            type_comment=None,
        ),
        ast.Expr(
            value=ast.Call(
                func=ast.Attribute(
                    value=ast.Attribute(
                        value=ast.Name(id=spec_name, ctx=ast.Load()),
                        attr="loader",
                        ctx=ast.Load(),
                    ),
                    attr="exec_module",
                    ctx=ast.Load(),
                ),
                args=[ast.Name(id=alias, ctx=ast.Load())],
                keywords=[],
            )
        ),
    ]


def resolve_module_path(module: str) -> Path:
    """Return the absolute path of the file that implements *module*.

    Raises:
        ModuleResolutionError: If the module is not importable or has no
            source file (namespace packages, built-ins).
    """
    try:
        spec = importlib.util.find_spec(module)
    except (ImportError, ValueError) as exc:
        raise ModuleResolutionError(f"Cannot resolve module '{module}': {exc}") from exc
    if spec is None or not spec.origin or not spec.has_location:
        raise ModuleResolutionError(f"Cannot resolve module '{module}' to a file on disk")
    return Path(spec.origin).resolve()


def _make_import(module: str, alias: Optional[str] = None) -> ast.Import:
    asname = alias if alias and alias != module else None
    return ast.Import(names=[ast.alias(name=module, asname=asname)])


def _make_assign(target: str, value: ast.expr) -> ast.Assign:
    return ast.Assign(
        targets=[ast.Name(id=target, ctx=ast.Store())],
        value=value,
        type_comment=None,
    )


# ---------------------------------------------------------------------------
# Reference imports
# ---------------------------------------------------------------------------


def make_ref_import_nodes(output_file: Path, result: TransformResult) -> list[ast.ImportFrom]:
    """Emit one ``from <module> import ...`` per source file in ``result.ref``.

    The first default export of a file is bound under its own declaration
    name, the same name the handler dispatches to; named exports follow,
    each imported once. Files that contribute nothing are skipped.

    Raises:
        ModuleResolutionError: If a source file cannot be expressed as a
            module relative to *output_file*.
    """
    nodes: list[ast.ImportFrom] = []
    for source_file, refs in result.ref.items():
        exports = [export.name for export in refs.default[:1]]
        for export in refs.named:
            if export.name not in exports:
                exports.append(export.name)
        names = [ast.alias(name=name, asname=None) for name in exports]
        if not names:
            continue
        module, level = relative_module_specifier(output_file, source_file)
        nodes.append(ast.ImportFrom(module=module, names=names, level=level))
    return nodes


def relative_module_specifier(output_file: Path, source_file: Path) -> tuple[Optional[str], int]:
    """Express *source_file* as a relative import from *output_file*.

    Returns:
        ``(module, level)`` as used by :class:`ast.ImportFrom`:
        ``("greet", 1)`` renders as ``from .greet import ...`` and
        ``(None, 2)`` as ``from .. import ...``.

    Raises:
        ModuleResolutionError: If the paths share no common root or a path
            segment is not a valid module name.

    Example::

        >>> relative_module_specifier(Path("pkg/cli.py"), Path("pkg/sub/greet.py"))
        ('sub.greet', 1)
        >>> relative_module_specifier(Path("pkg/bin/cli.py"), Path("pkg/__init__.py"))
        (None, 2)
    """
    out_dir = os.path.abspath(output_file.parent)
    target = Path(os.path.abspath(source_file))
    if target.name == "__init__.py":
        target = target.parent
    else:
        target = target.with_suffix("")

    try:
        rel = Path(os.path.relpath(target, out_dir))
    except ValueError as exc:
        raise ModuleResolutionError(
            f"Cannot import {source_file} relative to {output_file}: {exc}"
        ) from exc

    parts = [part for part in rel.parts if part != "."]
    ups = 0
    while ups < len(parts) and parts[ups] == "..":
        ups += 1
    segments = parts[ups:]
    for segment in segments:
        if not segment.isidentifier():
            raise ModuleResolutionError(
                f"Cannot import {source_file}: {segment!r} is not a valid module name"
            )
    return (".".join(segments) or None), ups + 1


# ---------------------------------------------------------------------------
# Wrapper function and invocation
# ---------------------------------------------------------------------------


def make_exports_node(function_name: str) -> ast.Assign:
    """Build ``__all__ = ['<function_name>']``."""
    return _make_assign(
        "__all__",
        ast.List(elts=[ast.Constant(value=function_name)], ctx=ast.Load()),
    )


def make_wrapper_function(
    body: Sequence[ast.stmt], options: RenderOptions
) -> Union[ast.FunctionDef, ast.AsyncFunctionDef]:
    """Build ``def <name>(args: list[str] = sys.argv[1:]) -> None: <body>``.

    An ``async def`` is produced when ``options.async_function`` is set;
    its ``-> None`` annotation already denotes an awaitable of ``None``.

    The ``sys.argv[1:]`` default is evaluated once, when the generated module
    is imported, and the wrapper body is exactly *body*. A program that
    imports the module and changes ``sys.argv`` afterwards must pass
    ``args`` explicitly.
    """
    argv_tail = ast.Subscript(
        value=ast.Attribute(
            value=ast.Name(id="sys", ctx=ast.Load()), attr="argv", ctx=ast.Load()
        ),
        slice=ast.Slice(lower=ast.Constant(value=1), upper=None, step=None),
        ctx=ast.Load(),
    )
    annotation = ast.Subscript(
        value=ast.Name(id="list", ctx=ast.Load()),
        slice=ast.Name(id="str", ctx=ast.Load()),
        ctx=ast.Load(),
    )
    node_type = ast.AsyncFunctionDef if options.async_function else ast.FunctionDef
    return node_type(
        name=options.function_name,
        args=ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg=ARGS_PARAM, annotation=annotation, type_comment=None)],
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[argv_tail],
        ),
        body=list(body),
        decorator_list=[],
        returns=ast.Constant(value=None),
        type_comment=None,
    )


def make_cli_call_node(
    name: str, args: Optional[list[str]] = None, async_function: bool = False
) -> ast.Expr:
    """Build the self-invocation ``name()`` or ``name(['a', 'b'])``.

    An async wrapper is driven to completion with ``asyncio.run(...)``.
    """
    call_args: list[ast.expr] = []
    if args is not None:
        call_args.append(
            ast.List(elts=[ast.Constant(value=arg) for arg in args], ctx=ast.Load())
        )
    call: ast.expr = make_call(name, *call_args)
    if async_function:
        call = ast.Call(
            func=ast.Attribute(
                value=ast.Name(id="asyncio", ctx=ast.Load()), attr="run", ctx=ast.Load()
            ),
            args=[call],
            keywords=[],
        )
    return ast.Expr(value=call)
