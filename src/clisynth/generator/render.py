"""Render a transform result into the statements of a CLI entry module.

This is the orchestration layer of the generator. :func:`render` merges the
caller's options over :data:`DEFAULT_RENDER_OPTIONS`, assembles the
top-level fluent chain::

    yargs.strict().command(...).help().alias('help', 'h').version().parse(args)

and hands it to :func:`~clisynth.generator.wrapper.make_wrapper` together
with the builder and handler callbacks. ``command(...)`` and
``parse(args)`` are always present, and ``parse(args)`` is always last;
every other link is controlled by a render option.
"""

from __future__ import annotations

import ast
import copy
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from clisynth.exceptions import InvariantViolation
from clisynth.generator.chain import build_chain, make_call
from clisynth.generator.command import make_callbacks, make_command_node
from clisynth.generator.wrapper import ARGS_PARAM, RUNTIME_MODULES, WrapperOptions, make_wrapper
from clisynth.models import Context, RenderOptions, SourceFile, TransformResult

logger = logging.getLogger(__name__)

DEFAULT_RENDER_OPTIONS = RenderOptions()
"""Defaults every render starts from; caller-supplied fields win."""

RenderOverrides = Union[RenderOptions, Mapping[str, Any], None]


def merge_render_options(options: RenderOverrides = None) -> RenderOptions:
    """Layer *options* over :data:`DEFAULT_RENDER_OPTIONS`.

    Args:
        options: A partial mapping of overrides, a :class:`RenderOptions`
            (only explicitly set fields count as overrides), or ``None``.

    Returns:
        A new, fully populated :class:`RenderOptions`.

    Raises:
        pydantic.ValidationError: If an override names an unknown field or
            has an invalid value.
    """
    if options is None:
        overrides: dict[str, Any] = {}
    elif isinstance(options, RenderOptions):
        overrides = options.model_dump(exclude_unset=True)
    else:
        overrides = dict(options)
    return RenderOptions.model_validate({**DEFAULT_RENDER_OPTIONS.model_dump(), **overrides})


def _check_module_names(result: TransformResult, opts: RenderOptions) -> None:
    reserved = {opts.function_name, opts.lib, *RUNTIME_MODULES}
    if result.name in reserved:
        raise InvariantViolation(
            f"Function name {result.name!r} collides with a name the generated module "
            "binds at top level"
        )
    for source_file, refs in result.ref.items():
        for export in (*refs.default, *refs.named):
            if export.name in reserved:
                raise InvariantViolation(
                    f"Export {export.name!r} of {source_file} collides with a name the "
                    "generated module binds at top level"
                )


def make_chain_calls(result: TransformResult, options: RenderOptions) -> list[ast.Call]:
    """Return the standalone calls of the top-level chain, in call order."""
    calls: list[ast.Call] = []
    if options.strict:
        calls.append(make_call("strict"))
    calls.append(make_command_node(result))
    if options.help:
        calls.append(make_call("help"))
    if options.help_alias:
        calls.append(make_call("alias", ast.Constant(value="help"), ast.Constant(value="h")))
    if options.version:
        calls.append(make_call("version"))
    calls.append(make_call("parse", ast.Name(id=ARGS_PARAM, ctx=ast.Load())))
    return calls


def render(
    result: TransformResult,
    output_file: Path,
    entry_file: SourceFile,
    options: RenderOverrides = None,
    context: Optional[Context] = None,
) -> list[ast.stmt]:
    """Build the top-level statements of the CLI module for *result*.

    Args:
        result: Signature of the function to wrap.
        output_file: Where the generated module will live; relative imports
            of ``result.ref`` are computed against its directory.
        entry_file: The upstream entry module, inlined in stdin mode.
        options: Render option overrides (see :func:`merge_render_options`).
        context: Generation context; defaults to import mode with no
            baked-in arguments.

    Returns:
        A new list of :class:`ast.stmt` nodes. Print it with
        :func:`print_nodes`.

    Raises:
        ConstructionError: If *result* violates a generator precondition.
        ModuleResolutionError: If an import cannot be expressed.
    """
    opts = merge_render_options(options)
    ctx = context if context is not None else Context()
    _check_module_names(result, opts)
    logger.debug("Rendering %s with %s", result.name, opts)

    chain = build_chain(make_chain_calls(result, opts), ast.Name(id=opts.lib, ctx=ast.Load()))
    body: list[ast.stmt] = [*make_callbacks(result), ast.Expr(value=chain)]

    return make_wrapper(
        body,
        WrapperOptions(
            output_file=output_file,
            entry_file=entry_file,
            result=result,
            context=ctx,
            options=opts,
        ),
    )


def print_nodes(nodes: Iterable[ast.stmt]) -> str:
    """Print top-level statements as module source text.

    The nodes are copied before locations are filled in, so the caller's
    tree is left untouched.
    """
    module = ast.Module(body=copy.deepcopy(list(nodes)), type_ignores=[])
    return ast.unparse(ast.fix_missing_locations(module)) + "\n"


def render_source(
    result: TransformResult,
    output_file: Path,
    entry_file: SourceFile,
    options: RenderOverrides = None,
    context: Optional[Context] = None,
) -> str:
    """Like :func:`render`, but return the printed module source."""
    return print_nodes(render(result, output_file, entry_file, options, context))
