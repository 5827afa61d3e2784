"""Build the ``command(...)`` link and the two callbacks it registers.

The fluent argument-parsing library receives a single command::

    command("$0 <file> <out> [...options]", description, builder, handler)

* **builder** registers every positional and option on the parser object,
  positionals first (declared order) then options (declared order)::

      def builder(parser):
          return parser.positional('file', ...).positional('out', ...).option('loud', ...)

* **handler** destructures the parsed arguments and dispatches to the
  original function::

      def handler(argv):
          match argv:
              case {'_': _, '$0': _, 'file': file, 'out': out, **options}:
                  greet(file, out, options)
              case _:
                  raise TypeError(f'unexpected parsed arguments: {argv!r}')

Both callbacks are emitted as nested functions at the top of the wrapper body
and the command node refers to them by name.
"""

from __future__ import annotations

import ast
import copy
import keyword
import logging

from clisynth.exceptions import InvariantViolation, UnsupportedFeatureError
from clisynth.generator.chain import build_chain, make_call
from clisynth.models import TransformResult

logger = logging.getLogger(__name__)

COMMAND_DEFAULT = "$0"
"""Command-string token naming the default command (the script itself)."""

OPTIONS_TOKEN = "[...options]"
"""Command-string token appended when the function takes options."""

BUILDER_NAME = "builder"
HANDLER_NAME = "handler"
PARSER_PARAM = "parser"
ARGV_PARAM = "argv"

OPTIONS_NAME = "options"
"""Name bound to the rest-capture of all non-positional fields."""

POSITIONAL_BUCKET_KEY = "_"
SCRIPT_NAME_KEY = "$0"

MISMATCH_MESSAGE = "unexpected parsed arguments: "
"""Prefix of the error the handler raises when the parsed mapping has the wrong shape."""


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


def check_transform_result(result: TransformResult) -> None:
    """Reject a :class:`TransformResult` the generator cannot render faithfully.

    Raises:
        InvariantViolation: For invalid or duplicate names, or names that
            collide with the handler's own bindings.
        UnsupportedFeatureError: For optional positionals, which the
            command string has no syntax for.
    """
    if not _is_identifier(result.name):
        raise InvariantViolation(f"Function name {result.name!r} is not a valid identifier")
    shadowing = {BUILDER_NAME, HANDLER_NAME, ARGV_PARAM}
    if result.options:
        shadowing.add(OPTIONS_NAME)
    if result.name in shadowing:
        raise InvariantViolation(
            f"Function name {result.name!r} is shadowed by a name bound in the generated callbacks"
        )

    seen: set[str] = set()
    for positional in result.positionals:
        if not _is_identifier(positional.name):
            raise InvariantViolation(
                f"Positional {positional.name!r} is not a valid identifier"
            )
        if positional.name in seen:
            raise InvariantViolation(f"Duplicate positional {positional.name!r}")
        if positional.name in (POSITIONAL_BUCKET_KEY, ARGV_PARAM, result.name) or (
            result.options and positional.name == OPTIONS_NAME
        ):
            raise InvariantViolation(
                f"Positional {positional.name!r} collides with a name used by the handler"
            )
        if not positional.required:
            raise UnsupportedFeatureError(
                f"Positional {positional.name!r} is optional; optional positionals "
                "are not supported"
            )
        seen.add(positional.name)

    option_names: set[str] = set()
    for option in result.options:
        if option.name in option_names:
            raise InvariantViolation(f"Duplicate option {option.name!r}")
        if option.name in seen:
            raise InvariantViolation(
                f"Option {option.name!r} has the same name as a positional"
            )
        option_names.add(option.name)


def _is_identifier(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


# ---------------------------------------------------------------------------
# Command node
# ---------------------------------------------------------------------------


def make_command_string(result: TransformResult) -> ast.Constant:
    """Return the command string literal, e.g. ``"$0 <file> <out> [...options]"``.

    Every positional is rendered as a required ``<name>`` in declared order.
    """
    parts = [COMMAND_DEFAULT]
    parts.extend(f"<{positional.name}>" for positional in result.positionals)
    if result.options:
        parts.append(OPTIONS_TOKEN)
    return ast.Constant(value=" ".join(parts))


def make_command_node(result: TransformResult) -> ast.Call:
    """Return the standalone ``command(...)`` call for *result*."""
    check_transform_result(result)
    command_string = make_command_string(result)
    logger.debug("Command string for %s: %s", result.name, command_string.value)
    return make_call(
        "command",
        command_string,
        copy.deepcopy(result.description),
        ast.Name(id=BUILDER_NAME, ctx=ast.Load()),
        ast.Name(id=HANDLER_NAME, ctx=ast.Load()),
    )


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------


def make_callbacks(result: TransformResult) -> list[ast.stmt]:
    """Return the builder and handler definitions, in that order."""
    return [make_builder(result), make_handler(result)]


def make_builder(result: TransformResult) -> ast.FunctionDef:
    """Build ``def builder(parser): return parser.<positionals>.<options>``."""
    calls = [positional.call for positional in result.positionals]
    calls.extend(option.call for option in result.options)
    chain = build_chain(calls, ast.Name(id=PARSER_PARAM, ctx=ast.Load()))
    return make_function_node(BUILDER_NAME, PARSER_PARAM, [ast.Return(value=chain)])


def make_handler(result: TransformResult) -> ast.FunctionDef:
    """Build the handler that destructures parsed arguments and dispatches.

    The shape depends only on whether positionals and options exist: the
    mapping pattern binds one name per positional and captures the remaining
    fields into ``options`` only when options exist; the dispatch call passes
    the positionals in order followed by ``options`` under the same rule.
    Any other shape raises ``TypeError`` instead of dispatching nothing.
    """
    return make_function_node(
        HANDLER_NAME,
        ARGV_PARAM,
        [
            ast.Match(
                subject=ast.Name(id=ARGV_PARAM, ctx=ast.Load()),
                cases=[
                    ast.match_case(
                        pattern=_make_destructuring_pattern(result),
                        guard=None,
                        body=[_make_dispatch_node(result)],
                    ),
                    ast.match_case(
                        pattern=ast.MatchAs(pattern=None, name=None),
                        guard=None,
                        body=[_make_mismatch_node()],
                    ),
                ],
            )
        ],
    )


def _make_destructuring_pattern(result: TransformResult) -> ast.MatchMapping:
    keys: list[ast.expr] = [
        ast.Constant(value=POSITIONAL_BUCKET_KEY),
        ast.Constant(value=SCRIPT_NAME_KEY),
    ]
    patterns: list[ast.pattern] = [
        ast.MatchAs(pattern=None, name=None),
        ast.MatchAs(pattern=None, name=None),
    ]
    for positional in result.positionals:
        keys.append(ast.Constant(value=positional.name))
        patterns.append(ast.MatchAs(pattern=None, name=positional.name))
    return ast.MatchMapping(
        keys=keys,
        patterns=patterns,
        rest=OPTIONS_NAME if result.options else None,
    )


def _make_dispatch_node(result: TransformResult) -> ast.Expr:
    args: list[ast.expr] = [
        ast.Name(id=positional.name, ctx=ast.Load()) for positional in result.positionals
    ]
    if result.options:
        args.append(ast.Name(id=OPTIONS_NAME, ctx=ast.Load()))
    return ast.Expr(value=make_call(result.name, *args))


def _make_mismatch_node() -> ast.Raise:
    message = ast.JoinedStr(
        values=[
            ast.Constant(value=MISMATCH_MESSAGE),
            ast.FormattedValue(
                value=ast.Name(id=ARGV_PARAM, ctx=ast.Load()),
                conversion=ord("r"),
                format_spec=None,
            ),
        ]
    )
    return ast.Raise(exc=make_call("TypeError", message), cause=None)


def make_function_node(name: str, param: str, body: list[ast.stmt]) -> ast.FunctionDef:
    """Build a single-parameter function definition ``def name(param): ...``."""
    return ast.FunctionDef(
        name=name,
        args=ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg=param, annotation=None, type_comment=None)],
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[],
        ),
        body=body,
        decorator_list=[],
        returns=None,
        type_comment=None,
    )
