"""Fold standalone calls into a single fluent method chain.

A *standalone call* is an :class:`ast.Call` whose callee is a bare name, e.g.
``strict()`` or ``positional('file', type='string')``. Builder-style APIs are
driven by chaining such calls onto a receiver::

    build_chain([strict(), help(), parse(args)], Name("yargs"))
    # -> yargs.strict().help().parse(args)

The fold runs from the first call (innermost) outward, so the first call in
the sequence is applied directly to the base expression and the last call
ends up at the root of the resulting tree.
"""

from __future__ import annotations

import ast
import copy
import logging
from typing import Sequence

from clisynth.exceptions import InvariantViolation

logger = logging.getLogger(__name__)


def make_call(name: str, *args: ast.expr, **keywords: ast.expr) -> ast.Call:
    """Build a standalone call ``name(*args, **keywords)`` with a bare-name callee."""
    return ast.Call(
        func=ast.Name(id=name, ctx=ast.Load()),
        args=list(args),
        keywords=[ast.keyword(arg=key, value=value) for key, value in keywords.items()],
    )


def build_chain(calls: Sequence[ast.Call], base: ast.expr) -> ast.expr:
    """Chain *calls* onto *base* in sequence order.

    Args:
        calls: Standalone calls, each with an :class:`ast.Name` callee.
            Sequence order is call order.
        base: The receiver of the first call.

    Returns:
        ``base.c1(...).c2(...)...cn(...)`` with every call's arguments
        reproduced verbatim. An empty *calls* sequence returns *base*
        itself; callers that need a call expression must supply at least
        one call.

    Raises:
        InvariantViolation: If any call's callee is not a bare name.
    """
    chain = base
    for call in calls:
        chain = attach_call(chain, call)
    logger.debug("Built chain of %d call(s)", len(calls))
    return chain


def attach_call(receiver: ast.expr, call: ast.Call) -> ast.Call:
    """Return a copy of *call* invoked as a method on *receiver*.

    The bare callee ``name`` becomes ``receiver.name``; positional and
    keyword arguments are deep-copied so the input node is left untouched.
    """
    if not isinstance(call, ast.Call) or not isinstance(call.func, ast.Name):
        callee = ast.dump(call.func) if isinstance(call, ast.Call) else type(call).__name__
        raise InvariantViolation(
            f"Only calls with a bare name callee can be chained, got {callee}"
        )
    return ast.Call(
        func=ast.Attribute(value=receiver, attr=call.func.id, ctx=ast.Load()),
        args=copy.deepcopy(call.args),
        keywords=copy.deepcopy(call.keywords),
    )
