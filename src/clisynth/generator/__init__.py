"""CLI module generator -- build the syntax tree of a command-line entry point.

This sub-package is the second half of the clisynth pipeline: it takes a
:class:`~clisynth.models.TransformResult` (produced upstream, or loaded by
:mod:`clisynth.parser`) and builds the statements of a Python module that
parses process arguments with a fluent argument-parsing library and calls
the original function.

Typical usage::

    from clisynth.generator import render, print_nodes

    nodes = render(result, Path("cli.py"), entry, {"runnable": True})
    print(print_nodes(nodes))

Sub-modules:

* :mod:`~clisynth.generator.chain` -- Fold standalone calls into a fluent
  method chain.
* :mod:`~clisynth.generator.command` -- The ``command(...)`` link plus the
  builder and handler callbacks it registers.
* :mod:`~clisynth.generator.wrapper` -- Library and reference imports, the
  wrapper function, and the optional self-invocation.
* :mod:`~clisynth.generator.render` -- Option merging and orchestration.
"""

from clisynth.generator.chain import build_chain, make_call
from clisynth.generator.render import (
    DEFAULT_RENDER_OPTIONS,
    merge_render_options,
    print_nodes,
    render,
    render_source,
)

__all__ = [
    "DEFAULT_RENDER_OPTIONS",
    "build_chain",
    "make_call",
    "merge_render_options",
    "print_nodes",
    "render",
    "render_source",
]
