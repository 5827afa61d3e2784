"""Canonical Pydantic models shared across all clisynth modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Rendering models** -- consumed by the generator:
    :class:`RenderOptions` and :class:`Context`.

**Transform models** -- the structured description of a target function's
signature, produced upstream (or by :mod:`clisynth.parser`) and consumed by
the generator:
    :class:`Positional`, :class:`Option`, :class:`ExportRef`,
    :class:`ModuleRefs`, :class:`TransformResult`, and :class:`SourceFile`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`GlobalConfig`.

Syntax nodes are standard-library :mod:`ast` objects carried through
``arbitrary_types_allowed``. The generator treats them as immutable values and
never mutates a node it was handed.
"""

from __future__ import annotations

import ast
import keyword
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

CLI_LIB_NAME = "yargs"
"""Default module name (and local alias) of the fluent argument-parsing library."""

FUNCTION_NAME = "cli"
"""Default name of the generated wrapper function."""


def _check_identifier(value: str) -> str:
    if not value.isidentifier() or keyword.iskeyword(value):
        raise ValueError(f"{value!r} is not a valid Python identifier")
    return value


# --- Rendering ---


class RenderOptions(BaseModel):
    """Options that shape the generated wrapper module.

    Instances are immutable. Callers normally supply a partial set of
    overrides which :func:`~clisynth.generator.render.merge_render_options`
    layers over :data:`~clisynth.generator.render.DEFAULT_RENDER_OPTIONS`.

    Example::

        RenderOptions(async_function=True, runnable=True)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    lib: str = Field(
        default=CLI_LIB_NAME,
        description="Module name and local alias of the argument-parsing library",
    )
    function_name: str = Field(
        default=FUNCTION_NAME, description="Name of the generated wrapper function"
    )
    strict: bool = Field(default=True, description="Chain strict() before the command")
    help: bool = Field(default=True, description="Chain help() after the command")
    help_alias: bool = Field(default=True, description="Chain alias('help', 'h')")
    version: bool = Field(default=True, description="Chain version()")
    async_function: bool = Field(
        default=False, description="Emit the wrapper as an async function"
    )
    runnable: bool = Field(
        default=False, description="Invoke the wrapper at the end of the module"
    )

    @field_validator("lib", "function_name")
    @classmethod
    def _identifier(cls, value: str) -> str:
        return _check_identifier(value)


class Context(BaseModel):
    """Per-invocation generation context.

    ``stdin`` selects the wrapper construction mode: when set, the entry
    module's statements are inlined verbatim (the code was piped in and will
    be evaluated without normal module resolution); otherwise the original
    function is imported from the files listed in
    :attr:`TransformResult.ref`. ``args``, when given, is baked into the
    self-invocation of the wrapper.
    """

    model_config = ConfigDict(frozen=True)

    stdin: bool = False
    args: Optional[list[str]] = None


# --- Transform result ---


class Positional(BaseModel):
    """A positional argument and the standalone call that registers it.

    ``call`` is an :class:`ast.Call` with a bare-name callee, e.g.
    ``positional('file', type='string')``; it becomes one link of the
    builder callback's chain.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    call: ast.Call
    required: bool = True


class Option(BaseModel):
    """A named option and the standalone call that registers it."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    call: ast.Call


class ExportRef(BaseModel):
    """A single exported declaration referenced by the wrapper."""

    model_config = ConfigDict(frozen=True)

    name: str


class ModuleRefs(BaseModel):
    """Declarations the wrapper needs from one source file."""

    model_config = ConfigDict(frozen=True)

    default: list[ExportRef] = Field(default_factory=list)
    named: list[ExportRef] = Field(default_factory=list)


class TransformResult(BaseModel):
    """Structured description of a target function's call signature.

    Positional order is significant (it matches the function's parameter
    order). Option order is preserved for deterministic output. ``ref``
    keeps insertion order, which is the order reference imports are emitted.

    Example::

        TransformResult(
            name="greet",
            description="Greet someone.",
            positionals=[Positional(name="who", call=make_call("positional", ...))],
            ref={Path("greet.py"): ModuleRefs(named=[ExportRef(name="greet")])},
        )
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: ast.expr
    positionals: list[Positional] = Field(default_factory=list)
    options: list[Option] = Field(default_factory=list)
    ref: dict[Path, ModuleRefs] = Field(default_factory=dict)

    @field_validator("description", mode="before")
    @classmethod
    def _description_node(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ast.Constant(value=value)
        return value


class SourceFile(BaseModel):
    """A Python source file: its path plus the parsed module tree."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: Path
    tree: ast.Module = Field(
        default_factory=lambda: ast.Module(body=[], type_ignores=[])
    )


# --- Config ---


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/clisynth/config.json``.

    ``render`` holds partial :class:`RenderOptions` overrides. Fields here
    have the lowest precedence; see
    :func:`~clisynth.config.resolve_render_options` for the full chain.
    """

    render: dict[str, Union[bool, str]] = Field(
        default_factory=dict, description="Default render option overrides"
    )
