"""Render command -- generate a CLI entry module from a signature document.

Loads a signature document, resolves render options through the config
precedence chain, renders the wrapper module, and either prints it or writes
it atomically to ``--output``.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from clisynth.exceptions import InvalidUsageError
from clisynth.output import debug, print_code, success, suggest, warning


def render_command(
    signature: str = typer.Argument(
        help="Signature document: path, http(s) URL, or '-' for stdin."
    ),
    entry: Optional[str] = typer.Option(
        None,
        "--entry",
        "-e",
        help="Entry module of the function. '-' reads it from stdin and inlines it.",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the generated module to this path."
    ),
    lib: Optional[str] = typer.Option(
        None, "--lib", help="Argument-parsing library module (and alias)."
    ),
    function_name: Optional[str] = typer.Option(
        None, "--function-name", help="Name of the generated wrapper function."
    ),
    strict: Optional[bool] = typer.Option(
        None, "--strict/--no-strict", help="Chain strict()."
    ),
    help_command: Optional[bool] = typer.Option(
        None, "--help-command/--no-help-command", help="Chain help()."
    ),
    help_alias: Optional[bool] = typer.Option(
        None, "--help-alias/--no-help-alias", help="Chain alias('help', 'h')."
    ),
    version_command: Optional[bool] = typer.Option(
        None, "--version-command/--no-version-command", help="Chain version()."
    ),
    async_function: Optional[bool] = typer.Option(
        None, "--async/--sync", help="Emit an async wrapper function."
    ),
    runnable: Optional[bool] = typer.Option(
        None, "--runnable/--no-runnable", help="Invoke the wrapper at module end."
    ),
    args: Optional[List[str]] = typer.Option(
        None, "--arg", "-a", help="Argument baked into the self-invocation (repeatable)."
    ),
) -> None:
    """Generate a CLI entry module for the function described by SIGNATURE.

    Example::

        clisynth render greet.yaml --output cli.py
        cat greet.py | clisynth render greet.yaml --entry - --arg Ada
    """
    from clisynth.config import resolve_render_options, write_module
    from clisynth.generator import render_source
    from clisynth.models import Context, SourceFile
    from clisynth.parser import extract_transform_result, load_signature, load_source_file
    from clisynth.parser.loader import STDIN_SOURCE

    if signature == STDIN_SOURCE and entry == STDIN_SOURCE:
        raise InvalidUsageError("The signature and the entry module cannot both come from stdin")

    options = resolve_render_options(
        {
            "lib": lib,
            "function_name": function_name,
            "strict": strict,
            "help": help_command,
            "help_alias": help_alias,
            "version": version_command,
            "async_function": async_function,
            "runnable": runnable,
        }
    )

    doc = load_signature(signature)
    base_dir = None
    if signature != STDIN_SOURCE and not signature.startswith(("http://", "https://")):
        base_dir = Path(signature).resolve().parent
    result = extract_transform_result(doc, base_dir=base_dir)

    output_file = (output or Path.cwd() / f"{options.function_name}.py").resolve()
    context = Context(stdin=entry == STDIN_SOURCE, args=args or None)
    if entry is None:
        entry_file = SourceFile(path=output_file)
    else:
        entry_file = load_source_file(entry)

    if context.args is not None and not (options.runnable or context.stdin):
        warning("--arg has no effect unless the module is runnable or read from stdin")

    debug(f"Rendering '{result.name}' with options {options.model_dump()}")
    source = render_source(result, output_file, entry_file, options, context)

    if output is None:
        print_code(source)
        return

    write_module(output_file, source)
    success(f"Wrote {output_file}")
    if not (options.runnable or context.stdin):
        suggest(f"Import {options.function_name} from it, or re-run with --runnable")
