"""clisynth -- Synthesize command-line entry points for existing functions.

Given a description of a function's call signature (its positionals, named
options, description, and the modules it lives in) this package builds the
syntax tree of a Python module that parses process arguments with a fluent
argument-parsing library and dispatches to the original function.

Typical workflow::

    clisynth render greet.yaml --output cli.py       # import-based wrapper
    cat greet.py | clisynth render greet.yaml --entry - --runnable

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and render-option resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    generator: The syntax-tree assembly engine.
    parser: Signature-document and entry-module loading.
"""

__version__ = "0.1.0"
