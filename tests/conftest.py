"""Shared test fixtures for clisynth.

Provides reusable fixtures for building transform results, creating isolated
config environments, managing output state, and running CLI commands.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import ast
from pathlib import Path

import pytest

from clisynth.generator.chain import make_call
from clisynth.models import (
    ExportRef,
    ModuleRefs,
    Option,
    Positional,
    SourceFile,
    TransformResult,
)
from clisynth.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Transform result builders
# ---------------------------------------------------------------------------


def positional(name: str, required: bool = True) -> Positional:
    """A positional registered with ``positional('<name>', type='string')``."""
    return Positional(
        name=name,
        call=make_call("positional", ast.Constant(name), type=ast.Constant("string")),
        required=required,
    )


def option(name: str) -> Option:
    """An option registered with ``option('<name>', type='boolean')``."""
    return Option(
        name=name,
        call=make_call("option", ast.Constant(name), type=ast.Constant("boolean")),
    )


def make_result(
    name: str = "greet",
    positionals: tuple[str, ...] = (),
    options: tuple[str, ...] = (),
    description: str = "Greet someone.",
    ref: dict[Path, ModuleRefs] | None = None,
) -> TransformResult:
    """Build a TransformResult from bare positional and option names."""
    return TransformResult(
        name=name,
        description=description,
        positionals=[positional(p) for p in positionals],
        options=[option(o) for o in options],
        ref=ref or {},
    )


@pytest.fixture
def result_factory():
    """Expose :func:`make_result` to tests."""
    return make_result


@pytest.fixture
def greet_result(tmp_path: Path) -> TransformResult:
    """``greet(who, options)`` exported by name from ``tmp_path/greet.py``."""
    return make_result(
        positionals=("who",),
        options=("loud",),
        ref={tmp_path / "greet.py": ModuleRefs(named=[ExportRef(name="greet")])},
    )


@pytest.fixture
def entry_file(tmp_path: Path) -> SourceFile:
    """An entry module defining ``greet`` with a future import at the top."""
    source = (
        "from __future__ import annotations\n"
        "\n"
        "def greet(who, options):\n"
        "    print('Hello', who, options)\n"
    )
    return SourceFile(path=tmp_path / "greet.py", tree=ast.parse(source))


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config. Clears all CLISYNTH_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("clisynth.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["CLISYNTH_LIB", "CLISYNTH_FUNCTION_NAME"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
