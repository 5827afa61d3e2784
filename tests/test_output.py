"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- Generated-code printing
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from clisynth import output as output_module
from clisynth.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True)
def _reset_global_output():
    """Ensure the global output instance is reset between tests."""
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("clisynth.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("clisynth.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    """AUTO resolves from TTY detection and colour settings."""

    def test_auto_tty_is_rich(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_pipe_is_plain(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_tty_no_color_is_plain(self, tty):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_format_kept(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    """NO_COLOR and TERM=dumb."""

    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_colour_enabled(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout / stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    """Data goes to stdout, diagnostics to stderr."""

    def test_print_code_plain_is_verbatim(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_code("import sys\n")
        captured = capfd.readouterr()
        assert captured.out == "import sys\n"
        assert captured.err == ""

    def test_diagnostics_go_to_stderr(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.info("some info")
        mgr.success("done")
        mgr.warning("be careful")
        mgr.error("something broke")
        mgr.suggest("Next: clisynth render sig.yaml")
        captured = capfd.readouterr()
        assert captured.out == ""
        for text in ("some info", "done", "Warning: be careful", "Error: something broke"):
            assert text in captured.err
        assert "→ Next: clisynth render sig.yaml" in captured.err

    def test_format_response_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.format_response({"lib": "yargs", "runnable": False})
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"lib": "yargs", "runnable": False}

    def test_format_response_plain(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.format_response({"lib": "yargs", "runnable": False})
        captured = capfd.readouterr()
        assert captured.out.splitlines() == ['lib\t"yargs"', "runnable\tfalse"]


class TestQuietAndVerbose:
    """Suppression rules."""

    def test_quiet_suppresses_info_not_errors(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        mgr.suggest("hidden")
        mgr.warning("shown warning")
        mgr.error("shown error")
        captured = capfd.readouterr()
        assert "hidden" not in captured.err
        assert "shown warning" in captured.err
        assert "shown error" in captured.err

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("quiet debug")
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("loud debug")
        captured = capfd.readouterr()
        assert "quiet debug" not in captured.err
        assert "[debug] loud debug" in captured.err


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    """get_output / set_output / reset_output."""

    def test_lazy_default(self):
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_and_reset(self, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert output_module._output is None

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_code("x = 1\n")
        output_module.warning("careful")
        captured = capfd.readouterr()
        assert captured.out == "x = 1\n"
        assert "careful" in captured.err
