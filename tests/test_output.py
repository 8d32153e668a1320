"""Tests for the stderr diagnostics system.

Covers:
- NO_COLOR / TERM=dumb color disabling
- stderr-only discipline
- Quiet mode suppression rules
- Verbose mode debug output
- Global instance management
- Convenience functions
"""

from __future__ import annotations

import pytest

from tablewire import output as output_module
from tablewire.output import (
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


# ------------------------------------------------------------------ #
# Color disabling
# ------------------------------------------------------------------ #


class TestColorDisabling:
    def test_no_color_env_disables_color(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert _should_disable_color() is True

    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stderr discipline
# ------------------------------------------------------------------ #


class TestStderrDiscipline:
    """Nothing the library reports may reach stdout."""

    def test_info_goes_to_stderr(self, capfd):
        OutputManager(no_color=True).info("hello")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "hello" in captured.err

    def test_warning_goes_to_stderr(self, capfd):
        OutputManager(no_color=True).warning("careful")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Warning: careful" in captured.err

    def test_error_goes_to_stderr(self, capfd):
        OutputManager(no_color=True).error("broken")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Error: broken" in captured.err

    def test_rich_mode_escapes_markup(self, capfd, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm")
        OutputManager().warning("[bold]not markup[/bold]")
        captured = capfd.readouterr()
        assert "[bold]not markup[/bold]" in captured.err


# ------------------------------------------------------------------ #
# Quiet mode
# ------------------------------------------------------------------ #


class TestQuietMode:
    def test_quiet_suppresses_info(self, capfd):
        OutputManager(no_color=True, quiet=True).info("hidden")
        assert capfd.readouterr().err == ""

    def test_quiet_does_not_suppress_warning(self, capfd):
        OutputManager(no_color=True, quiet=True).warning("shown")
        assert "shown" in capfd.readouterr().err

    def test_quiet_does_not_suppress_error(self, capfd):
        OutputManager(no_color=True, quiet=True).error("shown")
        assert "shown" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Verbose mode
# ------------------------------------------------------------------ #


class TestVerboseMode:
    def test_debug_hidden_by_default(self, capfd):
        OutputManager(no_color=True).debug("should not appear")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd):
        OutputManager(no_color=True, verbose=True).debug("trace info")
        err = capfd.readouterr().err
        assert "[debug] trace info" in err

    def test_flags(self):
        mgr = OutputManager(quiet=True, verbose=True)
        assert mgr.is_quiet is True
        assert mgr.is_verbose is True
        assert OutputManager().is_verbose is False


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_default_is_quiet(self):
        assert get_output().is_quiet is True
        assert get_output().is_verbose is False

    def test_get_output_is_cached(self):
        assert get_output() is get_output()

    def test_set_output(self):
        mgr = OutputManager(verbose=True)
        set_output(mgr)
        assert get_output() is mgr

    def test_reset_output_creates_fresh_instance(self):
        mgr = OutputManager()
        set_output(mgr)
        reset_output()
        assert get_output() is not mgr

    def test_library_is_silent_by_default(self, capfd):
        output_module.info("quiet by default")
        output_module.debug("not verbose")
        assert capfd.readouterr().err == ""


class TestConvenienceFunctions:
    def test_delegate_to_global(self, capfd):
        set_output(OutputManager(no_color=True, verbose=True))
        output_module.info("one")
        output_module.warning("two")
        output_module.error("three")
        output_module.debug("four")
        err = capfd.readouterr().err
        for text in ("one", "Warning: two", "Error: three", "[debug] four"):
            assert text in err
