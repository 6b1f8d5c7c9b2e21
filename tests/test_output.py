"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_response in plain and rich modes
- Logging through Rich
- Global instance management and convenience functions
"""

from __future__ import annotations

import logging

import pytest

from forge_cli import output as output_module
from forge_cli.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    configure_logging,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("forge_cli.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("forge_cli.output._is_tty", lambda: True)


@pytest.fixture()
def plain():
    return OutputManager(format=OutputFormat.PLAIN, no_color=True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_format_kept(self, non_tty):
        assert OutputManager(format=OutputFormat.RICH).format == OutputFormat.RICH


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capsys, plain):
        plain.print_data("hello world")
        captured = capsys.readouterr()
        assert captured.out == "hello world\n"
        assert captured.err == ""

    @pytest.mark.parametrize(
        "method, expected",
        [
            ("info", "some text"),
            ("success", "some text"),
            ("warning", "Warning: some text"),
            ("error", "Error: some text"),
        ],
    )
    def test_diagnostics_go_to_stderr(self, capsys, plain, method: str, expected: str):
        getattr(plain, method)("some text")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == expected + "\n"

    def test_usage_goes_to_stderr_verbatim(self, capsys, plain):
        plain.usage("Usage: v1.add.post --body <BODY>")
        assert capsys.readouterr().err == "Usage: v1.add.post --body <BODY>\n"

    def test_markup_in_messages_is_not_interpreted(self, capsys, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.PLAIN)
        mgr.error("bad [bold]value[/bold]")
        assert "bad [bold]value[/bold]" in capsys.readouterr().err


class TestQuietMode:
    def test_quiet_suppresses_info_and_success(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        assert capsys.readouterr().err == ""

    def test_quiet_keeps_warnings_errors_and_usage(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.warning("careful")
        mgr.error("broken")
        mgr.usage("Usage: x")
        err = capsys.readouterr().err
        assert "careful" in err
        assert "broken" in err
        assert "Usage: x" in err

    def test_quiet_keeps_data(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.format_response("payload")
        assert capsys.readouterr().out == "payload\n"


class TestVerboseMode:
    def test_debug_hidden_by_default(self, capsys, plain):
        plain.debug("hidden")
        assert capsys.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.debug("details")
        assert capsys.readouterr().err == "[debug] details\n"


# ------------------------------------------------------------------ #
# format_response
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_plain_prints_verbatim(self, capsys, plain):
        text = '{\n  "result": 3\n}'
        plain.format_response(text)
        assert capsys.readouterr().out == text + "\n"

    def test_plain_error_text(self, capsys, plain):
        plain.format_response("HTTP 404 Not Found")
        assert capsys.readouterr().out == "HTTP 404 Not Found\n"

    def test_rich_json_is_highlighted(self, capsys, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.format_response('{"result": 3}')
        out = capsys.readouterr().out
        assert "result" in out
        assert "\x1b[" in out

    def test_rich_non_json_is_printed_as_is(self, capsys, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.format_response("Hello, [World]!")
        assert "Hello, [World]!" in capsys.readouterr().out


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestConfigureLogging:
    def test_warning_level_by_default(self, plain):
        configure_logging(plain)
        logger = logging.getLogger("forge_cli")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_debug_level_when_verbose(self):
        configure_logging(OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True))
        assert logging.getLogger("forge_cli").level == logging.DEBUG

    def test_repeat_calls_do_not_stack_handlers(self, plain):
        configure_logging(plain)
        configure_logging(plain)
        assert len(logging.getLogger("forge_cli").handlers) == 1

    def test_records_reach_stderr(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        configure_logging(mgr)
        logging.getLogger("forge_cli.client.local").warning("handler replaced")
        captured = capsys.readouterr()
        assert "handler replaced" in captured.err
        assert captured.out == ""


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        first = get_output()
        assert isinstance(first, OutputManager)
        assert get_output() is first

    def test_set_and_reset(self, plain):
        set_output(plain)
        assert get_output() is plain
        reset_output()
        assert get_output() is not plain

    def test_convenience_functions_delegate(self, capsys, plain):
        set_output(plain)
        output_module.info("note")
        output_module.error("oops")
        output_module.usage("Usage: y")
        output_module.print_data("data")
        output_module.format_response("body")
        captured = capsys.readouterr()
        assert captured.out == "data\nbody\n"
        assert captured.err == "note\nError: oops\nUsage: y\n"
