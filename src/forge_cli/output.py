"""Terminal output for forge-api-cli.

Response bodies, usage text requested with ``help`` and history listings are
the program's data and go to **stdout**. Everything else (progress lines such
as ``--> Making GET request to: ...``, warnings, errors, debug traces and log
records) goes to **stderr**, so ``forge-api-cli ... | jq`` sees only JSON.

When stdout is a terminal and colour is allowed, JSON bodies are
syntax-highlighted with Rich. ``NO_COLOR``, ``TERM=dumb`` and ``--no-color``
all fall back to plain ``print``.

The :class:`OutputManager` built in :func:`~forge_cli.app.main_command` is
installed with :func:`set_output`; library code calls the module-level
helpers (:func:`info`, :func:`error`, ...) which look it up lazily.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax


class OutputFormat(str, Enum):
    """How stdout is rendered. ``AUTO`` picks ``RICH`` only on a colour TTY."""

    AUTO = "auto"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Holds the consoles and the quiet/verbose switches for one invocation.

    Args:
        format: Rendering for stdout; ``AUTO`` is resolved immediately.
        no_color: Force plain output even on a terminal.
        quiet: Drop informational stderr lines (warnings and errors stay).
        verbose: Emit ``[debug]`` lines and DEBUG log records.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format is OutputFormat.AUTO:
            use_rich = _is_tty() and not self._no_color
            format = OutputFormat.RICH if use_rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format is OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        return self._stderr

    # --- stdout ---

    def format_response(self, text: str) -> None:
        """Print a dispatch result; highlighted when it is JSON and stdout is rich."""
        if self._format is not OutputFormat.RICH:
            self.print_data(text)
            return
        try:
            json.loads(text)
        except (json.JSONDecodeError, TypeError):
            self._stdout.print(text, markup=False, highlight=False)
        else:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # --- stderr ---

    def _emit(self, message: str, label: str = "", style: str = "") -> None:
        if self._no_color:
            print(f"{label}{message}", file=sys.stderr, flush=True)
        elif style:
            self._stderr.print(f"[{style}]{_escape(label)}[/{style}]{_escape(message)}")
        else:
            self._stderr.print(message, markup=False, highlight=False)

    def info(self, message: str) -> None:
        if not self._quiet:
            self._emit(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            if self._no_color:
                self._emit(message)
            else:
                self._stderr.print(f"[green]{_escape(message)}[/green]")

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._emit(message, "Warning: ", "yellow")

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._emit(message, "Error: ", "bold red")

    def usage(self, text: str) -> None:
        """Usage printed after a parse error. Always plain, never suppressed."""
        print(text, file=sys.stderr, flush=True)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._emit(message, "[debug] ", "dim")


def _escape(message: str) -> str:
    return message.replace("[", "\\[")


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` set to anything, or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


def configure_logging(output: OutputManager) -> None:
    """Send ``forge_cli.*`` log records to stderr through Rich.

    The level is ``DEBUG`` in verbose mode and ``WARNING`` otherwise. Calling
    this again replaces the previous handler.
    """
    logger = logging.getLogger("forge_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(
        RichHandler(
            console=output.stderr_console,
            show_time=False,
            show_path=False,
            markup=False,
        )
    )
    logger.setLevel(logging.DEBUG if output.is_verbose else logging.WARNING)
    logger.propagate = False


# --- global instance ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests swap sys.stdout between cases)."""
    global _output
    _output = None


def format_response(text: str) -> None:
    get_output().format_response(text)


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def usage(text: str) -> None:
    get_output().usage(text)


def debug(message: str) -> None:
    get_output().debug(message)
