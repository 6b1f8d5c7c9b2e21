"""Typer entry point for forge-api-cli.

One command does everything. It resolves configuration, obtains the API
description (explicit ``--spec`` source, else ``{url}{spec_path}``), compiles
the grammar, and then either:

* dispatches once, when arguments follow the options::

      forge-api-cli --url http://127.0.0.1:8080 v1.products.id.get --id 42

* or starts the interactive shell when there are none.

Without a URL or a spec source the usage is printed and the command returns
without touching the network.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and writes a crash log under
the data directory for unexpected exceptions.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from forge_cli import __version__
from forge_cli.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="forge-api-cli",
    help="A dynamic, OpenAPI-driven CLI client and interactive shell.",
    add_completion=False,
    rich_markup_mode="rich",
)

MISSING_URL = "Missing required argument --url <URL> or API_URL environment variable."


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"forge-api-cli {__version__}")
        raise typer.Exit()


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
def main_command(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Base URL of the service. Also read from FORGE_API_URL or API_URL.",
    ),
    spec: Optional[str] = typer.Option(
        None,
        "--spec",
        help="Load the API description from a URL, file, or '-' (stdin) "
        "instead of fetching it from the service.",
    ),
    spec_path: Optional[str] = typer.Option(
        None, "--spec-path", help="Path of the OpenAPI document under --url."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print requests instead of sending them."
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Call an API described by OpenAPI 3.x, once or from an interactive shell.

    Arguments after the options are one API command, e.g.
    ``v1.products.id.get --id 42``. With no arguments the shell starts.
    """
    from forge_cli.exceptions import ForgeCliError, ParseError
    from forge_cli.output import OutputManager, configure_logging, set_output

    output = OutputManager(no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    try:
        _run(ctx, url, spec, spec_path, timeout, dry_run)
    except ForgeCliError as exc:
        output.error(str(exc))
        if isinstance(exc, ParseError) and exc.usage:
            output.usage(exc.usage)
        raise typer.Exit(exc.exit_code) from exc


def _run(
    ctx: typer.Context,
    url: Optional[str],
    spec: Optional[str],
    spec_path: Optional[str],
    timeout: Optional[float],
    dry_run: bool,
) -> None:
    from forge_cli.client import Dispatcher
    from forge_cli.config import resolve_config
    from forge_cli.grammar import compile_grammar
    from forge_cli.output import get_output
    from forge_cli.parser import extract_spec, fetch_spec, load_spec, validate_openapi_version
    from forge_cli.shell import HistoryBuffer, ShellSession, read_eval_loop, run_single_shot

    output = get_output()
    config = resolve_config(
        cli_base_url=url, cli_spec=spec, cli_spec_path=spec_path, cli_timeout=timeout
    )

    if config.base_url is None and config.spec is None:
        output.print_data(ctx.get_help())
        output.error(MISSING_URL)
        return

    if config.spec is not None:
        output.info(f"--> Loading OpenAPI spec from: {config.spec}")
        raw = load_spec(config.spec)
    else:
        assert config.base_url is not None
        output.info(
            f"--> Fetching OpenAPI spec from: "
            f"{config.base_url.rstrip('/')}/{config.spec_path.lstrip('/')}"
        )
        raw = fetch_spec(config.base_url, config.spec_path, timeout=config.request.timeout)

    validate_openapi_version(raw)
    spec_doc = extract_spec(raw)
    root = compile_grammar(spec_doc)

    if config.base_url is None and not dry_run:
        output.warning("No --url given; requests will fail until one is set.")

    with Dispatcher(
        spec_doc, config.base_url or "", request=config.request, dry_run=dry_run
    ) as dispatcher:
        if ctx.args:
            run_single_shot(root, dispatcher, list(ctx.args))
        else:
            session = ShellSession(root, dispatcher, HistoryBuffer(config.history_size))
            read_eval_loop(session)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C outside the prompt exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from forge_cli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``forge-api-cli`` console script.

    :class:`~forge_cli.exceptions.ForgeCliError` exits with the error's
    ``exit_code``. Any other exception produces a crash log and a generic
    failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from forge_cli.exceptions import ForgeCliError
        from forge_cli.output import error

        if isinstance(exc, ForgeCliError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
