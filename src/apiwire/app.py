"""Typer application and CLI entry point for apiwire.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``call``, ``list``, ``validate``, ``cache``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands and
invokes the Typer app. Unhandled exceptions are written to a crash log
under the data directory.

See Also:
    :mod:`apiwire.config`: Directory resolution and service discovery.
    :mod:`apiwire.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from apiwire import __version__
from apiwire.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="apiwire",
    help="Call REST and GraphQL endpoints declared in YAML.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"apiwire {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    pretty: bool = typer.Option(
        False, "--pretty", help="Human-readable (Rich) output."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug traces on stderr."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~apiwire.output.OutputManager` from CLI
    flags and, with ``--debug``, turns on ``logging`` for the package.

    Args:
        version: If ``True``, print the version string and exit.
        pretty: Render results with Rich.
        plain_output: Render results as tab-separated text.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        debug: Enable debug-level diagnostic output.
    """
    from apiwire.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.JSON
    if pretty:
        fmt = OutputFormat.RICH
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=debug))

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from apiwire.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def register_commands() -> None:
    """Attach the built-in sub-commands to :data:`app`.

    Safe to call more than once; the test suite calls it before invoking
    the app through :class:`typer.testing.CliRunner`.
    """
    if getattr(app, "_apiwire_registered", False):
        return

    from apiwire.commands.cache import cache_app
    from apiwire.commands.call import call_command
    from apiwire.commands.list import list_command
    from apiwire.commands.validate import validate_command

    app.command("call")(call_command)
    app.command("list")(list_command)
    app.command("validate")(validate_command)
    app.add_typer(cache_app, name="cache", help="Response cache management.")
    app._apiwire_registered = True  # type: ignore[attr-defined]


def main() -> None:
    """CLI entry point invoked by the ``apiwire`` console script.

    Unhandled :class:`~apiwire.exceptions.ApiwireError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from apiwire.exceptions import ApiwireError
        from apiwire.output import error

        if isinstance(exc, ApiwireError):
            error(str(exc))
            if exc.help:
                error(exc.help)
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
