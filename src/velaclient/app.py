"""Typer application and CLI entry point for ``vela-auth``.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, registers the built-in
commands, and invokes the Typer app. :class:`~velaclient.exceptions.VelaError`
exits with the error's code; anything else prints a message and exits with
:data:`~velaclient.exit_codes.EXIT_GENERIC_FAILURE`.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, Optional

import typer

from velaclient import __version__
from velaclient.commands.token import login_url_command, token_app, validate_command
from velaclient.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="vela-auth",
    help="Inspect, refresh and validate Vela API credentials.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(token_app, name="token", help="Token inspection and refresh.")
app.command("login-url")(login_url_command)
app.command("validate")(validate_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"vela-auth {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    address: Optional[str] = typer.Option(
        None, "--addr", help="Vela server address (overrides VELA_ADDR)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~velaclient.output.OutputManager`, wires
    library logging to stderr, and stores the address override in
    ``ctx.obj`` for the sub-commands.
    """
    from velaclient.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["address"] = address
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``vela-auth`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from velaclient.exceptions import VelaError
        from velaclient.output import error

        error(str(exc) or exc.__class__.__name__)
        if isinstance(exc, VelaError):
            sys.exit(exc.exit_code)
        sys.exit(EXIT_GENERIC_FAILURE)
