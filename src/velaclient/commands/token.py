"""Token commands -- inspect, check, refresh and exchange credentials.

Provides the ``vela-auth token`` sub-command group plus the top-level
``login-url`` and ``validate`` commands. Credentials come from the config
file and ``VELA_*`` environment variables (see :mod:`velaclient.config`).

Typical workflow::

    vela-auth token status          # which mode, is it expired?
    vela-auth token refresh         # renew the stored access token
    vela-auth validate              # ask the server
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

import typer

from velaclient.auth.jwt import decode_claims, expires_at, is_token_expired
from velaclient.client import Client
from velaclient.config import load_config, resolve_config, resolve_credential, save_config
from velaclient.exceptions import InvalidUsageError, TokenDecodeError, VelaError
from velaclient.exit_codes import EXIT_INVALID_USAGE
from velaclient.models import LoginOptions, VelaConfig
from velaclient.output import (
    error,
    format_response,
    get_output,
    info,
    print_data,
    success,
    suggest,
    warning,
)

token_app = typer.Typer(no_args_is_help=True)


def make_client(config: VelaConfig) -> Client:
    """Build the client used by the commands in this module."""
    return Client.from_config(config)


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn :class:`VelaError` into an error message and the matching exit code."""
    try:
        yield
    except VelaError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _config(ctx: typer.Context) -> VelaConfig:
    obj = ctx.obj or {}
    return resolve_config(cli_address=obj.get("address"))


def _format_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@token_app.command("inspect")
def token_inspect(
    token: Optional[str] = typer.Argument(None, help="Token to inspect."),
    source: Optional[str] = typer.Option(
        None, "--source", "-s", help="Read the token from env:VAR or file:/path."
    ),
) -> None:
    """Decode a token's claims without verifying its signature.

    Example::

        vela-auth token inspect --source env:VELA_ACCESS_TOKEN
    """
    with _handle_errors():
        if source is not None:
            token = resolve_credential(source)
        if not token:
            raise InvalidUsageError("Provide a token or --source.")

        try:
            claims = decode_claims(token)
        except TokenDecodeError as exc:
            error(f"Token cannot be decoded: {exc}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None

        exp = expires_at(token)
        format_response(
            {
                "claims": claims,
                "expires_at": _format_time(exp) if exp is not None else None,
                "expired": is_token_expired(token),
            }
        )


@token_app.command("status")
def token_status(ctx: typer.Context) -> None:
    """Show the active credential mode and whether its token has expired."""
    with _handle_errors():
        client = make_client(_config(ctx))
        auth = client.authentication
        if not auth.has_auth():
            info("No credential configured.")
            suggest("Set VELA_TOKEN, VELA_PAT or VELA_ACCESS_TOKEN/VELA_REFRESH_TOKEN.")
            return

        expired = auth.is_token_expired()
        format_response({"mode": auth.mode.value, "expired": expired})
        if expired:
            warning("The active token has expired.")


@token_app.command("refresh")
def token_refresh(
    ctx: typer.Context,
    save: bool = typer.Option(
        True, "--save/--no-save", help="Write the new tokens to the config file."
    ),
) -> None:
    """Renew the access token using the configured refresh token."""
    with _handle_errors():
        client = make_client(_config(ctx))
        with client:
            client.authentication.refresh()
            access_token, refresh_token = client.authentication.current_tokens()

        if save:
            stored = load_config()
            stored.auth.access_token = access_token
            stored.auth.refresh_token = refresh_token
            save_config(stored)
            success("Access token refreshed and saved.")
        else:
            print_data(access_token)


@token_app.command("exchange")
def token_exchange(ctx: typer.Context) -> None:
    """Exchange the configured personal access token and print the bearer token."""
    with _handle_errors():
        config = _config(ctx)
        pat = config.auth.personal_access_token
        if not pat:
            raise InvalidUsageError("No personal access token configured (set VELA_PAT)")
        with make_client(config) as client:
            token, _ = client.authentication.exchange_token(pat)
        print_data(token)


def login_url_command(
    ctx: typer.Context,
    login_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="Login flow type, e.g. 'cli' or 'web'."
    ),
    port: Optional[str] = typer.Option(
        None, "--port", help="Local callback port for CLI logins."
    ),
) -> None:
    """Print the URL to open in a browser to log in."""
    with _handle_errors():
        client = make_client(_config(ctx))
        print_data(client.authentication.login_url(LoginOptions(type=login_type, port=port)))


def validate_command(ctx: typer.Context) -> None:
    """Ask the server whether the configured credential is valid."""
    with _handle_errors():
        started = time.monotonic()
        with make_client(_config(ctx)) as client:
            message, _ = client.authentication.validate_token()
        get_output().debug(f"Validated in {time.monotonic() - started:.2f}s")
        success(message.strip() or "Token is valid.")
