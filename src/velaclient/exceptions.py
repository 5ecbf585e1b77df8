"""Exception hierarchy for velaclient.

All exceptions inherit from :class:`VelaError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`velaclient.exit_codes`
and, where one was received, the best-effort :class:`httpx.Response` so
callers can inspect what the server said.

Subclass hierarchy::

    VelaError (exit 1)
    +-- InvalidUsageError               (exit 2)
    +-- AuthError                       (exit 3)
    |   +-- NoCredentialConfiguredError
    |   +-- CredentialsExpiredError
    |   +-- ExchangeFailedError
    |   +-- MissingSCMTokenError
    |   +-- InvalidBuildRepoRefError
    |   +-- EmptyTokenError
    +-- NotFoundError                   (exit 4)
    +-- ServerError                     (exit 5)
    +-- ConnectionError_                (exit 6)
    +-- ConfigError                     (exit 1)

:class:`TokenDecodeError` is separate: it is a :class:`ValueError` raised only
by :func:`velaclient.auth.jwt.decode_claims`. Expiry checks never raise it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from velaclient.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    import httpx


class VelaError(Exception):
    """Base exception for all velaclient errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
        response: The HTTP response that triggered the error, if any.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        response: Optional[httpx.Response] = None,
    ):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code
        self.response = response


class InvalidUsageError(VelaError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(VelaError):
    """Raised when authentication fails or the server rejects the credential (401/403)."""

    exit_code = EXIT_AUTH_FAILURE


class NoCredentialConfiguredError(AuthError):
    """Raised when a request needs a credential but none was set on the client."""


class CredentialsExpiredError(AuthError):
    """Raised when both the access token and the refresh token have expired."""


class ExchangeFailedError(AuthError):
    """Raised when a personal access token cannot be exchanged for a bearer token."""


class MissingSCMTokenError(AuthError):
    """Raised when build-token auth is configured without an SCM token."""


class InvalidBuildRepoRefError(AuthError):
    """Raised when the build's repo reference is not of the form ``org/repo``."""


class EmptyTokenError(AuthError):
    """Raised when resolution produced an empty bearer token."""


class NotFoundError(VelaError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(VelaError):
    """Raised when the API returns an HTTP error status other than 401, 403 or 404."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(VelaError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(VelaError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class TokenDecodeError(ValueError):
    """Raised when a bearer token cannot be decoded into its claims."""
