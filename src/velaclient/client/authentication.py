"""Authentication service exposed as ``Client.authentication``.

Two groups of operations live here:

- **Credential configuration** -- thin delegates to the client's
  :class:`~velaclient.auth.CredentialStore` (``set_*``, ``has_auth``,
  ``mode``, ``is_token_expired``).
- **Token endpoints** -- explicit calls to the server's raw token flows:
  PAT exchange, access-token refresh, install-token refresh, system token
  refresh, token validation and login. Except for :meth:`refresh`, these
  return the server's answer without touching the store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from urllib.parse import urlencode

import httpx

from velaclient.auth import resolver as token_endpoints
from velaclient.auth.credentials import (
    AccessRefreshPair,
    CredentialMode,
    CredentialStore,
)
from velaclient.auth.resolver import TOKEN_HEADER, CredentialResolver
from velaclient.exceptions import AuthError
from velaclient.models import Login, LoginOptions, SystemTokenResponse

if TYPE_CHECKING:
    from velaclient.client.sync_client import Client

SYSTEM_REFRESH_PATH = "/system-refresh"
VALIDATE_TOKEN_PATH = "/validate-token"
VALIDATE_OAUTH_PATH = "/validate-oauth"
LOGIN_PATH = "/login"


class AuthenticationService:
    """Credential configuration and token endpoints of a :class:`~velaclient.client.Client`."""

    def __init__(
        self,
        client: Client,
        store: CredentialStore,
        resolver: CredentialResolver,
    ) -> None:
        self._client = client
        self._store = store
        self._resolver = resolver

    # ------------------------------------------------------------------ #
    # Credential configuration
    # ------------------------------------------------------------------ #

    def set_static_token(self, token: str) -> None:
        self._store.set_static_token(token)

    def set_personal_access_token(self, token: str) -> None:
        self._store.set_personal_access_token(token)

    def set_access_refresh_pair(self, access_token: str, refresh_token: str) -> None:
        self._store.set_access_refresh_pair(access_token, refresh_token)

    def set_build_and_scm_pair(
        self, build_token: str, scm_token: str, repo: str, build_number: int
    ) -> None:
        self._store.set_build_and_scm_pair(build_token, scm_token, repo, build_number)

    def clear(self) -> None:
        self._store.clear()

    @property
    def mode(self) -> CredentialMode:
        return self._store.mode

    def has_auth(self) -> bool:
        return self._store.has_credential()

    def is_token_expired(self) -> bool:
        """Pre-flight check of the active mode's primary token.

        Requests are still attempted with an expired static token; this lets
        callers warn before sending one.
        """
        return self._store.is_expired()

    # ------------------------------------------------------------------ #
    # Token endpoints
    # ------------------------------------------------------------------ #

    def exchange_token(self, pat: str) -> tuple[str, httpx.Response]:
        """Exchange a personal access token for a short-lived bearer token."""
        return token_endpoints.exchange_token(self._client, pat)

    def refresh_access_token(
        self, refresh_token: str
    ) -> tuple[str, Optional[str], httpx.Response]:
        """Mint an access token from *refresh_token* without updating the store.

        Returns:
            ``(access_token, rotated_refresh_token_or_None, response)``.
        """
        return token_endpoints.refresh_access_token(self._client, refresh_token)

    def refresh_install_token(
        self, org: str, repo: str, build_number: int, build_token: str
    ) -> tuple[str, httpx.Response]:
        """Fetch a fresh SCM installation token for a build."""
        return token_endpoints.refresh_install_token(
            self._client, org, repo, build_number, build_token
        )

    def refresh(self) -> str:
        """Force-refresh the stored access token and return the new one.

        Raises:
            AuthError: The client is not using access/refresh tokens.
            CredentialsExpiredError: The refresh token has expired.
        """
        return self._resolver.refresh()

    def current_tokens(self) -> tuple[str, str]:
        """Return the stored ``(access_token, refresh_token)`` pair.

        Raises:
            AuthError: The client is not using access/refresh tokens.
        """
        credential = self._store.credential
        if not isinstance(credential, AccessRefreshPair):
            raise AuthError("client is not using access and refresh tokens")
        return credential.access_token, credential.refresh_token

    def refresh_system_token(self, token: str) -> tuple[str, httpx.Response]:
        """Trade a system token for a new one.

        The token is sent raw in the ``Authorization`` header, not in bearer
        form.
        """
        out, response = self._client.call_with_headers(
            "POST",
            SYSTEM_REFRESH_PATH,
            out=SystemTokenResponse,
            headers={"Authorization": token},
        )
        return out.token, response

    def validate_token(self) -> tuple[str, httpx.Response]:
        """Ask the server whether the client's current credential is valid."""
        return self._client.call("GET", VALIDATE_TOKEN_PATH, out=str)

    def validate_oauth_token(self, oauth_token: str) -> tuple[str, httpx.Response]:
        """Ask the server whether an SCM OAuth token is valid."""
        return self._client.call_with_headers(
            "GET", VALIDATE_OAUTH_PATH, out=str, headers={TOKEN_HEADER: oauth_token}
        )

    def login(self, login: Login) -> tuple[Login, httpx.Response]:
        """Post credentials to ``/login``; the returned :class:`Login` carries the token."""
        return self._client.call("POST", LOGIN_PATH, body=login, out=Login)

    def login_url(self, options: Optional[LoginOptions] = None) -> str:
        """Build the URL a user opens to log in.

        Options are only appended when a login ``type`` is given; a port on
        its own is ignored.
        """
        url = self._client.build_url(LOGIN_PATH)
        if options is not None and options.type:
            url = f"{url}?{urlencode(options.model_dump(exclude_none=True))}"
        return url
