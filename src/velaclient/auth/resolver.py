"""Credential resolution: turn the stored credential into a usable bearer token.

:class:`CredentialResolver` is called once per outgoing request, just before
dispatch. It dispatches on the store's active mode:

- **static token** -- returned verbatim, even when expired; it cannot be
  refreshed and the server will reject it.
- **personal access token** -- exchanged at ``/authenticate/token`` on every
  request. Nothing is cached.
- **access/refresh pair** -- the access token is returned while valid. Once
  expired, the refresh token (sent as a cookie) buys a new one from
  ``/token-refresh``, which is written back to the store.
- **build/SCM pair** -- the build token is the bearer; the SCM token rides
  along in a ``Token`` header and is renewed from the build's install-token
  endpoint when it expires.

Refresh round-trips are serialised by a lock per resolver. A thread that
waited on the lock re-reads the store first, so a refresh finished by another
thread is reused instead of repeated. Resolutions that need no refresh never
touch the lock.

See Also:
    :class:`~velaclient.auth.authenticator.RequestAuthenticator` -- writes
    the :class:`~velaclient.auth.base.ResolvedCredential` onto a request.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

from velaclient.auth.base import ResolvedCredential, Transport
from velaclient.auth.credentials import (
    AccessRefreshPair,
    BuildAndSCMPair,
    CredentialStore,
    NoCredential,
    PersonalAccessToken,
    StaticToken,
)
from velaclient.auth.jwt import is_token_expired
from velaclient.exceptions import (
    AuthError,
    CredentialsExpiredError,
    EmptyTokenError,
    ExchangeFailedError,
    InvalidBuildRepoRefError,
    MissingSCMTokenError,
    NoCredentialConfiguredError,
    VelaError,
)
from velaclient.models import TokenResponse

logger = logging.getLogger(__name__)

EXCHANGE_PATH = "/authenticate/token"
REFRESH_PATH = "/token-refresh"
INSTALL_TOKEN_PATH = "/api/v1/repos/{org}/{repo}/builds/{build}/install_token"

REFRESH_TOKEN_COOKIE = "vela_refresh_token"
"""Cookie the server reads the refresh token from (and rotates it in)."""

TOKEN_HEADER = "Token"


# ---------------------------------------------------------------------- #
# Token endpoints
# ---------------------------------------------------------------------- #


def exchange_token(transport: Transport, pat: str) -> tuple[str, httpx.Response]:
    """Exchange a personal access token for a short-lived bearer token.

    The PAT travels in the ``Token`` header of ``POST /authenticate/token``.
    """
    out, response = transport.call_with_headers(
        "POST", EXCHANGE_PATH, out=TokenResponse, headers={TOKEN_HEADER: pat}
    )
    return out.token, response


def refresh_access_token(
    transport: Transport, refresh_token: str
) -> tuple[str, Optional[str], httpx.Response]:
    """Mint a new access token from *refresh_token*.

    Returns:
        ``(access_token, rotated_refresh_token, response)``. The rotated
        refresh token is ``None`` when the server did not set the refresh
        cookie on the response.
    """
    out, response = transport.call_with_headers(
        "GET",
        REFRESH_PATH,
        out=TokenResponse,
        headers={"Cookie": f"{REFRESH_TOKEN_COOKIE}={refresh_token}"},
    )
    rotated = response.cookies.get(REFRESH_TOKEN_COOKIE) or None
    return out.token, rotated, response


def refresh_install_token(
    transport: Transport,
    org: str,
    repo: str,
    build_number: int,
    build_token: str,
) -> tuple[str, httpx.Response]:
    """Fetch a fresh SCM installation token for a build, authenticated by its build token."""
    path = INSTALL_TOKEN_PATH.format(org=org, repo=repo, build=build_number)
    out, response = transport.call_with_headers(
        "POST",
        path,
        out=TokenResponse,
        headers={"Authorization": f"Bearer {build_token}"},
    )
    return out.token, response


def split_repo(repo: str) -> tuple[str, str]:
    """Split an ``org/repo`` reference into its two parts.

    Raises:
        InvalidBuildRepoRefError: Unless *repo* has exactly two non-empty
            ``/``-separated components.
    """
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidBuildRepoRefError(
            f"invalid build repo reference {repo!r}: expected 'org/repo'"
        )
    return parts[0], parts[1]


class CredentialResolver:
    """Produce the bearer token for the next request from a :class:`CredentialStore`.

    Args:
        store: The client's credential store. Refreshed tokens are written
            back to it.
        transport: Used for exchange and refresh round-trips. These calls
            bypass authentication and carry their own headers.
    """

    def __init__(self, store: CredentialStore, transport: Transport) -> None:
        self._store = store
        self._transport = transport
        self._refresh_lock = threading.Lock()

    def resolve(self) -> ResolvedCredential:
        """Return the credential to attach to the next request.

        Returns:
            A :class:`~velaclient.auth.base.ResolvedCredential` with a
            non-empty bearer token.

        Raises:
            NoCredentialConfiguredError: No credential was set.
            ExchangeFailedError: The personal access token is empty or the
                exchange call failed.
            CredentialsExpiredError: Access and refresh tokens both expired.
            MissingSCMTokenError: Build mode without an SCM token.
            InvalidBuildRepoRefError: Build mode with a malformed repo.
            EmptyTokenError: Resolution produced an empty bearer token.
            VelaError: A refresh round-trip failed; propagated unchanged.
        """
        credential = self._store.credential
        logger.debug("Resolving credential for mode '%s'", credential.mode.value)

        if isinstance(credential, NoCredential):
            raise NoCredentialConfiguredError(
                "no authentication credential is configured on the client"
            )
        elif isinstance(credential, StaticToken):
            resolved = ResolvedCredential(credential.token)
        elif isinstance(credential, PersonalAccessToken):
            resolved = ResolvedCredential(self._exchange(credential.token))
        elif isinstance(credential, AccessRefreshPair):
            resolved = ResolvedCredential(self._access_token(credential))
        elif isinstance(credential, BuildAndSCMPair):
            resolved = self._build_credential(credential)
        else:
            raise AuthError(f"unsupported credential mode: {credential.mode!r}")

        if not resolved.token:
            raise EmptyTokenError(
                f"resolved an empty bearer token for mode '{credential.mode.value}'"
            )
        return resolved

    def refresh(self) -> str:
        """Force an access-token refresh regardless of the current token's expiry.

        Returns:
            The new access token, which is also written to the store.

        Raises:
            AuthError: The store is not in access/refresh mode.
            CredentialsExpiredError: The refresh token has expired.
            EmptyTokenError: The server answered with an empty access token.
        """
        credential = self._store.credential
        if not isinstance(credential, AccessRefreshPair):
            raise AuthError(
                "token refresh requires access and refresh token authentication"
            )
        with self._refresh_lock:
            if is_token_expired(credential.refresh_token):
                raise CredentialsExpiredError(
                    "refresh token has expired, please log in again"
                )
            token = self._refresh_access_token(credential.refresh_token)
        if not token:
            raise EmptyTokenError("token refresh returned an empty access token")
        return token

    # ------------------------------------------------------------------ #
    # Personal access token
    # ------------------------------------------------------------------ #

    def _exchange(self, pat: str) -> str:
        if not pat:
            raise ExchangeFailedError("personal access token is empty")

        try:
            token, _ = exchange_token(self._transport, pat)
        except VelaError as exc:
            raise ExchangeFailedError(
                f"unable to exchange personal access token: {exc}",
                response=exc.response,
            ) from exc
        return token

    # ------------------------------------------------------------------ #
    # Access / refresh pair
    # ------------------------------------------------------------------ #

    def _access_token(self, credential: AccessRefreshPair) -> str:
        if not is_token_expired(credential.access_token):
            return credential.access_token

        with self._refresh_lock:
            current = self._store.credential
            if isinstance(current, AccessRefreshPair):
                credential = current
                if not is_token_expired(credential.access_token):
                    logger.debug("Access token was refreshed concurrently, reusing it")
                    return credential.access_token

            if is_token_expired(credential.refresh_token):
                raise CredentialsExpiredError(
                    "access and refresh tokens have expired, please log in again"
                )
            return self._refresh_access_token(credential.refresh_token)

    def _refresh_access_token(self, refresh_token: str) -> str:
        logger.debug("Refreshing access token")
        token, rotated, _ = refresh_access_token(self._transport, refresh_token)

        # Without a rotated cookie the current refresh token is kept.
        if rotated is None:
            logger.debug("Refresh response carried no rotated refresh token")

        if token:
            self._store.update_access_token(token, rotated)
            logger.debug("Access token refreshed")
        return token

    # ------------------------------------------------------------------ #
    # Build / SCM pair
    # ------------------------------------------------------------------ #

    def _build_credential(self, credential: BuildAndSCMPair) -> ResolvedCredential:
        if not credential.scm_token:
            raise MissingSCMTokenError("build token auth requires an SCM token")
        org, repo = split_repo(credential.repo)

        scm_token = credential.scm_token
        if is_token_expired(scm_token):
            scm_token = self._refresh_scm_token(credential, org, repo)

        return ResolvedCredential(
            credential.build_token, headers={TOKEN_HEADER: scm_token}
        )

    def _refresh_scm_token(self, credential: BuildAndSCMPair, org: str, repo: str) -> str:
        with self._refresh_lock:
            current = self._store.credential
            if (
                isinstance(current, BuildAndSCMPair)
                and current.scm_token
                and not is_token_expired(current.scm_token)
            ):
                logger.debug("SCM token was refreshed concurrently, reusing it")
                return current.scm_token

            logger.debug(
                "SCM token expired, refreshing install token for %s/%s build %d",
                org,
                repo,
                credential.build_number,
            )
            token, _ = refresh_install_token(
                self._transport,
                org,
                repo,
                credential.build_number,
                credential.build_token,
            )
            if not token:
                raise MissingSCMTokenError(
                    f"install token refresh for {org}/{repo} returned an empty token"
                )
            self._store.update_scm_token(token)
            return token
