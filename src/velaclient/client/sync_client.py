"""Synchronous HTTP transport for the Vela API.

This module provides :class:`Client`, which wraps :class:`httpx.Client` and
layers on:

- **Request construction** -- URL joined onto the server address, JSON body
  encoding, ``Accept``/``Content-Type``/``User-Agent`` headers.
- **Auth injection** -- the :class:`~velaclient.auth.RequestAuthenticator`
  runs last, after everything else about the request is built, so that an
  authentication failure aborts the call before any network I/O.
- **Error mapping** -- HTTP and network failures become typed
  :class:`~velaclient.exceptions.VelaError` subclasses carrying the
  best-effort response.
- **Decoding** -- response bodies are validated into pydantic models.

There is no retry: a failed call, including a failed token refresh, fails
the request.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError

from velaclient.auth.authenticator import RequestAuthenticator
from velaclient.auth.credentials import CredentialStore
from velaclient.auth.resolver import REFRESH_TOKEN_COOKIE, CredentialResolver
from velaclient.client.authentication import AuthenticationService
from velaclient.exceptions import (
    AuthError,
    ConfigError,
    ConnectionError_,
    NotFoundError,
    ServerError,
)
from velaclient.models import ClientConfig, VelaConfig

logger = logging.getLogger(__name__)


class Client:
    """Client that manages communication with the Vela API.

    Each client owns one :class:`~velaclient.auth.CredentialStore`,
    configured through :attr:`authentication`. The store lives and dies with
    the client and is never shared.

    Args:
        address: Base URL of the Vela server, e.g. ``https://vela.example.com``.
        config: Timeout, TLS and user-agent settings.
        http_client: Optional pre-built :class:`httpx.Client` (e.g. one with a
            mock transport). When given, the caller owns its lifecycle.

    Example::

        with Client("https://vela.example.com") as client:
            client.authentication.set_personal_access_token(pat)
            data, response = client.call("GET", "/api/v1/user")
    """

    def __init__(
        self,
        address: str,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if not address:
            raise ConfigError("no Vela address provided")

        self._address = address.rstrip("/")
        self._config = config or ClientConfig(address=address)
        self._http = http_client
        self._owns_http = http_client is None

        self._credentials = CredentialStore()
        self._resolver = CredentialResolver(self._credentials, self)
        self._authenticator = RequestAuthenticator(self._resolver)
        self.authentication = AuthenticationService(
            self, self._credentials, self._resolver
        )

    @classmethod
    def from_config(
        cls,
        config: VelaConfig,
        http_client: Optional[httpx.Client] = None,
    ) -> Client:
        """Build a client and apply the configured credential.

        Raises:
            ConfigError: If ``config.client.address`` is not set.
        """
        client = cls(config.client.address or "", config.client, http_client)
        config.auth.apply(client._credentials)
        return client

    @property
    def address(self) -> str:
        return self._address

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Client:
        self._http_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client` if this client created it."""
        if self._http is not None and self._owns_http:
            self._http.close()
            self._http = None

    def _http_client(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                follow_redirects=True,
            )
            self._owns_http = True
        return self._http

    # ------------------------------------------------------------------ #
    # Request construction
    # ------------------------------------------------------------------ #

    def build_url(self, path: str) -> str:
        """Join *path* onto the server address."""
        return f"{self._address}/{path.lstrip('/')}"

    def new_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
        authenticate: bool = True,
    ) -> httpx.Request:
        """Build a request, authenticating it as the final step.

        Args:
            method: HTTP method.
            path: Path relative to the server address.
            body: A pydantic model or JSON-serialisable value, or ``None``.
            headers: Extra headers. They are applied before authentication,
                so they cannot override the auth headers.
            authenticate: Run the request authenticator when a credential is
                configured. Requests to unauthenticated endpoints (e.g.
                ``/login``) go out bare when the store is empty.

        Raises:
            AuthError: Credential resolution failed.
        """
        merged_headers: dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": self._config.user_agent,
        }
        if body is not None:
            merged_headers["Content-Type"] = "application/json"
        merged_headers.update(headers or {})

        if isinstance(body, BaseModel):
            body = body.model_dump(mode="json", exclude_none=True, by_alias=True)

        request = self._http_client().build_request(
            method.upper(),
            self.build_url(path),
            json=body,
            headers=merged_headers,
        )

        if authenticate and self._credentials.has_credential():
            self._authenticator.authenticate(request)
        return request

    # ------------------------------------------------------------------ #
    # Calls
    # ------------------------------------------------------------------ #

    def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        out: Optional[type[Any]] = None,
    ) -> tuple[Any, httpx.Response]:
        """Send an authenticated request and decode the response into *out*.

        Args:
            method: HTTP method.
            path: Path relative to the server address.
            body: Request body (pydantic model or JSON-serialisable value).
            out: A pydantic model class, ``str`` for the raw text, or
                ``None`` to skip decoding.

        Returns:
            ``(decoded, response)``; ``decoded`` is ``None`` when *out* is.

        Raises:
            AuthError: Credential resolution failed, or the server answered
                401/403.
            NotFoundError: The server answered 404.
            ServerError: Any other error status, or an undecodable body.
            ConnectionError_: The request could not be sent.
        """
        request = self.new_request(method, path, body)
        return self.do(request, out)

    def call_with_headers(
        self,
        method: str,
        path: str,
        body: Any = None,
        out: Optional[type[Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> tuple[Any, httpx.Response]:
        """Like :meth:`call`, with caller-supplied headers and no authenticator.

        Used for raw-token flows (PAT exchange, token refresh, install-token
        refresh) whose credentials travel in custom headers or cookies.
        """
        request = self.new_request(
            method, path, body, headers=headers, authenticate=False
        )
        return self.do(request, out)

    def do(
        self, request: httpx.Request, out: Optional[type[Any]] = None
    ) -> tuple[Any, httpx.Response]:
        """Send a built request, check its status and decode the body."""
        try:
            response = self._http_client().send(request)
        except httpx.HTTPError as exc:
            raise ConnectionError_(
                f"{request.method} {request.url.path} failed: {exc}"
            ) from exc

        # The refresh token only ever travels in an explicit Cookie header.
        self._http_client().cookies.delete(REFRESH_TOKEN_COOKIE)

        logger.debug(
            "%s %s -> %d", request.method, request.url.path, response.status_code
        )
        self._check_response(response)
        return self._decode(response, out), response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _check_response(self, response: httpx.Response) -> None:
        """Raise a typed exception for non-2xx status codes."""
        status = response.status_code
        if 200 <= status <= 299:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("error") or detail.get("message") or ""
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status in (401, 403):
            raise AuthError(full_msg, response=response)
        if status == 404:
            raise NotFoundError(full_msg, response=response)
        raise ServerError(full_msg, response=response)

    def _decode(self, response: httpx.Response, out: Optional[type[Any]]) -> Any:
        if out is None:
            return None
        if out is str:
            return response.text
        try:
            return out.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ServerError(
                f"unable to decode response from {response.request.url.path}: {exc}",
                response=response,
            ) from exc
