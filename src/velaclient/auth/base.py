"""Shared types of the authentication subsystem.

This module defines the two seams between the credential logic and the rest
of the client:

- :class:`ResolvedCredential` -- what the resolver hands the authenticator:
  the bearer token plus any secondary headers.
- :class:`Transport` -- the narrow slice of :class:`~velaclient.client.Client`
  the resolver needs to perform exchange and refresh round-trips.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx


class ResolvedCredential:
    """The credential to attach to one outgoing request.

    Args:
        token: Bearer token for the ``Authorization`` header.
        headers: Additional headers to set alongside it (e.g. the SCM
            ``Token`` header of a running build).

    Example::

        resolved = ResolvedCredential("abc", headers={"Token": "scm"})
        assert resolved.token == "abc"
    """

    def __init__(self, token: str, headers: dict[str, str] | None = None):
        self.token = token
        self.headers = headers or {}

    def __repr__(self) -> str:
        # Never render secret values.
        return f"ResolvedCredential(headers={sorted(self.headers)})"


class Transport(Protocol):
    """Sends a request without running the request authenticator.

    Implemented by :meth:`velaclient.client.Client.call_with_headers`. Errors
    are raised as :class:`~velaclient.exceptions.VelaError` subclasses.
    """

    def call_with_headers(
        self,
        method: str,
        path: str,
        body: Any = None,
        out: Optional[type[Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> tuple[Any, httpx.Response]:
        ...
