"""Attach the resolved credential to an outgoing :class:`httpx.Request`.

:class:`RequestAuthenticator` is the only place that writes authentication
headers. :class:`~velaclient.client.Client` runs it as the last step of
request construction, after the body, content type and user agent are set,
so a credential failure aborts the request before any network I/O.
"""

from __future__ import annotations

import logging

import httpx

from velaclient.auth.resolver import CredentialResolver

logger = logging.getLogger(__name__)


class RequestAuthenticator:
    """Writes ``Authorization`` (and, for builds, ``Token``) headers onto requests.

    Args:
        resolver: Supplies the credential for each request.
    """

    def __init__(self, resolver: CredentialResolver) -> None:
        self._resolver = resolver

    def authenticate(self, request: httpx.Request) -> httpx.Request:
        """Resolve a credential and set it on *request*.

        Args:
            request: A fully built request that has not been sent.

        Returns:
            The same request, mutated in place.

        Raises:
            AuthError: Any resolver error, propagated unchanged.
        """
        resolved = self._resolver.resolve()
        request.headers["Authorization"] = f"Bearer {resolved.token}"
        for name, value in resolved.headers.items():
            request.headers[name] = value
        logger.debug("Authenticated %s %s", request.method, request.url.path)
        return request
