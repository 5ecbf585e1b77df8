"""HTTP client module for velaclient.

Provides the synchronous :class:`Client`, which wraps :mod:`httpx` with
request construction, credential injection and error mapping, and the
:class:`AuthenticationService` reachable as ``client.authentication``.

Example::

    from velaclient.client import Client

    with Client("https://vela.example.com") as client:
        client.authentication.set_static_token(token)
        _, response = client.call("GET", "/api/v1/user")
"""

from velaclient.client.authentication import AuthenticationService
from velaclient.client.sync_client import Client

__all__ = ["AuthenticationService", "Client"]
