"""Authentication subsystem for velaclient.

Decides, per outgoing request, which credential to use, whether it has
expired, and how to refresh it before the request is sent.

The main entry points are:

- :func:`is_token_expired` -- unverified expiry check of a bearer token.
- :class:`CredentialStore` -- the client's single active credential.
- :class:`CredentialResolver` -- produces the bearer token for a request,
  refreshing it when needed.
- :class:`RequestAuthenticator` -- writes the resolved headers onto an
  :class:`httpx.Request`.

Typical usage::

    store = CredentialStore()
    store.set_access_refresh_pair(access, refresh)
    authenticator = RequestAuthenticator(CredentialResolver(store, client))
    authenticator.authenticate(request)
"""

from velaclient.auth.authenticator import RequestAuthenticator
from velaclient.auth.base import ResolvedCredential, Transport
from velaclient.auth.credentials import (
    AccessRefreshPair,
    BuildAndSCMPair,
    Credential,
    CredentialMode,
    CredentialStore,
    NoCredential,
    PersonalAccessToken,
    StaticToken,
)
from velaclient.auth.jwt import MIN_TIME_LEFT, decode_claims, expires_at, is_token_expired
from velaclient.auth.resolver import CredentialResolver

__all__ = [
    "MIN_TIME_LEFT",
    "AccessRefreshPair",
    "BuildAndSCMPair",
    "Credential",
    "CredentialMode",
    "CredentialResolver",
    "CredentialStore",
    "NoCredential",
    "PersonalAccessToken",
    "RequestAuthenticator",
    "ResolvedCredential",
    "StaticToken",
    "Transport",
    "decode_claims",
    "expires_at",
    "is_token_expired",
]
