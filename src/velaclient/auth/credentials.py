"""In-memory credential store for a single client.

The store holds exactly one credential variant at a time. Each variant is a
frozen pydantic model carrying only the fields of its own mode, so there is
no way to read a refresh token while a static token is configured. Setting a
new mode replaces the variant wholesale.

The store is created by a :class:`~velaclient.client.Client` and discarded
with it. It is never persisted and never shared between clients; see
:mod:`velaclient.config` for loading secrets from disk or the environment.

See Also:
    :class:`~velaclient.auth.resolver.CredentialResolver` -- the only
    consumer of the refresh-related update methods.
"""

from __future__ import annotations

import enum
import threading
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

from velaclient.auth.jwt import is_token_expired


class CredentialMode(str, enum.Enum):
    """The authentication mode a :class:`CredentialStore` is in."""

    NONE = "none"
    STATIC_TOKEN = "static_token"
    PERSONAL_ACCESS_TOKEN = "personal_access_token"
    ACCESS_REFRESH_PAIR = "access_refresh_pair"
    BUILD_AND_SCM_PAIR = "build_and_scm_pair"


class _Credential(BaseModel):
    model_config = ConfigDict(frozen=True)


class NoCredential(_Credential):
    """No credential configured."""

    mode: Literal[CredentialMode.NONE] = CredentialMode.NONE


class StaticToken(_Credential):
    """A bearer token sent verbatim; it cannot be refreshed."""

    mode: Literal[CredentialMode.STATIC_TOKEN] = CredentialMode.STATIC_TOKEN
    token: str


class PersonalAccessToken(_Credential):
    """A long-lived token exchanged for a short-lived bearer on every request."""

    mode: Literal[CredentialMode.PERSONAL_ACCESS_TOKEN] = (
        CredentialMode.PERSONAL_ACCESS_TOKEN
    )
    token: str


class AccessRefreshPair(_Credential):
    """A short-lived access token plus the refresh token that renews it."""

    mode: Literal[CredentialMode.ACCESS_REFRESH_PAIR] = (
        CredentialMode.ACCESS_REFRESH_PAIR
    )
    access_token: str
    refresh_token: str


class BuildAndSCMPair(_Credential):
    """Tokens handed to a running build.

    Attributes:
        build_token: Bearer token scoped to the build.
        scm_token: Installation token for the source control provider.
        repo: ``org/repo`` reference of the build.
        build_number: Number of the build within the repo.
    """

    mode: Literal[CredentialMode.BUILD_AND_SCM_PAIR] = (
        CredentialMode.BUILD_AND_SCM_PAIR
    )
    build_token: str
    scm_token: str
    repo: str
    build_number: int


Credential = Union[
    NoCredential, StaticToken, PersonalAccessToken, AccessRefreshPair, BuildAndSCMPair
]


class CredentialStore:
    """Holds the active credential of one client.

    All reads and writes go through an internal lock so that a refresh
    landing from one thread is never observed half-applied by another.

    Example::

        store = CredentialStore()
        store.set_access_refresh_pair(access, refresh)
        assert store.is_access_refresh_pair()
        store.set_static_token("tok")   # the pair is discarded
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._credential: Credential = NoCredential()

    # ------------------------------------------------------------------ #
    # Mutators
    # ------------------------------------------------------------------ #

    def _replace(self, credential: Credential) -> None:
        with self._lock:
            self._credential = credential

    def set_static_token(self, token: str) -> None:
        """Use *token* verbatim as the bearer token."""
        self._replace(StaticToken(token=token))

    def set_personal_access_token(self, token: str) -> None:
        """Exchange *token* for a short-lived bearer token on every request."""
        self._replace(PersonalAccessToken(token=token))

    def set_access_refresh_pair(self, access_token: str, refresh_token: str) -> None:
        """Use *access_token*, renewing it with *refresh_token* when it expires."""
        self._replace(
            AccessRefreshPair(access_token=access_token, refresh_token=refresh_token)
        )

    def set_build_and_scm_pair(
        self,
        build_token: str,
        scm_token: str,
        repo: str,
        build_number: int,
    ) -> None:
        """Authenticate as a running build.

        Args:
            build_token: Bearer token scoped to the build.
            scm_token: SCM installation token sent in the ``Token`` header.
            repo: ``org/repo`` reference used to refresh the SCM token.
            build_number: Build number used to refresh the SCM token.
        """
        self._replace(
            BuildAndSCMPair(
                build_token=build_token,
                scm_token=scm_token,
                repo=repo,
                build_number=build_number,
            )
        )

    def clear(self) -> None:
        """Drop any configured credential."""
        self._replace(NoCredential())

    # ------------------------------------------------------------------ #
    # Refresh updates
    # ------------------------------------------------------------------ #

    def update_access_token(
        self, access_token: str, refresh_token: str | None = None
    ) -> bool:
        """Store a refreshed access token (and optionally a rotated refresh token).

        Returns:
            ``False`` without changing anything if the store is no longer in
            access/refresh mode, ``True`` otherwise.
        """
        with self._lock:
            current = self._credential
            if not isinstance(current, AccessRefreshPair):
                return False
            self._credential = AccessRefreshPair(
                access_token=access_token,
                refresh_token=refresh_token or current.refresh_token,
            )
            return True

    def update_scm_token(self, scm_token: str) -> bool:
        """Store a refreshed SCM token.

        Returns:
            ``False`` without changing anything if the store is no longer in
            build mode, ``True`` otherwise.
        """
        with self._lock:
            current = self._credential
            if not isinstance(current, BuildAndSCMPair):
                return False
            self._credential = current.model_copy(update={"scm_token": scm_token})
            return True

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @property
    def credential(self) -> Credential:
        """An immutable snapshot of the active credential."""
        with self._lock:
            return self._credential

    @property
    def mode(self) -> CredentialMode:
        """The active :class:`CredentialMode`."""
        return self.credential.mode

    def has_credential(self) -> bool:
        return self.mode is not CredentialMode.NONE

    def is_static_token(self) -> bool:
        return self.mode is CredentialMode.STATIC_TOKEN

    def is_personal_access_token(self) -> bool:
        return self.mode is CredentialMode.PERSONAL_ACCESS_TOKEN

    def is_access_refresh_pair(self) -> bool:
        return self.mode is CredentialMode.ACCESS_REFRESH_PAIR

    def is_build_and_scm_pair(self) -> bool:
        return self.mode is CredentialMode.BUILD_AND_SCM_PAIR

    def is_expired(self) -> bool:
        """Report whether the active mode's primary token has expired.

        A personal access token never expires on its own, so PAT mode always
        reports ``False``. With no credential configured this is ``True``.
        """
        credential = self.credential
        if isinstance(credential, StaticToken):
            return is_token_expired(credential.token)
        if isinstance(credential, PersonalAccessToken):
            return False
        if isinstance(credential, AccessRefreshPair):
            return is_token_expired(credential.access_token)
        if isinstance(credential, BuildAndSCMPair):
            return is_token_expired(credential.build_token)
        return True
