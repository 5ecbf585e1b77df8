"""Pydantic models shared across velaclient modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ClientConfig` and :class:`AuthSettings`, combined in
    :class:`VelaConfig`.

**Wire models** -- request and response bodies of the authentication
endpoints:
    :class:`TokenResponse`, :class:`SystemTokenResponse`, :class:`Login` and
    :class:`LoginOptions`.

Resource schemas (builds, repos, secrets, ...) are deliberately absent; the
client only models what the authentication flows read and write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from velaclient.auth.credentials import CredentialStore


# --- Wire models ---


class TokenResponse(BaseModel):
    """Body returned by the PAT exchange, token refresh and install-token endpoints."""

    model_config = ConfigDict(extra="ignore")

    token: str = ""


class SystemTokenResponse(BaseModel):
    """Body returned by ``POST /system-refresh``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    token: str = Field(default="", alias="JWTToken")


class Login(BaseModel):
    """Credentials posted to ``/login``.

    ``otp`` is only needed when the SCM account has two-factor auth enabled.
    ``token`` is filled in by the server on a successful login.
    """

    model_config = ConfigDict(extra="ignore")

    username: Optional[str] = None
    password: Optional[str] = None
    otp: Optional[str] = None
    token: Optional[str] = None


class LoginOptions(BaseModel):
    """Query options appended to the login URL."""

    type: Optional[str] = Field(
        default=None, description="Login flow type, e.g. 'cli' or 'web'"
    )
    port: Optional[str] = Field(
        default=None, description="Local port the CLI listens on for the callback"
    )


# --- Configuration models ---


class ClientConfig(BaseModel):
    """Connection settings for a :class:`~velaclient.client.Client`."""

    address: Optional[str] = Field(
        default=None, description="Base URL of the Vela server"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    user_agent: str = Field(default="vela-client", description="User-Agent header value")


class AuthSettings(BaseModel):
    """Secret material for whichever credential mode the user configured.

    Several fields may be filled at once (e.g. from a config file and the
    environment); :meth:`apply` picks exactly one mode.
    """

    token: Optional[str] = Field(default=None, description="Static bearer token")
    personal_access_token: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    build_token: Optional[str] = None
    scm_token: Optional[str] = None
    repo: Optional[str] = Field(
        default=None, description="org/repo of the running build"
    )
    build_number: Optional[int] = None

    def apply(self, store: CredentialStore) -> None:
        """Configure *store* with the most specific mode these settings describe.

        Precedence is build pair, then access/refresh pair, then personal
        access token, then static token. When nothing is set the store is
        cleared.
        """
        if self.build_token:
            store.set_build_and_scm_pair(
                self.build_token,
                self.scm_token or "",
                self.repo or "",
                self.build_number or 0,
            )
        elif self.access_token or self.refresh_token:
            store.set_access_refresh_pair(
                self.access_token or "", self.refresh_token or ""
            )
        elif self.personal_access_token:
            store.set_personal_access_token(self.personal_access_token)
        elif self.token:
            store.set_static_token(self.token)
        else:
            store.clear()


class VelaConfig(BaseModel):
    """Top-level contents of ``config.json``."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    auth: AuthSettings = Field(default_factory=AuthSettings)
