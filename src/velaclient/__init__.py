"""velaclient -- Python client for the Vela CI/CD API.

The interesting part of the package is its authentication subsystem: each
outgoing request is authenticated with exactly one of a static token, a
personal access token, an access/refresh token pair, or a build/SCM token
pair, refreshing expired tokens on the fly.

Typical usage::

    from velaclient import Client

    with Client("https://vela.example.com") as client:
        client.authentication.set_access_refresh_pair(access, refresh)
        _, response = client.call("GET", "/api/v1/user")

Modules:
    app: Typer application and ``vela-auth`` entry point.
    auth: Token inspection, credential store, resolver and authenticator.
    client: The HTTP client and its authentication service.
    models: Pydantic models for configuration and token endpoints.
    config: XDG-aware configuration loading with environment overrides.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes for the CLI.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.27.0"

from velaclient.client import Client  # noqa: E402

__all__ = ["Client", "__version__"]
