"""Shared test fixtures for velaclient.

Provides helpers for minting unsigned JWTs with a chosen expiry, isolated
config environments, output state management, and a CLI runner. These
fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

import base64
import json
import time
from pathlib import Path
from typing import Any, Optional

import pytest

from velaclient.output import OutputFormat, OutputManager, reset_output, set_output

_VELA_ENV_VARS = [
    "VELA_ADDR",
    "VELA_TOKEN",
    "VELA_PAT",
    "VELA_ACCESS_TOKEN",
    "VELA_REFRESH_TOKEN",
    "VELA_BUILD_TOKEN",
    "VELA_SCM_TOKEN",
    "VELA_REPO",
    "VELA_BUILD_NUMBER",
]


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def make_token(
    expires_in: Optional[float] = 3600,
    claims: Optional[dict[str, Any]] = None,
) -> str:
    """Mint an unsigned JWT whose ``exp`` lies *expires_in* seconds from now.

    Pass ``expires_in=None`` to omit the ``exp`` claim entirely.
    """
    payload: dict[str, Any] = {"sub": "octocat"}
    if expires_in is not None:
        payload["exp"] = int(time.time() + expires_in)
    payload.update(claims or {})

    header = _b64url(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    body = _b64url(json.dumps(payload).encode())
    return f"{header}.{body}.signature"


@pytest.fixture
def token_factory():
    """Return :func:`make_token` for tests that need several expiries."""
    return make_token


@pytest.fixture
def valid_token() -> str:
    """A token with an hour of validity left."""
    return make_token(3600)


@pytest.fixture
def expired_token() -> str:
    """A token that expired a minute ago."""
    return make_token(-60)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams the
    cached references go stale once the test finishes.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME (and HOME, for non-XDG platforms) at
    subdirectories of tmp_path and clears every VELA_* variable.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in _VELA_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
