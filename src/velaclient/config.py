"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles persistent configuration for velaclient:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.vela/`` on macOS and Windows. See :func:`get_config_dir`.
* **Config file** -- a single :class:`~velaclient.models.VelaConfig` JSON
  file holding the server address and stored tokens. Written atomically
  with ``0o600`` permissions since it contains secrets.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  ``VELA_*`` environment variables and the config file.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from ``env:`` and ``file:`` source descriptors.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from velaclient.exceptions import ConfigError
from velaclient.models import AuthSettings, VelaConfig

_APP_NAME = "vela"
_CONFIG_FILENAME = "config.json"

ENV_ADDRESS = "VELA_ADDR"

# Environment variable -> AuthSettings field
_AUTH_ENV_VARS = {
    "VELA_TOKEN": "token",
    "VELA_PAT": "personal_access_token",
    "VELA_ACCESS_TOKEN": "access_token",
    "VELA_REFRESH_TOKEN": "refresh_token",
    "VELA_BUILD_TOKEN": "build_token",
    "VELA_SCM_TOKEN": "scm_token",
    "VELA_REPO": "repo",
    "VELA_BUILD_NUMBER": "build_number",
}

# Variables that carry secret material; any of them replaces the file credential
_CREDENTIAL_ENV_VARS = (
    "VELA_TOKEN",
    "VELA_PAT",
    "VELA_ACCESS_TOKEN",
    "VELA_REFRESH_TOKEN",
    "VELA_BUILD_TOKEN",
    "VELA_SCM_TOKEN",
)


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/vela/`` (default ``~/.config/vela/``).
    On macOS/Windows: ``~/.vela/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Path to the config file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temp file is created next to *path* with ``0o600`` permissions
    before any content is written, so tokens are never world-readable.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, 0o600)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config file ---


def load_config(path: Optional[Path] = None) -> VelaConfig:
    """Load the config file.

    Args:
        path: Explicit file to read. Defaults to :func:`config_path`.

    Returns:
        The deserialised :class:`~velaclient.models.VelaConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = path or config_path()
    if not path.is_file():
        return VelaConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return VelaConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: VelaConfig, path: Optional[Path] = None) -> None:
    """Persist *config* atomically.

    Args:
        config: The configuration to save.
        path: Explicit destination. Defaults to :func:`config_path`.
    """
    data = config.model_dump(mode="json", exclude_none=True)
    _atomic_write(path or config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def apply_env_overrides(config: VelaConfig) -> VelaConfig:
    """Return a copy of *config* with ``VELA_*`` environment variables layered on top.

    A credential in the environment replaces the file credential as a whole,
    so a mode stored in the file never outranks the one the environment names.

    Raises:
        ConfigError: If ``VELA_BUILD_NUMBER`` is not an integer.
    """
    config = config.model_copy(deep=True)

    address = os.environ.get(ENV_ADDRESS)
    if address:
        config.client.address = address

    if any(os.environ.get(var) for var in _CREDENTIAL_ENV_VARS):
        config.auth = AuthSettings()

    for var, field in _AUTH_ENV_VARS.items():
        value = os.environ.get(var)
        if not value:
            continue
        if field == "build_number":
            try:
                setattr(config.auth, field, int(value))
            except ValueError:
                raise ConfigError(
                    f"{var} must be an integer, got {value!r}"
                ) from None
        else:
            setattr(config.auth, field, value)
    return config


def resolve_config(
    cli_address: Optional[str] = None,
    path: Optional[Path] = None,
) -> VelaConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_address``)
        2. Environment variables (``VELA_ADDR``, ``VELA_TOKEN``, ...)
        3. Config file (``~/.config/vela/config.json``)
        4. Defaults
    """
    config = apply_env_overrides(load_config(path))
    if cli_address is not None:
        config.client.address = cli_address
    return config


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")
