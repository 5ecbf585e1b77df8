"""Tests for configuration loading, saving and precedence."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest

from velaclient.auth.credentials import CredentialMode, CredentialStore
from velaclient.config import (
    apply_env_overrides,
    config_path,
    get_config_dir,
    load_config,
    resolve_config,
    resolve_credential,
    save_config,
)
from velaclient.exceptions import ConfigError
from velaclient.models import AuthSettings, ClientConfig, VelaConfig


class TestPaths:
    def test_config_dir_under_xdg(self, isolated_config: Path) -> None:
        path = get_config_dir()
        assert path.is_dir()
        assert path.name in ("vela", ".vela")

    def test_config_path(self, isolated_config: Path) -> None:
        assert config_path().name == "config.json"


class TestLoadSave:
    def test_missing_file_gives_defaults(self, isolated_config: Path) -> None:
        config = load_config()
        assert config == VelaConfig()
        assert config.client.timeout == 30.0

    def test_roundtrip(self, isolated_config: Path) -> None:
        config = VelaConfig(
            client=ClientConfig(address="https://vela.example.com"),
            auth=AuthSettings(access_token="a", refresh_token="r"),
        )
        save_config(config)
        assert load_config() == config

    def test_saved_file_is_private(self, isolated_config: Path) -> None:
        save_config(VelaConfig(auth=AuthSettings(token="secret")))
        mode = stat.S_IMODE(os.stat(config_path()).st_mode)
        assert mode == 0o600

    def test_none_fields_omitted(self, isolated_config: Path) -> None:
        save_config(VelaConfig(auth=AuthSettings(token="secret")))
        data = json.loads(config_path().read_text())
        assert data["auth"] == {"token": "secret"}

    def test_no_temp_files_left(self, isolated_config: Path) -> None:
        save_config(VelaConfig())
        leftovers = [p for p in config_path().parent.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_invalid_schema(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"client": {"timeout": "soon"}}))
        with pytest.raises(ConfigError):
            load_config(path)


class TestPrecedence:
    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_config(VelaConfig(client=ClientConfig(address="https://file.example.com")))
        monkeypatch.setenv("VELA_ADDR", "https://env.example.com")
        assert resolve_config().client.address == "https://env.example.com"

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("VELA_ADDR", "https://env.example.com")
        config = resolve_config(cli_address="https://cli.example.com")
        assert config.client.address == "https://cli.example.com"

    def test_auth_env_vars(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("VELA_BUILD_TOKEN", "build")
        monkeypatch.setenv("VELA_SCM_TOKEN", "scm")
        monkeypatch.setenv("VELA_REPO", "octo/hello")
        monkeypatch.setenv("VELA_BUILD_NUMBER", "42")

        auth = resolve_config().auth
        assert auth.build_token == "build"
        assert auth.scm_token == "scm"
        assert auth.repo == "octo/hello"
        assert auth.build_number == 42

    def test_bad_build_number(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("VELA_BUILD_NUMBER", "forty-two")
        with pytest.raises(ConfigError, match="VELA_BUILD_NUMBER"):
            resolve_config()

    def test_env_credential_replaces_file_credential(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_config(
            VelaConfig(
                client=ClientConfig(address="https://vela.example.com"),
                auth=AuthSettings(access_token="a", refresh_token="r"),
            )
        )
        monkeypatch.setenv("VELA_PAT", "pat-from-env")

        config = resolve_config()
        assert config.auth.access_token is None
        assert config.auth.refresh_token is None

        store = CredentialStore()
        config.auth.apply(store)
        assert store.mode is CredentialMode.PERSONAL_ACCESS_TOKEN
        assert store.credential.token == "pat-from-env"

    def test_non_secret_env_keeps_file_credential(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_config(VelaConfig(auth=AuthSettings(token="from-file")))
        monkeypatch.setenv("VELA_ADDR", "https://env.example.com")
        assert resolve_config().auth.token == "from-file"

    def test_env_overrides_do_not_mutate_input(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        original = VelaConfig()
        monkeypatch.setenv("VELA_TOKEN", "abc")
        updated = apply_env_overrides(original)
        assert updated.auth.token == "abc"
        assert original.auth.token is None


class TestAuthSettingsApply:
    def _apply(self, settings: AuthSettings) -> CredentialStore:
        store = CredentialStore()
        store.set_static_token("previous")
        settings.apply(store)
        return store

    def test_nothing_set_clears(self) -> None:
        assert self._apply(AuthSettings()).mode is CredentialMode.NONE

    def test_static_token(self) -> None:
        store = self._apply(AuthSettings(token="abc"))
        assert store.credential.token == "abc"

    def test_pat_beats_static(self) -> None:
        store = self._apply(AuthSettings(token="abc", personal_access_token="pat"))
        assert store.is_personal_access_token()

    def test_pair_beats_pat(self) -> None:
        store = self._apply(
            AuthSettings(personal_access_token="pat", access_token="a", refresh_token="r")
        )
        assert store.is_access_refresh_pair()

    def test_build_beats_everything(self) -> None:
        store = self._apply(
            AuthSettings(
                token="abc",
                access_token="a",
                refresh_token="r",
                build_token="b",
                scm_token="s",
                repo="octo/hello",
                build_number=9,
            )
        )
        assert store.is_build_and_scm_pair()
        assert store.credential.build_number == 9


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VELA_TOKEN", "abc")
        assert resolve_credential("env:MY_VELA_TOKEN") == "abc"

    def test_missing_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MY_VELA_TOKEN", raising=False)
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:MY_VELA_TOKEN")

    def test_file_source(self, tmp_path: Path) -> None:
        path = tmp_path / "token"
        path.write_text("abc\n")
        assert resolve_credential(f"file:{path}") == "abc"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'nope'}")

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigError, match="Unknown"):
            resolve_credential("vault:secret/vela")
