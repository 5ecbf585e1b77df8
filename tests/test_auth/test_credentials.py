"""Tests for the in-memory credential store."""

from __future__ import annotations

import pydantic
import pytest

from velaclient.auth.credentials import (
    AccessRefreshPair,
    BuildAndSCMPair,
    CredentialMode,
    CredentialStore,
    NoCredential,
    PersonalAccessToken,
    StaticToken,
)


@pytest.fixture()
def store() -> CredentialStore:
    return CredentialStore()


class TestModes:
    def test_starts_empty(self, store: CredentialStore) -> None:
        assert store.mode is CredentialMode.NONE
        assert isinstance(store.credential, NoCredential)
        assert not store.has_credential()

    def test_static_token(self, store: CredentialStore) -> None:
        store.set_static_token("abc")
        assert store.is_static_token()
        assert store.credential == StaticToken(token="abc")

    def test_personal_access_token(self, store: CredentialStore) -> None:
        store.set_personal_access_token("pat-123")
        assert store.is_personal_access_token()
        assert store.credential.token == "pat-123"

    def test_access_refresh_pair(self, store: CredentialStore) -> None:
        store.set_access_refresh_pair("access", "refresh")
        assert store.is_access_refresh_pair()
        assert store.credential == AccessRefreshPair(
            access_token="access", refresh_token="refresh"
        )

    def test_build_and_scm_pair(self, store: CredentialStore) -> None:
        store.set_build_and_scm_pair("build", "scm", "octo/hello", 7)
        assert store.is_build_and_scm_pair()
        credential = store.credential
        assert isinstance(credential, BuildAndSCMPair)
        assert credential.repo == "octo/hello"
        assert credential.build_number == 7

    def test_exactly_one_predicate_holds(self, store: CredentialStore) -> None:
        store.set_personal_access_token("pat")
        predicates = [
            store.is_static_token(),
            store.is_personal_access_token(),
            store.is_access_refresh_pair(),
            store.is_build_and_scm_pair(),
        ]
        assert predicates.count(True) == 1

    def test_setting_a_mode_discards_the_previous_one(
        self, store: CredentialStore
    ) -> None:
        store.set_access_refresh_pair("access", "refresh")
        store.set_static_token("static")
        assert store.is_static_token()
        assert not store.is_access_refresh_pair()
        assert not hasattr(store.credential, "refresh_token")

    def test_clear(self, store: CredentialStore) -> None:
        store.set_static_token("abc")
        store.clear()
        assert store.mode is CredentialMode.NONE
        assert not store.has_credential()

    def test_snapshots_are_immutable(self, store: CredentialStore) -> None:
        store.set_static_token("abc")
        with pytest.raises(pydantic.ValidationError):
            store.credential.token = "changed"  # type: ignore[misc]

    def test_mode_values_serialise_as_strings(self) -> None:
        assert CredentialMode.ACCESS_REFRESH_PAIR.value == "access_refresh_pair"
        assert PersonalAccessToken(token="x").mode is CredentialMode.PERSONAL_ACCESS_TOKEN


class TestUpdates:
    def test_update_access_token_keeps_refresh(self, store: CredentialStore) -> None:
        store.set_access_refresh_pair("old-access", "refresh")
        assert store.update_access_token("new-access") is True
        assert store.credential == AccessRefreshPair(
            access_token="new-access", refresh_token="refresh"
        )

    def test_update_access_token_rotates_refresh(self, store: CredentialStore) -> None:
        store.set_access_refresh_pair("old-access", "old-refresh")
        store.update_access_token("new-access", "new-refresh")
        assert store.credential.refresh_token == "new-refresh"

    def test_update_access_token_outside_pair_mode(
        self, store: CredentialStore
    ) -> None:
        store.set_static_token("static")
        assert store.update_access_token("new-access") is False
        assert store.credential == StaticToken(token="static")

    def test_update_scm_token(self, store: CredentialStore) -> None:
        store.set_build_and_scm_pair("build", "old-scm", "octo/hello", 1)
        assert store.update_scm_token("new-scm") is True
        credential = store.credential
        assert credential.scm_token == "new-scm"
        assert credential.build_token == "build"

    def test_update_scm_token_outside_build_mode(self, store: CredentialStore) -> None:
        assert store.update_scm_token("scm") is False
        assert store.mode is CredentialMode.NONE


class TestIsExpired:
    def test_no_credential(self, store: CredentialStore) -> None:
        assert store.is_expired() is True

    def test_static_token(self, store: CredentialStore, valid_token, expired_token) -> None:
        store.set_static_token(valid_token)
        assert store.is_expired() is False
        store.set_static_token(expired_token)
        assert store.is_expired() is True

    def test_personal_access_token_never_expires(self, store: CredentialStore) -> None:
        store.set_personal_access_token("not-a-jwt")
        assert store.is_expired() is False

    def test_pair_checks_access_token(
        self, store: CredentialStore, valid_token, expired_token
    ) -> None:
        store.set_access_refresh_pair(expired_token, valid_token)
        assert store.is_expired() is True
        store.set_access_refresh_pair(valid_token, expired_token)
        assert store.is_expired() is False

    def test_build_checks_build_token(
        self, store: CredentialStore, valid_token, expired_token
    ) -> None:
        store.set_build_and_scm_pair(valid_token, expired_token, "octo/hello", 1)
        assert store.is_expired() is False
        store.set_build_and_scm_pair(expired_token, valid_token, "octo/hello", 1)
        assert store.is_expired() is True
