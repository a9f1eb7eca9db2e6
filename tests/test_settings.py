"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from reelsync.config import Settings
from reelsync.sync.credentials import CredentialGate


def test_blank_credentials_are_treated_as_missing() -> None:
    settings = Settings(_env_file=None, TRAKT_CLIENT_ID="  ", TRAKT_ACCESS_TOKEN="")

    assert settings.trakt_client_id is None
    assert settings.trakt_access_token is None
    assert CredentialGate(settings).has_valid_credentials() is False


def test_credential_gate_builds_handle() -> None:
    settings = Settings(
        _env_file=None,
        TRAKT_CLIENT_ID="client",
        TRAKT_ACCESS_TOKEN="token",
    )

    handle = CredentialGate(settings).get_authenticated_handle()

    assert handle.client_id == "client"
    assert handle.access_token == "token"
    assert handle.username == "me"


def test_credential_gate_refuses_handle_without_credentials() -> None:
    gate = CredentialGate(Settings(_env_file=None, TRAKT_CLIENT_ID="client"))

    with pytest.raises(LookupError):
        gate.get_authenticated_handle()


def test_trending_limit_is_bounded() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, TRENDING_LIMIT=500)
