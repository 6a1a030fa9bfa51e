"""Tests for client construction, the client registry and token providers."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from firestore_explorer.core.config import Settings
from firestore_explorer.infrastructure.firebase import credentials
from firestore_explorer.infrastructure.firebase.client import (
    FirestoreClientRegistry,
    create_client_from_settings,
)
from firestore_explorer.infrastructure.firebase.credentials import (
    ServiceAccountTokenProvider,
    StaticTokenProvider,
    load_service_account_info,
)


def _fake_client() -> MagicMock:
    client = MagicMock()
    client.aclose = AsyncMock()
    return client


def test_registry_keys_by_account_and_project() -> None:
    registry = FirestoreClientRegistry()
    a, b = _fake_client(), _fake_client()
    registry.register("alice@example.com", "proj", a)
    registry.register("bob@example.com", "proj", b)
    assert registry.get("alice@example.com", "proj") is a
    assert registry.get("bob@example.com", "proj") is b
    assert registry.get("alice@example.com", "other") is None
    assert len(registry) == 2


def test_registry_rejects_duplicate_registration() -> None:
    registry = FirestoreClientRegistry()
    registry.register("a", "p", _fake_client())
    with pytest.raises(ValueError, match="already registered"):
        registry.register("a", "p", _fake_client())


def test_get_or_create_builds_once() -> None:
    registry = FirestoreClientRegistry()
    factory = MagicMock(side_effect=_fake_client)
    first = registry.get_or_create("a", "p", factory)
    second = registry.get_or_create("a", "p", factory)
    assert first is second
    factory.assert_called_once()


@pytest.mark.asyncio
async def test_registry_aclose_closes_every_client() -> None:
    registry = FirestoreClientRegistry()
    clients = [_fake_client(), _fake_client()]
    registry.register("a", "p1", clients[0])
    registry.register("a", "p2", clients[1])
    await registry.aclose()
    for client in clients:
        client.aclose.assert_awaited_once()
    assert len(registry) == 0


def test_create_client_returns_none_without_service_account() -> None:
    assert create_client_from_settings(Settings(_env_file=None)) is None


def test_create_client_requires_project_id() -> None:
    settings = Settings(_env_file=None, firebase_service_account_key=json.dumps({"type": "x"}))
    with pytest.raises(ValueError, match="project_id"):
        create_client_from_settings(settings)


def test_create_client_from_key() -> None:
    settings = Settings(
        _env_file=None, firebase_service_account_key=json.dumps({"project_id": "demo"})
    )
    with patch.object(credentials, "_get_credentials", return_value=MagicMock()) as get_creds:
        client = create_client_from_settings(settings)
    get_creds.assert_called_once_with({"project_id": "demo"})
    assert client.project_id == "demo"
    assert client.database_root == "projects/demo/databases/(default)/documents"


def test_load_service_account_invalid_json() -> None:
    settings = Settings(_env_file=None, firebase_service_account_key="{not json")
    with pytest.raises(ValueError, match="not valid JSON"):
        load_service_account_info(settings)


def test_load_service_account_from_path(tmp_path) -> None:
    key_file = tmp_path / "key.json"
    key_file.write_text(json.dumps({"project_id": "from-file"}), encoding="utf-8")
    settings = Settings(_env_file=None, firebase_service_account_path=str(key_file))
    assert load_service_account_info(settings) == {"project_id": "from-file"}


def test_load_service_account_missing_path(tmp_path) -> None:
    settings = Settings(_env_file=None, firebase_service_account_path=str(tmp_path / "nope.json"))
    assert load_service_account_info(settings) is None


@pytest.mark.asyncio
async def test_service_account_provider_refreshes_invalid_credentials() -> None:
    creds = MagicMock(valid=False, token="fresh-token")
    provider = ServiceAccountTokenProvider(creds)
    assert await provider.get_token() == "fresh-token"
    creds.refresh.assert_called_once()


@pytest.mark.asyncio
async def test_service_account_provider_reuses_valid_credentials() -> None:
    creds = MagicMock(valid=True, token="cached")
    assert await ServiceAccountTokenProvider(creds).get_token() == "cached"
    creds.refresh.assert_not_called()


@pytest.mark.asyncio
async def test_static_token_provider() -> None:
    assert await StaticTokenProvider("abc").get_token() == "abc"
    refresh = AsyncMock(return_value="renewed")
    provider = StaticTokenProvider("old", refresh=refresh)
    assert await provider.get_token() == "renewed"
    refresh.assert_awaited_once()
