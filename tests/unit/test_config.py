"""Tests for Settings defaults, env overrides and limit validation."""

import pytest
from pydantic import ValidationError

from firestore_explorer.core.config import Settings, get_settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.export_page_size == 1000
    assert settings.list_page_size == 300
    assert settings.export_concurrency == 10
    assert settings.import_concurrency == 5
    assert settings.batch_write_limit == 500
    assert settings.retry_max_retries == 3
    assert settings.retry_base_delay_ms == 1000
    assert settings.database_id == "(default)"
    assert settings.firebase_service_account_key is None


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXPORT_PAGE_SIZE", "250")
    monkeypatch.setenv("RETRY_MAX_RETRIES", "0")
    settings = Settings(_env_file=None)
    assert settings.export_page_size == 250
    assert settings.retry_max_retries == 0


def test_batch_write_limit_cannot_exceed_capacity() -> None:
    with pytest.raises(ValidationError, match="batch_write_limit cannot exceed 500"):
        Settings(_env_file=None, batch_write_limit=501)


@pytest.mark.parametrize("name", ["export_page_size", "import_concurrency", "batch_write_limit"])
def test_limits_must_be_positive(name: str) -> None:
    with pytest.raises(ValidationError, match=f"{name} must be a positive integer"):
        Settings(_env_file=None, **{name: 0})


def test_negative_retry_settings_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, retry_base_delay_ms=-1)


def test_service_account_key_is_secret() -> None:
    settings = Settings(_env_file=None, firebase_service_account_key='{"project_id": "p"}')
    assert "project_id" not in repr(settings)
    assert settings.firebase_service_account_key.get_secret_value() == '{"project_id": "p"}'


def test_get_settings_is_cached() -> None:
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
