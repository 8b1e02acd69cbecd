from __future__ import annotations

import pytest

from core import settings as settings_module


def _set_minimal_valid_env(monkeypatch: pytest.MonkeyPatch) -> None:
    values = {
        "SECRET_KEY": "secret",
        "GOOGLE_MAPS_API_KEY": "maps-key",
        "STORAGE_BACKEND": "local",
        "DB_TYPE": "mongodb",
        "MONGO_URL": "mongodb://localhost:27017",
        "DB_NAME": "places",
        "GEOCODE_TIMEOUT_SECONDS": "10",
        "GEOCODE_CACHE_TTL_SECONDS": "0",
    }
    for key, value in values.items():
        monkeypatch.setenv(key, value)


def test_minimal_env_is_valid(monkeypatch: pytest.MonkeyPatch):
    _set_minimal_valid_env(monkeypatch)

    assert settings_module.collect_missing_required_env_vars() == []
    assert settings_module.collect_invalid_env_values() == []
    settings_module.validate_required_environment()


def test_collect_missing_required_env_vars_includes_base_and_mongo_keys(
    monkeypatch: pytest.MonkeyPatch,
):
    _set_minimal_valid_env(monkeypatch)
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.delenv("MONGO_URL", raising=False)

    missing = settings_module.collect_missing_required_env_vars()

    assert "SECRET_KEY" in missing
    assert "MONGO_URL" in missing


def test_memory_store_does_not_need_mongo_settings(monkeypatch: pytest.MonkeyPatch):
    _set_minimal_valid_env(monkeypatch)
    monkeypatch.setenv("DB_TYPE", "memory")
    monkeypatch.delenv("MONGO_URL", raising=False)
    monkeypatch.delenv("DB_NAME", raising=False)

    assert settings_module.collect_missing_required_env_vars() == []


def test_s3_storage_requires_bucket(monkeypatch: pytest.MonkeyPatch):
    _set_minimal_valid_env(monkeypatch)
    monkeypatch.setenv("STORAGE_BACKEND", "s3")
    monkeypatch.delenv("S3_BUCKET_NAME", raising=False)

    assert settings_module.collect_missing_required_env_vars() == ["S3_BUCKET_NAME"]


def test_validate_required_environment_raises_with_missing_and_invalid_values(
    monkeypatch: pytest.MonkeyPatch,
):
    _set_minimal_valid_env(monkeypatch)
    monkeypatch.setenv("DB_TYPE", "sqlite")
    monkeypatch.setenv("GEOCODE_TIMEOUT_SECONDS", "-1")
    monkeypatch.setenv("GEOCODE_CACHE_TTL_SECONDS", "soon")
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    with pytest.raises(RuntimeError) as exc_info:
        settings_module.validate_required_environment()

    message = str(exc_info.value)
    assert "Missing required environment variables" in message
    assert "- GOOGLE_MAPS_API_KEY" in message
    assert "Invalid environment values" in message
    assert "DB_TYPE must be one of" in message
    assert "GEOCODE_TIMEOUT_SECONDS must be a positive number" in message
    assert "GEOCODE_CACHE_TTL_SECONDS must be a non-negative integer" in message
