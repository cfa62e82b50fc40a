"""Unit tests for configuration parsing and the startup guard."""

from __future__ import annotations

from datetime import timedelta

import pytest

from session_auth.core.config import AuthSettings, DevelopmentConfig, env_bool, env_int, get_config
from session_auth.factory import create_app
from session_auth.services._shared.errors import ConfigurationError

REQUIRED = {
    "JWT_SECRET_KEY": "a-long-enough-test-secret-for-hs256",
    "JWT_ISSUER": "issuer",
    "JWT_AUDIENCE": "audience",
}


def test_defaults_are_applied():
    settings = AuthSettings.from_mapping(REQUIRED)

    assert settings.access_expires == timedelta(minutes=15)
    assert settings.refresh_expires == timedelta(days=7)
    assert settings.retention_days == 30
    assert settings.reuse_detection is True
    assert settings.cookie_name == "refreshToken"
    assert settings.cookie_secure is True


def test_values_are_read_from_the_mapping():
    settings = AuthSettings.from_mapping(
        {
            **REQUIRED,
            "ACCESS_TOKEN_EXPIRES_MINUTES": "5",
            "REFRESH_TOKEN_EXPIRES_DAYS": 14,
            "REFRESH_TOKEN_RETENTION_DAYS": 60,
            "REFRESH_REUSE_DETECTION": False,
        }
    )
    assert settings.access_expires == timedelta(minutes=5)
    assert settings.refresh_expires == timedelta(days=14)
    assert settings.retention_days == 60
    assert settings.reuse_detection is False


@pytest.mark.parametrize("key", sorted(REQUIRED))
def test_missing_required_key_is_reported(key):
    config = {**REQUIRED, key: "  "}
    with pytest.raises(ConfigurationError, match=key):
        AuthSettings.from_mapping(config)


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("ACCESS_TOKEN_EXPIRES_MINUTES", 0),
        ("REFRESH_TOKEN_EXPIRES_DAYS", -1),
        ("REQUEST_DEADLINE_SECONDS", "soon"),
    ],
)
def test_invalid_numbers_are_rejected(key, value):
    with pytest.raises(ConfigurationError):
        AuthSettings.from_mapping({**REQUIRED, key: value})


def test_settings_are_frozen():
    settings = AuthSettings.from_mapping(REQUIRED)
    with pytest.raises(AttributeError):
        settings.retention_days = 1


def test_app_refuses_to_start_without_signing_material():
    class NoSecrets:
        TESTING = True
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"

    with pytest.raises(ConfigurationError, match="JWT_SECRET_KEY"):
        create_app(NoSecrets)


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("FLAG_ON", "Yes")
    monkeypatch.setenv("FLAG_OFF", "0")
    monkeypatch.setenv("SOME_INT", " 12 ")
    assert env_bool("FLAG_ON") is True
    assert env_bool("FLAG_OFF", True) is False
    assert env_bool("FLAG_MISSING", True) is True
    assert env_int("SOME_INT", 3) == 12
    assert env_int("INT_MISSING", 3) == 3


def test_unknown_environment_falls_back_to_development(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    assert get_config() is DevelopmentConfig
