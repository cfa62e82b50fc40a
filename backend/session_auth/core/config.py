"""Configuration classes read from the environment, plus frozen auth settings.

``APP_ENV`` picks the class (``development``, ``testing`` or ``production``).
A ``.env`` file in the working directory is loaded first when present.
:class:`AuthSettings` is the validated, immutable view of the auth keys that
the services receive; building it is what makes a misconfigured process
refuse to start.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

from session_auth.services._shared.errors import ConfigurationError

ENV_VAR: Final[str] = "APP_ENV"
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})

load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """``True`` for 1/true/yes/y/on (any case); ``default`` when unset."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    """Integer from the environment; ``default`` when unset or blank."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class BaseConfig:
    """Settings shared by every environment.

    Auth keys
    ---------
    ``JWT_SECRET_KEY``, ``JWT_ISSUER`` and ``JWT_AUDIENCE`` have no default:
    access tokens are HS256-signed with the secret and carry, and are checked
    against, the issuer and audience. Lifetimes are
    ``ACCESS_TOKEN_EXPIRES_MINUTES`` (15) and ``REFRESH_TOKEN_EXPIRES_DAYS``
    (7). Inactive refresh tokens are swept after
    ``REFRESH_TOKEN_RETENTION_DAYS`` (30). ``REFRESH_REUSE_DETECTION`` revokes
    a whole rotation lineage when a rotated token is presented again.

    Transport keys
    --------------
    ``REFRESH_COOKIE_*`` describe the HTTP-only refresh cookie.
    ``REQUEST_DEADLINE_SECONDS`` bounds hashing and persistence work per
    request. ``PASSWORD_HASH_METHOD`` is any method understood by
    :func:`werkzeug.security.generate_password_hash`.
    """

    API_BASE_PREFIX = "/api"

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "")

    ACCESS_TOKEN_EXPIRES_MINUTES = env_int("ACCESS_TOKEN_EXPIRES_MINUTES", 15)
    REFRESH_TOKEN_EXPIRES_DAYS = env_int("REFRESH_TOKEN_EXPIRES_DAYS", 7)
    REFRESH_TOKEN_RETENTION_DAYS = env_int("REFRESH_TOKEN_RETENTION_DAYS", 30)
    REFRESH_REUSE_DETECTION = env_bool("REFRESH_REUSE_DETECTION", True)

    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refreshToken")
    REFRESH_COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/api/v1/auth/token")
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", True)

    REQUEST_DEADLINE_SECONDS = float(os.getenv("REQUEST_DEADLINE_SECONDS", "10"))
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    CORS_MAX_AGE = env_int("CORS_MAX_AGE", 600)
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXYFIX_X_FOR = env_int("PROXYFIX_X_FOR", 1)

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Debug on; the refresh cookie drops ``Secure`` so plain http works."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", False)


class TestingConfig(BaseConfig):
    """In-memory SQLite unless ``TEST_DATABASE_URL`` is set."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    SQLALCHEMY_ECHO = False
    REFRESH_COOKIE_SECURE = True


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Class selected by ``APP_ENV``; unknown or unset means development."""
    return CONFIG_MAP.get(os.getenv(ENV_VAR, "").strip().lower(), DevelopmentConfig)


# --------------------------------------------------------------------------- #
# Frozen auth settings
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """
    Immutable authentication settings resolved once at startup.

    :param secret_key: HMAC signing secret for access tokens.
    :param issuer: ``iss`` claim.
    :param audience: ``aud`` claim.
    :param access_expires: Access-token lifetime.
    :param refresh_expires: Refresh-token lifetime.
    :param retention_days: Retention window for inactive refresh tokens.
    :param reuse_detection: Revoke the lineage of a replayed rotated token.
    :param cookie_name: Refresh cookie name.
    :param cookie_path: Refresh cookie path (covers refresh + revoke routes).
    :param cookie_secure: Emit the ``Secure`` cookie attribute.
    :param deadline_seconds: Per-request work budget.
    :param password_hash_method: Werkzeug hashing method.
    """

    secret_key: str
    issuer: str
    audience: str
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    retention_days: int = 30
    reuse_detection: bool = True
    cookie_name: str = "refreshToken"
    cookie_path: str = "/api/v1/auth/token"
    cookie_secure: bool = True
    deadline_seconds: float = 10.0
    password_hash_method: str = "scrypt"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthSettings:
        """
        Build settings from a Flask config mapping.

        :param config: Flask ``app.config`` (or any mapping with the same keys).
        :returns: Frozen settings.
        :raises ConfigurationError: When a required key is blank or a
            numeric key is not positive.
        """
        missing = [
            key
            for key in ("JWT_SECRET_KEY", "JWT_ISSUER", "JWT_AUDIENCE")
            if not str(config.get(key) or "").strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

        try:
            access_minutes = int(config.get("ACCESS_TOKEN_EXPIRES_MINUTES", 15))
            refresh_days = int(config.get("REFRESH_TOKEN_EXPIRES_DAYS", 7))
            retention_days = int(config.get("REFRESH_TOKEN_RETENTION_DAYS", 30))
            deadline = float(config.get("REQUEST_DEADLINE_SECONDS", 10))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric auth setting: {exc}") from exc

        for key, value in (
            ("ACCESS_TOKEN_EXPIRES_MINUTES", access_minutes),
            ("REFRESH_TOKEN_EXPIRES_DAYS", refresh_days),
            ("REFRESH_TOKEN_RETENTION_DAYS", retention_days),
            ("REQUEST_DEADLINE_SECONDS", deadline),
        ):
            if value <= 0:
                raise ConfigurationError(f"{key} must be positive, got {value!r}")

        return cls(
            secret_key=str(config["JWT_SECRET_KEY"]),
            issuer=str(config["JWT_ISSUER"]).strip(),
            audience=str(config["JWT_AUDIENCE"]).strip(),
            access_expires=timedelta(minutes=access_minutes),
            refresh_expires=timedelta(days=refresh_days),
            retention_days=retention_days,
            reuse_detection=bool(config.get("REFRESH_REUSE_DETECTION", True)),
            cookie_name=str(config.get("REFRESH_COOKIE_NAME", "refreshToken")),
            cookie_path=str(config.get("REFRESH_COOKIE_PATH", "/api/v1/auth/token")),
            cookie_secure=bool(config.get("REFRESH_COOKIE_SECURE", True)),
            deadline_seconds=deadline,
            password_hash_method=str(config.get("PASSWORD_HASH_METHOD", "scrypt")),
        )
