"""Extension singletons: the database, migrations and the JWT manager.

Created unbound at import time so models and services can import them;
:func:`init_app` binds them to an application.
"""

from __future__ import annotations

from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

from session_auth.core.config import AuthSettings

# Constraint names are part of the schema: the service maps unique
# violations back to a field by name (uq_users_email, uq_users_username).
NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
    session_options={"autoflush": False},
)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()

AUTH_SETTINGS_KEY = "session_auth.settings"


def _configure_jwt(app: Flask, settings: AuthSettings) -> None:
    """Project the frozen auth settings onto Flask-JWT-Extended's config keys.

    Access tokens are bearer-only; the refresh token is an opaque value that
    never goes through Flask-JWT-Extended, so its cookie machinery stays off.
    """
    app.config.update(
        JWT_SECRET_KEY=settings.secret_key,
        JWT_ALGORITHM="HS256",
        JWT_DECODE_ALGORITHMS=["HS256"],
        JWT_ENCODE_ISSUER=settings.issuer,
        JWT_DECODE_ISSUER=settings.issuer,
        JWT_ENCODE_AUDIENCE=settings.audience,
        JWT_DECODE_AUDIENCE=settings.audience,
        JWT_DECODE_LEEWAY=0,
        JWT_ACCESS_TOKEN_EXPIRES=settings.access_expires,
        JWT_TOKEN_LOCATION=["headers"],
        JWT_IDENTITY_CLAIM="sub",
    )


def init_app(app: Flask, settings: AuthSettings) -> None:
    """Bind the extensions to ``app`` and publish ``settings`` on it.

    Importing :mod:`session_auth.models` here registers every table on the
    metadata before Flask-Migrate inspects it.
    """
    db.init_app(app)
    from session_auth import models  # noqa: F401

    migrate.init_app(app, db)
    _configure_jwt(app, settings)
    jwt.init_app(app)
    app.extensions[AUTH_SETTINGS_KEY] = settings


def get_auth_settings(app: Flask) -> AuthSettings:
    """Auth settings frozen by :func:`init_app`."""
    try:
        return app.extensions[AUTH_SETTINGS_KEY]
    except KeyError:
        raise RuntimeError("Auth settings are not initialized; call init_app() first.") from None
