"""Shared fixtures: the app, a transactional session, and wired services.

Every test runs on one in-memory SQLite connection inside an outer
transaction that is rolled back afterwards. Sessions join it with
``create_savepoint``, so ``session.commit()`` in a unit of work only releases
its own SAVEPOINT and nothing outlives the test.

Data built with factories is flushed, not committed. Commit it explicitly
before calling a service whose unit of work might roll back.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy.orm import scoped_session, sessionmaker

from session_auth.core.extensions import db as _db
from session_auth.core.extensions import get_auth_settings
from session_auth.factory import create_app
from session_auth.infra.jwt import FlaskJWTTokenSigner
from session_auth.infra.security import SecretsTokenGenerator, WerkzeugPasswordHasher
from session_auth.models.role import RoleName
from session_auth.services.auth import AuthenticationService
from tests.factories import use_session
from tests.factories.user import TEST_HASH_METHOD


class TestConfig:
    """In-memory database, a fast PBKDF2 method and a fixed signing key."""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = "test-signing-secret-0123456789abcdef"
    JWT_ISSUER = "session-auth-tests"
    JWT_AUDIENCE = "session-auth-clients"
    PASSWORD_HASH_METHOD = TEST_HASH_METHOD
    REFRESH_COOKIE_SECURE = True
    USE_PROXYFIX = True
    LOG_LEVEL = "INFO"
    CORS_ORIGINS = "http://localhost:5173"


@pytest.fixture(scope="session")
def app():
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Schema created once; the app context stays pushed for the whole run."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture()
def session(db, connection):
    """
    Swap ``db.session`` for a scoped session joined to the shared connection.

    The outer transaction plus a fixture SAVEPOINT keep SQLite inside a real
    transaction, so the session's own SAVEPOINTs can be released and rolled
    back freely. Everything is discarded when the test ends.
    """
    outer = connection.begin()
    connection.begin_nested()
    scoped = scoped_session(
        sessionmaker(bind=connection, join_transaction_mode="create_savepoint")
    )

    original = db.session
    original.remove()
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original
        outer.rollback()


@pytest.fixture(autouse=True)
def _app_context(app):
    """A fresh application context per test, so ``g`` never carries over."""
    with app.app_context():
        yield


@pytest.fixture(autouse=True)
def _factories_session(session):
    use_session(session)
    yield
    use_session(None)


@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture()
def settings(app):
    """Frozen auth settings of the testing app."""
    return get_auth_settings(app)


@pytest.fixture()
def hasher():
    return WerkzeugPasswordHasher(TEST_HASH_METHOD)


@pytest.fixture()
def signer(db, settings):
    """Access-token signer; needs the app context held by ``db``."""
    return FlaskJWTTokenSigner(settings)


@pytest.fixture()
def service(db, settings, hasher, signer):
    """Authentication service wired to the real adapters."""
    return AuthenticationService(
        hasher=hasher,
        signer=signer,
        generator=SecretsTokenGenerator(),
        settings=settings,
    )


@pytest.fixture()
def roles(session):
    """Seed and commit the three roles; returns them keyed by :class:`RoleName`.

    Committed so a unit of work rolling back inside the test cannot discard
    them.
    """
    from tests.factories.role import RoleFactory

    seeded = {name: RoleFactory(name=name.value) for name in RoleName}
    session.commit()
    return seeded
