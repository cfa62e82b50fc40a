"""HTTP-level tests for the authentication endpoints."""

from __future__ import annotations

from datetime import timedelta

import jwt as pyjwt
import pytest
from sqlalchemy import select

from session_auth.core.clock import utcnow
from session_auth.models import RefreshToken, User
from session_auth.services._shared.errors import PersistenceFailure
from session_auth.services._shared.ports import AccessClaims
from session_auth.services.auth import AuthenticationService, LoginIn
from tests.factories.user import DEFAULT_PASSWORD, UserFactory

BASE = "/api/v1/auth"
PROBLEM_JSON = "application/problem+json"


def _bearer(signer, *, user_id=1, role="User") -> dict[str, str]:
    claims = AccessClaims(user_id=user_id, email="u@example.com", username="u", role=role)
    return {"Authorization": f"Bearer {signer.issue(claims).token}"}


def _refresh_cookie(response) -> str:
    cookies = [c for c in response.headers.getlist("Set-Cookie") if c.startswith("refreshToken=")]
    assert len(cookies) == 1
    return cookies[0]


@pytest.fixture()
def account(session):
    """Committed user; returns its plain login data."""
    user = UserFactory(email="kim@example.com", username="kim")
    session.commit()
    return {"id": user.id, "email": "kim@example.com", "password": DEFAULT_PASSWORD}


# ------------------------------------------------------------------ #
# Register
# ------------------------------------------------------------------ #


class TestRegister:
    def test_created(self, client, session, roles):
        resp = client.post(
            f"{BASE}/register",
            json={"email": "New@Example.com", "username": "newbie", "password": "Sup3rSecret"},
        )

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["email"] == "new@example.com"
        assert data["username"] == "newbie"
        assert data["role"] == "User"
        assert "password_hash" not in data
        assert session.execute(select(User.id).filter_by(email="new@example.com")).first()

    def test_invalid_payload_is_422(self, client):
        resp = client.post(
            f"{BASE}/register", json={"email": "nope", "username": "x", "password": "short"}
        )

        assert resp.status_code == 422
        assert resp.mimetype == PROBLEM_JSON
        body = resp.get_json()
        assert body["code"] == "validation_error"
        assert set(body["details"]["errors"]) == {"email", "username", "password"}
        assert body["request_id"]

    def test_email_without_dotted_domain_is_422(self, client, session, roles):
        resp = client.post(
            f"{BASE}/register",
            json={"email": "bob@localhost", "username": "bobby", "password": "Sup3rSecret"},
        )

        assert resp.status_code == 422
        body = resp.get_json()
        assert body["code"] == "validation_error"
        assert set(body["details"]["errors"]) == {"email"}
        assert session.execute(select(User.id).filter_by(username="bobby")).first() is None

    def test_duplicate_is_409_with_field(self, client, account, roles):
        resp = client.post(
            f"{BASE}/register",
            json={"email": "KIM@example.com", "username": "kim2", "password": "Sup3rSecret"},
        )

        assert resp.status_code == 409
        body = resp.get_json()
        assert body["code"] == "duplicate_identity"
        assert body["details"] == {"field": "email"}


# ------------------------------------------------------------------ #
# Login
# ------------------------------------------------------------------ #


class TestLogin:
    def test_returns_pair_and_sets_cookie(self, client, account):
        resp = client.post(
            f"{BASE}/login", json={"email": account["email"], "password": account["password"]}
        )

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["user"]["id"] == account["id"]

        cookie = _refresh_cookie(resp)
        assert cookie.startswith(f"refreshToken={data['refresh_token']};")
        assert "HttpOnly" in cookie
        assert "Secure" in cookie
        assert "SameSite=Strict" in cookie
        assert "Path=/api/v1/auth/token" in cookie
        assert "Expires=" in cookie

    def test_bad_credentials_are_401(self, client, account):
        wrong = client.post(f"{BASE}/login", json={"email": account["email"], "password": "x"})
        unknown = client.post(f"{BASE}/login", json={"email": "who@example.com", "password": "x"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json()["code"] == unknown.get_json()["code"] == "invalid_credentials"
        assert wrong.get_json()["detail"] == unknown.get_json()["detail"]
        assert "Set-Cookie" not in wrong.headers

    def test_client_ip_comes_from_forwarded_header(self, client, session, account):
        resp = client.post(
            f"{BASE}/login",
            json={"email": account["email"], "password": account["password"]},
            headers={"X-Forwarded-For": "198.51.100.23"},
        )
        token = resp.get_json()["data"]["refresh_token"]

        created_by = session.execute(
            select(RefreshToken.created_by_ip).filter_by(token=token)
        ).scalar_one()
        assert created_by == "198.51.100.23"

    def test_storage_outage_is_503_with_retry_after(self, client, account, monkeypatch):
        def _down(self, dto, ip):
            raise PersistenceFailure()

        monkeypatch.setattr(AuthenticationService, "login", _down)
        resp = client.post(f"{BASE}/login", json={"email": account["email"], "password": "x"})

        assert resp.status_code == 503
        assert resp.headers["Retry-After"] == "1"
        assert resp.get_json()["code"] == "service_unavailable"


# ------------------------------------------------------------------ #
# Refresh & revoke
# ------------------------------------------------------------------ #


def _login_token(service, account) -> str:
    out = service.login(LoginIn(email=account["email"], password=account["password"]), "ip")
    return out.refresh_token


class TestRefresh:
    def test_body_token_rotates(self, client, service, account):
        old = _login_token(service, account)

        resp = client.post(f"{BASE}/token/refresh", json={"refresh_token": old})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["refresh_token"] != old
        assert _refresh_cookie(resp).startswith(f"refreshToken={data['refresh_token']};")

    def test_cookie_token_rotates(self, client, service, account):
        old = _login_token(service, account)
        client.set_cookie("refreshToken", old, path="/api/v1/auth/token")

        resp = client.post(f"{BASE}/token/refresh")

        assert resp.status_code == 200
        assert resp.get_json()["data"]["refresh_token"] != old

    def test_missing_token_is_400(self, client):
        resp = client.post(f"{BASE}/token/refresh", json={})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "refresh_token_required"

    def test_unknown_token_is_401(self, client):
        resp = client.post(f"{BASE}/token/refresh", json={"refresh_token": "made-up"})
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "invalid_token"

    def test_replayed_token_is_401(self, client, service, account):
        old = _login_token(service, account)
        assert client.post(f"{BASE}/token/refresh", json={"refresh_token": old}).status_code == 200

        resp = client.post(f"{BASE}/token/refresh", json={"refresh_token": old})

        assert resp.status_code == 401
        assert resp.get_json()["code"] == "token_inactive"


class TestRevoke:
    def test_requires_access_token(self, client):
        resp = client.post(f"{BASE}/token/revoke", json={"refresh_token": "x"})
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "unauthorized"

    def test_revokes_and_clears_cookie(self, client, service, signer, account):
        token = _login_token(service, account)
        headers = _bearer(signer, user_id=account["id"])

        resp = client.post(f"{BASE}/token/revoke", json={"refresh_token": token}, headers=headers)

        assert resp.status_code == 200
        assert resp.get_json() == {"data": {"revoked": True}}
        assert "Max-Age=0" in _refresh_cookie(resp)

        again = client.post(f"{BASE}/token/revoke", json={"refresh_token": token}, headers=headers)
        assert again.status_code == 400
        assert again.get_json()["code"] == "token_not_active"

    def test_revoked_token_no_longer_refreshes(self, client, service, signer, account):
        token = _login_token(service, account)
        client.post(
            f"{BASE}/token/revoke",
            json={"refresh_token": token},
            headers=_bearer(signer, user_id=account["id"]),
        )

        resp = client.post(f"{BASE}/token/refresh", json={"refresh_token": token})
        assert resp.status_code == 401


# ------------------------------------------------------------------ #
# Access-token guarded routes
# ------------------------------------------------------------------ #


class TestWhoAmI:
    def test_returns_identity_and_capabilities(self, client, signer):
        resp = client.get(f"{BASE}/whoami", headers=_bearer(signer, user_id=9, role="Manager"))

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["id"] == 9
        assert data["role"] == "Manager"
        assert data["capabilities"] == ["authenticated", "view_all_records"]

    def test_missing_token(self, client):
        resp = client.get(f"{BASE}/whoami")
        assert resp.status_code == 401
        assert resp.mimetype == PROBLEM_JSON

    def test_malformed_token(self, client):
        resp = client.get(f"{BASE}/whoami", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "invalid_access_token"

    def test_expired_token(self, client, settings):
        now = utcnow()
        token = pyjwt.encode(
            {
                "sub": "1",
                "iss": settings.issuer,
                "aud": settings.audience,
                "iat": now - timedelta(minutes=20),
                "nbf": now - timedelta(minutes=20),
                "exp": now - timedelta(minutes=5),
                "jti": "expired",
                "type": "access",
                "fresh": False,
            },
            settings.secret_key,
            algorithm="HS256",
        )
        resp = client.get(f"{BASE}/whoami", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "access_token_expired"


class TestAdminCreateUser:
    URL = "/api/v1/admin/users"
    PAYLOAD = {"email": "ops@example.com", "username": "ops", "password": "Sup3rSecret"}

    def test_admin_creates_user_with_role(self, client, signer, roles):
        resp = client.post(
            self.URL, json={**self.PAYLOAD, "role": "manager"}, headers=_bearer(signer, role="Admin")
        )
        assert resp.status_code == 201
        assert resp.get_json()["data"]["role"] == "Manager"

    @pytest.mark.parametrize("role", ["User", "Manager"])
    def test_other_roles_are_forbidden(self, client, signer, roles, role):
        resp = client.post(self.URL, json=self.PAYLOAD, headers=_bearer(signer, role=role))
        assert resp.status_code == 403
        assert resp.get_json()["code"] == "forbidden"

    def test_unknown_role_is_422(self, client, signer, roles):
        resp = client.post(
            self.URL, json={**self.PAYLOAD, "role": "root"}, headers=_bearer(signer, role="Admin")
        )
        assert resp.status_code == 422
        assert "role" in resp.get_json()["details"]["errors"]


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"
    assert resp.headers["X-Request-ID"]


def test_unknown_route_is_problem_json(client):
    resp = client.get("/api/v1/nowhere")
    assert resp.status_code == 404
    assert resp.mimetype == PROBLEM_JSON
    assert resp.get_json()["code"] == "not_found"
