"""Authentication endpoints using the service layer."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, request

from session_auth.api.cookies import clear_refresh_cookie, read_refresh_token, set_refresh_cookie
from session_auth.api.deps import (
    build_auth_service,
    client_ip,
    json_response,
    require_auth,
    timing,
)
from session_auth.api.identity import Identity
from session_auth.core.errors import APIError
from session_auth.schemas import (
    LoginResponseSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
    UserPublicSchema,
    WhoAmISchema,
)
from session_auth.services.auth import LoginIn, RefreshIn, RegistrationIn, RevokeIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
user_schema = UserPublicSchema()
login_response_schema = LoginResponseSchema()
token_schema = TokenPairSchema()
whoami_schema = WhoAmISchema()


def _require_refresh_token() -> str:
    data = refresh_schema.load(request.get_json(silent=True) or {})
    token = read_refresh_token(data)
    if not token:
        raise APIError(
            "Refresh token is required",
            status_code=HTTPStatus.BAD_REQUEST,
            code="refresh_token_required",
        )
    return token


@bp.post("/register")
@timing
def register():
    """Register a new user with the default role."""

    payload = register_schema.load(request.get_json(silent=True) or {})
    user = build_auth_service().register(RegistrationIn(**payload))
    return json_response({"data": user_schema.dump(user)}, status=HTTPStatus.CREATED)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials, issue a token pair and set the refresh cookie."""

    data = login_schema.load(request.get_json(silent=True) or {})
    out = build_auth_service().login(LoginIn(**data), client_ip())
    response = json_response({"data": login_response_schema.dump(out)})
    set_refresh_cookie(response, out.refresh_token, out.refresh_token_expires_at)
    return response


@bp.post("/token/refresh")
@timing
def refresh():
    """Rotate the presented refresh token (body or cookie) into a new pair."""

    token = _require_refresh_token()
    pair = build_auth_service().refresh(RefreshIn(refresh_token=token), client_ip())
    response = json_response({"data": token_schema.dump(pair)})
    set_refresh_cookie(response, pair.refresh_token, pair.refresh_token_expires_at)
    return response


@bp.post("/token/revoke")
@require_auth
@timing
def revoke(identity: Identity):
    """Revoke a refresh token; ``400 token_not_active`` when nothing changed."""

    token = _require_refresh_token()
    revoked = build_auth_service(identity).revoke(RevokeIn(refresh_token=token), client_ip())
    if not revoked:
        raise APIError(
            "Token not found or already inactive",
            status_code=HTTPStatus.BAD_REQUEST,
            code="token_not_active",
        )
    response = json_response({"data": {"revoked": True}})
    clear_refresh_cookie(response)
    return response


@bp.get("/whoami")
@require_auth
@timing
def whoami(identity: Identity):
    """Return the identity carried by the verified access token."""

    body = {
        "id": identity.user_id,
        "email": identity.email,
        "username": identity.username,
        "role": identity.role.value if identity.role else None,
        "capabilities": sorted(c.value for c in identity.capabilities),
    }
    return json_response({"data": whoami_schema.dump(body)})
