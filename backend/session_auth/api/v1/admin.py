"""Administrative endpoints (require the ``manage_users`` capability)."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, request

from session_auth.api.deps import build_auth_service, json_response, require_capability, timing
from session_auth.api.identity import Identity
from session_auth.models.role import Capability
from session_auth.schemas import AdminCreateUserSchema, UserPublicSchema
from session_auth.services.auth import RegistrationIn

bp = Blueprint("admin", __name__)

create_user_schema = AdminCreateUserSchema()
user_schema = UserPublicSchema()


@bp.post("/users")
@require_capability(Capability.MANAGE_USERS)
@timing
def create_user(identity: Identity):
    """Create a user with an explicit role."""

    data = create_user_schema.load(request.get_json(silent=True) or {})
    role = data.pop("role")
    user = build_auth_service(identity).register(RegistrationIn(**data), role_name=role)
    return json_response({"data": user_schema.dump(user)}, status=HTTPStatus.CREATED)
