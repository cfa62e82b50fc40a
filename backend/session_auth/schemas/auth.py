"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate, validates

from session_auth.models.role import RoleName
from session_auth.models.user import normalize_email

# ---------------------------- Input schemas ---------------------------------- #


class RegisterSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))

    @validates("email")
    def _storable_email(self, value: str, **kwargs) -> None:
        # Stored emails need a dotted domain; `bob@localhost` passes fields.Email
        try:
            normalize_email(value)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc


class AdminCreateUserSchema(RegisterSchema):
    """Registration payload with an explicit role, for the admin surface."""

    role = fields.String(load_default=RoleName.USER.value)

    @validates("role")
    def _known_role(self, value: str, **kwargs) -> None:
        if RoleName.parse(value) is None:
            allowed = ", ".join(r.value for r in RoleName)
            raise ValidationError(f"Unknown role. Expected one of: {allowed}.")


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    # No minimum: a short password must fail as bad credentials, not as a 422
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshTokenSchema(Schema):
    """Refresh/revoke payload. The token may come from the cookie instead."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(load_default=None, validate=validate.Length(min=1, max=256))


# ---------------------------- Output schemas --------------------------------- #


class UserPublicSchema(Schema):
    """Public representation of a user."""

    id = fields.Integer(required=True)
    username = fields.String(required=True)
    email = fields.Email(required=True)
    role = fields.String(required=True)
    created_at = fields.DateTime(required=True)


class TokenPairSchema(Schema):
    """Response payload containing an access token and its refresh token."""

    access_token = fields.String(required=True)
    access_token_expires_at = fields.DateTime(required=True)
    refresh_token = fields.String(required=True)
    refresh_token_expires_at = fields.DateTime(required=True)
    token_type = fields.Constant("bearer")


class LoginResponseSchema(TokenPairSchema):
    """Token pair plus the authenticated user."""

    user = fields.Nested(UserPublicSchema, required=True)


class WhoAmISchema(Schema):
    """Response payload exposing identity details for the authenticated caller."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    username = fields.String(required=True)
    role = fields.String(required=True)
    capabilities = fields.List(fields.String(), required=True)
