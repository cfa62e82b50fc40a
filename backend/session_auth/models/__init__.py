"""SQLAlchemy models for users, roles and refresh tokens."""

from session_auth.models.refresh_token import RefreshToken
from session_auth.models.role import ROLE_CAPABILITIES, Capability, Role, RoleName
from session_auth.models.user import User

__all__ = [
    "Capability",
    "RefreshToken",
    "ROLE_CAPABILITIES",
    "Role",
    "RoleName",
    "User",
]
