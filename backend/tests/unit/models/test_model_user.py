"""Unit tests for the :class:`User` and :class:`Role` models."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from session_auth.models import Capability, Role, RoleName, User
from tests.factories.user import UserFactory


class TestUserModel:
    def test_email_is_trimmed_and_lowercased(self, session):
        user = UserFactory(email="  Alice@Example.COM ")
        assert user.email == "alice@example.com"

    @pytest.mark.parametrize("value", ["", "no-at-sign", "user@localhost"])
    def test_malformed_email_is_rejected(self, value):
        with pytest.raises(ValueError):
            User(email=value)

    def test_username_is_trimmed(self, session):
        user = UserFactory(username="  bob  ")
        assert user.username == "bob"

    def test_blank_username_is_rejected(self):
        with pytest.raises(ValueError, match="Username is required"):
            User(username="   ")

    def test_email_is_unique(self, session, roles):
        UserFactory(email="dup@example.com", username="first")
        session.add(
            User(
                email="DUP@example.com",
                username="second",
                password_hash="x",
                role=roles[RoleName.USER],
            )
        )
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_role_is_loaded_with_user(self, session):
        user = UserFactory()
        assert user.role.name == "User"


class TestRoleName:
    @pytest.mark.parametrize("raw", ["admin", "ADMIN", " Admin "])
    def test_parse_is_case_insensitive(self, raw):
        assert RoleName.parse(raw) is RoleName.ADMIN

    @pytest.mark.parametrize("raw", [None, "", "root"])
    def test_parse_unknown_returns_none(self, raw):
        assert RoleName.parse(raw) is None

    def test_capabilities_grow_with_privilege(self):
        assert RoleName.USER.capabilities == {Capability.AUTHENTICATED}
        assert Capability.VIEW_ALL_RECORDS in RoleName.MANAGER.capabilities
        assert Capability.MANAGE_USERS not in RoleName.MANAGER.capabilities
        assert RoleName.ADMIN.capabilities >= RoleName.MANAGER.capabilities

    def test_role_names_are_unique(self, session, roles):
        session.add(Role(name="Admin", description="again"))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()
