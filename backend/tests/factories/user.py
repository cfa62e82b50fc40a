"""Factory Boy definition for :class:`session_auth.models.user.User`."""

from __future__ import annotations

import factory
from werkzeug.security import generate_password_hash

from session_auth.models.role import RoleName
from session_auth.models.user import User
from tests.factories import BaseFactory
from tests.factories.role import RoleFactory

DEFAULT_PASSWORD = "Passw0rd!"
TEST_HASH_METHOD = "pbkdf2:sha256:1000"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`User` instances.

    Pass ``password=`` to choose the plaintext; the stored digest uses a cheap
    PBKDF2 work factor.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"user{n}")
    role = factory.SubFactory(RoleFactory, name=RoleName.USER.value)
    password_hash = factory.LazyAttribute(
        lambda o: generate_password_hash(o.password, method=TEST_HASH_METHOD)
    )
