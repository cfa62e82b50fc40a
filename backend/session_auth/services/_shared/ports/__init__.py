"""
session_auth.services._shared.ports
===================================

Collection of *ports* (hexagonal interfaces) that define the contracts for
credential hashing, token issuing, random token generation, and identity
persistence.

Modules
-------
- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`: salted adaptive hashing.

- :mod:`token_signer`:
    Defines :class:`~.TokenSigner`, :class:`~.AccessClaims` and
    :class:`~.IssuedToken`: short-lived signed access tokens.

- :mod:`token_generator`:
    Defines :class:`~.RandomTokenGenerator`: opaque refresh-token strings.

- :mod:`identity_store`:
    Defines :class:`~.IdentityStore` and its per-entity stores.

Design Notes
------------
Concrete adapters live under ``session_auth.infra`` (crypto) and
``session_auth.repositories`` / ``session_auth.uow`` (SQLAlchemy).
"""

from .identity_store import IdentityStore, RefreshTokenStore, RoleStore, UserStore
from .password_hasher import PasswordHasher
from .token_generator import RandomTokenGenerator
from .token_signer import AccessClaims, IssuedToken, TokenSigner

__all__ = [
    "AccessClaims",
    "IdentityStore",
    "IssuedToken",
    "PasswordHasher",
    "RandomTokenGenerator",
    "RefreshTokenStore",
    "RoleStore",
    "TokenSigner",
    "UserStore",
]
