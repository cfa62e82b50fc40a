# session_auth/infra/security/token_generator.py
from __future__ import annotations

import secrets

from session_auth.services._shared.ports import RandomTokenGenerator

TOKEN_BYTES = 64


class SecretsTokenGenerator(RandomTokenGenerator):
    """Draw refresh tokens from the OS CSPRNG as URL-safe base64 (86 chars)."""

    def __init__(self, nbytes: int = TOKEN_BYTES) -> None:
        if nbytes < TOKEN_BYTES:
            raise ValueError(f"Refresh tokens need at least {TOKEN_BYTES} random bytes.")
        self.nbytes = nbytes

    def generate(self) -> str:
        return secrets.token_urlsafe(self.nbytes)
