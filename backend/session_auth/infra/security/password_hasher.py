# session_auth/infra/security/password_hasher.py
from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from session_auth.services._shared.ports import PasswordHasher


class WerkzeugPasswordHasher(PasswordHasher):
    """
    Adapter over :mod:`werkzeug.security`.

    Digests are self-describing (``method$salt$hash``), so changing
    ``method`` only affects new hashes; old ones keep verifying.

    :param method: Werkzeug hashing method, e.g. ``"scrypt"`` or
        ``"pbkdf2:sha256:600000"``.
    """

    def __init__(self, method: str = "scrypt") -> None:
        self.method = method
        self._dummy_digest: str | None = None

    def hash(self, plaintext: str) -> str:
        return generate_password_hash(plaintext, method=self.method)

    def verify(self, plaintext: str, digest: str) -> bool:
        if not digest:
            return False
        try:
            return check_password_hash(digest, plaintext)
        except ValueError:
            # Unknown method or malformed digest
            return False

    def dummy_verify(self, plaintext: str) -> None:
        if self._dummy_digest is None:
            self._dummy_digest = self.hash("dummy-password-for-timing")
        check_password_hash(self._dummy_digest, plaintext)
