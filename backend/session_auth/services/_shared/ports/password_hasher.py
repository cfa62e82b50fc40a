from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """Port for salted, adaptive password hashing."""

    def hash(self, plaintext: str) -> str:
        """Return a salted digest; hashing the same input twice differs."""

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return ``True`` iff ``plaintext`` matches ``digest``.

        Must not leak match position through timing. An empty or malformed
        digest yields ``False``.
        """

    def dummy_verify(self, plaintext: str) -> None:
        """Spend the cost of one verification without a stored digest."""
