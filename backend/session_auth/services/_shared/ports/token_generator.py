from __future__ import annotations

from typing import Protocol


class RandomTokenGenerator(Protocol):
    """Port producing opaque refresh-token strings.

    Implementations draw at least 64 bytes from a cryptographically secure
    source and encode them into a printable, cookie-safe string.
    """

    def generate(self) -> str: ...
