"""Unit tests for the password hasher and refresh-token generator adapters."""

from __future__ import annotations

import re

import pytest

from session_auth.infra.security import SecretsTokenGenerator, WerkzeugPasswordHasher

URLSAFE = re.compile(r"^[A-Za-z0-9_-]+$")


class TestWerkzeugPasswordHasher:
    def test_hash_is_salted_and_verifiable(self, hasher):
        first = hasher.hash("correct horse")
        second = hasher.hash("correct horse")

        assert first != second
        assert first.startswith("pbkdf2:sha256:1000$")
        assert hasher.verify("correct horse", first)
        assert not hasher.verify("wrong horse", first)

    @pytest.mark.parametrize("digest", ["", "not-a-digest", "unknown-method$salt$hash"])
    def test_unusable_digest_never_verifies(self, hasher, digest):
        assert hasher.verify("anything", digest) is False

    def test_dummy_verify_reuses_a_cached_digest(self, hasher):
        assert hasher.dummy_verify("whatever") is None
        cached = hasher._dummy_digest
        hasher.dummy_verify("something else")
        assert cached is not None
        assert hasher._dummy_digest is cached

    def test_default_method_is_scrypt(self):
        assert WerkzeugPasswordHasher().hash("pw").startswith("scrypt:")


class TestSecretsTokenGenerator:
    def test_tokens_are_long_urlsafe_and_unique(self):
        generator = SecretsTokenGenerator()
        tokens = {generator.generate() for _ in range(50)}

        assert len(tokens) == 50
        for token in tokens:
            assert len(token) == 86
            assert URLSAFE.match(token)

    def test_rejects_weak_entropy(self):
        with pytest.raises(ValueError):
            SecretsTokenGenerator(nbytes=32)
