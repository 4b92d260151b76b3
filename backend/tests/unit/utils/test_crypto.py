"""
Unit tests for event secret hashing.
"""

from backend.src.utils.crypto import hash_secret, verify_secret


class TestSecretHashing:

    def test_hash_is_not_the_secret(self):
        hashed = hash_secret("kamp2026")
        assert hashed != "kamp2026"
        assert hashed.startswith("$2")

    def test_salted(self):
        assert hash_secret("kamp2026") != hash_secret("kamp2026")

    def test_verify_roundtrip(self):
        hashed = hash_secret("kamp2026")
        assert verify_secret("kamp2026", hashed) is True
        assert verify_secret("kamp2027", hashed) is False

    def test_long_secrets_are_not_truncated(self):
        """bcrypt alone ignores bytes past 72; the pre-hash keeps them."""
        base = "x" * 80
        hashed = hash_secret(base + "a")
        assert verify_secret(base + "a", hashed) is True
        assert verify_secret(base + "b", hashed) is False

    def test_malformed_hash_does_not_verify(self):
        assert verify_secret("kamp2026", "not-a-bcrypt-hash") is False
