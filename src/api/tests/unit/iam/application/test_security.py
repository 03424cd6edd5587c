"""Unit tests for password and session token security utilities.

Note: Test strings in this file are synthetic test data, not real secrets.
"""
# gitleaks:allow

from iam.application.security import hash_password, hash_session_token, verify_password


class TestPasswordHashing:
    """Tests for hash_password and verify_password."""

    def test_hash_is_bcrypt(self):
        """Hashes use the bcrypt format and never contain the password."""
        password_hash = hash_password("hunter22")

        assert password_hash.startswith("$2")
        assert "hunter22" not in password_hash

    def test_same_password_hashes_differently(self):
        """Each hash gets its own salt."""
        assert hash_password("hunter22") != hash_password("hunter22")

    def test_verifies_correct_password(self):
        assert verify_password("hunter22", hash_password("hunter22")) is True

    def test_rejects_wrong_password(self):
        assert verify_password("hunter23", hash_password("hunter22")) is False

    def test_malformed_hash_does_not_verify(self):
        """A corrupted stored hash is a failed check, not an error."""
        assert verify_password("hunter22", "not-a-bcrypt-hash") is False


class TestSessionTokenHashing:
    """Tests for hash_session_token."""

    def test_digest_is_hex_sha256(self):
        digest = hash_session_token("header.payload.signature")

        assert len(digest) == 64
        assert int(digest, 16) >= 0

    def test_digest_is_deterministic(self):
        assert hash_session_token("a.b.c") == hash_session_token("a.b.c")
        assert hash_session_token("a.b.c") != hash_session_token("a.b.d")
