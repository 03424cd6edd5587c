"""Security utilities for passwords and session tokens.

Passwords are hashed with bcrypt. Issued tokens are never stored; a
SHA-256 digest identifies them in the sessions table.
"""

import hashlib

import bcrypt


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Uses bcrypt with automatic salt generation. The work factor is
    determined by bcrypt's gensalt().

    Args:
        password: The plaintext password

    Returns:
        The bcrypt hash as a string
    """
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison.

    Args:
        password: The plaintext password to verify
        password_hash: The bcrypt hash to verify against

    Returns:
        True if the password matches the hash, False otherwise
    """
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Invalid hash format
        return False


def hash_session_token(token: str) -> str:
    """Digest of an issued token, as stored on its session row."""
    return hashlib.sha256(token.encode()).hexdigest()
