"""
Event secret hashing utilities.

Event secrets are never stored in clear text. They are pre-hashed with
SHA-256 (so secrets longer than bcrypt's 72-byte input limit are not
silently truncated) and the base64 digest is hashed with bcrypt.
"""

import base64
import hashlib

import bcrypt


def _prehash(secret: str) -> bytes:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.b64encode(digest)


def hash_secret(secret: str) -> str:
    """
    Hash an event secret for storage.

    Args:
        secret: Plain-text secret

    Returns:
        bcrypt hash string (includes the salt)
    """
    return bcrypt.hashpw(_prehash(secret), bcrypt.gensalt()).decode("utf-8")


def verify_secret(secret: str, secret_hash: str) -> bool:
    """
    Check a plain-text secret against a stored hash.

    Returns:
        True on match; False on mismatch or when the stored hash is malformed
    """
    try:
        return bcrypt.checkpw(_prehash(secret), secret_hash.encode("utf-8"))
    except ValueError:
        return False
