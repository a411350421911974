"""
Password hashing and verification.

Uses PBKDF2-HMAC-SHA512 with a random per-user salt. The salt and the
derived key are stored hex encoded next to each other on the user profile.
"""

import hashlib
import hmac
import secrets

from auth_shared.types import PasswordHash


PBKDF2_ALGORITHM = 'sha512'
PBKDF2_ITERATIONS = 100_000
SALT_BYTES = 16
KEY_BYTES = 64


def _derive(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac(
        PBKDF2_ALGORITHM,
        password.encode('utf-8'),
        salt.encode('utf-8'),
        PBKDF2_ITERATIONS,
        dklen=KEY_BYTES
    ).hex()


def hash_password(password: str) -> PasswordHash:
    """Hash a password with a fresh random salt."""
    salt = secrets.token_hex(SALT_BYTES)
    return PasswordHash(salt=salt, hash=_derive(password, salt))


def verify_password(password: str, salt: str, password_hash: str) -> bool:
    """Constant-time comparison against a stored salt and hash."""
    if not salt or not password_hash:
        return False
    try:
        return hmac.compare_digest(_derive(password, salt), password_hash)
    except (TypeError, ValueError):
        return False
