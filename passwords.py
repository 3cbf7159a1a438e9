"""
Password hashing for user credentials.
Uses bcrypt directly; plaintext never leaves these two functions.
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

# Fixed cost factor: 2**12 key-expansion rounds.
BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """
    Hash a plain text password with a fresh salt.

    Raises ValueError when the password is longer than bcrypt's 72-byte limit;
    registration validates length before getting here.
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a stored hash. Any malformed input is a mismatch."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.warning("Password verification rejected input: %s", type(e).__name__)
        return False
