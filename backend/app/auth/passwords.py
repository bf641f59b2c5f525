"""
YelpCamp Backend - Credential Hashing
=======================================

What:  PBKDF2-HMAC-SHA256 password hashing and verification.
How:   hashlib.pbkdf2_hmac with a random 32-byte salt, 25000 iterations and a
       512-byte derived key. Stored as
       "pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>" so the iteration
       count can be raised later without invalidating existing hashes.
"""

import hashlib
import hmac
import secrets

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 25_000
KEY_LENGTH = 512
SALT_BYTES = 32


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    salt = secrets.token_hex(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), iterations, KEY_LENGTH
    )
    return f"{ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Constant-time check of `password` against a stored hash string."""
    try:
        algorithm, iterations, salt, expected = stored.split("$", 3)
        rounds = int(iterations)
    except (AttributeError, ValueError):
        return False
    if algorithm != ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), rounds, KEY_LENGTH
    )
    return hmac.compare_digest(digest.hex(), expected)
