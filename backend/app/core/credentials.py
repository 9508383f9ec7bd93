"""Credentials — password hashing and opaque bearer tokens.

Invariants:
    - Passwords stored as bcrypt hashes ("$2b$<cost>$<salt+digest>")
    - A malformed stored hash never verifies
    - Only the SHA-256 of a bearer token is ever persisted

Design Decisions:
    - Opaque DB-backed tokens over signed JWTs: revocable on logout, nothing to
      rotate, the token carries no claims
    - Cost factor travels inside each bcrypt hash, so gensalt() defaults can rise
      without invalidating stored passwords
"""

import hashlib
import secrets

import bcrypt


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, encoded: str) -> bool:
    if not encoded:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("utf-8"))
    except ValueError:
        return False


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_temporary_password() -> str:
    """16 hex chars, matches the one-time admin bootstrap password format."""
    return secrets.token_hex(8)
