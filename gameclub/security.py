"""
Credential hashing and session tokens.

Passwords and club passcodes are hashed with Argon2; sessions are HS256
JWTs carrying the caller's Identity.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from gameclub.config import settings
from gameclub.schemas import Identity

PASSWORD_HASHER = PasswordHasher()

ALGORITHM = "HS256"
COOKIE_NAME = "auth-token"


def hash_secret(secret: str) -> str:
    """Hash a password or club passcode."""
    return PASSWORD_HASHER.hash(secret)


def verify_secret(secret: str, hashed: str) -> bool:
    try:
        return PASSWORD_HASHER.verify(hashed, secret)
    except (VerificationError, InvalidHashError):
        return False


def issue_token(identity: Identity) -> str:
    now = datetime.now(timezone.utc)
    payload = identity.model_dump()
    payload.update({"iat": now, "exp": now + timedelta(days=settings.token_ttl_days)})
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def read_token(token: str) -> Optional[Identity]:
    """Return the embedded identity, or None if the token is invalid or expired."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.InvalidTokenError:
        return None
    try:
        return Identity.model_validate(payload)
    except ValueError:
        return None
