"""
FastAPI dependencies shared by the routers.
"""

import random
from typing import Optional

from fastapi import Request

from gameclub.errors import Unauthorized
from gameclub.schemas import Identity
from gameclub.security import COOKIE_NAME, read_token


def _token_from_request(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return request.cookies.get(COOKIE_NAME)


def get_current_user(request: Request) -> Identity:
    """Identity from the session cookie or bearer token."""
    token = _token_from_request(request)
    if not token:
        raise Unauthorized("Unauthorized")
    identity = read_token(token)
    if identity is None:
        raise Unauthorized("Invalid token")
    return identity


def get_rng() -> random.Random:
    """Randomness source for the wheel; overridden with a seeded Random in tests."""
    return random.SystemRandom()
