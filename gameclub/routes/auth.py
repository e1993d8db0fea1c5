"""
Sign-in routes.

Endpoints:
  POST /api/auth/club      — Check a club's passcode
  POST /api/auth/register  — Join a club (first member becomes owner)
  POST /api/auth/login     — Sign in to a club
  POST /api/auth/logout    — Clear the session cookie
  GET  /api/me             — Current identity
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from gameclub.config import settings
from gameclub.database import get_db
from gameclub.dependencies import get_current_user
from gameclub.limiter import limiter
from gameclub.schemas import (
    AuthResponse, ClubAuth, ClubSummary, Identity, LoginRequest, MessageResponse, RegisterRequest
)
from gameclub.security import COOKIE_NAME, issue_token
from gameclub.services import clubs

router = APIRouter(tags=["Auth"])


def _start_session(response: Response, identity: Identity) -> AuthResponse:
    token = issue_token(identity)
    response.set_cookie(
        COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=60 * 60 * 24 * settings.token_ttl_days,
    )
    return AuthResponse(user=identity, token=token)


@router.post("/api/auth/club", response_model=ClubSummary)
@limiter.limit(settings.auth_rate_limit)
def authenticate_club(request: Request, payload: ClubAuth, db: Session = Depends(get_db)):
    """Verify a club name / passcode pair."""
    return clubs.authenticate_club(db, payload.club_name, payload.passcode)


@router.post("/api/auth/register", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
def register(request: Request, payload: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    """Create an account in a club and start a session."""
    identity = clubs.register(db, payload.club_id, payload.username, payload.password)
    return _start_session(response, identity)


@router.post("/api/auth/login", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
def login(request: Request, payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    identity = clubs.login(db, payload.club_id, payload.username, payload.password)
    return _start_session(response, identity)


@router.post("/api/auth/logout", response_model=MessageResponse)
def logout(response: Response):
    response.delete_cookie(COOKIE_NAME)
    return MessageResponse(message="Signed out")


@router.get("/api/me", response_model=Identity)
def me(identity: Identity = Depends(get_current_user)):
    return identity
