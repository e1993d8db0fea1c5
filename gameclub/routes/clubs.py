"""
Club routes.

Endpoints:
  POST /api/clubs          — Create a club
  GET  /api/clubs          — Clubs with at least one member
  POST /api/club/users     — Usernames of a club (login picker)
  GET  /api/club/members   — Members of the caller's club with game counts
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gameclub.config import settings
from gameclub.database import get_db
from gameclub.dependencies import get_current_user
from gameclub.limiter import limiter
from gameclub.schemas import ClubCreate, ClubListing, ClubSummary, ClubUser, ClubUsersRequest, Identity, Member
from gameclub.services import clubs

router = APIRouter(tags=["Clubs"])


@router.post("/api/clubs", response_model=ClubSummary, status_code=201)
@limiter.limit(settings.auth_rate_limit)
def create_club(request: Request, payload: ClubCreate, db: Session = Depends(get_db)):
    return clubs.create_club(db, payload.name, payload.passcode, payload.description)


@router.get("/api/clubs", response_model=list[ClubListing])
def list_clubs(db: Session = Depends(get_db)):
    return clubs.list_clubs(db)


@router.post("/api/club/users", response_model=list[ClubUser])
def club_users(payload: ClubUsersRequest, db: Session = Depends(get_db)):
    return clubs.club_users(db, payload.club_id)


@router.get("/api/club/members", response_model=list[Member])
def club_members(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return clubs.members(db, identity)
