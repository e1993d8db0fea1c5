"""
Clubs, membership and sign-in.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gameclub.cache import cache_get, cache_set, invalidate_members, members_key
from gameclub.config import settings
from gameclub.database import atomic, lock_club
from gameclub.errors import Conflict, InternalError, InvalidArgument, NotFound, Unauthorized
from gameclub.models import Club, User
from gameclub.schemas import (
    ClubListing, ClubRecord, ClubSummary, ClubUser, Identity, Member, PlayStatus, UserRecord
)
from gameclub.security import hash_secret, verify_secret

logger = logging.getLogger(__name__)

LIST_CLUBS_SQL = """
    SELECT
        c.id,
        c.name,
        c.description,
        c.created_at,
        COUNT(DISTINCT u.id) AS member_count,
        COUNT(DISTINCT g.id) AS total_games,
        COUNT(DISTINCT CASE WHEN g.status = 'played' THEN g.id END) AS completed_games,
        (SELECT COUNT(*) FROM rotations r
         WHERE r.club_id = c.id AND r.status = 'active') AS has_active_rotation
    FROM clubs c
    LEFT JOIN users u ON c.id = u.club_id
    LEFT JOIN games g ON u.id = g.user_id
    GROUP BY c.id, c.name, c.description, c.created_at
    HAVING COUNT(DISTINCT u.id) > 0
    ORDER BY c.created_at DESC, c.id DESC
"""

MEMBERS_SQL = """
    SELECT
        u.id,
        u.username,
        u.is_owner,
        u.created_at,
        COUNT(DISTINCT g.id) AS game_count,
        COUNT(DISTINCT CASE WHEN g.status = :played THEN g.id END) AS completed_count,
        COUNT(DISTINCT CASE WHEN g.status = :playing THEN g.id END) AS playing_count,
        COUNT(DISTINCT CASE WHEN g.status = :unplayed THEN g.id END) AS queued_count
    FROM users u
    LEFT JOIN games g ON u.id = g.user_id
    WHERE u.club_id = :cid
    GROUP BY u.id, u.username, u.is_owner, u.created_at
    ORDER BY u.is_owner DESC, u.created_at ASC, u.id ASC
"""


def _club_by_name(db: Session, name: str) -> Optional[ClubRecord]:
    return ClubRecord.from_row(
        db.execute(text("SELECT * FROM clubs WHERE name = :name"), {"name": name}).fetchone()
    )


def create_club(db: Session, name: str, passcode: str, description: Optional[str] = None) -> ClubSummary:
    name = (name or "").strip()
    if not name or not passcode:
        raise InvalidArgument("Club name and passcode are required")

    try:
        with atomic(db):
            if _club_by_name(db, name) is not None:
                raise Conflict("Club name already exists")
            club = Club(name=name, description=description or None, secret_passcode=hash_secret(passcode))
            db.add(club)
            db.flush()
            club_id = club.id
    except InternalError as exc:
        # Lost a race on the unique name
        if isinstance(exc.__cause__, IntegrityError):
            raise Conflict("Club name already exists") from None
        raise

    logger.info("Club %d '%s' created", club_id, name)
    return ClubSummary(id=club_id, name=name, description=description or None)


def list_clubs(db: Session) -> list[ClubListing]:
    rows = db.execute(text(LIST_CLUBS_SQL)).fetchall()
    return [ClubListing.model_validate(dict(r._mapping)) for r in rows]


def authenticate_club(db: Session, name: str, passcode: str) -> ClubSummary:
    """Check a club passcode; the first step before register or login."""
    if not name or not passcode:
        raise InvalidArgument("Club name and passcode are required")
    club = _club_by_name(db, name)
    if club is None:
        raise NotFound("Club not found")
    if not verify_secret(passcode, club.secret_passcode):
        raise Unauthorized("Invalid passcode")
    return ClubSummary(id=club.id, name=club.name, description=club.description)


def register(db: Session, club_id: int, username: str, password: Optional[str] = None) -> Identity:
    """
    Create a member account.

    The first member of a club becomes its owner. The club row stays
    locked for the whole transaction so two first registrations cannot
    both see an empty club.
    """
    username = (username or "").strip()
    if not username:
        raise InvalidArgument("Club ID and username are required")

    with atomic(db):
        lock_club(db, club_id)

        existing = db.execute(
            text("SELECT id FROM users WHERE club_id = :cid AND username = :username"),
            {"cid": club_id, "username": username},
        ).fetchone()
        if existing:
            raise Conflict("Username already exists in this club")

        member_count = db.execute(
            text("SELECT COUNT(*) FROM users WHERE club_id = :cid"), {"cid": club_id}
        ).scalar_one()
        is_first = member_count == 0

        user = User(
            club_id=club_id,
            username=username,
            password=hash_secret(password) if password else None,
            is_owner=is_first,
        )
        db.add(user)
        db.flush()
        user_id = user.id

        if is_first:
            db.execute(
                text("UPDATE clubs SET owner_id = :uid WHERE id = :cid"),
                {"uid": user_id, "cid": club_id},
            )

    invalidate_members(club_id)
    logger.info("User %d '%s' joined club %d%s", user_id, username, club_id, " as owner" if is_first else "")
    return Identity(user_id=user_id, club_id=club_id, username=username, is_owner=is_first)


def login(db: Session, club_id: int, username: str, password: Optional[str] = None) -> Identity:
    user = UserRecord.from_row(
        db.execute(
            text("SELECT * FROM users WHERE club_id = :cid AND username = :username"),
            {"cid": club_id, "username": username},
        ).fetchone()
    )
    if user is None:
        raise NotFound("User not found")

    if user.password:
        if not password:
            raise Unauthorized("Password required")
        if not verify_secret(password, user.password):
            raise Unauthorized("Invalid password")

    logger.info("User %d signed in to club %d", user.id, club_id)
    return Identity(user_id=user.id, club_id=user.club_id, username=user.username, is_owner=user.is_owner)


def club_users(db: Session, club_id: int) -> list[ClubUser]:
    rows = db.execute(
        text("SELECT id, username FROM users WHERE club_id = :cid ORDER BY username ASC"),
        {"cid": club_id},
    ).fetchall()
    return [ClubUser(id=r.id, username=r.username) for r in rows]


def members(db: Session, identity: Identity) -> list[Member]:
    """Members of the caller's club with per-status game counts (cached)."""
    key = members_key(identity.club_id)
    cached = cache_get(key)
    if cached is not None:
        return [Member(**m) for m in cached]

    rows = db.execute(
        text(MEMBERS_SQL),
        {
            "cid": identity.club_id,
            "played": PlayStatus.PLAYED.value,
            "playing": PlayStatus.PLAYING.value,
            "unplayed": PlayStatus.UNPLAYED.value,
        },
    ).fetchall()
    result = [Member.model_validate(dict(r._mapping)) for r in rows]

    cache_set(key, [m.model_dump(mode="json") for m in result], ttl=settings.members_cache_ttl)
    return result
