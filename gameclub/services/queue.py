"""
Personal game queues.

Positions are dense per user: a user's games always occupy exactly
1..N in position_in_queue. Every mutation locks the user row first so
concurrent requests for the same user apply one after the other.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from gameclub.cache import invalidate_members
from gameclub.catalog import IGDBClient
from gameclub.database import atomic, lock_user
from gameclub.errors import Conflict, InvalidArgument, InvalidState, NotFound
from gameclub.models import Game
from gameclub.schemas import Direction, GameRecord, Identity, PlayStatus, QueuedGame

logger = logging.getLogger(__name__)


def _get_own_game(db: Session, user_id: int, game_id: int) -> GameRecord:
    game = GameRecord.from_row(
        db.execute(
            text("SELECT * FROM games WHERE id = :gid AND user_id = :uid"),
            {"gid": game_id, "uid": user_id},
        ).fetchone()
    )
    if game is None:
        raise NotFound(f"Game {game_id} not found")
    return game


def append(db: Session, identity: Identity, igdb_id: int, title: str) -> GameRecord:
    """Add a catalog game to the end of the caller's queue."""
    title = title.strip() if title else ""
    if not igdb_id or not title:
        raise InvalidArgument("IGDB ID and title are required")

    with atomic(db):
        lock_user(db, identity.user_id)

        existing = db.execute(
            text("SELECT id FROM games WHERE user_id = :uid AND igdb_id = :igdb"),
            {"uid": identity.user_id, "igdb": igdb_id},
        ).fetchone()
        if existing:
            raise Conflict("Game already in your queue")

        next_position = db.execute(
            text("SELECT COALESCE(MAX(position_in_queue), 0) + 1 FROM games WHERE user_id = :uid"),
            {"uid": identity.user_id},
        ).scalar_one()

        game = Game(
            user_id=identity.user_id,
            igdb_id=igdb_id,
            title=title,
            status=PlayStatus.UNPLAYED.value,
            position_in_queue=next_position,
        )
        db.add(game)
        db.flush()
        game_id = game.id

    invalidate_members(identity.club_id)
    logger.info("User %d queued '%s' at position %d", identity.user_id, title, next_position)
    return _get_own_game(db, identity.user_id, game_id)


def remove(db: Session, identity: Identity, game_id: int) -> None:
    """Delete an unplayed game and close the gap it leaves."""
    with atomic(db):
        lock_user(db, identity.user_id)
        game = _get_own_game(db, identity.user_id, game_id)

        if game.status is not PlayStatus.UNPLAYED:
            raise InvalidState("Only unplayed games can be removed")
        in_rotation = db.execute(
            text("SELECT 1 FROM rotation_games WHERE game_id = :gid"),
            {"gid": game_id},
        ).first()
        if in_rotation:
            raise InvalidState("Game is part of a rotation")

        db.execute(text("DELETE FROM games WHERE id = :gid"), {"gid": game_id})
        db.execute(
            text(
                "UPDATE games SET position_in_queue = position_in_queue - 1 "
                "WHERE user_id = :uid AND position_in_queue > :pos"
            ),
            {"uid": identity.user_id, "pos": game.position_in_queue},
        )

    invalidate_members(identity.club_id)
    logger.info("User %d removed game %d from position %d", identity.user_id, game_id, game.position_in_queue)


def reorder(db: Session, identity: Identity, game_id: int, direction: str) -> list[GameRecord]:
    """
    Swap a game with its immediate neighbour.

    Moving past the top or bottom of the queue raises InvalidState and
    changes nothing. Returns the caller's queue after the swap.
    """
    try:
        step = Direction(direction)
    except ValueError:
        raise InvalidArgument("Invalid direction") from None

    with atomic(db):
        lock_user(db, identity.user_id)
        game = _get_own_game(db, identity.user_id, game_id)

        current = game.position_in_queue
        target = current - 1 if step is Direction.UP else current + 1

        neighbour = db.execute(
            text("SELECT id FROM games WHERE user_id = :uid AND position_in_queue = :pos"),
            {"uid": identity.user_id, "pos": target},
        ).fetchone()
        if neighbour is None:
            raise InvalidState("Cannot move in that direction")

        db.execute(
            text("UPDATE games SET position_in_queue = :pos WHERE id = :gid AND user_id = :uid"),
            {"pos": target, "gid": game_id, "uid": identity.user_id},
        )
        db.execute(
            text("UPDATE games SET position_in_queue = :pos WHERE id = :gid AND user_id = :uid"),
            {"pos": current, "gid": neighbour.id, "uid": identity.user_id},
        )

    logger.info("User %d moved game %d %s (%d -> %d)", identity.user_id, game_id, step.value, current, target)
    return user_games(db, identity.user_id)


def user_games(db: Session, user_id: int) -> list[GameRecord]:
    rows = db.execute(
        text("SELECT * FROM games WHERE user_id = :uid ORDER BY position_in_queue ASC"),
        {"uid": user_id},
    ).fetchall()
    return [GameRecord.from_row(r) for r in rows]


def list_queue(db: Session, identity: Identity, catalog: IGDBClient,
               user_id: Optional[int] = None) -> list[QueuedGame]:
    """A club member's queue with cover art and release year from the catalog."""
    target = user_id or identity.user_id
    member = db.execute(
        text("SELECT username FROM users WHERE id = :uid AND club_id = :cid"),
        {"uid": target, "cid": identity.club_id},
    ).fetchone()
    if member is None:
        raise NotFound(f"User {target} not found")

    queue = []
    for game in user_games(db, target):
        entry = catalog.get(game.igdb_id)
        queue.append(
            QueuedGame(
                **game.model_dump(),
                username=member.username,
                cover_url=entry.cover_url if entry else None,
                release_year=entry.release_year if entry else None,
            )
        )
    return queue
