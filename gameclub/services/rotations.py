"""
Rotation building and lifecycle: planned -> active -> completed.

At most one rotation per club is active. Builds, activations and
deletions lock the club row first, so the read-then-write checks below
cannot interleave with another request for the same club.
"""

import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from gameclub.cache import invalidate_members
from gameclub.database import atomic, lock_club, utcnow
from gameclub.errors import Conflict, InvalidArgument, InvalidState, NotFound
from gameclub.models import Rotation
from gameclub.schemas import (
    Identity, PlayStatus, RotationCreated, RotationEntry, RotationRecord, RotationStatus
)
from gameclub.services import ensure_owner
from gameclub.transitions import REVERT

logger = logging.getLogger(__name__)

# Each member's unplayed game with the lowest queue position.
QUEUE_HEADS_SQL = """
    SELECT g.id, g.user_id
    FROM games g
    JOIN users u ON g.user_id = u.id
    WHERE u.club_id = :cid
      AND g.status = 'unplayed'
      AND g.position_in_queue = (
          SELECT MIN(g2.position_in_queue)
          FROM games g2
          WHERE g2.user_id = g.user_id
            AND g2.status = 'unplayed'
      )
    ORDER BY g.user_id
"""

ENTRIES_SQL = """
    SELECT rg.*, g.title, g.igdb_id, g.status AS game_status, u.username
    FROM rotation_games rg
    JOIN games g ON rg.game_id = g.id
    JOIN users u ON g.user_id = u.id
    WHERE rg.rotation_id = :rid
    ORDER BY rg.play_order ASC
"""


def get_rotation(db: Session, club_id: int, rotation_id: int) -> RotationRecord:
    rotation = RotationRecord.from_row(
        db.execute(
            text("SELECT * FROM rotations WHERE id = :rid AND club_id = :cid"),
            {"rid": rotation_id, "cid": club_id},
        ).fetchone()
    )
    if rotation is None:
        raise NotFound(f"Rotation {rotation_id} not found")
    return rotation


def active_rotation(db: Session, club_id: int):
    """The club's active rotation, or None."""
    return RotationRecord.from_row(
        db.execute(
            text("SELECT * FROM rotations WHERE club_id = :cid AND status = :active"),
            {"cid": club_id, "active": RotationStatus.ACTIVE.value},
        ).fetchone()
    )


def build(db: Session, identity: Identity, name: str) -> RotationCreated:
    """
    Snapshot the head of every member's queue into a new planned rotation.

    Members with an empty queue are skipped. play_order follows the
    owning user's id, starting at 1.
    """
    ensure_owner(identity)
    name = name.strip() if name else ""
    if not name:
        raise InvalidArgument("Rotation name is required")

    with atomic(db):
        lock_club(db, identity.club_id)
        if active_rotation(db, identity.club_id) is not None:
            raise Conflict("There is already an active rotation")

        rotation = Rotation(club_id=identity.club_id, name=name, status=RotationStatus.PLANNED.value)
        db.add(rotation)
        db.flush()
        rotation_id = rotation.id

        heads = db.execute(text(QUEUE_HEADS_SQL), {"cid": identity.club_id}).fetchall()
        for play_order, head in enumerate(heads, start=1):
            db.execute(
                text(
                    "INSERT INTO rotation_games (rotation_id, game_id, rotation_status, play_order) "
                    "VALUES (:rid, :gid, :status, :order)"
                ),
                {"rid": rotation_id, "gid": head.id, "status": PlayStatus.UNPLAYED.value, "order": play_order},
            )

    logger.info("Rotation %d '%s' built for club %d with %d games",
                rotation_id, name, identity.club_id, len(heads))
    return RotationCreated(rotation=get_rotation(db, identity.club_id, rotation_id), game_count=len(heads))


def activate(db: Session, identity: Identity, rotation_id: int) -> RotationRecord:
    """
    Make a rotation the club's active one.

    A rotation that is already active is returned unchanged. Any other
    active rotation is completed in the same transaction.
    """
    ensure_owner(identity)
    with atomic(db):
        lock_club(db, identity.club_id)
        rotation = get_rotation(db, identity.club_id, rotation_id)

        if rotation.status is RotationStatus.COMPLETED:
            raise InvalidState("Completed rotations cannot be reactivated")

        if rotation.status is RotationStatus.PLANNED:
            now = utcnow()
            demoted = db.execute(
                text(
                    "UPDATE rotations SET status = :completed, completed_at = :now "
                    "WHERE club_id = :cid AND status = :active"
                ),
                {
                    "completed": RotationStatus.COMPLETED.value,
                    "active": RotationStatus.ACTIVE.value,
                    "now": now,
                    "cid": identity.club_id,
                },
            ).rowcount
            db.execute(
                text("UPDATE rotations SET status = :active, started_at = :now WHERE id = :rid"),
                {"active": RotationStatus.ACTIVE.value, "now": now, "rid": rotation_id},
            )
            logger.info("Rotation %d activated for club %d (%d previous completed)",
                        rotation_id, identity.club_id, demoted)

    return get_rotation(db, identity.club_id, rotation_id)


def delete(db: Session, identity: Identity, rotation_id: int) -> None:
    """
    Delete a planned or active rotation and its entries.

    Completed rotations are kept as history. For an active rotation the
    game currently being played goes back to unplayed first.
    """
    ensure_owner(identity)
    with atomic(db):
        lock_club(db, identity.club_id)
        rotation = get_rotation(db, identity.club_id, rotation_id)

        if rotation.status is RotationStatus.COMPLETED:
            raise InvalidState("Completed rotations cannot be deleted to preserve history")

        if rotation.status is RotationStatus.ACTIVE:
            playing = db.execute(
                text("SELECT id, game_id FROM rotation_games WHERE rotation_id = :rid AND rotation_status = :playing"),
                {"rid": rotation_id, "playing": PlayStatus.PLAYING.value},
            ).fetchall()
            now = utcnow()
            for entry in playing:
                REVERT.apply(db, rotation_game_id=entry.id, game_id=entry.game_id, at=now)

        db.execute(text("DELETE FROM rotation_games WHERE rotation_id = :rid"), {"rid": rotation_id})
        db.execute(text("DELETE FROM rotations WHERE id = :rid"), {"rid": rotation_id})

    invalidate_members(identity.club_id)
    logger.info("Rotation %d (%s) deleted from club %d", rotation_id, rotation.status.value, identity.club_id)


def list_rotations(db: Session, identity: Identity) -> list[RotationRecord]:
    rows = db.execute(
        text("SELECT * FROM rotations WHERE club_id = :cid ORDER BY created_at DESC, id DESC"),
        {"cid": identity.club_id},
    ).fetchall()
    return [RotationRecord.from_row(r) for r in rows]


def entries(db: Session, rotation_id: int) -> list[RotationEntry]:
    rows = db.execute(text(ENTRIES_SQL), {"rid": rotation_id}).fetchall()
    return [RotationEntry.from_row(r) for r in rows]


def rotation_games(db: Session, identity: Identity, rotation_id: int) -> list[RotationEntry]:
    get_rotation(db, identity.club_id, rotation_id)
    return entries(db, rotation_id)
