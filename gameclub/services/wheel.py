"""
Spinning the wheel and finishing the game it picked.

Both operations lock the club row before reading rotation state, so the
"nothing is playing" check and the write that follows it happen in the
same transaction and two spins for one club cannot both pass the check.
"""

import logging
import random

from sqlalchemy import text
from sqlalchemy.orm import Session

from gameclub.cache import invalidate_members
from gameclub.database import atomic, lock_club, utcnow
from gameclub.errors import Conflict, InvalidState, NotFound
from gameclub.schemas import (
    FinishResult, Identity, PlayStatus, RotationGameRecord, RotationStatus, SpinResult, SpinSelection
)
from gameclub.services import ensure_owner
from gameclub.services.rotations import active_rotation, entries, get_rotation
from gameclub.transitions import FINISH, START

logger = logging.getLogger(__name__)


def spin(db: Session, identity: Identity, rng: random.Random) -> SpinResult:
    """Pick one unplayed entry of the active rotation uniformly at random and start it."""
    ensure_owner(identity)
    with atomic(db):
        lock_club(db, identity.club_id)

        rotation = active_rotation(db, identity.club_id)
        if rotation is None:
            raise NotFound("No active rotation found")

        rotation_entries = entries(db, rotation.id)
        if any(e.rotation_status is PlayStatus.PLAYING for e in rotation_entries):
            raise Conflict("A game is already being played in this rotation")
        candidates = [e for e in rotation_entries if e.rotation_status is PlayStatus.UNPLAYED]
        if not candidates:
            raise NotFound("No unplayed games in current rotation")

        index = rng.randrange(len(candidates))
        chosen = candidates[index]
        START.apply(db, rotation_game_id=chosen.id, game_id=chosen.game_id, at=utcnow())

    invalidate_members(identity.club_id)
    logger.info("Spin in rotation %d: '%s' by %s (index %d of %d)",
                rotation.id, chosen.title, chosen.username, index, len(candidates))
    return SpinResult(
        selected=SpinSelection(
            rotation_game_id=chosen.id,
            game_id=chosen.game_id,
            title=chosen.title,
            username=chosen.username,
            igdb_id=chosen.igdb_id,
            play_order=chosen.play_order,
        ),
        pool_size=len(candidates),
        selected_index=index,
    )


def finish(db: Session, identity: Identity, rotation_game_id: int) -> FinishResult:
    """
    Mark the playing entry of the active rotation as played.

    When that leaves no entry unplayed or playing, the rotation is
    completed in the same transaction.
    """
    ensure_owner(identity)
    with atomic(db):
        lock_club(db, identity.club_id)

        entry = RotationGameRecord.from_row(
            db.execute(
                text(
                    "SELECT rg.* FROM rotation_games rg "
                    "JOIN rotations r ON rg.rotation_id = r.id "
                    "WHERE rg.id = :rgid AND r.club_id = :cid"
                ),
                {"rgid": rotation_game_id, "cid": identity.club_id},
            ).fetchone()
        )
        if entry is None:
            raise NotFound(f"Rotation game {rotation_game_id} not found")
        if get_rotation(db, identity.club_id, entry.rotation_id).status is not RotationStatus.ACTIVE:
            raise InvalidState("Rotation is not active")
        if entry.rotation_status is not PlayStatus.PLAYING:
            raise InvalidState("Game is not currently playing")

        now = utcnow()
        FINISH.apply(db, rotation_game_id=entry.id, game_id=entry.game_id, at=now)

        remaining = db.execute(
            text("SELECT COUNT(*) FROM rotation_games WHERE rotation_id = :rid AND rotation_status != :played"),
            {"rid": entry.rotation_id, "played": PlayStatus.PLAYED.value},
        ).scalar_one()

        completed = remaining == 0
        if completed:
            db.execute(
                text("UPDATE rotations SET status = :completed, completed_at = :now WHERE id = :rid"),
                {"completed": RotationStatus.COMPLETED.value, "now": now, "rid": entry.rotation_id},
            )

    invalidate_members(identity.club_id)
    logger.info("Rotation game %d finished (rotation %d)", rotation_game_id, entry.rotation_id)
    if completed:
        logger.info("Rotation %d completed — every game has been played", entry.rotation_id)

    updated = RotationGameRecord.from_row(
        db.execute(text("SELECT * FROM rotation_games WHERE id = :rgid"), {"rgid": rotation_game_id}).fetchone()
    )
    return FinishResult(rotation_game=updated, rotation_completed=completed)
