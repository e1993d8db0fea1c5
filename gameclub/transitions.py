"""
Paired status changes for a game and its rotation entry.

games.status and rotation_games.rotation_status hold the same value at
every step of a rotation. A StatusTransition is the only way the
services change either field, and it always writes both rows in the
caller's transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from gameclub.schemas import PlayStatus


@dataclass(frozen=True)
class StatusTransition:
    status: PlayStatus
    stamp: Optional[str] = None   # timestamp column set to `at`
    clear: Optional[str] = None   # timestamp column reset to NULL

    def _assignments(self, status_column: str) -> str:
        parts = [f"{status_column} = :status"]
        if self.stamp:
            parts.append(f"{self.stamp} = :at")
        if self.clear:
            parts.append(f"{self.clear} = NULL")
        return ", ".join(parts)

    def apply(self, db: Session, *, rotation_game_id: int, game_id: int, at: datetime) -> None:
        params = {"status": self.status.value}
        if self.stamp:
            params["at"] = at
        db.execute(
            text(f"UPDATE rotation_games SET {self._assignments('rotation_status')} WHERE id = :id"),
            {**params, "id": rotation_game_id},
        )
        db.execute(
            text(f"UPDATE games SET {self._assignments('status')} WHERE id = :id"),
            {**params, "id": game_id},
        )


START = StatusTransition(PlayStatus.PLAYING, stamp="date_started")
FINISH = StatusTransition(PlayStatus.PLAYED, stamp="date_finished")
REVERT = StatusTransition(PlayStatus.UNPLAYED, clear="date_started")
