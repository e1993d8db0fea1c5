"""
Club dashboard: totals, the active rotation, the game being played and
recent finishes.
"""

from sqlalchemy import text
from sqlalchemy.orm import Session

from gameclub.schemas import (
    ActiveRotation, ClubStats, CurrentGame, DashboardResponse, Identity, PlayStatus, RecentActivity
)
from gameclub.services.rotations import active_rotation, entries

STATS_SQL = """
    SELECT
        COUNT(DISTINCT u.id) AS total_members,
        COUNT(DISTINCT g.id) AS total_games,
        COUNT(DISTINCT CASE WHEN g.status = :played THEN g.id END) AS completed_games,
        COUNT(DISTINCT CASE WHEN g.status = :playing THEN g.id END) AS playing_games
    FROM users u
    LEFT JOIN games g ON u.id = g.user_id
    WHERE u.club_id = :cid
"""

CURRENT_GAME_SQL = """
    SELECT g.id, g.title, g.igdb_id, g.date_started, u.username
    FROM games g
    JOIN users u ON g.user_id = u.id
    WHERE u.club_id = :cid AND g.status = :playing
    ORDER BY g.date_started DESC
    LIMIT 1
"""

RECENT_SQL = """
    SELECT g.title, g.igdb_id, g.date_finished, u.username
    FROM games g
    JOIN users u ON g.user_id = u.id
    WHERE u.club_id = :cid AND g.status = :played AND g.date_finished IS NOT NULL
    ORDER BY g.date_finished DESC
    LIMIT 5
"""


def stats(db: Session, identity: Identity) -> DashboardResponse:
    params = {
        "cid": identity.club_id,
        "played": PlayStatus.PLAYED.value,
        "playing": PlayStatus.PLAYING.value,
    }

    totals = db.execute(text(STATS_SQL), params).fetchone()
    club_stats = ClubStats(
        total_members=totals.total_members,
        total_games=totals.total_games,
        completed_games=totals.completed_games,
        playing_games=totals.playing_games,
        in_progress_games=totals.total_games - totals.completed_games,
    )

    active = None
    rotation = active_rotation(db, identity.club_id)
    if rotation is not None:
        games = entries(db, rotation.id)
        active = ActiveRotation(
            id=rotation.id,
            name=rotation.name,
            created_at=rotation.created_at,
            total_rotation_games=len(games),
            games=games,
        )

    current = db.execute(text(CURRENT_GAME_SQL), params).fetchone()
    recent = db.execute(text(RECENT_SQL), params).fetchall()

    return DashboardResponse(
        stats=club_stats,
        active_rotation=active,
        current_game=CurrentGame.model_validate(dict(current._mapping)) if current else None,
        recent_activity=[RecentActivity.model_validate(dict(r._mapping)) for r in recent],
    )
