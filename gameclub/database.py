"""
Database engine, session factory and transaction helpers.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import create_engine, event, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gameclub.config import settings
from gameclub.errors import ClubError, InternalError, NotFound
from gameclub.models import Base, Club, User

logger = logging.getLogger(__name__)

# ── Engine ───────────────────────────────────────────────────────


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database.
            options["poolclass"] = StaticPool
        return options
    return {"pool_size": 20, "max_overflow": 10, "pool_pre_ping": True}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str):
    new_engine = create_engine(url, **_engine_options(url))
    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables():
    """Create all tables if they don't already exist."""
    Base.metadata.create_all(bind=engine)
    logger.info("✓ Database tables ensured")


def create_indexes():
    """Create lookup indexes (idempotent — uses IF NOT EXISTS)."""
    indexes = [
        "CREATE INDEX IF NOT EXISTS idx_users_club_id        ON users (club_id)",
        "CREATE INDEX IF NOT EXISTS idx_games_user_position  ON games (user_id, position_in_queue)",
        "CREATE INDEX IF NOT EXISTS idx_games_status         ON games (status)",
        "CREATE INDEX IF NOT EXISTS idx_rotations_club_status ON rotations (club_id, status)",
        "CREATE INDEX IF NOT EXISTS idx_rg_rotation_status   ON rotation_games (rotation_id, rotation_status)",
        "CREATE INDEX IF NOT EXISTS idx_rg_game_id           ON rotation_games (game_id)",
    ]
    with engine.connect() as conn:
        for stmt in indexes:
            conn.execute(text(stmt))
        conn.commit()
    logger.info("✓ Database indexes ensured")


# ── Dependency ───────────────────────────────────────────────────

def get_db():
    """Yield a session for the lifetime of one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ── Transactions ─────────────────────────────────────────────────

def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@contextmanager
def atomic(db: Session):
    """
    Run the enclosed statements as one transaction.

    Commits when the block exits normally and rolls back on every
    exception. Store failures are logged and re-raised as InternalError
    so callers never see driver details.
    """
    try:
        yield db
        db.commit()
    except ClubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Transaction rolled back: %s", exc)
        raise InternalError("Internal server error") from exc
    except Exception:
        db.rollback()
        raise


def lock_club(db: Session, club_id: int) -> int:
    """Take a row lock on the club, serializing rotation changes for it."""
    locked = db.execute(
        select(Club.id).where(Club.id == club_id).with_for_update()
    ).scalar_one_or_none()
    if locked is None:
        raise NotFound(f"Club {club_id} not found")
    return locked


def lock_user(db: Session, user_id: int) -> int:
    """Take a row lock on the user, serializing changes to their queue."""
    locked = db.execute(
        select(User.id).where(User.id == user_id).with_for_update()
    ).scalar_one_or_none()
    if locked is None:
        raise NotFound(f"User {user_id} not found")
    return locked
