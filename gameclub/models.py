"""
SQLAlchemy ORM models for the Game Club system.
Tables: clubs, users, games, rotations, rotation_games
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Club(Base):
    """A club members join with a shared passcode."""

    __tablename__ = "clubs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    secret_passcode = Column(String(255), nullable=False)
    # Set by the first registration; users.club_id already points back here.
    owner_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_clubs_owner"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    users = relationship("User", back_populates="club", foreign_keys="User.club_id")
    rotations = relationship("Rotation", back_populates="club")

    def __repr__(self):
        return f"<Club(id={self.id}, name='{self.name}')>"


class User(Base):
    """A club member. A null password means passcode-only access."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("club_id", "username", name="uq_users_club_username"),)

    id = Column(Integer, primary_key=True, index=True)
    club_id = Column(Integer, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    username = Column(String(255), nullable=False)
    password = Column(String(255), nullable=True)
    is_owner = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    club = relationship("Club", back_populates="users", foreign_keys=[club_id])
    games = relationship("Game", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, club_id={self.club_id}, username='{self.username}')>"


class Game(Base):
    """An entry in one member's personal queue."""

    __tablename__ = "games"
    __table_args__ = (UniqueConstraint("user_id", "igdb_id", name="uq_games_user_igdb"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    igdb_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default="unplayed")
    position_in_queue = Column(Integer, nullable=False)
    date_added = Column(DateTime, server_default=func.now())
    date_started = Column(DateTime, nullable=True)
    date_finished = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="games")

    def __repr__(self):
        return f"<Game(id={self.id}, user_id={self.user_id}, title='{self.title}', status='{self.status}')>"


class Rotation(Base):
    """One pass through the club: a head-of-queue game from each member."""

    __tablename__ = "rotations"

    id = Column(Integer, primary_key=True, index=True)
    club_id = Column(Integer, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default="planned")
    created_at = Column(DateTime, server_default=func.now())
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    club = relationship("Club", back_populates="rotations")
    entries = relationship("RotationGame", back_populates="rotation", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Rotation(id={self.id}, club_id={self.club_id}, status='{self.status}')>"


class RotationGame(Base):
    """Snapshot of a queued game inside a rotation."""

    __tablename__ = "rotation_games"

    id = Column(Integer, primary_key=True, index=True)
    rotation_id = Column(Integer, ForeignKey("rotations.id", ondelete="CASCADE"), nullable=False)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False)
    rotation_status = Column(String(16), nullable=False, default="unplayed")
    play_order = Column(Integer, nullable=False)
    date_started = Column(DateTime, nullable=True)
    date_finished = Column(DateTime, nullable=True)

    # Relationships
    rotation = relationship("Rotation", back_populates="entries")

    def __repr__(self):
        return (
            f"<RotationGame(id={self.id}, rotation_id={self.rotation_id}, "
            f"game_id={self.game_id}, rotation_status='{self.rotation_status}')>"
        )
