"""
Pydantic schemas: status enums, typed row records and the request /
response bodies of the HTTP API.

Rows read through raw SQL are validated into the *Record models at the
store boundary so the services never handle loosely-typed tuples.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Status enums ─────────────────────────────────────────────────

class PlayStatus(str, Enum):
    """Shared by games.status and rotation_games.rotation_status."""

    UNPLAYED = "unplayed"
    PLAYING = "playing"
    PLAYED = "played"


class RotationStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


# ── Row records ──────────────────────────────────────────────────

class Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_row(cls, row):
        """Validate a SQLAlchemy Row (or None) into a record."""
        if row is None:
            return None
        return cls.model_validate(dict(row._mapping))


class ClubRecord(Record):
    id: int
    name: str
    description: Optional[str] = None
    secret_passcode: str
    owner_id: Optional[int] = None
    created_at: Optional[datetime] = None


class UserRecord(Record):
    id: int
    club_id: int
    username: str
    password: Optional[str] = None
    is_owner: bool


class GameRecord(Record):
    id: int
    user_id: int
    igdb_id: int
    title: str
    status: PlayStatus
    position_in_queue: int
    date_added: Optional[datetime] = None
    date_started: Optional[datetime] = None
    date_finished: Optional[datetime] = None


class RotationRecord(Record):
    id: int
    club_id: int
    name: str
    status: RotationStatus
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class RotationGameRecord(Record):
    id: int
    rotation_id: int
    game_id: int
    rotation_status: PlayStatus
    play_order: int
    date_started: Optional[datetime] = None
    date_finished: Optional[datetime] = None


class RotationEntry(RotationGameRecord):
    """A rotation_games row joined with its game and the game's owner."""

    title: str
    igdb_id: int
    username: str
    game_status: PlayStatus


# ── Identity ─────────────────────────────────────────────────────

class Identity(BaseModel):
    """Caller identity carried by a session token."""

    user_id: int
    club_id: int
    username: str
    is_owner: bool


# ── Request Schemas ──────────────────────────────────────────────

class ClubCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    passcode: str = Field(..., min_length=1)
    description: Optional[str] = None


class ClubAuth(BaseModel):
    club_name: str
    passcode: str


class RegisterRequest(BaseModel):
    club_id: int = Field(..., gt=0)
    username: str = Field(..., min_length=1, max_length=255)
    password: Optional[str] = None


class LoginRequest(BaseModel):
    club_id: int = Field(..., gt=0)
    username: str = Field(..., min_length=1)
    password: Optional[str] = None


class ClubUsersRequest(BaseModel):
    club_id: int = Field(..., gt=0)


class GameCreate(BaseModel):
    igdb_id: int = Field(..., gt=0, description="IGDB catalog id")
    title: str = Field(..., min_length=1, max_length=255)


class ReorderRequest(BaseModel):
    game_id: int = Field(..., gt=0)
    # Plain string so an unknown value surfaces as InvalidArgument, not 422.
    direction: str


class RotationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class FinishRequest(BaseModel):
    rotation_game_id: int = Field(..., gt=0)


# ── Response Schemas ─────────────────────────────────────────────

class ClubSummary(BaseModel):
    id: int
    name: str
    description: Optional[str] = None


class ClubListing(ClubSummary):
    created_at: Optional[datetime] = None
    member_count: int
    total_games: int
    completed_games: int
    has_active_rotation: bool


class AuthResponse(BaseModel):
    """Returned by register and login; the token is also set as a cookie."""

    user: Identity
    token: str


class ClubUser(BaseModel):
    id: int
    username: str


class Member(BaseModel):
    id: int
    username: str
    is_owner: bool
    created_at: Optional[datetime] = None
    game_count: int
    completed_count: int
    playing_count: int
    queued_count: int


class QueuedGame(GameRecord):
    username: str
    cover_url: Optional[str] = None
    release_year: Optional[int] = None


class CatalogGame(BaseModel):
    """A catalog candidate as returned by the lookup collaborator."""

    id: int
    name: str
    cover_url: Optional[str] = None
    summary: Optional[str] = None
    platforms: Optional[str] = None
    release_year: Optional[int] = None


class RotationCreated(BaseModel):
    rotation: RotationRecord
    game_count: int


class SpinSelection(BaseModel):
    rotation_game_id: int
    game_id: int
    title: str
    username: str
    igdb_id: int
    play_order: int


class SpinResult(BaseModel):
    selected: SpinSelection
    pool_size: int
    selected_index: int


class FinishResult(BaseModel):
    rotation_game: RotationGameRecord
    rotation_completed: bool


class ClubStats(BaseModel):
    total_members: int
    total_games: int
    completed_games: int
    playing_games: int
    in_progress_games: int


class ActiveRotation(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None
    total_rotation_games: int
    games: list[RotationEntry]


class CurrentGame(BaseModel):
    id: int
    title: str
    igdb_id: int
    username: str
    date_started: Optional[datetime] = None


class RecentActivity(BaseModel):
    title: str
    igdb_id: int
    username: str
    date_finished: datetime


class DashboardResponse(BaseModel):
    stats: ClubStats
    active_rotation: Optional[ActiveRotation] = None
    current_game: Optional[CurrentGame] = None
    recent_activity: list[RecentActivity]


class MessageResponse(BaseModel):
    message: str
