"""
Queue routes.

Endpoints:
  POST   /api/games           — Add a game to the caller's queue
  GET    /api/games           — A member's queue (defaults to the caller)
  DELETE /api/games/{id}      — Remove an unplayed game
  POST   /api/games/reorder   — Move a game one slot up or down
  GET    /api/games/search    — Search the IGDB catalog
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gameclub.catalog import IGDBClient, get_catalog
from gameclub.database import get_db
from gameclub.dependencies import get_current_user
from gameclub.errors import InvalidArgument
from gameclub.schemas import (
    CatalogGame, GameCreate, GameRecord, Identity, MessageResponse, QueuedGame, ReorderRequest
)
from gameclub.services import queue

router = APIRouter(prefix="/api/games", tags=["Games"])


@router.post("", response_model=GameRecord, status_code=201)
def add_game(payload: GameCreate, identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return queue.append(db, identity, payload.igdb_id, payload.title)


@router.get("", response_model=list[QueuedGame])
def list_games(
    user_id: Optional[int] = Query(default=None, gt=0),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    catalog: IGDBClient = Depends(get_catalog),
):
    """Queue ordered by position, with cover art resolved from the catalog."""
    return queue.list_queue(db, identity, catalog, user_id)


@router.get("/search", response_model=list[CatalogGame])
def search_games(
    q: str = "",
    limit: int = Query(default=10, ge=1, le=50),
    catalog: IGDBClient = Depends(get_catalog),
):
    if not q.strip():
        raise InvalidArgument("Search query is required")
    return catalog.search(q.strip(), limit)


@router.post("/reorder", response_model=list[GameRecord])
def reorder_game(payload: ReorderRequest, identity: Identity = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    """Swap a game with its neighbour; returns the reordered queue."""
    return queue.reorder(db, identity, payload.game_id, payload.direction)


@router.delete("/{game_id}", response_model=MessageResponse)
def remove_game(game_id: int, identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    queue.remove(db, identity, game_id)
    return MessageResponse(message="Game removed")
