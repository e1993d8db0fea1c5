"""
Rotation routes. Writes are owner-only; the services enforce it.

Endpoints:
  POST   /api/rotations                 — Build a planned rotation from queue heads
  GET    /api/rotations                 — The club's rotations
  POST   /api/rotations/spin            — Spin the wheel in the active rotation
  POST   /api/rotations/finish-game     — Finish the game being played
  POST   /api/rotations/{id}/activate   — Make a rotation active
  GET    /api/rotations/{id}/games      — Entries of a rotation
  DELETE /api/rotations/{id}            — Delete a planned or active rotation
"""

import random

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gameclub.database import get_db
from gameclub.dependencies import get_current_user, get_rng
from gameclub.schemas import (
    FinishRequest, FinishResult, Identity, MessageResponse, RotationCreate, RotationCreated,
    RotationEntry, RotationRecord, SpinResult,
)
from gameclub.services import rotations, wheel

router = APIRouter(prefix="/api/rotations", tags=["Rotations"])


@router.post("", response_model=RotationCreated, status_code=201)
def create_rotation(payload: RotationCreate, identity: Identity = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    return rotations.build(db, identity, payload.name)


@router.get("", response_model=list[RotationRecord])
def list_rotations(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return rotations.list_rotations(db, identity)


@router.post("/spin", response_model=SpinResult)
def spin(
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    rng: random.Random = Depends(get_rng),
):
    return wheel.spin(db, identity, rng)


@router.post("/finish-game", response_model=FinishResult)
def finish_game(payload: FinishRequest, identity: Identity = Depends(get_current_user),
                db: Session = Depends(get_db)):
    return wheel.finish(db, identity, payload.rotation_game_id)


@router.post("/{rotation_id}/activate", response_model=RotationRecord)
def activate_rotation(rotation_id: int, identity: Identity = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    return rotations.activate(db, identity, rotation_id)


@router.get("/{rotation_id}/games", response_model=list[RotationEntry])
def rotation_games(rotation_id: int, identity: Identity = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    return rotations.rotation_games(db, identity, rotation_id)


@router.delete("/{rotation_id}", response_model=MessageResponse)
def delete_rotation(rotation_id: int, identity: Identity = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    rotations.delete(db, identity, rotation_id)
    return MessageResponse(message="Rotation deleted successfully")
