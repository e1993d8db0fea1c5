"""
Dashboard route.

Endpoints:
  GET /api/dashboard/stats — Totals, active rotation, current game, recent finishes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gameclub.database import get_db
from gameclub.dependencies import get_current_user
from gameclub.schemas import DashboardResponse, Identity
from gameclub.services import dashboard

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardResponse)
def dashboard_stats(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return dashboard.stats(db, identity)
