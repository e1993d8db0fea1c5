"""
Game Club API — FastAPI Application Entry Point.

A "book club for video games":
  - Members join a club with a shared passcode and queue games
  - The owner builds rotations from the head of every member's queue
  - Spinning the wheel picks the next game; finishing it advances the rotation
  - Queue and rotation changes run as single database transactions
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from gameclub.config import settings
from gameclub.database import create_indexes, create_tables, engine
from gameclub.errors import ClubError, club_error_handler
from gameclub.limiter import limiter
from gameclub.routes import routers

# ── Logging ──────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-7s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)


# ── App Lifecycle ────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(application: FastAPI):
    """Startup / shutdown lifecycle handler."""
    # Startup
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✓ Database connected successfully")
    except Exception as e:
        logger.error("✗ Database connection failed: %s", e)

    create_tables()
    create_indexes()

    yield  # ← app is running

    # Shutdown
    engine.dispose()
    logger.info("Database connections closed")


# ── FastAPI App ──────────────────────────────────────────────────

app = FastAPI(
    title="Game Club API",
    description="Club queues, rotations and the wheel that picks what everyone plays next",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(ClubError, club_error_handler)

# Register routes
for router in routers:
    app.include_router(router)


# ── Health Check ─────────────────────────────────────────────────

@app.get("/health", tags=["Health"])
def health_check():
    """Simple liveness probe."""
    return {"status": "ok", "service": "game-club"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("gameclub.app:app", host="127.0.0.1", port=8000, reload=True)
