import os
import random
from types import SimpleNamespace

# Settings are read at import time; point them at throwaway backends first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from gameclub.app import app
from gameclub.cache import set_redis_client
from gameclub.catalog import get_catalog
from gameclub.database import build_engine, get_db
from gameclub.dependencies import get_rng
from gameclub.limiter import limiter
from gameclub.models import Base
from gameclub.schemas import CatalogGame
from gameclub.services import clubs, queue


class FakeCatalog:
    """Stands in for IGDB: every id resolves, search echoes the query."""

    def __init__(self):
        self.lookups = []

    def get(self, igdb_id):
        self.lookups.append(igdb_id)
        return CatalogGame(
            id=igdb_id,
            name=f"Game {igdb_id}",
            cover_url=f"https://images.igdb.com/igdb/image/upload/t_cover_big/{igdb_id}.jpg",
            release_year=2017,
        )

    def search(self, query, limit=10):
        return [CatalogGame(id=i, name=f"{query} {i}") for i in range(1, limit + 1)]


@pytest.fixture(autouse=True)
def fake_redis():
    client = fakeredis.FakeRedis(decode_responses=True)
    set_redis_client(client)
    try:
        yield client
    finally:
        client.flushall()
        set_redis_client(None)


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def club(db):
    """A club whose first member (alice) is the owner, plus bob and carol."""
    summary = clubs.create_club(db, "Backlog Busters", "open-sesame", "We finish what we start")
    owner = clubs.register(db, summary.id, "alice", "hunter2")
    bob = clubs.register(db, summary.id, "bob")
    carol = clubs.register(db, summary.id, "carol")
    return SimpleNamespace(id=summary.id, owner=owner, bob=bob, carol=carol)


@pytest.fixture
def queued(db, club):
    """Every member has two games queued."""
    games = {}
    for member in (club.owner, club.bob, club.carol):
        base = member.user_id * 100
        games[member.username] = [
            queue.append(db, member, base + 1, f"{member.username} first"),
            queue.append(db, member, base + 2, f"{member.username} second"),
        ]
    return games


@pytest.fixture
def client(session_factory, catalog):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rng] = lambda: random.Random(7)
    app.dependency_overrides[get_catalog] = lambda: catalog
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def fail_statement(db, monkeypatch):
    """Make every statement starting with the given SQL raise a store error."""
    real_execute = db.execute

    def install(prefix):
        def execute(statement, *args, **kwargs):
            if str(statement).lstrip().startswith(prefix):
                raise SQLAlchemyError(f"simulated failure: {prefix}")
            return real_execute(statement, *args, **kwargs)

        monkeypatch.setattr(db, "execute", execute)

    return install


def positions(db, user_id):
    """(title, position) pairs of a user's games in queue order."""
    rows = db.execute(
        text("SELECT title, position_in_queue FROM games WHERE user_id = :uid ORDER BY position_in_queue"),
        {"uid": user_id},
    ).fetchall()
    return [(r.title, r.position_in_queue) for r in rows]
