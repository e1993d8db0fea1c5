"""
Demo data seeding script for the Game Club API.

Creates one club with a handful of members, fills their queues and
builds a first rotation, all through the service layer so every
invariant holds exactly as it would for real requests.

Usage:
    python -m gameclub.seed
"""

import time

from gameclub.database import SessionLocal, create_indexes, create_tables
from gameclub.services import clubs, queue, rotations

DEMO_CLUB = "Demo Game Club"
DEMO_PASSCODE = "press-start"

DEMO_QUEUES = {
    "mario": [(1942, "The Witcher 3: Wild Hunt"), (119133, "Elden Ring"), (1020, "Grand Theft Auto V")],
    "link": [(7346, "The Legend of Zelda: Breath of the Wild"), (1877, "Cyberpunk 2077")],
    "samus": [(113112, "Hades"), (26758, "Super Mario Odyssey"), (11198, "Hollow Knight")],
    "kirby": [],
}


def seed(db):
    """Run all seeding steps sequentially. Returns the owner's identity."""
    # ── Step 1: Club ─────────────────────────────────────────
    print("⏳ Creating club …")
    club = clubs.create_club(db, DEMO_CLUB, DEMO_PASSCODE, "Seeded demo club")
    print(f"   ✓ Club {club.id} '{club.name}' (passcode: {DEMO_PASSCODE})")

    # ── Step 2: Members and queues ───────────────────────────
    print("⏳ Registering members and queueing games …")
    start = time.time()
    owner = None
    for username, games in DEMO_QUEUES.items():
        member = clubs.register(db, club.id, username)
        owner = owner or member
        for igdb_id, title in games:
            queue.append(db, member, igdb_id, title)
    print(f"   ✓ {len(DEMO_QUEUES)} members seeded in {time.time() - start:.1f}s")

    # ── Step 3: First rotation ───────────────────────────────
    print("⏳ Building first rotation …")
    created = rotations.build(db, owner, "Season 1")
    rotations.activate(db, owner, created.rotation.id)
    print(f"   ✓ Rotation '{created.rotation.name}' active with {created.game_count} games")

    return owner


if __name__ == "__main__":
    create_tables()
    create_indexes()
    session = SessionLocal()
    try:
        seed(session)
        print("\n🎉 Database seeding complete!")
    finally:
        session.close()
