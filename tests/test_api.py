import random

import pytest


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def members(client):
    """Create a club over HTTP and sign up alice (owner) and bob."""
    club = client.post("/api/clubs", json={"name": "Couch Co-op", "passcode": "p2-press-start"})
    assert club.status_code == 201
    club_id = club.json()["id"]

    alice = client.post("/api/auth/register", json={"club_id": club_id, "username": "alice", "password": "pw"})
    bob = client.post("/api/auth/register", json={"club_id": club_id, "username": "bob"})
    assert alice.status_code == 200 and bob.status_code == 200
    return {
        "club_id": club_id,
        "alice": alice.json()["token"],
        "bob": bob.json()["token"],
    }


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_login_sets_cookie_and_me_reads_it(client, members):
    resp = client.post("/api/auth/login", json={"club_id": members["club_id"], "username": "alice", "password": "pw"})
    assert resp.status_code == 200
    assert "auth-token" in resp.cookies
    assert resp.json()["user"]["is_owner"] is True

    # The client keeps the session cookie from the login response
    me = client.get("/api/me")
    assert me.json()["username"] == "alice"


def test_login_wrong_password(client, members):
    resp = client.post("/api/auth/login", json={"club_id": members["club_id"], "username": "alice", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Invalid password"}


def test_club_passcode_check(client, members):
    ok = client.post("/api/auth/club", json={"club_name": "Couch Co-op", "passcode": "p2-press-start"})
    bad = client.post("/api/auth/club", json={"club_name": "Couch Co-op", "passcode": "wrong"})
    missing = client.post("/api/auth/club", json={"club_name": "Solo Club", "passcode": "x"})
    assert ok.json()["id"] == members["club_id"]
    assert bad.status_code == 401
    assert missing.status_code == 404


def test_duplicate_club_name_conflicts(client, members):
    resp = client.post("/api/clubs", json={"name": "Couch Co-op", "passcode": "again"})
    assert resp.status_code == 409


def test_requests_without_session_are_unauthorized(client):
    assert client.get("/api/games").status_code == 401
    assert client.get("/api/games", headers=auth("not-a-token")).status_code == 401


def test_queue_endpoints(client, members):
    bob = auth(members["bob"])
    first = client.post("/api/games", json={"igdb_id": 1, "title": "Celeste"}, headers=bob)
    second = client.post("/api/games", json={"igdb_id": 2, "title": "Hades"}, headers=bob)
    assert first.status_code == 201
    assert second.json()["position_in_queue"] == 2

    dup = client.post("/api/games", json={"igdb_id": 1, "title": "Celeste"}, headers=bob)
    assert dup.status_code == 409

    moved = client.post("/api/games/reorder", json={"game_id": first.json()["id"], "direction": "down"}, headers=bob)
    assert [g["title"] for g in moved.json()] == ["Hades", "Celeste"]

    boundary = client.post("/api/games/reorder", json={"game_id": first.json()["id"], "direction": "down"}, headers=bob)
    assert boundary.status_code == 400
    bad_direction = client.post("/api/games/reorder", json={"game_id": first.json()["id"], "direction": "left"},
                                headers=bob)
    assert bad_direction.status_code == 400

    listing = client.get("/api/games", headers=bob).json()
    assert [(g["title"], g["position_in_queue"]) for g in listing] == [("Hades", 1), ("Celeste", 2)]
    assert listing[0]["cover_url"].endswith("/2.jpg")

    removed = client.delete(f"/api/games/{second.json()['id']}", headers=bob)
    assert removed.status_code == 200
    listing = client.get("/api/games", headers=bob).json()
    assert [(g["title"], g["position_in_queue"]) for g in listing] == [("Celeste", 1)]

    assert client.delete(f"/api/games/{second.json()['id']}", headers=bob).status_code == 404


def test_catalog_search(client):
    assert client.get("/api/games/search", params={"q": "zelda", "limit": 3}).json()[2]["name"] == "zelda 3"
    assert client.get("/api/games/search", params={"q": "  "}).status_code == 400


def test_owner_only_endpoints_forbid_members(client, members):
    bob = auth(members["bob"])
    assert client.post("/api/rotations", json={"name": "Mine"}, headers=bob).status_code == 403
    assert client.post("/api/rotations/spin", headers=bob).status_code == 403
    assert client.post("/api/rotations/finish-game", json={"rotation_game_id": 1}, headers=bob).status_code == 403
    assert client.post("/api/rotations/1/activate", headers=bob).status_code == 403
    assert client.delete("/api/rotations/1", headers=bob).status_code == 403


def test_full_rotation_cycle(client, members):
    alice, bob = auth(members["alice"]), auth(members["bob"])
    client.post("/api/games", json={"igdb_id": 10, "title": "Outer Wilds"}, headers=alice)
    client.post("/api/games", json={"igdb_id": 20, "title": "Disco Elysium"}, headers=bob)

    created = client.post("/api/rotations", json={"name": "Winter"}, headers=alice)
    assert created.status_code == 201
    assert created.json()["game_count"] == 2
    rotation_id = created.json()["rotation"]["id"]

    # Nothing active yet
    assert client.post("/api/rotations/spin", headers=alice).status_code == 404

    activated = client.post(f"/api/rotations/{rotation_id}/activate", headers=alice)
    assert activated.json()["status"] == "active"
    assert client.post("/api/rotations", json={"name": "Spring"}, headers=alice).status_code == 409

    spun = client.post("/api/rotations/spin", headers=alice).json()
    assert spun["pool_size"] == 2
    assert spun["selected_index"] == random.Random(7).randrange(2)
    assert client.post("/api/rotations/spin", headers=alice).status_code == 409

    stats = client.get("/api/dashboard/stats", headers=bob).json()
    assert stats["stats"]["playing_games"] == 1
    assert stats["current_game"]["title"] == spun["selected"]["title"]
    assert stats["active_rotation"]["total_rotation_games"] == 2

    done = client.post("/api/rotations/finish-game",
                       json={"rotation_game_id": spun["selected"]["rotation_game_id"]}, headers=alice).json()
    assert done["rotation_completed"] is False

    last = client.post("/api/rotations/spin", headers=alice).json()
    assert last["pool_size"] == 1
    done = client.post("/api/rotations/finish-game",
                       json={"rotation_game_id": last["selected"]["rotation_game_id"]}, headers=alice).json()
    assert done["rotation_completed"] is True

    listed = client.get("/api/rotations", headers=bob).json()
    assert listed[0]["status"] == "completed"
    entries = client.get(f"/api/rotations/{rotation_id}/games", headers=bob).json()
    assert {e["game_status"] for e in entries} == {"played"}

    assert client.delete(f"/api/rotations/{rotation_id}", headers=alice).status_code == 400

    stats = client.get("/api/dashboard/stats", headers=bob).json()
    assert stats["active_rotation"] is None
    assert stats["stats"]["completed_games"] == 2
    assert len(stats["recent_activity"]) == 2


def test_delete_active_rotation_endpoint(client, members):
    alice = auth(members["alice"])
    client.post("/api/games", json={"igdb_id": 10, "title": "Outer Wilds"}, headers=alice)
    rotation_id = client.post("/api/rotations", json={"name": "Oops"}, headers=alice).json()["rotation"]["id"]
    client.post(f"/api/rotations/{rotation_id}/activate", headers=alice)
    client.post("/api/rotations/spin", headers=alice)

    resp = client.delete(f"/api/rotations/{rotation_id}", headers=alice)

    assert resp.status_code == 200
    assert client.get("/api/rotations", headers=alice).json() == []
    games = client.get("/api/games", headers=alice).json()
    assert games[0]["status"] == "unplayed"
    assert games[0]["date_started"] is None


def test_members_listing(client, members):
    client.post("/api/games", json={"igdb_id": 10, "title": "Outer Wilds"}, headers=auth(members["bob"]))
    listing = client.get("/api/club/members", headers=auth(members["alice"])).json()
    assert [(m["username"], m["queued_count"]) for m in listing] == [("alice", 0), ("bob", 1)]

    users = client.post("/api/club/users", json={"club_id": members["club_id"]}).json()
    assert [u["username"] for u in users] == ["alice", "bob"]

    clubs = client.get("/api/clubs").json()
    assert clubs[0]["member_count"] == 2
