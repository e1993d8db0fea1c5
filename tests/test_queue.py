import random

import pytest

from conftest import positions
from gameclub.errors import Conflict, InternalError, InvalidArgument, InvalidState, NotFound
from gameclub.schemas import PlayStatus
from gameclub.services import queue, rotations, wheel


def test_append_assigns_next_position(db, club):
    first = queue.append(db, club.bob, 10, "Celeste")
    second = queue.append(db, club.bob, 11, "Hades")

    assert first.position_in_queue == 1
    assert second.position_in_queue == 2
    assert second.status is PlayStatus.UNPLAYED
    assert positions(db, club.bob.user_id) == [("Celeste", 1), ("Hades", 2)]


def test_append_rejects_duplicate_catalog_id(db, club):
    queue.append(db, club.bob, 10, "Celeste")
    with pytest.raises(Conflict):
        queue.append(db, club.bob, 10, "Celeste again")
    assert positions(db, club.bob.user_id) == [("Celeste", 1)]


def test_same_catalog_id_allowed_for_different_users(db, club):
    queue.append(db, club.bob, 10, "Celeste")
    game = queue.append(db, club.carol, 10, "Celeste")
    assert game.position_in_queue == 1


def test_append_requires_title(db, club):
    with pytest.raises(InvalidArgument):
        queue.append(db, club.bob, 10, "   ")


def test_remove_renumbers_remaining_games(db, club):
    a = queue.append(db, club.bob, 1, "A")
    b = queue.append(db, club.bob, 2, "B")
    c = queue.append(db, club.bob, 3, "C")

    queue.remove(db, club.bob, b.id)

    assert positions(db, club.bob.user_id) == [("A", 1), ("C", 2)]
    assert {g.id for g in queue.user_games(db, club.bob.user_id)} == {a.id, c.id}


def test_remove_only_touches_own_positions(db, club):
    queue.append(db, club.bob, 1, "Bob A")
    bob_b = queue.append(db, club.bob, 2, "Bob B")
    queue.append(db, club.carol, 1, "Carol A")
    queue.append(db, club.carol, 2, "Carol B")

    queue.remove(db, club.bob, bob_b.id)

    assert positions(db, club.carol.user_id) == [("Carol A", 1), ("Carol B", 2)]


def test_failed_renumber_rolls_back_the_delete(db, club, fail_statement):
    a = queue.append(db, club.bob, 1, "A")
    queue.append(db, club.bob, 2, "B")
    queue.append(db, club.bob, 3, "C")
    fail_statement("UPDATE games SET position_in_queue")

    with pytest.raises(InternalError):
        queue.remove(db, club.bob, a.id)

    assert positions(db, club.bob.user_id) == [("A", 1), ("B", 2), ("C", 3)]


def test_remove_someone_elses_game_is_not_found(db, club):
    game = queue.append(db, club.bob, 1, "A")
    with pytest.raises(NotFound):
        queue.remove(db, club.carol, game.id)
    assert positions(db, club.bob.user_id) == [("A", 1)]


def test_remove_game_in_rotation_is_rejected(db, club):
    game = queue.append(db, club.bob, 1, "A")
    rotations.build(db, club.owner, "R1")

    with pytest.raises(InvalidState):
        queue.remove(db, club.bob, game.id)
    assert positions(db, club.bob.user_id) == [("A", 1)]


def test_remove_played_game_is_rejected(db, club):
    game = queue.append(db, club.bob, 1, "A")
    created = rotations.build(db, club.owner, "R1")
    rotations.activate(db, club.owner, created.rotation.id)
    picked = wheel.spin(db, club.owner, random.Random(0))
    wheel.finish(db, club.owner, picked.selected.rotation_game_id)

    with pytest.raises(InvalidState):
        queue.remove(db, club.bob, game.id)


def test_reorder_down_swaps_with_neighbour(db, club):
    a = queue.append(db, club.bob, 1, "A")
    queue.append(db, club.bob, 2, "B")

    result = queue.reorder(db, club.bob, a.id, "down")

    assert [g.title for g in result] == ["B", "A"]
    assert positions(db, club.bob.user_id) == [("B", 1), ("A", 2)]


def test_reorder_past_top_changes_nothing(db, club):
    a = queue.append(db, club.bob, 1, "A")
    queue.append(db, club.bob, 2, "B")
    queue.reorder(db, club.bob, a.id, "down")

    b_id = queue.user_games(db, club.bob.user_id)[0].id
    with pytest.raises(InvalidState):
        queue.reorder(db, club.bob, b_id, "up")
    with pytest.raises(InvalidState):
        queue.reorder(db, club.bob, a.id, "down")

    assert positions(db, club.bob.user_id) == [("B", 1), ("A", 2)]


def test_reorder_rejects_unknown_direction(db, club):
    a = queue.append(db, club.bob, 1, "A")
    with pytest.raises(InvalidArgument):
        queue.reorder(db, club.bob, a.id, "sideways")


def test_reorder_unknown_game(db, club):
    with pytest.raises(NotFound):
        queue.reorder(db, club.bob, 999, "up")


def test_positions_stay_dense_through_mixed_operations(db, club):
    ids = [queue.append(db, club.bob, n, f"G{n}").id for n in range(1, 7)]

    queue.reorder(db, club.bob, ids[5], "up")
    queue.remove(db, club.bob, ids[0])
    queue.reorder(db, club.bob, ids[1], "down")
    queue.remove(db, club.bob, ids[3])
    queue.append(db, club.bob, 7, "G7")
    queue.reorder(db, club.bob, ids[2], "down")

    found = [pos for _, pos in positions(db, club.bob.user_id)]
    assert found == list(range(1, len(found) + 1))
    assert len(found) == 5


def test_list_queue_resolves_covers(db, club, catalog):
    queue.append(db, club.bob, 42, "Outer Wilds")

    listing = queue.list_queue(db, club.owner, catalog, user_id=club.bob.user_id)

    assert listing[0].username == "bob"
    assert listing[0].cover_url.endswith("/42.jpg")
    assert listing[0].release_year == 2017
    assert catalog.lookups == [42]


def test_list_queue_of_user_in_other_club_is_not_found(db, club, catalog):
    from gameclub.services import clubs

    other = clubs.create_club(db, "Other Club", "pass")
    stranger = clubs.register(db, other.id, "dave")

    with pytest.raises(NotFound):
        queue.list_queue(db, club.owner, catalog, user_id=stranger.user_id)
