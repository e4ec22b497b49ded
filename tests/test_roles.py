from __future__ import annotations

from kangaroo_chess.constants import BLACK, SPECTATOR, WHITE
from kangaroo_chess.roles import assign_role, reclaim_seat
from kangaroo_chess.room import Room


def test_creator_is_white_and_room_waits() -> None:
    room = Room("ROOM01")

    assignment = assign_role(room, "c1", "Alice")

    assert assignment.role == WHITE
    assert not assignment.started
    assert room.players[WHITE].name == "Alice"
    assert room.players[WHITE].seat_token
    assert room.status == "waiting"


def test_second_connection_takes_black_and_starts_game() -> None:
    room = Room("ROOM01")
    assign_role(room, "c1", "Alice")

    assignment = assign_role(room, "c2", "Bob")

    assert assignment.role == BLACK
    assert assignment.started
    assert room.status == "active"


def test_further_connections_become_spectators_in_order() -> None:
    room = Room("ROOM01")
    assign_role(room, "c1", "Alice")
    assign_role(room, "c2", "Bob")

    results = [assign_role(room, f"s{i}", f"Watcher{i}") for i in range(25)]

    assert all(r.role == SPECTATOR for r in results)
    assert not any(r.started for r in results)
    assert [s.name for s in room.spectators] == [f"Watcher{i}" for i in range(25)]
    assert all(s.seat_token is None for s in room.spectators)
    assert room.players[WHITE].name == "Alice"
    assert room.players[BLACK].name == "Bob"


def test_vacated_seat_is_refilled_before_spectating() -> None:
    room = Room("ROOM01")
    assign_role(room, "c1", "Alice")
    assign_role(room, "c2", "Bob")
    room.remove("c1")

    assignment = assign_role(room, "c3", "Carol")

    assert assignment.role == WHITE
    assert assignment.started


def test_reclaim_seat_moves_seat_to_new_connection() -> None:
    room = Room("ROOM01")
    token = assign_role(room, "c1", "Alice").participant.seat_token
    room.players[WHITE].connected = False

    assert reclaim_seat(room, token, "c9") == WHITE
    assert room.players[WHITE].connection_id == "c9"
    assert room.players[WHITE].connected
    assert reclaim_seat(room, "bogus", "c10") is None
