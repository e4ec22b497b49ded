"""Seat assignment for connections joining a room."""
from __future__ import annotations

import secrets
from typing import NamedTuple

from .constants import BLACK, COLORS, SPECTATOR, WHITE
from .room import Room
from .schemas import Participant


class Assignment(NamedTuple):
    role: str
    participant: Participant
    # True when this join filled the last empty seat.
    started: bool


def new_seat_token() -> str:
    return secrets.token_urlsafe(16)


def assign_role(room: Room, connection_id: str, name: str) -> Assignment:
    """Seat *connection_id* in *room*.

    The room creator always lands on white. Later joiners take the first
    vacant color (black in the normal flow); once both colors are taken every
    further connection becomes a spectator. Rooms never reject a joiner.
    """
    was_waiting = not all(color in room.players for color in COLORS)

    for color in (WHITE, BLACK):
        if color not in room.players:
            player = Participant(connection_id=connection_id, name=name, seat_token=new_seat_token())
            room.players[color] = player
            started = was_waiting and all(c in room.players for c in COLORS)
            return Assignment(color, player, started)

    spectator = Participant(connection_id=connection_id, name=name)
    room.spectators.append(spectator)
    return Assignment(SPECTATOR, spectator, False)


def reclaim_seat(room: Room, seat_token: str, connection_id: str) -> str | None:
    """Hand the seat identified by *seat_token* to a new connection.

    Returns the color of the reclaimed seat, or ``None`` if no seat matches.
    """
    color = room.find_seat(seat_token)
    if color is None:
        return None
    player = room.players[color]
    player.connection_id = connection_id
    player.connected = True
    return color


__all__ = ["Assignment", "assign_role", "reclaim_seat", "new_seat_token"]
