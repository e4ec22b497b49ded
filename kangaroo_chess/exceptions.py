"""Domain errors raised by the session layer.

Every error carries the short, user-facing ``message`` that is sent back to
the requesting connection as an ``error`` event. None of them are ever
broadcast to the rest of a room.
"""
from __future__ import annotations


class GameError(Exception):
    """Base class for errors reported back to a single connection."""

    message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(GameError):
    message = "Room not found"


class NotInRoom(GameError):
    message = "Not in a room"


class NotYourTurn(GameError):
    message = "Not your turn"


class SpectatorAction(GameError):
    message = "Spectators cannot move"


class GameAlreadyOver(GameError):
    message = "Game is over"


class InvalidAction(GameError):
    message = "Invalid move"


class SeatNotFound(GameError):
    message = "Seat not found"


class AlreadySeated(GameError):
    message = "Already seated as the other color"


class RoomCodeExhausted(GameError):
    message = "Could not allocate a room code"


__all__ = [
    "GameError",
    "RoomNotFound",
    "NotInRoom",
    "NotYourTurn",
    "SpectatorAction",
    "GameAlreadyOver",
    "InvalidAction",
    "SeatNotFound",
    "AlreadySeated",
    "RoomCodeExhausted",
]
