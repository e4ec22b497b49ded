"""Pydantic data schemas used across the server.

This module centralises all models so that other modules can import
from a single location instead of sprinkling the definitions across
multiple files. Wire models use camelCase aliases; Python code always
works with the snake_case attribute names.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from .constants import MAX_CHAT_LENGTH, MAX_NAME_LENGTH


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------
# Runtime
# -----------------------------

class Participant(BaseModel):
    """A connection holding a seat or watching a room."""

    connection_id: str
    name: str
    connected: bool = True
    # Only players get a seat token; it lets a new connection reclaim the seat.
    seat_token: Optional[str] = None


class Square(WireModel):
    row: int
    col: int


class HistoryEntry(WireModel):
    kind: Literal["move", "swap"]
    from_: Square = Field(alias="from")
    to: Square
    piece: str  # piece standing on ``to`` after the action
    color: str
    notation: str
    timestamp: datetime


# -----------------------------
# Inbound messages
# -----------------------------

class InboundModel(WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


PlayerName = Annotated[str, Field(min_length=1, max_length=MAX_NAME_LENGTH)]


class CreateRoomMessage(InboundModel):
    type: Literal["create-room"]
    player_name: PlayerName


class JoinRoomMessage(InboundModel):
    type: Literal["join-room"]
    room_id: str = Field(min_length=1)
    player_name: PlayerName

    @field_validator("room_id")
    @classmethod
    def normalize_room_id(cls, value: str) -> str:
        return value.upper()


class RejoinRoomMessage(InboundModel):
    type: Literal["rejoin-room"]
    room_id: str = Field(min_length=1)
    seat_token: str = Field(min_length=1)

    @field_validator("room_id")
    @classmethod
    def normalize_room_id(cls, value: str) -> str:
        return value.upper()


class LeaveRoomMessage(InboundModel):
    type: Literal["leave-room"]


class MoveData(InboundModel):
    type: Literal["move", "swap"]
    from_: Square = Field(alias="from")
    to: Square
    # Accepted for compatibility with existing clients; the server always
    # moves the piece found on ``from``.
    piece: Optional[str] = None


class MakeMoveMessage(InboundModel):
    type: Literal["make-move"]
    move_data: MoveData


class GameOverMessage(InboundModel):
    type: Literal["game-over"]
    result: Union[str, Dict[str, Any]]


class ChatMessage(InboundModel):
    type: Literal["chat-message"]
    text: str = Field(min_length=1, max_length=MAX_CHAT_LENGTH)


class RequestRematchMessage(InboundModel):
    type: Literal["request-rematch"]


class AcceptRematchMessage(InboundModel):
    type: Literal["accept-rematch"]


InboundMessage = Annotated[
    Union[
        CreateRoomMessage,
        JoinRoomMessage,
        RejoinRoomMessage,
        LeaveRoomMessage,
        MakeMoveMessage,
        GameOverMessage,
        ChatMessage,
        RequestRematchMessage,
        AcceptRematchMessage,
    ],
    Field(discriminator="type"),
]

inbound_adapter: TypeAdapter[Any] = TypeAdapter(InboundMessage)

INBOUND_TYPES = frozenset(
    {
        "create-room",
        "join-room",
        "rejoin-room",
        "leave-room",
        "make-move",
        "game-over",
        "chat-message",
        "request-rematch",
        "accept-rematch",
    }
)


# -----------------------------
# Outbound payloads
# -----------------------------

class ParticipantView(WireModel):
    name: str
    connected: bool


class GameView(WireModel):
    """Canonical snapshot of a session, sent to every participant."""

    code: str
    board: List[List[Optional[str]]]
    turn: str
    status: Literal["waiting", "active", "game-over"]
    players: Dict[str, ParticipantView]
    spectators: List[ParticipantView]
    history: List[HistoryEntry]
    game_over: bool
    result: Optional[Union[str, Dict[str, Any]]] = None
    rematch_requested_by: Optional[str] = None
    created_at: datetime


class ChatBroadcast(WireModel):
    player_name: str
    message: str
    timestamp: datetime
    color: str


class RoomSummary(WireModel):
    room_id: str
    status: str
    white_player: Optional[str] = None
    black_player: Optional[str] = None
    spectator_count: int = 0
    created_at: datetime


__all__ = [
    "WireModel",
    "Participant",
    "Square",
    "HistoryEntry",
    "CreateRoomMessage",
    "JoinRoomMessage",
    "RejoinRoomMessage",
    "LeaveRoomMessage",
    "MoveData",
    "MakeMoveMessage",
    "GameOverMessage",
    "ChatMessage",
    "RequestRematchMessage",
    "AcceptRematchMessage",
    "InboundMessage",
    "inbound_adapter",
    "INBOUND_TYPES",
    "ParticipantView",
    "GameView",
    "ChatBroadcast",
    "RoomSummary",
]
