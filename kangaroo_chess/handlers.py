"""WebSocket event handlers.

Each inbound event resolves the sender's room through the registry, mutates
the room while holding its lock, and fans the outcome out through the hub
before releasing the lock, so every subscriber sees a room's states in the
order they were produced. Handlers raise ``GameError`` subclasses for
rejected requests; ``handle_ws_message`` turns those into an ``error`` event
for the requester alone.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, Dict, Tuple, Type

from pydantic import ValidationError

from .constants import SPECTATOR
from .exceptions import AlreadySeated, GameError, NotInRoom, RoomNotFound, SeatNotFound
from .game_logic import accept_rematch, apply_move, apply_swap, report_game_over, request_rematch
from .registry import Membership
from .roles import assign_role, reclaim_seat
from .room import Room, utcnow
from .schemas import (
    INBOUND_TYPES,
    AcceptRematchMessage,
    ChatBroadcast,
    ChatMessage,
    CreateRoomMessage,
    GameOverMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    MakeMoveMessage,
    Participant,
    RejoinRoomMessage,
    RequestRematchMessage,
    inbound_adapter,
)

if TYPE_CHECKING:
    from .server import GameServer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@asynccontextmanager
async def locked_room(server: GameServer, code: str) -> AsyncIterator[Room]:
    """Hold *code*'s lock, failing if the room vanished while we waited."""
    room = server.registry.get(code)
    async with room.lock:
        if server.registry.find(code) is not room:
            raise RoomNotFound()
        yield room


def _require_membership(server: GameServer, connection_id: str) -> Membership:
    membership = server.registry.membership(connection_id)
    if membership is None:
        raise NotInRoom()
    return membership


def _require_participant(room: Room, connection_id: str) -> Tuple[str, Participant]:
    found = room.find(connection_id)
    if found is None:
        raise NotInRoom()
    return found


def _joined_payload(room: Room, role: str, participant: Participant) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"roomId": room.code, "color": role, "game": room.snapshot()}
    if participant.seat_token is not None:
        payload["seatToken"] = participant.seat_token
    return payload


async def leave_current_room(server: GameServer, connection_id: str) -> None:
    """Remove *connection_id* from whatever room it belongs to, if any."""
    membership = server.registry.unbind(connection_id)
    if membership is None:
        return
    code = membership.code
    server.hub.unsubscribe(code, connection_id)
    room = server.registry.find(code)
    if room is None:
        return
    async with room.lock:
        if server.registry.find(code) is not room:
            return
        removed = room.remove(connection_id)
        if removed is None:
            return
        role, participant = removed
        logger.info("%s (%s) left room %s", participant.name, role, code)
        if room.is_empty():
            server.registry.delete(code)
            server.hub.drop_room(code)
            return
        server.hub.broadcast(code, "player-left", {"color": role, "playerName": participant.name})
        server.hub.broadcast(code, "game-state", room.snapshot())
        if room.is_abandoned():
            server.reclaimer.schedule_disconnect_check(room)


# ---------------------------------------------------------------------------
# Room membership
# ---------------------------------------------------------------------------

async def handle_create_room(server: GameServer, connection_id: str, message: CreateRoomMessage) -> None:
    await leave_current_room(server, connection_id)
    code = server.registry.create()
    async with locked_room(server, code) as room:
        assignment = assign_role(room, connection_id, message.player_name)
        server.registry.bind(connection_id, code, assignment.role)
        server.hub.subscribe(code, connection_id)
        logger.info("%s created room %s", message.player_name, code)
        server.hub.send(
            connection_id, "room-created", _joined_payload(room, assignment.role, assignment.participant)
        )


async def handle_join_room(server: GameServer, connection_id: str, message: JoinRoomMessage) -> None:
    code = message.room_id
    server.registry.get(code)

    membership = server.registry.membership(connection_id)
    if membership is not None and membership.code == code:
        async with locked_room(server, code) as room:
            role, participant = _require_participant(room, connection_id)
            server.hub.send(connection_id, "room-joined", _joined_payload(room, role, participant))
        return

    await leave_current_room(server, connection_id)
    async with locked_room(server, code) as room:
        assignment = assign_role(room, connection_id, message.player_name)
        server.registry.bind(connection_id, code, assignment.role)
        server.hub.subscribe(code, connection_id)
        logger.info("%s joined room %s as %s", message.player_name, code, assignment.role)

        server.hub.send(
            connection_id, "room-joined", _joined_payload(room, assignment.role, assignment.participant)
        )
        if assignment.started:
            server.hub.broadcast(code, "game-start", room.snapshot())
        server.hub.broadcast(code, "game-state", room.snapshot(), exclude=[connection_id])


async def handle_rejoin_room(server: GameServer, connection_id: str, message: RejoinRoomMessage) -> None:
    code = message.room_id
    room = server.registry.get(code)
    if room.find_seat(message.seat_token) is None:
        raise SeatNotFound()

    membership = server.registry.membership(connection_id)
    if membership is None or membership.code != code:
        await leave_current_room(server, connection_id)

    async with locked_room(server, code) as room:
        color = room.find_seat(message.seat_token)
        if color is None:
            raise SeatNotFound()
        # A connection holds exactly one role: drop its spectator slot, refuse a second seat.
        current = room.find(connection_id)
        if current is not None and current[0] != color:
            if current[0] != SPECTATOR:
                raise AlreadySeated()
            room.remove(connection_id)
        previous = room.players[color].connection_id
        if previous != connection_id:
            server.registry.unbind(previous)
            server.hub.unsubscribe(code, previous)
            server.hub.send(previous, "kicked", {"reason": "Seat reclaimed by another connection"})

        reclaim_seat(room, message.seat_token, connection_id)
        server.registry.bind(connection_id, code, color)
        server.hub.subscribe(code, connection_id)
        server.reclaimer.cancel_disconnect_check(room)
        player = room.players[color]
        logger.info("%s reclaimed the %s seat in room %s", player.name, color, code)

        server.hub.send(connection_id, "room-joined", _joined_payload(room, color, player))
        server.hub.broadcast(
            code, "player-reconnected", {"color": color, "playerName": player.name}, exclude=[connection_id]
        )
        server.hub.broadcast(code, "game-state", room.snapshot(), exclude=[connection_id])


async def handle_leave_room(server: GameServer, connection_id: str, message: LeaveRoomMessage) -> None:
    _require_membership(server, connection_id)
    await leave_current_room(server, connection_id)
    server.hub.send(connection_id, "room-left", None)


# ---------------------------------------------------------------------------
# Game flow
# ---------------------------------------------------------------------------

async def handle_make_move(server: GameServer, connection_id: str, message: MakeMoveMessage) -> None:
    membership = _require_membership(server, connection_id)
    async with locked_room(server, membership.code) as room:
        role, participant = _require_participant(room, connection_id)
        move = message.move_data
        if move.type == "swap":
            result = apply_swap(room, role, move.from_, move.to)
        else:
            result = apply_move(room, role, move.from_, move.to, move.piece)
        server.hub.broadcast(
            room.code,
            "move-made",
            {
                "moveData": move.model_dump(mode="json", by_alias=True),
                "game": room.snapshot(),
                "notation": result.notation,
                "playerName": participant.name,
            },
        )


async def handle_game_over(server: GameServer, connection_id: str, message: GameOverMessage) -> None:
    membership = _require_membership(server, connection_id)
    async with locked_room(server, membership.code) as room:
        role, _ = _require_participant(room, connection_id)
        report_game_over(room, role, message.result)
        server.hub.broadcast(room.code, "game-ended", message.result)


async def handle_chat_message(server: GameServer, connection_id: str, message: ChatMessage) -> None:
    membership = _require_membership(server, connection_id)
    async with locked_room(server, membership.code) as room:
        role, participant = _require_participant(room, connection_id)
        chat = ChatBroadcast(player_name=participant.name, message=message.text, timestamp=utcnow(), color=role)
        server.hub.broadcast(room.code, "chat-message", chat.model_dump(mode="json", by_alias=True))


async def handle_request_rematch(server: GameServer, connection_id: str, message: RequestRematchMessage) -> None:
    membership = _require_membership(server, connection_id)
    async with locked_room(server, membership.code) as room:
        role, _ = _require_participant(room, connection_id)
        request_rematch(room, role)
        server.hub.broadcast(room.code, "rematch-requested", {"from": role}, exclude=[connection_id])


async def handle_accept_rematch(server: GameServer, connection_id: str, message: AcceptRematchMessage) -> None:
    membership = _require_membership(server, connection_id)
    async with locked_room(server, membership.code) as room:
        role, _ = _require_participant(room, connection_id)
        accept_rematch(room, role)
        server.hub.broadcast(room.code, "game-reset", room.snapshot())


# ---------------------------------------------------------------------------
# Connection drop
# ---------------------------------------------------------------------------

async def handle_disconnect(server: GameServer, connection_id: str) -> None:
    server.hub.unregister(connection_id)
    membership = server.registry.unbind(connection_id)
    if membership is None:
        return
    room = server.registry.find(membership.code)
    if room is None:
        return
    async with room.lock:
        if server.registry.find(membership.code) is not room:
            return
        found = room.find(connection_id)
        if found is None:
            return
        role, participant = found
        participant.connected = False
        logger.info("%s (%s) disconnected from room %s", participant.name, role, room.code)
        server.hub.broadcast(room.code, "player-disconnected", {"color": role, "playerName": participant.name})
        server.hub.broadcast(room.code, "game-state", room.snapshot())
        server.reclaimer.schedule_disconnect_check(room)


# ---------------------------------------------------------------------------
# Primary dispatcher used by websocket endpoint
# ---------------------------------------------------------------------------

Handler = Callable[["GameServer", str, Any], Awaitable[None]]

HANDLERS: Dict[Type[Any], Handler] = {
    CreateRoomMessage: handle_create_room,
    JoinRoomMessage: handle_join_room,
    RejoinRoomMessage: handle_rejoin_room,
    LeaveRoomMessage: handle_leave_room,
    MakeMoveMessage: handle_make_move,
    GameOverMessage: handle_game_over,
    ChatMessage: handle_chat_message,
    RequestRematchMessage: handle_request_rematch,
    AcceptRematchMessage: handle_accept_rematch,
}


async def handle_ws_message(server: GameServer, connection_id: str, data: Any) -> None:
    msg_type = data.get("type") if isinstance(data, dict) else None
    if msg_type not in INBOUND_TYPES:
        server.hub.send(connection_id, "error", "Unknown event")
        return
    try:
        message = inbound_adapter.validate_python(data)
    except ValidationError as exc:
        logger.debug("Rejected malformed %s from %s: %s", msg_type, connection_id, exc)
        server.hub.send(connection_id, "error", "Invalid message")
        return

    try:
        await HANDLERS[type(message)](server, connection_id, message)
    except GameError as exc:
        logger.debug("%s from %s rejected: %s", msg_type, connection_id, exc.message)
        server.hub.send(connection_id, "error", exc.message)


__all__ = [
    "HANDLERS",
    "handle_ws_message",
    "handle_disconnect",
    "leave_current_room",
    "locked_room",
]
