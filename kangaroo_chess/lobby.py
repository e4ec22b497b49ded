"""Helpers for listing the live rooms."""
from __future__ import annotations

from typing import List

from .constants import BLACK, WHITE
from .registry import RoomRegistry
from .room import Room
from .schemas import RoomSummary


def summarize_room(room: Room) -> RoomSummary:
    white = room.players.get(WHITE)
    black = room.players.get(BLACK)
    return RoomSummary(
        room_id=room.code,
        status=room.status,
        white_player=white.name if white else None,
        black_player=black.name if black else None,
        spectator_count=len(room.spectators),
        created_at=room.created_at,
    )


def collect_room_summaries(registry: RoomRegistry) -> List[RoomSummary]:
    """Return a summary of *all* registered rooms, newest first."""
    summaries = [summarize_room(room) for room in registry.rooms()]
    summaries.sort(key=lambda s: s.created_at, reverse=True)
    return summaries


__all__ = ["summarize_room", "collect_room_summaries"]
