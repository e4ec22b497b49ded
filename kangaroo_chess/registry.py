"""In-memory room registry.

The registry is the single writer for room creation and deletion and owns the
connection -> (room, role) association map. One instance is created per
application and handed to whoever needs it; there is no module-level state.
"""
from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional

from .constants import DEFAULT_ROOM_CODE_LENGTH, ROOM_CODE_ALPHABET
from .exceptions import RoomCodeExhausted, RoomNotFound
from .room import Room, utcnow

logger = logging.getLogger(__name__)


class Membership(NamedTuple):
    code: str
    role: str


def random_room_code(length: int = DEFAULT_ROOM_CODE_LENGTH) -> str:
    rng = random.SystemRandom()
    return "".join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(length))


class RoomRegistry:
    def __init__(
        self,
        code_length: int = DEFAULT_ROOM_CODE_LENGTH,
        code_factory: Optional[Callable[[], str]] = None,
        max_attempts: int = 100,
    ) -> None:
        self._rooms: Dict[str, Room] = {}
        self._members: Dict[str, Membership] = {}
        self._code_factory = code_factory or (lambda: random_room_code(code_length))
        self._max_attempts = max_attempts

    # -------------------- Rooms -------------------- #

    def create(self, created_at: Optional[datetime] = None) -> str:
        """Register a fresh room and return its code.

        Codes are short, so a collision with a live room is possible; the
        generator is retried until it yields a free code.
        """
        for _ in range(self._max_attempts):
            code = self._code_factory()
            if code in self._rooms:
                logger.debug("Room code %s already in use, retrying", code)
                continue
            self._rooms[code] = Room(code, created_at=created_at)
            logger.info("Room %s created", code)
            return code
        raise RoomCodeExhausted()

    def get(self, code: str) -> Room:
        room = self._rooms.get(code)
        if room is None:
            raise RoomNotFound()
        return room

    def find(self, code: str) -> Optional[Room]:
        return self._rooms.get(code)

    def delete(self, code: str) -> Optional[Room]:
        """Remove *code* and every membership pointing at it. Idempotent."""
        room = self._rooms.pop(code, None)
        if room is None:
            return None
        if room.cleanup_task is not None and not room.cleanup_task.done():
            room.cleanup_task.cancel()
        room.cleanup_task = None
        for connection_id in [cid for cid, m in self._members.items() if m.code == code]:
            del self._members[connection_id]
        logger.info("Room %s deleted", code)
        return room

    def stale_codes(self, max_age_seconds: float, now: Optional[datetime] = None) -> List[str]:
        now = now or utcnow()
        return [code for code, room in self._rooms.items() if room.age_seconds(now) > max_age_seconds]

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def __contains__(self, code: object) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    # -------------------- Memberships -------------------- #

    def bind(self, connection_id: str, code: str, role: str) -> None:
        self._members[connection_id] = Membership(code, role)

    def unbind(self, connection_id: str) -> Optional[Membership]:
        return self._members.pop(connection_id, None)

    def membership(self, connection_id: str) -> Optional[Membership]:
        return self._members.get(connection_id)


__all__ = ["Membership", "RoomRegistry", "random_room_code"]
