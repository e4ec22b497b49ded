"""Time-based eviction of abandoned and stale rooms.

Two independent timers operate against the registry only:

* a per-room grace check, scheduled when a participant drops, which deletes
  the room if nobody is connected once the grace interval has elapsed;
* a recurring staleness sweep which deletes every room older than the
  configured maximum age, whatever its connection state.

Both re-check that the room is still registered before acting, and registry
deletion is idempotent, so a room removed for another reason in the meantime
is simply skipped.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import List, Optional

from .constants import DEFAULT_GRACE_SECONDS, DEFAULT_MAX_ROOM_AGE_SECONDS, DEFAULT_SWEEP_INTERVAL_SECONDS
from .hub import RoomHub
from .registry import RoomRegistry
from .room import Room

logger = logging.getLogger(__name__)


class LifecycleReclaimer:
    def __init__(
        self,
        registry: RoomRegistry,
        hub: RoomHub,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        max_age_seconds: float = DEFAULT_MAX_ROOM_AGE_SECONDS,
    ) -> None:
        self.registry = registry
        self.hub = hub
        self.grace_seconds = grace_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self.max_age_seconds = max_age_seconds
        self._sweep_task: Optional[asyncio.Task] = None

    # -------------------- Disconnect grace -------------------- #

    def schedule_disconnect_check(self, room: Room) -> asyncio.Task:
        """(Re)start the grace timer for *room*."""
        self.cancel_disconnect_check(room)
        room.cleanup_task = asyncio.create_task(self._prune_after_grace(room))
        return room.cleanup_task

    def cancel_disconnect_check(self, room: Room) -> None:
        if room.cleanup_task is not None and not room.cleanup_task.done():
            room.cleanup_task.cancel()
        room.cleanup_task = None

    async def _prune_after_grace(self, room: Room) -> None:
        await asyncio.sleep(self.grace_seconds)
        # The code may have been freed and reissued to a new room meanwhile.
        if self.registry.find(room.code) is not room:
            return
        room.cleanup_task = None
        if not room.is_abandoned():
            return
        logger.info("Room %s abandoned for %ss, reclaiming", room.code, self.grace_seconds)
        self.registry.delete(room.code)
        self.hub.drop_room(room.code)

    # -------------------- Staleness sweep -------------------- #

    async def sweep_once(self, now: Optional[datetime] = None) -> List[str]:
        """Delete every room older than ``max_age_seconds``; returns their codes."""
        removed: List[str] = []
        for code in self.registry.stale_codes(self.max_age_seconds, now=now):
            subscribers = self.hub.subscribers(code)
            if self.registry.delete(code) is None:
                continue
            self.hub.drop_room(code)
            removed.append(code)
            for connection_id in subscribers:
                self.hub.send(connection_id, "room-closed", {"roomId": code, "reason": "expired"})
        if removed:
            logger.info("Staleness sweep removed %d room(s): %s", len(removed), ", ".join(removed))
        return removed

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            await self.sweep_once()

    # -------------------- Lifecycle -------------------- #

    def start(self) -> None:
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_forever())

    async def stop(self) -> None:
        tasks = [room.cleanup_task for room in self.registry.rooms() if room.cleanup_task is not None]
        if self._sweep_task is not None:
            tasks.append(self._sweep_task)
            self._sweep_task = None
        for room in self.registry.rooms():
            room.cleanup_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()


__all__ = ["LifecycleReclaimer"]
