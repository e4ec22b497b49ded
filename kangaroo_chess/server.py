from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import uuid4

from .config import Settings
from .handlers import handle_disconnect, handle_ws_message
from .hub import Connection, RoomHub
from .reclaimer import LifecycleReclaimer
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


class GameServer:
    """Owns the registry, the hub and the reclaimer for one application.

    The websocket layer only talks to this object: it registers sockets,
    forwards decoded frames, and reports connection drops.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[RoomRegistry] = None,
        hub: Optional[RoomHub] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.registry = registry or RoomRegistry(code_length=self.settings.room_code_length)
        self.hub = hub or RoomHub(outbox_limit=self.settings.outbox_limit)
        self.reclaimer = LifecycleReclaimer(
            self.registry,
            self.hub,
            grace_seconds=self.settings.grace_seconds,
            sweep_interval_seconds=self.settings.sweep_interval_seconds,
            max_age_seconds=self.settings.max_room_age_seconds,
        )

    def connect(self, websocket: Connection) -> str:
        connection_id = uuid4().hex
        self.hub.register(connection_id, websocket)
        logger.info("Connection %s opened", connection_id)
        return connection_id

    async def handle(self, connection_id: str, data: Any) -> None:
        await handle_ws_message(self, connection_id, data)

    async def disconnect(self, connection_id: str) -> None:
        logger.info("Connection %s closed", connection_id)
        await handle_disconnect(self, connection_id)

    async def start(self) -> None:
        self.reclaimer.start()
        logger.info(
            "Reclaimer started (grace %ss, sweep every %ss, max age %ss)",
            self.settings.grace_seconds,
            self.settings.sweep_interval_seconds,
            self.settings.max_room_age_seconds,
        )

    async def stop(self) -> None:
        await self.reclaimer.stop()
        await self.hub.close()


__all__ = ["GameServer"]
