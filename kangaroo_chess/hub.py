from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set

from .constants import DEFAULT_OUTBOX_LIMIT

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


def envelope(event: str, data: Any = None) -> Dict[str, Any]:
    return {"type": event, "data": data}


class _Outbox:
    """Frames waiting for one socket, written out by a dedicated task."""

    def __init__(self, websocket: Connection, limit: int) -> None:
        self.websocket = websocket
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=limit)
        self.writer: Optional[asyncio.Task] = None

    def discard_pending(self) -> None:
        while not self.queue.empty():
            self.queue.get_nowait()
            self.queue.task_done()


class RoomHub:
    """In-process pub/sub of outbound events keyed by room code.

    Contract:
      - register each accepted socket once with `register(connection_id, websocket)`
        from inside the running event loop.
      - subscribe it to a room with `subscribe(code, connection_id)`.
      - push events with `send` (one connection) or `broadcast` (whole room).

    `send` and `broadcast` only enqueue: every connection has its own FIFO
    outbox drained by a writer task, so a slow socket never holds up the
    caller or the other members of the room. Frames enqueued in order reach
    each socket in that order.

    Delivery is best effort and at most once: a connection whose send fails,
    or whose outbox overflows, is dropped and the failure never reaches the
    caller. Payloads must be JSON-serializable.
    """

    def __init__(self, outbox_limit: int = DEFAULT_OUTBOX_LIMIT) -> None:
        self._outboxes: Dict[str, _Outbox] = {}
        self._by_room: Dict[str, Set[str]] = defaultdict(set)
        self._outbox_limit = outbox_limit

    def register(self, connection_id: str, websocket: Connection) -> None:
        self.unregister(connection_id)
        outbox = _Outbox(websocket, self._outbox_limit)
        outbox.writer = asyncio.create_task(self._write(connection_id, outbox))
        self._outboxes[connection_id] = outbox

    def unregister(self, connection_id: str) -> None:
        outbox = self._outboxes.pop(connection_id, None)
        if outbox is not None:
            if outbox.writer is not None and outbox.writer is not asyncio.current_task():
                outbox.writer.cancel()
            outbox.discard_pending()
        for code in [c for c, members in self._by_room.items() if connection_id in members]:
            self.unsubscribe(code, connection_id)

    def subscribe(self, code: str, connection_id: str) -> None:
        self._by_room[code].add(connection_id)

    def unsubscribe(self, code: str, connection_id: str) -> None:
        members = self._by_room.get(code)
        if not members:
            return
        members.discard(connection_id)
        if not members:
            self._by_room.pop(code, None)

    def drop_room(self, code: str) -> None:
        self._by_room.pop(code, None)

    def subscribers(self, code: str) -> List[str]:
        return sorted(self._by_room.get(code, ()))

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._outboxes

    # -------------------- Delivery -------------------- #

    def send(self, connection_id: str, event: str, data: Any = None) -> bool:
        """Queue *event* for one connection; False if it is gone or was dropped."""
        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            return False
        try:
            outbox.queue.put_nowait(envelope(event, data))
        except asyncio.QueueFull:
            logger.warning("Dropping connection %s: %d frames pending", connection_id, outbox.queue.qsize())
            self.unregister(connection_id)
            return False
        return True

    def broadcast(
        self,
        code: str,
        event: str,
        data: Any = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> int:
        """Queue *event* for every subscriber of *code*; returns how many accepted it."""
        skip = set(exclude or ())
        queued = 0
        for connection_id in list(self._by_room.get(code, ())):
            if connection_id in skip:
                continue
            if self.send(connection_id, event, data):
                queued += 1
        return queued

    async def _write(self, connection_id: str, outbox: _Outbox) -> None:
        while True:
            frame = await outbox.queue.get()
            try:
                await outbox.websocket.send_json(frame)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Dropping connection %s after failed send of %s: %s", connection_id, frame["type"], exc)
                if self._outboxes.get(connection_id) is outbox:
                    self.unregister(connection_id)
                return
            finally:
                outbox.queue.task_done()

    async def flush(self, *connection_ids: str) -> None:
        """Wait until frames queued so far have been written or discarded.

        Defaults to every registered connection.
        """
        ids = connection_ids or tuple(self._outboxes)
        outboxes = [self._outboxes[cid] for cid in ids if cid in self._outboxes]
        await asyncio.gather(*(outbox.queue.join() for outbox in outboxes))

    async def close(self) -> None:
        writers = [outbox.writer for outbox in self._outboxes.values() if outbox.writer is not None]
        for connection_id in list(self._outboxes):
            self.unregister(connection_id)
        for writer in writers:
            with contextlib.suppress(asyncio.CancelledError):
                await writer


__all__ = ["Connection", "RoomHub", "envelope"]
