from __future__ import annotations

import json

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..deps import get_server
from ..server import GameServer

router = APIRouter(prefix="", tags=["ws"])


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket, server: GameServer = Depends(get_server)):
    await ws.accept()
    connection_id = server.connect(ws)
    try:
        while True:
            frame = await ws.receive()
            if frame["type"] == "websocket.disconnect":
                break
            # Text and binary frames both carry a JSON document.
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes") or b""
            try:
                data = json.loads(raw)
            except ValueError:
                server.hub.send(connection_id, "error", "Invalid message")
                continue
            await server.handle(connection_id, data)
    except WebSocketDisconnect:
        pass
    finally:
        await server.disconnect(connection_id)
