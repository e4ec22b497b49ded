from __future__ import annotations

from starlette.requests import HTTPConnection

from .server import GameServer


def get_server(connection: HTTPConnection) -> GameServer:
    """FastAPI dependency returning the application's ``GameServer``.

    Works for both HTTP requests and websockets.
    """
    return connection.app.state.server


__all__ = ["get_server"]
