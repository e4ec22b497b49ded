from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .server import GameServer


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# -----------------------------
# FastAPI app factory
# -----------------------------

def create_app(settings: Optional[Settings] = None, server: Optional[GameServer] = None) -> FastAPI:
    """Build the application. Nothing is created at import time; run it with
    `kangaroo-chess` or `uvicorn --factory kangaroo_chess.app:create_app`.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    server = server or GameServer(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await server.start()
        try:
            yield
        finally:
            await server.stop()

    app = FastAPI(title="Kangaroo Chess", lifespan=lifespan)
    app.state.server = server

    # Browser clients are served from anywhere.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)
    return app


__all__ = ["create_app", "configure_logging"]
