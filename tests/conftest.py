from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from kangaroo_chess.app import create_app
from kangaroo_chess.config import Settings
from kangaroo_chess.server import GameServer


class FakeWebSocket:
    """Records every frame the hub pushes to it."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def types(self) -> list[str]:
        return [frame["type"] for frame in self.sent]

    def last(self, event: str) -> Any:
        for frame in reversed(self.sent):
            if frame["type"] == event:
                return frame["data"]
        raise AssertionError(f"no {event!r} frame in {self.types()}")

    def clear(self) -> None:
        self.sent.clear()


class StalledWebSocket(FakeWebSocket):
    """A peer that stops reading: every send blocks until `release` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def send_json(self, data: Any) -> None:
        await self.release.wait()
        self.sent.append(data)


@pytest.fixture()
def settings() -> Settings:
    return Settings(grace_seconds=0.01, sweep_interval_seconds=3600, max_room_age_seconds=7200)


@pytest_asyncio.fixture()
async def server(settings: Settings) -> AsyncGenerator[GameServer, None]:
    game_server = GameServer(settings)
    yield game_server
    await game_server.stop()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    app = create_app(Settings())
    with TestClient(app) as c:
        yield c
