from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from conftest import FakeWebSocket

from kangaroo_chess.constants import WHITE
from kangaroo_chess.hub import RoomHub
from kangaroo_chess.reclaimer import LifecycleReclaimer
from kangaroo_chess.registry import RoomRegistry
from kangaroo_chess.roles import assign_role
from kangaroo_chess.room import utcnow


def make_reclaimer(**kwargs) -> LifecycleReclaimer:
    kwargs.setdefault("grace_seconds", 0.01)
    return LifecycleReclaimer(RoomRegistry(), RoomHub(), **kwargs)


@pytest.mark.asyncio
async def test_abandoned_room_is_deleted_after_grace() -> None:
    reclaimer = make_reclaimer()
    code = reclaimer.registry.create()
    room = reclaimer.registry.get(code)
    assign_role(room, "c1", "Alice")
    assign_role(room, "c2", "Bob")
    for player in room.players.values():
        player.connected = False

    await reclaimer.schedule_disconnect_check(room)

    assert code not in reclaimer.registry


@pytest.mark.asyncio
async def test_room_with_connected_participant_survives() -> None:
    reclaimer = make_reclaimer()
    code = reclaimer.registry.create()
    room = reclaimer.registry.get(code)
    assign_role(room, "c1", "Alice")
    assign_role(room, "c2", "Bob")
    assign_role(room, "c3", "Eve")
    for player in room.players.values():
        player.connected = False

    await reclaimer.schedule_disconnect_check(room)

    assert code in reclaimer.registry
    assert room.cleanup_task is None


@pytest.mark.asyncio
async def test_rescheduling_restarts_the_grace_timer() -> None:
    reclaimer = make_reclaimer(grace_seconds=0.05)
    code = reclaimer.registry.create()
    room = reclaimer.registry.get(code)

    first = reclaimer.schedule_disconnect_check(room)
    second = reclaimer.schedule_disconnect_check(room)
    await asyncio.sleep(0.01)

    assert first.cancelled()
    await second
    assert code not in reclaimer.registry


@pytest.mark.asyncio
async def test_pending_check_is_cancelled_when_room_deleted_first() -> None:
    registry = RoomRegistry(code_factory=lambda: "SAME00")
    reclaimer = LifecycleReclaimer(registry, RoomHub(), grace_seconds=0.01)
    old = registry.get(registry.create())
    task = reclaimer.schedule_disconnect_check(old)

    registry.delete("SAME00")
    replacement = registry.get(registry.create())
    await asyncio.sleep(0.05)

    assert task.cancelled()
    assert registry.find("SAME00") is replacement


@pytest.mark.asyncio
async def test_cancel_disconnect_check() -> None:
    reclaimer = make_reclaimer()
    code = reclaimer.registry.create()
    room = reclaimer.registry.get(code)
    task = reclaimer.schedule_disconnect_check(room)

    reclaimer.cancel_disconnect_check(room)
    await asyncio.sleep(0.05)

    assert task.cancelled()
    assert code in reclaimer.registry


@pytest.mark.asyncio
async def test_sweep_deletes_stale_rooms_regardless_of_connections() -> None:
    reclaimer = make_reclaimer(max_age_seconds=7200)
    registry, hub = reclaimer.registry, reclaimer.hub
    old = registry.create(created_at=utcnow() - timedelta(hours=2, seconds=1))
    fresh = registry.create()
    assign_role(registry.get(old), "c1", "Alice")
    socket = FakeWebSocket()
    hub.register("c1", socket)
    hub.subscribe(old, "c1")
    registry.bind("c1", old, WHITE)

    removed = await reclaimer.sweep_once()
    await hub.flush()

    assert removed == [old]
    assert old not in registry
    assert fresh in registry
    assert registry.membership("c1") is None
    assert socket.sent == [{"type": "room-closed", "data": {"roomId": old, "reason": "expired"}}]
    await hub.close()


@pytest.mark.asyncio
async def test_sweep_with_explicit_clock() -> None:
    reclaimer = make_reclaimer(max_age_seconds=60)
    code = reclaimer.registry.create()

    assert await reclaimer.sweep_once() == []
    assert await reclaimer.sweep_once(now=utcnow() + timedelta(minutes=2)) == [code]


@pytest.mark.asyncio
async def test_start_and_stop() -> None:
    reclaimer = make_reclaimer(grace_seconds=60, sweep_interval_seconds=60)
    room = reclaimer.registry.get(reclaimer.registry.create())
    pending = reclaimer.schedule_disconnect_check(room)

    reclaimer.start()
    assert reclaimer.running

    await reclaimer.stop()
    assert not reclaimer.running
    assert pending.cancelled()
    assert room.cleanup_task is None
