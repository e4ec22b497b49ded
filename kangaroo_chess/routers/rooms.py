from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_server
from ..lobby import collect_room_summaries
from ..schemas import RoomSummary
from ..server import GameServer

router = APIRouter(prefix="", tags=["rooms"])


@router.get("/health")
async def health(server: GameServer = Depends(get_server)) -> Dict[str, Any]:
    return {"status": "ok", "rooms": len(server.registry)}


@router.get("/rooms", response_model=List[RoomSummary], response_model_by_alias=True)
async def list_rooms(server: GameServer = Depends(get_server)):
    return collect_room_summaries(server.registry)


@router.get("/rooms/{code}")
async def get_room(code: str, server: GameServer = Depends(get_server)) -> Dict[str, Any]:
    room = server.registry.find(code.strip().upper())
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room.snapshot()
