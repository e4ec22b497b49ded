from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from .board import Board, initial_board
from .constants import BLACK, COLORS, SPECTATOR, WHITE
from .schemas import GameView, HistoryEntry, Participant, ParticipantView

# NOTE: ``Room`` deliberately holds no websocket objects. Connections are
# tracked by the registry (membership) and the hub (delivery).


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Room:
    """Runtime state of a single game session."""

    def __init__(self, code: str, created_at: Optional[datetime] = None):
        self.code = code
        self.created_at: datetime = created_at or utcnow()
        self.board: Board = initial_board()
        self.turn: str = WHITE
        # color -> seated player
        self.players: Dict[str, Participant] = {}
        self.spectators: List[Participant] = []
        self.history: List[HistoryEntry] = []
        self.game_over: bool = False
        self.result: Optional[Union[str, Dict[str, Any]]] = None
        self.rematch_requested_by: Optional[str] = None

        # Serialises mutation + fan-out so every participant sees states in order.
        self.lock = asyncio.Lock()
        # Pending disconnect grace check, owned by the reclaimer.
        self.cleanup_task: Optional[asyncio.Task] = None

    # ---------------------------------------------------------------------
    # Membership
    # ---------------------------------------------------------------------

    @property
    def status(self) -> str:
        if self.game_over:
            return "game-over"
        if BLACK not in self.players:
            return "waiting"
        return "active"

    def find(self, connection_id: str) -> Optional[Tuple[str, Participant]]:
        """Return ``(role, participant)`` for *connection_id*, if present."""
        for color, player in self.players.items():
            if player.connection_id == connection_id:
                return color, player
        for spectator in self.spectators:
            if spectator.connection_id == connection_id:
                return SPECTATOR, spectator
        return None

    def find_seat(self, seat_token: str) -> Optional[str]:
        for color, player in self.players.items():
            if player.seat_token == seat_token:
                return color
        return None

    def remove(self, connection_id: str) -> Optional[Tuple[str, Participant]]:
        found = self.find(connection_id)
        if found is None:
            return None
        role, participant = found
        if role == SPECTATOR:
            self.spectators.remove(participant)
        else:
            del self.players[role]
            if self.rematch_requested_by == role:
                self.rematch_requested_by = None
        return found

    def connected_players(self) -> List[Participant]:
        return [p for p in self.players.values() if p.connected]

    def connected_spectators(self) -> List[Participant]:
        return [s for s in self.spectators if s.connected]

    def is_abandoned(self) -> bool:
        """No connected player and no connected spectator remain."""
        return not self.connected_players() and not self.connected_spectators()

    def is_empty(self) -> bool:
        return not self.players and not self.spectators

    def participant_name(self, connection_id: str) -> Optional[str]:
        found = self.find(connection_id)
        return found[1].name if found else None

    # ---------------------------------------------------------------------
    # Serialisation
    # ---------------------------------------------------------------------

    def to_view(self) -> GameView:
        return GameView(
            code=self.code,
            board=[list(row) for row in self.board],
            turn=self.turn,
            status=self.status,
            players={
                color: ParticipantView(name=self.players[color].name, connected=self.players[color].connected)
                for color in COLORS
                if color in self.players
            },
            spectators=[ParticipantView(name=s.name, connected=s.connected) for s in self.spectators],
            history=list(self.history),
            game_over=self.game_over,
            result=self.result,
            rematch_requested_by=self.rematch_requested_by,
            created_at=self.created_at,
        )

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready ``game`` payload."""
        return self.to_view().model_dump(mode="json", by_alias=True)

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        return ((now or utcnow()) - self.created_at).total_seconds()


__all__ = ["Room", "utcnow"]
