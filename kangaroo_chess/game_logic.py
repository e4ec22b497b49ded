"""Move/swap engine.

Every function here operates only on in-memory ``Room`` instances and never
performs I/O, so a call either raises before touching the room or applies
its whole effect. Chess legality (check, castling, en passant, geometry of
moves) is not enforced: a move only needs in-range squares and a piece on the
source square, and a swap only needs two pieces of the mover's color.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, NamedTuple, Optional, Union

from .board import in_bounds, initial_board, is_pawn, piece_color, promotion_row, queen_of, square_name
from .constants import BLACK, SPECTATOR, WHITE
from .exceptions import GameAlreadyOver, InvalidAction, NotYourTurn, SpectatorAction
from .room import Room, utcnow
from .schemas import HistoryEntry, Square

logger = logging.getLogger(__name__)


class ActionResult(NamedTuple):
    entry: HistoryEntry
    notation: str


def other_color(color: str) -> str:
    return BLACK if color == WHITE else WHITE


def move_notation(from_: Square, to: Square) -> str:
    return f"{square_name(from_.row, from_.col)}-{square_name(to.row, to.col)}"


def swap_notation(from_: Square, to: Square) -> str:
    return f"SWAP {square_name(from_.row, from_.col)}<->{square_name(to.row, to.col)}"


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def _require_turn(room: Room, actor: str) -> None:
    if room.game_over:
        raise GameAlreadyOver()
    if actor == SPECTATOR:
        raise SpectatorAction()
    if actor != room.turn:
        raise NotYourTurn()


def _require_squares(from_: Square, to: Square, error: str) -> None:
    if not in_bounds(from_.row, from_.col) or not in_bounds(to.row, to.col):
        raise InvalidAction(error)
    if (from_.row, from_.col) == (to.row, to.col):
        raise InvalidAction(error)


def _record(room: Room, kind: str, from_: Square, to: Square, actor: str, notation: str) -> ActionResult:
    entry = HistoryEntry(
        kind=kind,
        from_=from_,
        to=to,
        piece=room.board[to.row][to.col],
        color=actor,
        notation=notation,
        timestamp=utcnow(),
    )
    room.history.append(entry)
    room.turn = other_color(room.turn)
    return ActionResult(entry, notation)


# ---------------------------------------------------------------------------
# Turn actions
# ---------------------------------------------------------------------------

def apply_move(
    room: Room,
    actor: str,
    from_: Square,
    to: Square,
    declared_piece: Optional[str] = None,
) -> ActionResult:
    """Move the piece on *from_* to *to*, replacing whatever stood there.

    *declared_piece* is what the client claims to be moving. It is not
    trusted: the piece on the source square is always the one moved. A pawn
    landing on its opposite back rank becomes a queen of the same color.
    """
    _require_turn(room, actor)
    _require_squares(from_, to, "Invalid move")

    piece = room.board[from_.row][from_.col]
    if piece is None:
        raise InvalidAction("Invalid move")
    if declared_piece is not None and declared_piece != piece:
        logger.debug("Room %s: client declared %r but %r stands on the source square", room.code, declared_piece, piece)

    color = piece_color(piece)
    if is_pawn(piece) and to.row == promotion_row(color):
        piece = queen_of(color)

    room.board[to.row][to.col] = piece
    room.board[from_.row][from_.col] = None

    result = _record(room, "move", from_, to, actor, move_notation(from_, to))
    logger.debug("Room %s: %s played %s", room.code, actor, result.notation)
    return result


def apply_swap(room: Room, actor: str, from_: Square, to: Square) -> ActionResult:
    """Exchange two of the mover's own pieces in place."""
    _require_turn(room, actor)
    _require_squares(from_, to, "Invalid swap")

    first = room.board[from_.row][from_.col]
    second = room.board[to.row][to.col]
    if first is None or second is None:
        raise InvalidAction("Invalid swap")
    if piece_color(first) != actor or piece_color(second) != actor:
        raise InvalidAction("Invalid swap")

    room.board[from_.row][from_.col] = second
    room.board[to.row][to.col] = first

    result = _record(room, "swap", from_, to, actor, swap_notation(from_, to))
    logger.debug("Room %s: %s played %s", room.code, actor, result.notation)
    return result


# ---------------------------------------------------------------------------
# Game end & rematch
# ---------------------------------------------------------------------------

def report_game_over(room: Room, actor: str, result: Union[str, Dict[str, Any]]) -> None:
    if actor == SPECTATOR:
        raise SpectatorAction("Spectators cannot end the game")
    if room.game_over:
        raise GameAlreadyOver()
    room.game_over = True
    room.result = result
    logger.info("Room %s: game over (%s)", room.code, result)


def request_rematch(room: Room, actor: str) -> None:
    if actor == SPECTATOR:
        raise SpectatorAction("Spectators cannot request a rematch")
    room.rematch_requested_by = actor


def reset_for_rematch(room: Room) -> None:
    """Restore the starting position; seats and spectators are untouched."""
    room.board = initial_board()
    room.turn = WHITE
    room.game_over = False
    room.result = None
    room.history = []
    room.rematch_requested_by = None
    logger.info("Room %s: board reset for rematch", room.code)


def accept_rematch(room: Room, actor: str) -> None:
    """Reset *room* for a new game on behalf of a seated player.

    Any seated player may restart, except the one whose own request is pending.
    """
    if actor == SPECTATOR:
        raise SpectatorAction("Spectators cannot accept a rematch")
    if room.rematch_requested_by == actor:
        raise InvalidAction("Cannot accept your own rematch request")
    reset_for_rematch(room)


__all__ = [
    "ActionResult",
    "other_color",
    "move_notation",
    "swap_notation",
    "apply_move",
    "apply_swap",
    "report_game_over",
    "request_rematch",
    "reset_for_rematch",
    "accept_rematch",
]
