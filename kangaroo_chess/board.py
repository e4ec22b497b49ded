"""Board model: an 8x8 grid of single-letter piece codes.

A cell is either ``None`` or one letter from ``pnbrqk``; uppercase letters
are white pieces and lowercase letters are black pieces. Row 0 is the top of
the board as seen by white (black's back rank) and row 7 is white's back rank.
"""
from __future__ import annotations

from typing import List, Optional

from .constants import BLACK, BOARD_SIZE, INITIAL_LAYOUT, PIECE_KINDS, WHITE

Board = List[List[Optional[str]]]


def initial_board() -> Board:
    """Return a fresh board in the standard starting layout."""
    return [list(row) for row in INITIAL_LAYOUT]


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def piece_color(piece: str) -> str:
    """Color owning *piece*, derived from the letter case."""
    return WHITE if piece.isupper() else BLACK


def piece_kind(piece: str) -> str:
    return PIECE_KINDS[piece.lower()]


def is_pawn(piece: str) -> bool:
    return piece.lower() == "p"


def queen_of(color: str) -> str:
    return "Q" if color == WHITE else "q"


def promotion_row(color: str) -> int:
    """Opposite back rank for *color*'s pawns."""
    return 0 if color == WHITE else BOARD_SIZE - 1


def square_name(row: int, col: int) -> str:
    """Algebraic square name, e.g. ``(6, 4) -> "e2"``."""
    return f"{chr(ord('a') + col)}{BOARD_SIZE - row}"


def count_pieces(board: Board) -> int:
    return sum(1 for row in board for cell in row if cell is not None)


def is_valid_board(board: Board) -> bool:
    if len(board) != BOARD_SIZE:
        return False
    for row in board:
        if len(row) != BOARD_SIZE:
            return False
        for cell in row:
            if cell is not None and (len(cell) != 1 or cell.lower() not in PIECE_KINDS):
                return False
    return True


__all__ = [
    "Board",
    "initial_board",
    "in_bounds",
    "piece_color",
    "piece_kind",
    "is_pawn",
    "queen_of",
    "promotion_row",
    "square_name",
    "count_pieces",
    "is_valid_board",
]
