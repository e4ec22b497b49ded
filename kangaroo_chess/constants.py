from __future__ import annotations

WHITE = "white"
BLACK = "black"
SPECTATOR = "spectator"

COLORS = (WHITE, BLACK)

BOARD_SIZE = 8

# Row 0 is black's back rank, row 7 is white's. Uppercase letters are white.
INITIAL_LAYOUT: tuple[tuple[str | None, ...], ...] = (
    ("r", "n", "b", "q", "k", "b", "n", "r"),
    ("p", "p", "p", "p", "p", "p", "p", "p"),
    (None, None, None, None, None, None, None, None),
    (None, None, None, None, None, None, None, None),
    (None, None, None, None, None, None, None, None),
    (None, None, None, None, None, None, None, None),
    ("P", "P", "P", "P", "P", "P", "P", "P"),
    ("R", "N", "B", "Q", "K", "B", "N", "R"),
)

PIECE_KINDS = {
    "p": "pawn",
    "n": "knight",
    "b": "bishop",
    "r": "rook",
    "q": "queen",
    "k": "king",
}

# Design defaults for room reclamation (seconds).
DEFAULT_GRACE_SECONDS = 5 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 30 * 60
DEFAULT_MAX_ROOM_AGE_SECONDS = 2 * 60 * 60

ROOM_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
DEFAULT_ROOM_CODE_LENGTH = 6

MAX_NAME_LENGTH = 32
MAX_CHAT_LENGTH = 500

# Frames a single connection may have pending before it is dropped.
DEFAULT_OUTBOX_LIMIT = 256

__all__ = [
    "WHITE",
    "BLACK",
    "SPECTATOR",
    "COLORS",
    "BOARD_SIZE",
    "INITIAL_LAYOUT",
    "PIECE_KINDS",
    "DEFAULT_GRACE_SECONDS",
    "DEFAULT_SWEEP_INTERVAL_SECONDS",
    "DEFAULT_MAX_ROOM_AGE_SECONDS",
    "ROOM_CODE_ALPHABET",
    "DEFAULT_ROOM_CODE_LENGTH",
    "MAX_NAME_LENGTH",
    "MAX_CHAT_LENGTH",
    "DEFAULT_OUTBOX_LIMIT",
]
