"""
Rules: win detection and terminal states.
Scores are always from the side-to-move perspective.
"""
from typing import Optional, Tuple

from .board import FULL9, O, X, Board, bits_o, bits_occ, bits_x, opponent_bits

# 9-bit masks in octal: rows, columns, diagonals
WIN_MASKS = (
    0o007, 0o070, 0o700,
    0o111, 0o222, 0o444,
    0o421, 0o124,
)

WIN, LOSS, DRAW = 100, -100, 0


def is_win(bits: int) -> bool:
    for mask in WIN_MASKS:
        if bits & mask == mask:
            return True
    return False


def is_terminal(board: Board) -> Tuple[bool, Optional[int]]:
    # The side that just moved is the only one that can have completed a line.
    if is_win(opponent_bits(board)):
        return True, LOSS
    if bits_occ(board) == FULL9:
        return True, DRAW
    return False, None


def winner(board: Board) -> Optional[int]:
    if is_win(bits_x(board)):
        return X
    if is_win(bits_o(board)):
        return O
    return None


def win_in(ply: int) -> int:
    return WIN - ply


def lose_in(ply: int) -> int:
    return LOSS + ply
