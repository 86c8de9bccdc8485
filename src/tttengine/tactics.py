"""
Tactics: immediate wins/blocks and forks on packed occupancy masks.
Notes:
- find_immediate is a search shortcut. Winning now is always optimal, and blocking the
  opponent's completion is optimal whenever the mover has no win of their own.
"""
from typing import List, Optional

from .board import FULL9, Board, bits_occ, mover_bits, opponent_bits
from .rules import WIN_MASKS


def _completing_square(mask: int, bits: int, empty: int) -> Optional[int]:
    need = mask & ~bits
    # exactly one square missing, and it is free
    if need and need & (need - 1) == 0 and need & empty:
        return need.bit_length() - 1
    return None


def find_immediate(me: int, opp: int) -> Optional[int]:
    empty = ~(me | opp) & FULL9
    for bits in (me, opp):
        for mask in WIN_MASKS:
            sq = _completing_square(mask, bits, empty)
            if sq is not None:
                return sq
    return None


def winning_squares(bits: int, empty: int) -> List[int]:
    squares = set()
    for mask in WIN_MASKS:
        sq = _completing_square(mask, bits, empty)
        if sq is not None:
            squares.add(sq)
    return sorted(squares)


def fork_squares(board: Board) -> List[int]:
    """Empty squares that leave the side to move with two or more ways to win."""
    me = mover_bits(board)
    empty = ~bits_occ(board) & FULL9
    forks: List[int] = []
    for sq in range(9):
        bit = 1 << sq
        if not empty & bit:
            continue
        if len(winning_squares(me | bit, empty & ~bit)) >= 2:
            forks.append(sq)
    return forks


def blocking_squares(board: Board) -> List[int]:
    return winning_squares(opponent_bits(board), ~bits_occ(board) & FULL9)
