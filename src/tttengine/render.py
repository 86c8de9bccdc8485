"""Plain-text board rendering with algebraic coordinates."""
from typing import List

from .board import Board, bits_o, bits_x

TOKENS = "XO"
SEPARATOR = "  +---+---+---+"


def token(side: int) -> str:
    return TOKENS[side]


def render_board(board: Board) -> str:
    x, o = bits_x(board), bits_o(board)
    lines: List[str] = ["    a   b   c", SEPARATOR]
    for r in range(3):
        cells = []
        for c in range(3):
            bit = 1 << (r * 3 + c)
            cells.append('X' if x & bit else 'O' if o & bit else ' ')
        lines.append(f"{r + 1} |" + "".join(f" {ch} |" for ch in cells))
        lines.append(SEPARATOR)
    return "\n".join(lines)
