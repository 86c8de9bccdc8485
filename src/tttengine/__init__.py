"""tttengine package.

Packed tic-tac-toe positions, rules, symmetry canonicalization, and a
negamax search engine backed by a transposition table.

Convenience imports are exposed for common workflows.
"""

from .board import IllegalMoveError, apply_move, initial, is_legal, side_to_move
from .notation import ParseError, parse_move
from .rules import is_terminal, is_win
from .search import Engine

__all__ = [
    "Engine",
    "IllegalMoveError",
    "ParseError",
    "apply_move",
    "initial",
    "is_legal",
    "is_terminal",
    "is_win",
    "parse_move",
    "side_to_move",
]
