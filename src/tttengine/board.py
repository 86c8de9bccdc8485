"""
Packed board representation.
Layout notes:
- A position is a plain int: bits 0..8 hold X, bits 9..17 hold O, bit 18 is the side to move.
- Squares are row-major, 0 is top-left. X always starts.
- Every helper is pure and returns a new value; positions are never mutated.
"""
from typing import Iterable, List

Board = int

X, O = 0, 1
FULL9 = (1 << 9) - 1
SIDE_BIT = 1 << 18


class IllegalMoveError(ValueError):
    """Raised when a move is applied to an occupied or off-board square."""

    def __init__(self, board: Board, square: int):
        super().__init__(f"Illegal move {square!r} for position {serialize_board(board)}")
        self.board = board
        self.square = square


def initial() -> Board:
    return 0


def pack(x_bits: int, o_bits: int, side: int = X) -> Board:
    if x_bits & o_bits:
        raise ValueError("Occupancy masks overlap")
    return (x_bits & FULL9) | ((o_bits & FULL9) << 9) | ((side & 1) << 18)


def side_to_move(board: Board) -> int:
    return (board >> 18) & 1


def bits_x(board: Board) -> int:
    return board & FULL9


def bits_o(board: Board) -> int:
    return (board >> 9) & FULL9


def bits_occ(board: Board) -> int:
    return bits_x(board) | bits_o(board)


def mover_bits(board: Board) -> int:
    return bits_x(board) if side_to_move(board) == X else bits_o(board)


def opponent_bits(board: Board) -> int:
    return bits_o(board) if side_to_move(board) == X else bits_x(board)


def flip_side(board: Board) -> Board:
    return board ^ SIDE_BIT


def is_empty(board: Board, square: int) -> bool:
    return 0 <= square < 9 and not bits_occ(board) & (1 << square)


def is_legal(board: Board, square: int) -> bool:
    # bool is an int subclass; reject it so True never reads as square 1
    if not isinstance(square, int) or isinstance(square, bool):
        return False
    return is_empty(board, square)


def apply_move(board: Board, square: int) -> Board:
    if not is_legal(board, square):
        raise IllegalMoveError(board, square)
    bit = square if side_to_move(board) == X else 9 + square
    return flip_side(board | (1 << bit))


def empty_squares(board: Board) -> List[int]:
    occ = bits_occ(board)
    return [i for i in range(9) if not occ & (1 << i)]


def from_moves(squares: Iterable[int]) -> Board:
    b = initial()
    for sq in squares:
        b = apply_move(b, sq)
    return b


def serialize_board(board: Board) -> str:
    """Nine characters, 0=empty, 1=X, 2=O (the side to move is implied by counts)."""
    x, o = bits_x(board), bits_o(board)
    return ''.join('1' if x & (1 << i) else '2' if o & (1 << i) else '0' for i in range(9))


def parse_board(text: str) -> Board:
    raw = text.strip()
    if len(raw) != 9 or any(c not in "012" for c in raw):
        raise ValueError("Invalid board string. Must be 9 chars of 0/1/2.")
    x_bits = sum(1 << i for i, c in enumerate(raw) if c == '1')
    o_bits = sum(1 << i for i, c in enumerate(raw) if c == '2')
    x_count, o_count = raw.count('1'), raw.count('2')
    if not (x_count == o_count or x_count == o_count + 1):
        raise ValueError("Board is not a valid reachable state.")
    board = pack(x_bits, o_bits, X if x_count == o_count else O)
    if not is_valid(board):
        raise ValueError("Board is not a valid reachable state.")
    return board


def is_valid(board: Board) -> bool:
    """True if the position can arise from legal play starting at the initial position."""
    from .rules import is_win

    x, o = bits_x(board), bits_o(board)
    if x & o:
        return False
    x_count, o_count = bin(x).count('1'), bin(o).count('1')
    if not (x_count == o_count or x_count == o_count + 1):
        return False
    if side_to_move(board) != (X if x_count == o_count else O):
        return False
    x_wins, o_wins = is_win(x), is_win(o)
    if x_wins and o_wins:
        return False
    if x_wins and x_count != o_count + 1:
        return False
    if o_wins and x_count != o_count:
        return False
    return True
