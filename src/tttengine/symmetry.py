"""
Symmetry and canonicalization for packed boards.
Notes:
- There are 8 symmetries (the dihedral group of the square), generated here by a
  clockwise quarter turn and a left-right mirror.
- The canonical form is the numerically smallest packed image. The side-to-move bit
  is left untouched, so positions differing only in whose turn it is never merge.
- Canonical keys only shrink the transposition table; they never change a result.
"""
from functools import lru_cache
from typing import Dict, List, Sequence, Tuple

from .board import Board, bits_o, bits_x, side_to_move

# square i moves to R90[i] / RH[i]
R90 = (2, 5, 8, 1, 4, 7, 0, 3, 6)
RH = (2, 1, 0, 5, 4, 3, 8, 7, 6)
IDENTITY = tuple(range(9))


def _compose(first: Sequence[int], then: Sequence[int]) -> Tuple[int, ...]:
    return tuple(then[first[i]] for i in range(9))


def _build_symmetries() -> Dict[str, Tuple[int, ...]]:
    # Same enumeration as canonical(): each quarter turn, then its mirror image.
    names = [('id', 'hflip'), ('rot90', 'd1'), ('rot180', 'vflip'), ('rot270', 'd2')]
    maps: Dict[str, Tuple[int, ...]] = {}
    rot = IDENTITY
    for plain, mirrored in names:
        maps[plain] = rot
        maps[mirrored] = _compose(rot, RH)
        rot = _compose(rot, R90)
    return maps


SYMMETRIES = _build_symmetries()
ALL_SYMS = list(SYMMETRIES)


def remap_bits(bits: int, mapping: Sequence[int]) -> int:
    out = 0
    for i in range(9):
        if bits & (1 << i):
            out |= 1 << mapping[i]
    return out


def remap_board(board: Board, mapping: Sequence[int]) -> Board:
    x = remap_bits(bits_x(board), mapping)
    o = remap_bits(bits_o(board), mapping)
    return x | (o << 9) | (side_to_move(board) << 18)


def rotate90(board: Board) -> Board:
    return remap_board(board, R90)


def reflect_h(board: Board) -> Board:
    return remap_board(board, RH)


def transform_square(square: int, kind: str) -> int:
    try:
        return SYMMETRIES[kind][square]
    except KeyError:
        raise ValueError(f"Unknown transformation: {kind}") from None


def images(board: Board) -> List[Tuple[str, Board]]:
    out: List[Tuple[str, Board]] = []
    t = board
    for plain, mirrored in (('id', 'hflip'), ('rot90', 'd1'), ('rot180', 'vflip'), ('rot270', 'd2')):
        out.append((plain, t))
        out.append((mirrored, reflect_h(t)))
        t = rotate90(t)
    return out


@lru_cache(maxsize=None)
def canonical_with_op(board: Board) -> Tuple[Board, str]:
    best, best_op = board, 'id'
    for op, image in images(board):
        if image < best:
            best, best_op = image, op
    return best, best_op


def canonical(board: Board) -> Board:
    return canonical_with_op(board)[0]


def orbit_size(board: Board) -> int:
    return len({image for _, image in images(board)})
