from typing import List

import pytest

pytest.importorskip("hypothesis")
from hypothesis import given, settings, strategies as st  # noqa: E402

from tttengine.board import apply_move, from_moves, initial, is_legal, is_valid, parse_board, serialize_board  # noqa: E402
from tttengine.rules import is_terminal  # noqa: E402
from tttengine.symmetry import ALL_SYMS, SYMMETRIES, canonical, remap_board, transform_square  # noqa: E402


def _play(order: List[int]) -> int:
    b = initial()
    for sq in order:
        if is_terminal(b)[0]:
            break
        b = apply_move(b, sq)
    return b


game_orders = st.permutations(list(range(9))).flatmap(
    lambda p: st.integers(min_value=0, max_value=9).map(lambda n: list(p[:n]))
)


@given(game_orders)
def test_played_positions_are_valid(order: List[int]):
    b = _play(order)
    assert is_valid(b)
    assert parse_board(serialize_board(b)) == b


@given(game_orders)
def test_canonical_is_idempotent_and_symmetry_invariant(order: List[int]):
    b = _play(order)
    c = canonical(b)
    assert canonical(c) == c
    for op in ALL_SYMS:
        assert canonical(remap_board(b, SYMMETRIES[op])) == c


@given(game_orders, st.sampled_from(ALL_SYMS))
def test_symmetry_preserves_terminal_status(order: List[int], op: str):
    b = _play(order)
    assert is_terminal(remap_board(b, SYMMETRIES[op])) == is_terminal(b)


@given(game_orders)
@settings(max_examples=50)
def test_move_sequences_are_deterministic(order: List[int]):
    moves = []
    b = initial()
    for sq in order:
        if is_terminal(b)[0] or not is_legal(b, sq):
            break
        moves.append(sq)
        b = apply_move(b, sq)
    assert from_moves(moves) == b


@given(st.integers(min_value=0, max_value=8), st.sampled_from(ALL_SYMS))
def test_transform_square_is_a_permutation(idx: int, op: str):
    imgs = {transform_square(i, op) for i in range(9)}
    assert imgs == set(range(9))
    assert 0 <= transform_square(idx, op) <= 8
