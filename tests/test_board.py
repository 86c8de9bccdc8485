import pytest

from tttengine.board import (
    O,
    SIDE_BIT,
    X,
    IllegalMoveError,
    apply_move,
    bits_o,
    bits_occ,
    bits_x,
    empty_squares,
    flip_side,
    from_moves,
    initial,
    is_empty,
    is_legal,
    is_valid,
    mover_bits,
    opponent_bits,
    pack,
    parse_board,
    serialize_board,
    side_to_move,
)


def test_initial_position_is_empty_with_x_to_move():
    b = initial()
    assert b == 0
    assert side_to_move(b) == X
    assert bits_x(b) == bits_o(b) == bits_occ(b) == 0
    assert empty_squares(b) == list(range(9))


def test_apply_move_sets_mover_bit_and_flips_side():
    b = apply_move(initial(), 4)
    assert b == (1 << 4) | SIDE_BIT
    assert side_to_move(b) == O
    b = apply_move(b, 0)
    assert bits_x(b) == 1 << 4
    assert bits_o(b) == 1 << 0
    assert side_to_move(b) == X
    assert mover_bits(b) == bits_x(b)
    assert opponent_bits(b) == bits_o(b)


@pytest.mark.parametrize("square", [-1, 9, 42])
def test_off_board_squares_are_illegal(square):
    assert not is_legal(initial(), square)
    with pytest.raises(IllegalMoveError):
        apply_move(initial(), square)


def test_occupied_square_raises_and_leaves_position_untouched():
    b = from_moves([0, 4])
    with pytest.raises(IllegalMoveError) as exc:
        apply_move(b, 4)
    assert exc.value.square == 4
    assert exc.value.board == b
    assert isinstance(exc.value, ValueError)
    assert not is_empty(b, 0)
    assert is_empty(b, 8)


def test_bool_is_not_a_square():
    assert not is_legal(initial(), True)


def test_flip_side_only_touches_side_bit():
    b = from_moves([0, 4, 8])
    assert flip_side(flip_side(b)) == b
    assert bits_occ(flip_side(b)) == bits_occ(b)
    assert side_to_move(flip_side(b)) != side_to_move(b)


def test_same_moves_give_same_position():
    seq = [4, 0, 8, 2, 1]
    assert from_moves(seq) == from_moves(list(seq))


def test_pack_rejects_overlapping_masks():
    with pytest.raises(ValueError):
        pack(0b11, 0b10)


def test_serialize_and_parse_board():
    b = from_moves([0, 4])
    assert serialize_board(b) == "100020000"
    assert parse_board("100020000") == b
    assert side_to_move(parse_board("100000000")) == O


@pytest.mark.parametrize("bad", ["abc", "0123456789", "12345678x", "111222111", "220000000"])
def test_parse_board_rejects_bad_strings(bad):
    with pytest.raises(ValueError):
        parse_board(bad)


def test_is_valid_flags_impossible_positions():
    assert is_valid(from_moves([0, 3, 1, 4, 2]))
    # both sides own a line
    assert not is_valid(pack(0o007, 0o070, O))
    # side bit disagrees with piece counts
    assert not is_valid(pack(0b1, 0, X))
