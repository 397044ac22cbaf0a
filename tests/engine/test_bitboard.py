from __future__ import annotations

import pytest

from chesscore.engine.bitboard import (
    BK,
    BLACK,
    KING,
    WHITE,
    WN,
    file_of,
    iter_squares,
    lsb,
    make_piece,
    make_square,
    opposite,
    piece_color,
    piece_kind,
    popcount,
    rank_of,
    squares_between,
)
from chesscore.engine.move import str_to_square


def _bb(*names: str) -> int:
    out = 0
    for n in names:
        out |= 1 << str_to_square(n)
    return out


def test_square_helpers() -> None:
    sq = make_square(4, 3)
    assert sq == str_to_square("e4")
    assert file_of(sq) == 4
    assert rank_of(sq) == 3
    with pytest.raises(ValueError):
        make_square(8, 0)


def test_piece_helpers() -> None:
    assert make_piece(BLACK, KING) == BK
    assert piece_kind(WN) == 1
    assert piece_color(BK) == BLACK
    assert opposite(WHITE) == BLACK


def test_bit_iteration() -> None:
    bb = _bb("a1", "e4", "h8")
    assert list(iter_squares(bb)) == [0, str_to_square("e4"), 63]
    assert popcount(bb) == 3
    assert lsb(bb) == 0


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("a1", "a4", ("a2", "a3")),
        ("a1", "d4", ("b2", "c3")),
        ("h1", "a8", ("g2", "f3", "e4", "d5", "c6", "b7")),
        ("e1", "e2", ()),
        ("a1", "b3", ()),  # not aligned
        ("c3", "c3", ()),
    ],
)
def test_squares_between(a: str, b: str, expected: tuple) -> None:
    sa, sb = str_to_square(a), str_to_square(b)
    assert squares_between(sa, sb) == _bb(*expected)
    assert squares_between(sb, sa) == _bb(*expected)
