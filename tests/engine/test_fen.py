from __future__ import annotations

import pytest

from chesscore.engine.bitboard import BK, CASTLE_ALL, CASTLE_WK, CASTLE_WQ, WK
from chesscore.engine.move import str_to_square
from chesscore.engine.position import STARTPOS_FEN, Position


def test_startpos_round_trip() -> None:
    p = Position.from_fen(STARTPOS_FEN)
    assert p.to_fen() == STARTPOS_FEN
    assert Position.startpos() == p


def test_startpos_fields() -> None:
    p = Position.startpos()
    assert p.side_to_move == "w"
    assert p.castling == CASTLE_ALL
    assert p.ep_square is None
    assert p.occupancy().bit_count() == 32
    assert p.piece_at(str_to_square("e1")) == WK
    assert p.piece_at(str_to_square("e8")) == BK
    assert p.piece_at(str_to_square("e4")) is None
    assert p.king_square("b") == str_to_square("e8")


@pytest.mark.parametrize(
    "fen",
    [
        # Mixed pieces and empty squares, some castling rights
        "r1bqkbnr/pppp1ppp/2n5/4p3/3P4/5N2/PPP1PPPP/RNBQKB1R b KQ - 2 3",
        # No castling rights, ep target present on rank 3 or 6
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b - e3 0 1",
        # All castling rights
        "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1",
        "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
    ],
)
def test_round_trip_various_positions(fen: str) -> None:
    p = Position.from_fen(fen)
    assert p.to_fen() == fen


def test_castling_field_parses_to_nibble() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    assert p.castling == CASTLE_WK | CASTLE_WQ


@pytest.mark.parametrize(
    "fen",
    [
        "",  # empty
        "8/8/8/8/8/8/8 w - - 0 1",  # not enough ranks
        "8/8/8/8/8/8/8/8 w - - 0",  # missing fields
        "8/8/8/8/8/8/8/8 x - - 0 1",  # bad side to move
        "8/8/8/8/8/8/8/8 w A - 0 1",  # bad castling
        "8/8/8/8/8/8/8/8 w - z9 0 1",  # bad ep square
        "8/8/8/8/8/8/8/8 w - e4 0 1",  # ep square on wrong rank
        "8/8/8/8/8/8/8/8 w - - -1 1",  # bad halfmove
        "8/8/8/8/8/8/8/8 w - - 0 0",  # bad fullmove
        "9/8/8/8/8/8/8/8 w - - 0 1",  # too many squares
        "7/8/8/8/8/8/8/8 w - - 0 1",  # too few squares
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w KQkq - 0 1",  # bad piece
    ],
)
def test_invalid_fen_raises(fen: str) -> None:
    with pytest.raises(ValueError):
        Position.from_fen(fen)


def test_missing_king_lookup_raises() -> None:
    p = Position.from_fen("8/8/8/8/8/8/8/4K3 w - - 0 1")
    with pytest.raises(ValueError):
        p.king_square("b")
