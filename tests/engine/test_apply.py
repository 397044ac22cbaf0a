from __future__ import annotations

import pytest

from chesscore.engine.attacks import AttackTables, default_tables
from chesscore.engine.bitboard import BLACK, CASTLE_ALL, CASTLE_BQ, CASTLE_WK, CASTLE_WQ, BP, WP
from chesscore.engine.magics import BISHOP_MAGICS, ROOK_MAGICS
from chesscore.engine.move import Move, MoveFlag, str_to_square
from chesscore.engine.position import Position
from chesscore.engine.zobrist import compute_hash_from_scratch


def play(p: Position, *ucis: str) -> Position:
    for uci in ucis:
        m = p.find_move(uci)
        assert m is not None, uci
        p = p.apply_move(m)
    return p


def test_double_push_sets_ep_and_clocks() -> None:
    start = Position.startpos()
    p = play(start, "e2e4")
    assert p.side_to_move == BLACK
    assert p.ep_square == str_to_square("e3")
    assert p.halfmove_clock == 0
    assert p.fullmove_number == 1
    assert (p.bb[WP] >> str_to_square("e4")) & 1
    assert p.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
    # Source position is untouched
    assert start.to_fen() == Position.startpos().to_fen()


def test_quiet_moves_advance_clocks() -> None:
    p = play(Position.startpos(), "g1f3", "g8f6")
    assert p.halfmove_clock == 2
    assert p.fullmove_number == 2
    assert p.ep_square is None


def test_capture_resets_halfmove_clock() -> None:
    p = play(Position.startpos(), "e2e4", "d7d5", "g1f3", "b8c6", "e4d5")
    assert p.halfmove_clock == 0
    assert not (p.bb[BP] >> str_to_square("d5")) & 1


def test_apply_from_empty_square_raises() -> None:
    p = Position.startpos()
    with pytest.raises(ValueError):
        p.apply_move(Move(str_to_square("e4"), str_to_square("e5")))


def test_apply_with_wrong_side_raises() -> None:
    p = Position.startpos()
    with pytest.raises(ValueError):
        p.apply_move(Move(str_to_square("e7"), str_to_square("e5")))


def test_king_move_clears_both_rights() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    p = play(p, "e1f1")
    assert p.castling == CASTLE_ALL & ~(CASTLE_WK | CASTLE_WQ)


def test_rook_move_clears_one_right() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    p = play(p, "h1h2")
    assert p.castling == CASTLE_ALL & ~CASTLE_WK


def test_rook_captured_on_corner_clears_right() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    p = play(p, "a1a8")
    assert not p.castling & CASTLE_BQ
    assert not p.castling & CASTLE_WQ
    assert p.to_fen().split()[2] == "Kk"


def test_incremental_hash_matches_scratch_after_special_moves() -> None:
    p = Position.from_fen("r3k2r/1P6/8/3pP3/8/8/8/R3K2R w KQkq d6 0 1")
    for uci in ("e5d6", "b7a8q", "e1g1"):
        child = play(p, uci)
        assert child.zobrist_hash == compute_hash_from_scratch(child)


def test_flags_on_generated_capture() -> None:
    p = play(Position.startpos(), "e2e4", "d7d5")
    m = p.find_move("e4d5")
    assert m is not None
    assert m.flags == MoveFlag.CAPTURE


def test_explicit_tables_are_carried_to_children() -> None:
    own = AttackTables.build(rook_magics=ROOK_MAGICS, bishop_magics=BISHOP_MAGICS)
    assert own is not default_tables()
    start = Position.startpos(tables=own)
    assert start.tables is own
    child = play(start, "e2e4", "d7d5", "e4d5")
    assert child.tables is own
    assert Position.from_fen(child.to_fen(), own).tables is own
    # Tables never take part in equality
    assert child == Position.from_fen(child.to_fen())


def test_omitted_tables_use_cached_default() -> None:
    assert Position.startpos().tables is default_tables()
