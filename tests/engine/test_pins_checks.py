from __future__ import annotations

import chess
import pytest

from chesscore.engine.move import str_to_square
from chesscore.engine.movegen import MAX_MOVES, MoveScratch, analyze_king_safety
from chesscore.engine.position import GameStatus, Position


def moves_set(p: Position) -> set[str]:
    return {m.to_uci() for m in p.legal_moves()}


def test_pinned_rook_moves_only_along_pin() -> None:
    # d2 rook is pinned by the d8 rook against the d1 king
    p = Position.from_fen("3r3k/8/8/8/8/8/3R4/3K4 w - - 0 1")
    rook_moves = {u for u in moves_set(p) if u.startswith("d2")}
    assert rook_moves == {"d2d3", "d2d4", "d2d5", "d2d6", "d2d7", "d2d8"}


def test_pinned_knight_cannot_move() -> None:
    p = Position.from_fen("4r2k/8/8/8/8/8/4N3/4K3 w - - 0 1")
    assert not any(u.startswith("e2") for u in moves_set(p))


def test_pinned_bishop_captures_pinner() -> None:
    p = Position.from_fen("7k/8/8/8/8/2b5/1B6/K7 w - - 0 1")
    assert {u for u in moves_set(p) if u.startswith("b2")} == {"b2c3"}


def test_king_safety_analysis() -> None:
    p = Position.from_fen("3r3k/8/8/8/8/8/3R4/3K4 w - - 0 1")
    pin_line = MoveScratch().pin_line
    checkers, pinned, check_mask = analyze_king_safety(p, pin_line)
    d2 = str_to_square("d2")
    assert checkers == 0
    assert pinned == 1 << d2
    assert (pin_line[d2] >> str_to_square("d8")) & 1
    assert check_mask == 0xFFFFFFFFFFFFFFFF


def test_single_check_must_be_resolved() -> None:
    # Bishop b5 checks e8; block with c6/d7 pieces or move the king
    p = Position.from_fen("4k3/8/8/1B6/8/8/8/4K2n b - - 0 1")
    assert p.in_check()
    assert moves_set(p) == {"e8d8", "e8e7", "e8f7", "e8f8"}


def test_block_or_capture_checker() -> None:
    p = Position.from_fen("4k3/8/8/1B6/8/8/3r4/4K3 b - - 0 1")
    ms = moves_set(p)
    assert "d2d7" in ms  # block
    assert "d2d1" not in ms  # ignores the check


def test_double_check_only_king_moves() -> None:
    # Rook e1 and knight f6 both check e8
    p = Position.from_fen("4k3/3q4/5N2/8/8/8/8/K3R3 b - - 0 1")
    assert p.checkers().bit_count() == 2
    ms = moves_set(p)
    assert ms
    assert all(u.startswith("e8") for u in ms)


def test_king_cannot_retreat_along_checking_ray() -> None:
    p = Position.from_fen("4k3/8/8/8/8/8/4K3/4r3 w - - 0 1")
    assert moves_set(p) == {"e2d2", "e2d3", "e2f2", "e2f3", "e2e1"}


def test_king_cannot_capture_protected_piece() -> None:
    p = Position.from_fen("4k3/8/8/8/8/8/3q4/3rK3 w - - 0 1")
    assert "e1d1" not in moves_set(p)
    assert "e1d2" not in moves_set(p)


def test_checkmate_and_stalemate_status() -> None:
    mate = Position.from_fen("rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3")
    assert mate.status() is GameStatus.CHECKMATE
    stale = Position.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert stale.status() is GameStatus.STALEMATE
    assert Position.startpos().status() is GameStatus.ONGOING


@pytest.mark.parametrize(
    "fen",
    [
        "4k3/8/8/1B6/8/8/8/4K2n b - - 0 1",
        "4k3/3q4/5N2/8/8/8/8/K3R3 b - - 0 1",
        "4k3/8/8/8/8/8/4K3/4r3 w - - 0 1",
        "3r3k/8/8/8/8/8/3R4/3K4 w - - 0 1",
    ],
)
def test_matches_python_chess(fen: str) -> None:
    expected = {m.uci() for m in chess.Board(fen).legal_moves}
    assert moves_set(Position.from_fen(fen)) == expected


def test_scratch_is_reusable() -> None:
    scratch = MoveScratch()
    first = Position.startpos().legal_moves(scratch)
    second = Position.from_fen("4k3/8/8/8/8/8/4K3/4r3 w - - 0 1").legal_moves(scratch)
    assert len(first) == 20
    assert len(second) == 5


def test_scratch_overflow_raises() -> None:
    scratch = MoveScratch()
    scratch.moves.extend([None] * MAX_MOVES)  # type: ignore[list-item]
    with pytest.raises(OverflowError):
        scratch.add(None)  # type: ignore[arg-type]
