from __future__ import annotations

import random

import chess
import pytest

from chesscore.engine.position import Position


STRESS_FENS = [
    "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
    "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
    "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
    "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1",
    "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8",
    "r4rk1/1pp1qppp/p1np1n2/2b1p1B1/2B1P1b1/P1NP1N2/1PP1QPPP/R4RK1 w - - 0 10",
    "8/8/8/K2pP2r/8/8/8/7k w - d6 0 1",
    "n1n5/PPPk4/8/8/8/8/4Kppp/5N1N b - - 0 1",
]


def filtered_pseudo_legal(p: Position) -> set[str]:
    side = p.side_to_move
    return {m.to_uci() for m in p.pseudo_legal_moves() if not p.apply_move(m).in_check(side)}


def legal(p: Position) -> set[str]:
    moves = p.legal_moves()
    ucis = [m.to_uci() for m in moves]
    assert len(ucis) == len(set(ucis))
    return set(ucis)


@pytest.mark.parametrize("fen", STRESS_FENS)
def test_generator_matches_filtered_pseudo_legal(fen: str) -> None:
    rng = random.Random(fen)
    for _ in range(3):
        p = Position.from_fen(fen)
        for _ply in range(40):
            got = legal(p)
            assert got == filtered_pseudo_legal(p), p.to_fen()
            if not got:
                break
            p = p.apply_move(rng.choice(p.legal_moves()))


@pytest.mark.parametrize("fen", STRESS_FENS)
def test_generator_matches_python_chess(fen: str) -> None:
    rng = random.Random(fen)
    for _ in range(3):
        p = Position.from_fen(fen)
        board = chess.Board(fen)
        for _ply in range(40):
            assert legal(p) == {m.uci() for m in board.legal_moves}, p.to_fen()
            moves = p.legal_moves()
            if not moves:
                break
            m = rng.choice(moves)
            p = p.apply_move(m)
            board.push_uci(m.to_uci())
            assert p.to_fen() == board.fen(en_passant="fen")
