from __future__ import annotations

from typing import Dict, Optional

from .movegen import MoveScratch, generate_legal_moves
from .position import Position


def perft(position: Position, depth: int, scratch: Optional[MoveScratch] = None) -> int:
    """Compute perft node count for ``position`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    At depth 1 the legal move count is returned directly (bulk counting).
    One scratch buffer is reused for the whole tree; every call copies its
    move list out before recursing.

    Raises:
        ValueError: If ``depth`` is negative.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    if scratch is None:
        scratch = MoveScratch()
    moves = generate_legal_moves(position, scratch)
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        nodes += perft(position.apply_move(m), depth - 1, scratch)
    return nodes


def divide(position: Position, depth: int) -> Dict[str, int]:
    """Per-root-move perft counts keyed by UCI string.

    Raises:
        ValueError: If ``depth`` is less than 1.
    """
    if depth < 1:
        raise ValueError("depth must be >= 1")
    scratch = MoveScratch()
    return {
        m.to_uci(): perft(position.apply_move(m), depth - 1, scratch)
        for m in generate_legal_moves(position, scratch)
    }
