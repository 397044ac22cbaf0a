from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, TYPE_CHECKING

from .bitboard import (
    BB,
    BN,
    BP,
    BQ,
    BR,
    LIGHT_SQUARES,
    WB,
    WN,
    WP,
    WQ,
    WR,
    popcount,
)

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


FIFTY_MOVE_PLIES = 100


@dataclass(frozen=True)
class HistoryNode:
    """One link of the append-only chain of reached position hashes.

    ``prev`` points towards the game start; the root has ``prev=None``.
    """

    zobrist_hash: int
    prev: Optional["HistoryNode"] = None

    def push(self, zobrist_hash: int) -> "HistoryNode":
        return HistoryNode(zobrist_hash, self)

    def __iter__(self) -> Iterator[int]:
        node: Optional[HistoryNode] = self
        while node is not None:
            yield node.zobrist_hash
            node = node.prev


def is_insufficient_material(position: "Position") -> bool:
    """True for K v K, K+minor v K and K+B v K+B with same-colored bishops."""
    bb = position.bb
    if bb[WP] | bb[BP] | bb[WR] | bb[BR] | bb[WQ] | bb[BQ]:
        return False
    white_minors = popcount(bb[WN] | bb[WB])
    black_minors = popcount(bb[BN] | bb[BB])
    if white_minors + black_minors <= 1:
        return True
    if white_minors == 1 and black_minors == 1 and bb[WB] and bb[BB]:
        # Both bishops on light squares, or both on dark squares
        return bool(bb[WB] & LIGHT_SQUARES) == bool(bb[BB] & LIGHT_SQUARES)
    return False


def is_fifty_move_draw(position: "Position") -> bool:
    return position.halfmove_clock >= FIFTY_MOVE_PLIES


def is_threefold_repetition(history: Optional[HistoryNode]) -> bool:
    """True if the newest hash in ``history`` occurs at least three times.

    Walks the whole chain; the newest node counts as the first occurrence.
    """
    if history is None:
        return False
    current = history.zobrist_hash
    seen = 0
    for h in history:
        if h == current:
            seen += 1
            if seen >= 3:
                return True
    return False
