from __future__ import annotations

from typing import List, TYPE_CHECKING

from .bitboard import BLACK, MASK64, file_of, iter_squares

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


ZOBRIST_SEED = 0xCAFEBABE_D15EA5E5


class _SplitMix64:
    def __init__(self, seed: int) -> None:
        self.state = seed & MASK64

    def next(self) -> int:
        # Deterministic 64-bit SplitMix64
        self.state = (self.state + 0x9E3779B97F4A7C15) & MASK64
        z = self.state
        z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & MASK64
        z = (z ^ (z >> 27)) * 0x94D049BB133111EB & MASK64
        z = z ^ (z >> 31)
        return z & MASK64


class Zobrist:
    """Zobrist hashing seeds and utilities.

    Table layout:
    - piece_square[12][64]: indices follow Position piece order (WP..BK)
    - side_to_move: toggled when black is to move
    - castling[16]: one key per castling-rights nibble (always applied)
    - ep_file[8]: files a..h, applied whenever an en-passant target exists
    """

    piece_square: List[List[int]]
    side_to_move: int
    castling: List[int]
    ep_file: List[int]

    def __init__(self, seed: int = ZOBRIST_SEED) -> None:
        prng = _SplitMix64(seed)
        self.piece_square = [[0] * 64 for _ in range(12)]
        for p in range(12):
            for sq in range(64):
                self.piece_square[p][sq] = prng.next()
        self.side_to_move = prng.next()
        self.castling = [prng.next() for _ in range(16)]
        self.ep_file = [prng.next() for _ in range(8)]


# Global deterministic table
ZOBRIST = Zobrist()


def compute_hash_from_scratch(position: "Position") -> int:
    """Compute the 64-bit Zobrist hash of a Position.

    Deterministic across runs given the fixed ZOBRIST table.
    """
    h = 0
    # Pieces
    for p in range(12):
        keys = ZOBRIST.piece_square[p]
        for sq in iter_squares(position.bb[p]):
            h ^= keys[sq]
    # Side to move
    if position.side_to_move == BLACK:
        h ^= ZOBRIST.side_to_move
    # Castling nibble
    h ^= ZOBRIST.castling[position.castling & 0xF]
    # En passant file (if any)
    if position.ep_square is not None:
        h ^= ZOBRIST.ep_file[file_of(position.ep_square)]
    return h & MASK64
