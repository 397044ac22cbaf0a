from __future__ import annotations

from typing import Iterator


MASK64 = 0xFFFFFFFFFFFFFFFF

# Sides
WHITE = "w"
BLACK = "b"

# Piece kinds
PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING = range(6)

# Piece indices for bitboards (color * 6 + kind)
WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK = range(12)
PIECE_ORDER = [WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK]

# Castling rights nibble
CASTLE_WK = 1
CASTLE_WQ = 2
CASTLE_BK = 4
CASTLE_BQ = 8
CASTLE_ALL = CASTLE_WK | CASTLE_WQ | CASTLE_BK | CASTLE_BQ

LIGHT_SQUARES = 0x55AA55AA55AA55AA


def opposite(side: str) -> str:
    return BLACK if side == WHITE else WHITE


def color_offset(side: str) -> int:
    """Return the first piece index of ``side`` (0 for white, 6 for black)."""
    return 0 if side == WHITE else 6


def make_piece(side: str, kind: int) -> int:
    return color_offset(side) + kind


def piece_kind(piece: int) -> int:
    return piece % 6


def piece_color(piece: int) -> str:
    return WHITE if piece < 6 else BLACK


def make_square(file_idx: int, rank_idx: int) -> int:
    """Build a square index from file and rank (both 0..7).

    Raises:
        ValueError: If either coordinate is off the board.
    """
    if not (0 <= file_idx < 8 and 0 <= rank_idx < 8):
        raise ValueError(f"invalid file/rank: {file_idx}, {rank_idx}")
    return rank_idx * 8 + file_idx


def file_of(sq: int) -> int:
    return sq & 7


def rank_of(sq: int) -> int:
    return sq >> 3


def lsb(bb: int) -> int:
    """Index of the least significant set bit; ``bb`` must be non-zero."""
    return (bb & -bb).bit_length() - 1


def popcount(bb: int) -> int:
    return bb.bit_count()


def iter_squares(bb: int) -> Iterator[int]:
    """Yield the set squares of ``bb`` in increasing order."""
    while bb:
        low = bb & -bb
        yield low.bit_length() - 1
        bb ^= low


def squares_between(a: int, b: int) -> int:
    """Squares strictly between two aligned squares, or 0 when not aligned."""
    af, ar = file_of(a), rank_of(a)
    bf, br = file_of(b), rank_of(b)
    df = (bf > af) - (bf < af)
    dr = (br > ar) - (br < ar)
    if a == b or not (df == 0 or dr == 0 or abs(bf - af) == abs(br - ar)):
        return 0
    mask = 0
    f, r = af + df, ar + dr
    while (f, r) != (bf, br):
        mask |= 1 << make_square(f, r)
        f += df
        r += dr
    return mask
