from __future__ import annotations

import bisect
import logging
import os
import random
import struct
from dataclasses import dataclass
from typing import List, Optional, Tuple

from chess.polyglot import POLYGLOT_RANDOM_ARRAY

from ..engine.bitboard import (
    BISHOP,
    CASTLE_BK,
    CASTLE_BQ,
    CASTLE_WK,
    CASTLE_WQ,
    KING,
    KNIGHT,
    MASK64,
    PAWN,
    QUEEN,
    ROOK,
    WHITE,
    file_of,
    iter_squares,
    make_piece,
    piece_color,
    piece_kind,
)
from ..engine.interfaces import PositionView
from ..engine.move import Move, MoveFlag


logger = logging.getLogger(__name__)


ENTRY = struct.Struct(">QHHI")  # key, move, weight, learn

_CASTLE_OFFSET = 768
_EP_OFFSET = 772
_TURN_OFFSET = 780
_CASTLE_KEYS = ((CASTLE_WK, 0), (CASTLE_WQ, 1), (CASTLE_BK, 2), (CASTLE_BQ, 3))

# Book promotion codes (bits 12-14)
_PROMOTIONS = {1: KNIGHT, 2: BISHOP, 3: ROOK, 4: QUEEN}
_PROMOTION_CODES = {v: k for k, v in _PROMOTIONS.items()}

# (king from, rook square) -> king destination; book castling is "king takes own rook"
_CASTLE_DESTINATIONS = {(4, 7): 6, (4, 0): 2, (60, 63): 62, (60, 56): 58}


@dataclass(frozen=True)
class BookEntry:
    key: int
    raw_move: int
    weight: int
    learn: int


def _piece_offset(piece: int) -> int:
    # Book order is bp, wp, bn, wn, ..., bk, wk
    return 64 * (2 * piece_kind(piece) + (1 if piece_color(piece) == WHITE else 0))


def _ep_capturable(position: PositionView) -> bool:
    ep = position.ep_square
    if ep is None:
        return False
    us = position.side_to_move
    victim = ep - 8 if us == WHITE else ep + 8
    own_pawn = make_piece(us, PAWN)
    f = file_of(victim)
    if f > 0 and position.piece_at(victim - 1) == own_pawn:
        return True
    if f < 7 and position.piece_at(victim + 1) == own_pawn:
        return True
    return False


def polyglot_key(position: PositionView) -> int:
    """Compute the standard Polyglot book key of ``position``.

    The en-passant file only contributes when a pawn of the side to move can
    actually capture there.
    """
    h = 0
    for sq in iter_squares(position.occupancy()):
        piece = position.piece_at(sq)
        if piece is not None:
            h ^= POLYGLOT_RANDOM_ARRAY[_piece_offset(piece) + sq]
    for right, idx in _CASTLE_KEYS:
        if position.castling & right:
            h ^= POLYGLOT_RANDOM_ARRAY[_CASTLE_OFFSET + idx]
    if _ep_capturable(position):
        h ^= POLYGLOT_RANDOM_ARRAY[_EP_OFFSET + file_of(position.ep_square)]
    if position.side_to_move == WHITE:
        h ^= POLYGLOT_RANDOM_ARRAY[_TURN_OFFSET]
    return h & MASK64


def decode_move(position: PositionView, raw: int) -> Optional[Move]:
    """Translate a 16-bit book move into an engine ``Move`` for ``position``.

    Flags are derived from the board (captures, en passant, castling). Returns
    ``None`` when the raw value cannot describe a move here.
    """
    to_sq = raw & 0x3F
    from_sq = (raw >> 6) & 0x3F
    code = (raw >> 12) & 0x7
    if code and code not in _PROMOTIONS:
        return None
    promotion = _PROMOTIONS.get(code)

    piece = position.piece_at(from_sq)
    if piece is None or piece_color(piece) != position.side_to_move:
        return None
    kind = piece_kind(piece)
    target = position.piece_at(to_sq)
    if (
        kind == KING
        and (from_sq, to_sq) in _CASTLE_DESTINATIONS
        and target == make_piece(position.side_to_move, ROOK)
    ):
        return Move(from_sq, _CASTLE_DESTINATIONS[(from_sq, to_sq)], MoveFlag.CASTLE)

    flags = MoveFlag.NONE
    if target is not None:
        flags |= MoveFlag.CAPTURE
    elif kind == PAWN and to_sq == position.ep_square and file_of(from_sq) != file_of(to_sq):
        flags |= MoveFlag.CAPTURE | MoveFlag.EN_PASSANT
    try:
        return Move(from_sq, to_sq, flags, promotion)
    except ValueError:
        return None


def encode_move(move: Move) -> int:
    """Encode ``move`` as a 16-bit book move (castling as king takes rook)."""
    to_sq = move.to_sq
    if move.is_castle:
        for (k_from, rook_sq), dest in _CASTLE_DESTINATIONS.items():
            if k_from == move.from_sq and dest == move.to_sq:
                to_sq = rook_sq
                break
    promo = _PROMOTION_CODES[move.promotion] if move.promotion is not None else 0
    return to_sq | (move.from_sq << 6) | (promo << 12)


class PolyglotBook:
    """Read-only Polyglot (``.bin``) opening book.

    The whole file is loaded on construction; lookups binary-search the
    key-sorted entries.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        if not os.path.exists(self.path):
            raise FileNotFoundError(self.path)
        self._keys: List[int] = []
        self._entries: List[BookEntry] = []
        self._load()

    def _load(self) -> None:
        with open(self.path, "rb") as f:
            data = f.read()
        if len(data) % ENTRY.size != 0:
            raise ValueError("invalid polyglot file size")
        entries = [BookEntry(*fields) for fields in ENTRY.iter_unpack(data)]
        # Stable: entries sharing a key keep their file order
        entries.sort(key=lambda e: e.key)
        self._entries = entries
        self._keys = [e.key for e in entries]
        logger.info("loaded polyglot book %s (%d entries)", self.path, len(entries))

    def __len__(self) -> int:
        return len(self._entries)

    def entries_for(self, key: int) -> List[BookEntry]:
        """All raw entries stored under ``key``."""
        lo = bisect.bisect_left(self._keys, key)
        hi = bisect.bisect_right(self._keys, key, lo)
        return self._entries[lo:hi]

    def candidates(self, position: PositionView) -> List[Tuple[Move, int]]:
        """Legal book moves for ``position`` with their weights."""
        key = polyglot_key(position)
        found = self.entries_for(key)
        if not found:
            logger.debug("book miss for key %016x", key)
            return []
        result: List[Tuple[Move, int]] = []
        for entry in found:
            mv = decode_move(position, entry.raw_move)
            if mv is None or not position.is_legal(mv):
                logger.debug("skipping illegal book move %#06x for key %016x", entry.raw_move, key)
                continue
            result.append((mv, entry.weight))
        return result

    def choose_move(
        self,
        position: PositionView,
        pick_best: bool = True,
        rng: Optional[random.Random] = None,
    ) -> Optional[Move]:
        """Pick a book move for ``position``.

        Args:
            position: Position to look up.
            pick_best: Take the highest-weight move (ties resolved by UCI
                string); otherwise choose randomly in proportion to weight.
            rng: Random source for weighted choice; a fresh ``random.Random``
                when omitted.

        Returns:
            Optional[Move]: A legal move, or ``None`` if the book has none.
        """
        cand = self.candidates(position)
        if not cand:
            return None
        if pick_best:
            cand.sort(key=lambda x: (x[1], x[0].to_uci()))
            return cand[-1][0]
        total = sum(w for _, w in cand)
        if total <= 0:
            return cand[0][0]
        r = (rng or random.Random()).randrange(total)
        acc = 0
        for m, w in cand:
            acc += w
            if r < acc:
                return m
        return cand[-1][0]
