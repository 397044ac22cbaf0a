from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .attacks import AttackTables, default_tables
from .bitboard import (
    BISHOP,
    BLACK,
    BK,
    BR,
    CASTLE_BK,
    CASTLE_BQ,
    CASTLE_WK,
    CASTLE_WQ,
    KING,
    KNIGHT,
    MASK64,
    PAWN,
    PIECE_ORDER,
    QUEEN,
    ROOK,
    WHITE,
    WK,
    WR,
    color_offset,
    file_of,
    lsb,
    make_square,
    opposite,
)
from .move import Move, MoveFlag, square_to_str, str_to_square, try_parse_uci
from .movegen import MoveScratch, generate_legal_moves, generate_pseudo_legal_moves
from .zobrist import ZOBRIST, compute_hash_from_scratch


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

PIECE_TO_CHAR = dict(zip(PIECE_ORDER, "PNBRQKpnbrqk"))
CHAR_TO_PIECE = {v: k for k, v in PIECE_TO_CHAR.items()}

CASTLING_CHARS = ((CASTLE_WK, "K"), (CASTLE_WQ, "Q"), (CASTLE_BK, "k"), (CASTLE_BQ, "q"))

# King destination -> (rook from, rook to)
CASTLE_ROOK_MOVES = {6: (7, 5), 2: (0, 3), 62: (63, 61), 58: (56, 59)}


class GameStatus(enum.Enum):
    ONGOING = "ongoing"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


def _set_bit(bb: int, sq: int) -> int:
    return bb | (1 << sq)


def _get_bit(bb: int, sq: int) -> bool:
    return (bb >> sq) & 1 == 1


@dataclass(frozen=True)
class Position:
    """Immutable board snapshot backed by twelve piece bitboards.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
    - ``castling`` is a nibble of ``CASTLE_*`` bits.
    - ``zobrist_hash`` is computed from scratch when not supplied and is
      maintained incrementally by :meth:`apply_move` afterwards.
    - ``tables`` is the attack-table context; it does not take part in
      equality. ``startpos`` and ``from_fen`` accept it explicitly, and
      children from :meth:`apply_move` inherit it. When omitted (including
      direct construction) the cached ``attacks.default_tables()`` is used.
    """

    # 12 piece bitboards, indexed WP..BK
    bb: Tuple[int, ...]
    side_to_move: str  # 'w' or 'b'
    castling: int
    ep_square: Optional[int]
    halfmove_clock: int
    fullmove_number: int
    zobrist_hash: Optional[int] = None
    tables: AttackTables = field(default_factory=default_tables, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.zobrist_hash is None:
            object.__setattr__(self, "zobrist_hash", compute_hash_from_scratch(self))

    @classmethod
    def startpos(cls, tables: Optional[AttackTables] = None) -> "Position":
        """Create a position initialized to the standard chess starting position."""
        return cls.from_fen(STARTPOS_FEN, tables)

    @classmethod
    def from_fen(cls, fen: str, tables: Optional[AttackTables] = None) -> "Position":
        """Create a position from a Forsyth-Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.
            tables (Optional[AttackTables]): Attack tables to attach; the
                process-wide default when omitted.

        Returns:
            Position: Position initialized with state encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, en passant
                square, or move counters.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling_field, ep, halfmove, fullmove = parts

        # Parse piece placement
        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        bb = [0] * 12
        for rank_idx, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
            file_idx = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    if ch not in CHAR_TO_PIECE:
                        raise ValueError(f"invalid piece in FEN: {ch!r}")
                    if file_idx >= 8:
                        raise ValueError("too many squares in FEN rank")
                    sq = make_square(file_idx, rank_idx)
                    p = CHAR_TO_PIECE[ch]
                    bb[p] = _set_bit(bb[p], sq)
                    file_idx += 1
            if file_idx != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")

        # Side to move
        if stm not in (WHITE, BLACK):
            raise ValueError("side to move must be 'w' or 'b'")

        # Castling rights
        castling = 0
        if castling_field != "-":
            for ch in castling_field:
                bits = [b for b, c in CASTLING_CHARS if c == ch]
                if not bits:
                    raise ValueError("invalid castling rights")
                castling |= bits[0]

        # En passant square
        ep_square: Optional[int]
        if ep == "-":
            ep_square = None
        else:
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            # ep target must be on rank 3 or 6
            if ep_square // 8 not in (2, 5):
                raise ValueError("invalid en passant square rank")

        # Halfmove / fullmove
        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")

        return cls(
            bb=tuple(bb),
            side_to_move=stm,
            castling=castling,
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
            tables=tables if tables is not None else default_tables(),
        )

    def to_fen(self) -> str:
        """Serialize the current position into a normalized FEN string."""
        ranks_str: List[str] = []
        for rank_idx in range(7, -1, -1):  # 7..0 maps to ranks 8..1
            run = 0
            row = []
            for file_idx in range(8):
                p = self.piece_at(make_square(file_idx, rank_idx))
                if p is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(PIECE_TO_CHAR[p])
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        placement = "/".join(ranks_str)

        castling = "".join(c for b, c in CASTLING_CHARS if self.castling & b) or "-"
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return (
            f"{placement} {self.side_to_move} {castling} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    # --- Read-only queries ---
    def occupancy(self) -> int:
        occ = 0
        for b in self.bb:
            occ |= b
        return occ

    def combined(self) -> int:
        return self.occupancy()

    def color_combined(self, side: str) -> int:
        base = color_offset(side)
        occ = 0
        for b in self.bb[base : base + 6]:
            occ |= b
        return occ

    def pieces(self, side: str, kind: int) -> int:
        return self.bb[color_offset(side) + kind]

    def piece_at(self, sq: int) -> Optional[int]:
        """Return the piece index (WP..BK) on ``sq``, or ``None`` when empty."""
        for idx in PIECE_ORDER:
            if _get_bit(self.bb[idx], sq):
                return idx
        return None

    def king_square(self, side: str) -> int:
        """Square of ``side``'s king.

        Raises:
            ValueError: If ``side`` has no king.
        """
        kbb = self.bb[WK if side == WHITE else BK]
        if kbb == 0:
            raise ValueError("no king on board")
        return lsb(kbb)

    def attackers_to(self, sq: int, by_side: str, occ: Optional[int] = None) -> int:
        """Bitboard of ``by_side`` pieces attacking ``sq`` given occupancy ``occ``."""
        if occ is None:
            occ = self.occupancy()
        bb = self.bb
        t = self.tables
        base = color_offset(by_side)
        # Reverse lookup: an attacker's pawn sits where a defender's pawn on sq would attack
        attackers = t.pawn[1 if by_side == WHITE else 0][sq] & bb[base + PAWN]
        attackers |= t.knight[sq] & bb[base + KNIGHT]
        attackers |= t.king[sq] & bb[base + KING]
        attackers |= t.bishop.attacks(sq, occ) & (bb[base + BISHOP] | bb[base + QUEEN])
        attackers |= t.rook.attacks(sq, occ) & (bb[base + ROOK] | bb[base + QUEEN])
        return attackers

    def is_attacked(self, sq: int, by_side: str, occ: Optional[int] = None) -> bool:
        """Return True if square ``sq`` is attacked by ``by_side``.

        ``occ`` overrides the blocker set (e.g. with the moving king removed).
        """
        if occ is None:
            occ = self.occupancy()
        bb = self.bb
        t = self.tables
        base = color_offset(by_side)
        if t.pawn[1 if by_side == WHITE else 0][sq] & bb[base + PAWN]:
            return True
        if t.knight[sq] & bb[base + KNIGHT]:
            return True
        if t.king[sq] & bb[base + KING]:
            return True
        if t.bishop.attacks(sq, occ) & (bb[base + BISHOP] | bb[base + QUEEN]):
            return True
        if t.rook.attacks(sq, occ) & (bb[base + ROOK] | bb[base + QUEEN]):
            return True
        return False

    def in_check(self, side: Optional[str] = None) -> bool:
        """Return True if ``side`` (default: side to move) is in check."""
        side = side or self.side_to_move
        return self.is_attacked(self.king_square(side), opposite(side))

    def checkers(self) -> int:
        """Bitboard of enemy pieces giving check to the side to move."""
        side = self.side_to_move
        return self.attackers_to(self.king_square(side), opposite(side))

    # --- Move generation ---
    def legal_moves(self, scratch: Optional[MoveScratch] = None) -> List[Move]:
        return generate_legal_moves(self, scratch)

    def pseudo_legal_moves(self) -> List[Move]:
        return generate_pseudo_legal_moves(self)

    def is_legal(self, move: Move) -> bool:
        """True if ``move`` (including its flags) is currently legal."""
        return move in self.legal_moves()

    def find_move(self, uci: str) -> Optional[Move]:
        """Resolve a UCI string to the matching legal move, or ``None``."""
        parsed = try_parse_uci(uci)
        if parsed is None:
            return None
        for m in self.legal_moves():
            if (m.from_sq, m.to_sq, m.promotion) == (parsed.from_sq, parsed.to_sq, parsed.promotion):
                return m
        return None

    def has_legal_moves(self) -> bool:
        return bool(self.legal_moves())

    def status(self) -> GameStatus:
        if self.has_legal_moves():
            return GameStatus.ONGOING
        return GameStatus.CHECKMATE if self.in_check() else GameStatus.STALEMATE

    # --- State transition ---
    def apply_move(self, move: Move) -> "Position":
        """Return the position after ``move``; this position is left unchanged.

        Expects a well-formed move of the side to move (normally produced by the
        generator); legality is not re-checked.

        Raises:
            ValueError: If the origin square holds no piece of the side to move.
        """
        from_sq, to_sq = move.from_sq, move.to_sq
        side = self.side_to_move
        white = side == WHITE
        us = 0 if white else 6
        them = 6 - us
        from_bit = 1 << from_sq
        to_bit = 1 << to_sq
        bb = list(self.bb)

        moved_piece = None
        for p in range(us, us + 6):
            if bb[p] & from_bit:
                moved_piece = p
                break
        if moved_piece is None:
            raise ValueError("no piece of the side to move on from_sq")

        keys = ZOBRIST.piece_square
        h = self.zobrist_hash
        # Out: previous EP file, castling nibble, side to move, mover at origin
        if self.ep_square is not None:
            h ^= ZOBRIST.ep_file[file_of(self.ep_square)]
        h ^= ZOBRIST.castling[self.castling]
        h ^= ZOBRIST.side_to_move
        bb[moved_piece] ^= from_bit
        h ^= keys[moved_piece][from_sq]

        # Captures: en passant removes the pawn behind the destination
        captured_piece = None
        flags = move.flags
        if flags & MoveFlag.EN_PASSANT:
            cap_sq = to_sq - 8 if white else to_sq + 8
            captured_piece = them + PAWN
            bb[captured_piece] &= ~(1 << cap_sq)
            h ^= keys[captured_piece][cap_sq]
        else:
            for p in range(them, them + 6):
                if bb[p] & to_bit:
                    captured_piece = p
                    bb[p] ^= to_bit
                    h ^= keys[p][to_sq]
                    break

        castling = self.castling
        if flags & MoveFlag.CASTLE:
            rook = us + ROOK
            rook_from, rook_to = CASTLE_ROOK_MOVES[to_sq]
            bb[rook] = (bb[rook] & ~(1 << rook_from)) | (1 << rook_to)
            h ^= keys[rook][rook_from] ^ keys[rook][rook_to]
            castling &= ~(CASTLE_WK | CASTLE_WQ) if white else ~(CASTLE_BK | CASTLE_BQ)

        # Place moved piece (or promoted piece)
        placed = us + move.promotion if move.promotion is not None else moved_piece
        bb[placed] |= to_bit
        h ^= keys[placed][to_sq]

        castling = _update_castling_rights(castling, moved_piece, from_sq, to_sq, captured_piece)
        h ^= ZOBRIST.castling[castling]

        ep_square = None
        if moved_piece == us + PAWN and abs(to_sq - from_sq) == 16:
            ep_square = (from_sq + to_sq) // 2
            h ^= ZOBRIST.ep_file[file_of(ep_square)]

        if moved_piece == us + PAWN or captured_piece is not None:
            halfmove_clock = 0
        else:
            halfmove_clock = self.halfmove_clock + 1

        return Position(
            bb=tuple(bb),
            side_to_move=opposite(side),
            castling=castling,
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=self.fullmove_number + (0 if white else 1),
            zobrist_hash=h & MASK64,
            tables=self.tables,
        )


def _update_castling_rights(
    castling: int, moved_piece: int, from_sq: int, to_sq: int, captured_piece: Optional[int]
) -> int:
    """Clear castling bits for king moves, rook moves from home and rook captures on home."""
    if moved_piece == WK:
        castling &= ~(CASTLE_WK | CASTLE_WQ)
    elif moved_piece == BK:
        castling &= ~(CASTLE_BK | CASTLE_BQ)
    elif moved_piece == WR:
        if from_sq == 0:
            castling &= ~CASTLE_WQ
        elif from_sq == 7:
            castling &= ~CASTLE_WK
    elif moved_piece == BR:
        if from_sq == 56:
            castling &= ~CASTLE_BQ
        elif from_sq == 63:
            castling &= ~CASTLE_BK
    # Rook captured on its original square
    if captured_piece == WR:
        if to_sq == 0:
            castling &= ~CASTLE_WQ
        elif to_sq == 7:
            castling &= ~CASTLE_WK
    elif captured_piece == BR:
        if to_sq == 56:
            castling &= ~CASTLE_BQ
        elif to_sq == 63:
            castling &= ~CASTLE_BK
    return castling & 0xF
