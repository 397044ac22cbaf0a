from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .bitboard import BISHOP, KNIGHT, QUEEN, ROOK


class MoveFlag(enum.IntFlag):
    NONE = 0
    CAPTURE = 1
    EN_PASSANT = 2
    CASTLE = 4
    PROMOTION = 8


PROMOTION_KINDS = (QUEEN, ROOK, BISHOP, KNIGHT)
PROMOTION_TO_CHAR = {KNIGHT: "n", BISHOP: "b", ROOK: "r", QUEEN: "q"}
CHAR_TO_PROMOTION = {v: k for k, v in PROMOTION_TO_CHAR.items()}

# Packed promotion codes: 0 none, 1 N, 2 B, 3 R, 4 Q
_PROMO_CODE = {KNIGHT: 1, BISHOP: 2, ROOK: 3, QUEEN: 4}
_CODE_PROMO = {v: k for k, v in _PROMO_CODE.items()}


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Attributes:
        from_sq (int): Origin square index (0-based).
        to_sq (int): Destination square index (0-based).
        flags (MoveFlag): Capture / en-passant / castle / promotion bits.
        promotion (Optional[int]): Promotion piece kind, if any.

    Raises:
        ValueError: If the squares are out of range, the promotion flag and
            the promotion kind disagree, or a promotion is combined with a
            castle or en-passant flag.
    """

    from_sq: int
    to_sq: int
    flags: MoveFlag = MoveFlag.NONE
    promotion: Optional[int] = None

    def __post_init__(self) -> None:
        if not (0 <= self.from_sq < 64 and 0 <= self.to_sq < 64):
            raise ValueError(f"invalid move squares: {self.from_sq}, {self.to_sq}")
        flags = MoveFlag(self.flags)
        if self.promotion is not None:
            if self.promotion not in _PROMO_CODE:
                raise ValueError(f"invalid promotion kind: {self.promotion!r}")
            flags |= MoveFlag.PROMOTION
        elif flags & MoveFlag.PROMOTION:
            raise ValueError("promotion flag set without a promotion kind")
        if flags & MoveFlag.PROMOTION and flags & (MoveFlag.CASTLE | MoveFlag.EN_PASSANT):
            raise ValueError("promotion cannot combine with castle or en passant")
        object.__setattr__(self, "flags", flags)

    @property
    def is_capture(self) -> bool:
        return bool(self.flags & MoveFlag.CAPTURE)

    @property
    def is_en_passant(self) -> bool:
        return bool(self.flags & MoveFlag.EN_PASSANT)

    @property
    def is_castle(self) -> bool:
        return bool(self.flags & MoveFlag.CASTLE)

    def encode(self) -> int:
        """Pack into an int: from (bits 0-5), to (6-11), promotion (12-15), flags (16-23)."""
        promo = _PROMO_CODE[self.promotion] if self.promotion is not None else 0
        return self.from_sq | (self.to_sq << 6) | (promo << 12) | (int(self.flags) << 16)

    @classmethod
    def decode(cls, packed: int) -> "Move":
        code = (packed >> 12) & 0xF
        if code and code not in _CODE_PROMO:
            raise ValueError(f"invalid packed promotion code: {code}")
        return cls(
            packed & 63,
            (packed >> 6) & 63,
            MoveFlag((packed >> 16) & 0xFF),
            _CODE_PROMO.get(code),
        )

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = PROMOTION_TO_CHAR[self.promotion] if self.promotion is not None else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo

    def __str__(self) -> str:
        return self.to_uci()


def parse_uci(uci: str) -> Move:
    """Parse a UCI move string.

    The result carries no capture / castle / en-passant flags: those depend on
    the position. Use ``Position.find_move`` to resolve a string against the
    legal moves.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).

    Returns:
        Move: Parsed move.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if not isinstance(uci, str) or len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[int] = None
    if len(uci) == 5:
        if uci[4] not in CHAR_TO_PROMOTION:
            raise ValueError(f"invalid promotion piece: {uci[4]!r}")
        promo = CHAR_TO_PROMOTION[uci[4]]
    return Move(from_sq, to_sq, promotion=promo)


def try_parse_uci(uci: str) -> Optional[Move]:
    """Like :func:`parse_uci` but returns ``None`` for malformed input."""
    try:
        return parse_uci(uci)
    except ValueError:
        return None


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Zero-based square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1]) - 1
    return rank * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Args:
        idx (int): Square index in range 0..63.

    Returns:
        str: Algebraic notation for ``idx``.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    file = idx % 8
    rank = idx // 8
    return chr(ord("a") + file) + str(rank + 1)
