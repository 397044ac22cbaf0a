from __future__ import annotations

import functools
import json
import logging
import time
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .bitboard import MASK64, WHITE, file_of, make_square, popcount, rank_of
from .magics import BISHOP_MAGICS, ROOK_MAGICS


logger = logging.getLogger(__name__)


ROOK_SEED = 0xC0FFEE
BISHOP_SEED = 0xBADC0DE
MAX_MAGIC_ATTEMPTS = 100_000_000

KNIGHT_DELTAS = ((1, 2), (2, 1), (2, -1), (1, -2), (-1, -2), (-2, -1), (-2, 1), (-1, 2))
KING_DELTAS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))
ROOK_DIRS = ((0, 1), (0, -1), (1, 0), (-1, 0))
BISHOP_DIRS = ((1, 1), (-1, 1), (1, -1), (-1, -1))


class AttackTablesNotReady(RuntimeError):
    """Raised when attack tables are queried before being fully populated."""


class _XorShift64:
    def __init__(self, seed: int) -> None:
        self.state = (seed & MASK64) or 0x9E3779B97F4A7C15

    def next(self) -> int:
        x = self.state
        x ^= (x << 13) & MASK64
        x ^= x >> 7
        x ^= (x << 17) & MASK64
        self.state = x
        return x

    def sparse(self) -> int:
        # sparse candidate: AND of three draws
        return self.next() & self.next() & self.next()


def _leaper_table(deltas: Sequence[Tuple[int, int]]) -> Tuple[int, ...]:
    table: List[int] = []
    for sq in range(64):
        f, r = file_of(sq), rank_of(sq)
        mask = 0
        for df, dr in deltas:
            tf, tr = f + df, r + dr
            if 0 <= tf < 8 and 0 <= tr < 8:
                mask |= 1 << make_square(tf, tr)
        table.append(mask)
    return tuple(table)


def relevancy_mask(sq: int, dirs: Sequence[Tuple[int, int]]) -> int:
    """Squares whose occupancy can change the slider attacks from ``sq``.

    The last square of every ray is dropped: a blocker there never hides
    anything further along.
    """
    mask = 0
    f0, r0 = file_of(sq), rank_of(sq)
    for df, dr in dirs:
        f, r = f0 + df, r0 + dr
        while 0 <= f + df < 8 and 0 <= r + dr < 8:
            mask |= 1 << make_square(f, r)
            f += df
            r += dr
    return mask


def slider_attacks_slow(sq: int, occ: int, dirs: Sequence[Tuple[int, int]]) -> int:
    """Ray-trace slider attacks from ``sq`` given blockers ``occ``."""
    attacks = 0
    f0, r0 = file_of(sq), rank_of(sq)
    for df, dr in dirs:
        f, r = f0 + df, r0 + dr
        while 0 <= f < 8 and 0 <= r < 8:
            s = r * 8 + f
            attacks |= 1 << s
            if (occ >> s) & 1:
                break
            f += df
            r += dr
    return attacks


def _subsets(mask: int) -> Iterator[int]:
    # Carry-rippler enumeration of every subset of mask, starting with 0
    sub = 0
    while True:
        yield sub
        sub = (sub - mask) & mask
        if sub == 0:
            return


def _fill(magic: int, shift: int, size: int, occs: List[int], atts: List[int]) -> Optional[List[int]]:
    """Index every occupancy with ``magic``; ``None`` on a destructive collision."""
    used = [0] * size
    for occ, att in zip(occs, atts):
        idx = ((occ * magic) & MASK64) >> shift
        slot = used[idx]
        if not slot:
            used[idx] = att
        elif slot != att:
            return None
    return used


def find_magic(
    mask: int,
    occs: List[int],
    atts: List[int],
    rng: _XorShift64,
    max_attempts: int = MAX_MAGIC_ATTEMPTS,
) -> Tuple[int, List[int], int]:
    """Search a collision-free multiplier for one square.

    Returns:
        Tuple[int, List[int], int]: magic, filled table slice, attempts used.

    Raises:
        RuntimeError: If no multiplier is found within ``max_attempts``.
    """
    bits = popcount(mask)
    shift = 64 - bits
    size = 1 << bits
    for attempt in range(1, max_attempts + 1):
        magic = rng.sparse()
        if popcount((mask * magic) & 0xFF00000000000000) < 6:
            continue
        used = _fill(magic, shift, size, occs, atts)
        if used is not None:
            return magic, used, attempt
    raise RuntimeError(f"no magic found after {max_attempts} attempts")


@dataclass(frozen=True)
class SliderMagics:
    """Magic lookup data for one slider geometry (rook or bishop).

    Attributes:
        masks: Per-square relevancy masks.
        magics: Per-square multipliers.
        shifts: Per-square right shifts (``64 - popcount(mask)``).
        offsets: Per-square start index into ``table``.
        table: Flattened attack sets for every square and blocker subset.
    """

    masks: Tuple[int, ...]
    magics: Tuple[int, ...]
    shifts: Tuple[int, ...]
    offsets: Tuple[int, ...]
    table: Tuple[int, ...]

    def is_ready(self) -> bool:
        return bool(self.table) and all(
            len(arr) == 64 for arr in (self.masks, self.magics, self.shifts, self.offsets)
        )

    def attacks(self, sq: int, occ: int) -> int:
        idx = (((occ & self.masks[sq]) * self.magics[sq]) & MASK64) >> self.shifts[sq]
        return self.table[self.offsets[sq] + idx]

    @classmethod
    def build(
        cls,
        dirs: Sequence[Tuple[int, int]],
        seed: int,
        magics: Optional[Sequence[int]] = None,
        max_attempts: int = MAX_MAGIC_ATTEMPTS,
    ) -> "SliderMagics":
        """Enumerate blocker subsets and find (or verify) a magic per square.

        Args:
            dirs: Ray directions of the slider.
            seed: Seed of the deterministic candidate stream.
            magics: Known multipliers to verify instead of searching.
            max_attempts: Search budget per square.

        Raises:
            ValueError: If a supplied multiplier collides.
        """
        if magics is not None and len(magics) != 64:
            raise ValueError("expected 64 magic multipliers")
        rng = _XorShift64(seed)
        masks: List[int] = []
        found: List[int] = []
        shifts: List[int] = []
        offsets: List[int] = []
        table: List[int] = []
        for sq in range(64):
            mask = relevancy_mask(sq, dirs)
            occs = list(_subsets(mask))
            atts = [slider_attacks_slow(sq, occ, dirs) for occ in occs]
            bits = popcount(mask)
            if magics is not None:
                magic = magics[sq] & MASK64
                used = _fill(magic, 64 - bits, 1 << bits, occs, atts)
                if used is None:
                    raise ValueError(f"magic {magic:#x} collides on square {sq}")
            else:
                magic, used, attempts = find_magic(mask, occs, atts, rng, max_attempts)
                logger.debug("square %d: magic %#x after %d attempts", sq, magic, attempts)
            masks.append(mask)
            found.append(magic)
            shifts.append(64 - bits)
            offsets.append(len(table))
            table.extend(used)
        return cls(tuple(masks), tuple(found), tuple(shifts), tuple(offsets), tuple(table))


@dataclass(frozen=True)
class AttackTables:
    """Immutable attack-geometry context shared by positions and the generator.

    Leaper tables are indexed by square; ``pawn`` is indexed ``[color][sq]``
    with color 0 = white, 1 = black and holds the squares a pawn of that color
    attacks. Construction validates readiness, so a live instance never
    answers from an empty table.
    """

    knight: Tuple[int, ...]
    king: Tuple[int, ...]
    pawn: Tuple[Tuple[int, ...], Tuple[int, ...]]
    rook: SliderMagics
    bishop: SliderMagics

    def __post_init__(self) -> None:
        self.ensure_ready()

    def is_ready(self) -> bool:
        return (
            len(self.knight) == 64
            and len(self.king) == 64
            and len(self.pawn) == 2
            and all(len(p) == 64 for p in self.pawn)
            and self.rook.is_ready()
            and self.bishop.is_ready()
        )

    def ensure_ready(self) -> None:
        if not self.is_ready():
            raise AttackTablesNotReady("attack tables are not initialized")

    def knight_attacks(self, sq: int) -> int:
        return self.knight[sq]

    def king_attacks(self, sq: int) -> int:
        return self.king[sq]

    def pawn_attacks(self, side: str, sq: int) -> int:
        return self.pawn[0 if side == WHITE else 1][sq]

    def rook_attacks(self, sq: int, occ: int) -> int:
        return self.rook.attacks(sq, occ)

    def bishop_attacks(self, sq: int, occ: int) -> int:
        return self.bishop.attacks(sq, occ)

    def queen_attacks(self, sq: int, occ: int) -> int:
        return self.rook.attacks(sq, occ) | self.bishop.attacks(sq, occ)

    def magics(self) -> Dict[str, List[int]]:
        return {"rook": list(self.rook.magics), "bishop": list(self.bishop.magics)}

    @classmethod
    def build(
        cls,
        rook_seed: int = ROOK_SEED,
        bishop_seed: int = BISHOP_SEED,
        rook_magics: Optional[Sequence[int]] = None,
        bishop_magics: Optional[Sequence[int]] = None,
        max_attempts: int = MAX_MAGIC_ATTEMPTS,
    ) -> "AttackTables":
        """Build leaper tables and magic slider tables.

        Deterministic for fixed seeds. Supplying ``rook_magics`` /
        ``bishop_magics`` skips the search for that slider; each multiplier is
        still verified against every blocker subset.
        """
        if rook_magics is not None and bishop_magics is not None:
            logger.info("building attack tables from supplied magics")
        else:
            logger.info(
                "building attack tables (rook seed=%#x, bishop seed=%#x)", rook_seed, bishop_seed
            )
        start = time.perf_counter()
        pawn_white = _leaper_table(((-1, 1), (1, 1)))
        pawn_black = _leaper_table(((-1, -1), (1, -1)))
        tables = cls(
            knight=_leaper_table(KNIGHT_DELTAS),
            king=_leaper_table(KING_DELTAS),
            pawn=(pawn_white, pawn_black),
            rook=SliderMagics.build(ROOK_DIRS, rook_seed, rook_magics, max_attempts),
            bishop=SliderMagics.build(BISHOP_DIRS, bishop_seed, bishop_magics, max_attempts),
        )
        logger.info(
            "attack tables ready in %.0f ms (rook entries=%d, bishop entries=%d)",
            (time.perf_counter() - start) * 1000,
            len(tables.rook.table),
            len(tables.bishop.table),
        )
        return tables


@functools.lru_cache(maxsize=None)
def default_tables() -> AttackTables:
    """Process-wide tables, built once on first use and read-only afterwards.

    Uses the multipliers shipped in ``magics.py``, so this only verifies them.
    The search runs from ``scripts/generate_magics.py``.
    """
    return AttackTables.build(rook_magics=ROOK_MAGICS, bishop_magics=BISHOP_MAGICS)


def load_magics(path: str) -> AttackTables:
    """Build tables from a JSON file written by ``scripts/generate_magics.py``.

    Multipliers may be stored as ints or hex strings; every one is verified.
    """
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    def _ints(values: Sequence) -> List[int]:
        return [int(v, 0) if isinstance(v, str) else int(v) for v in values]

    logger.info("loading magics from %s", path)
    return AttackTables.build(
        rook_magics=_ints(payload["rook"]),
        bishop_magics=_ints(payload["bishop"]),
    )
