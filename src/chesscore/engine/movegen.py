"""Legal move generation with static pin and check analysis.

The generator never filters a pseudo-legal list by trial application, with
one exception: en passant. Capturing en passant removes a pawn that is not on
the destination square, which can open a rank the per-ray pin model does not
track, so each en-passant candidate is validated by applying it.
"""

from __future__ import annotations

from typing import List, Optional, Tuple, TYPE_CHECKING

from .bitboard import (
    BISHOP,
    BLACK,
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
    lsb,
    make_square,
    opposite,
    popcount,
    rank_of,
    squares_between,
)
from .move import Move, MoveFlag, PROMOTION_KINDS

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


MAX_MOVES = 256

# (file delta, rank delta, diagonal)
_DIRECTIONS = (
    (0, 1, False),
    (0, -1, False),
    (1, 0, False),
    (-1, 0, False),
    (1, 1, True),
    (-1, 1, True),
    (1, -1, True),
    (-1, -1, True),
)

# (right, king from, king to, rook home, squares that must be empty, squares that must be safe)
_CASTLING_RULES = {
    WHITE: (
        (CASTLE_WK, 4, 6, 7, (5, 6), (4, 5, 6)),
        (CASTLE_WQ, 4, 2, 0, (1, 2, 3), (4, 3, 2)),
    ),
    BLACK: (
        (CASTLE_BK, 60, 62, 63, (61, 62), (60, 61, 62)),
        (CASTLE_BQ, 60, 58, 56, (57, 58, 59), (60, 59, 58)),
    ),
}


def _build_rays() -> Tuple[Tuple[Tuple[int, ...], ...], ...]:
    rays = []
    for sq in range(64):
        per_square = []
        for df, dr, _ in _DIRECTIONS:
            f, r = file_of(sq) + df, rank_of(sq) + dr
            ray = []
            while 0 <= f < 8 and 0 <= r < 8:
                ray.append(make_square(f, r))
                f += df
                r += dr
            per_square.append(tuple(ray))
        rays.append(tuple(per_square))
    return tuple(rays)


_RAYS = _build_rays()


class MoveScratch:
    """Caller-owned working memory for one generation call at a time.

    Holds the candidate buffer and the per-square pin-line table. Never share
    one instance between concurrent callers.
    """

    __slots__ = ("moves", "pin_line")

    def __init__(self) -> None:
        self.moves: List[Move] = []
        self.pin_line: List[int] = [MASK64] * 64

    def reset(self) -> None:
        self.moves.clear()
        self.pin_line[:] = [MASK64] * 64

    def add(self, move: Move) -> None:
        if len(self.moves) >= MAX_MOVES:
            raise OverflowError("move buffer overflow")
        self.moves.append(move)


def analyze_king_safety(position: "Position", pin_line: List[int]) -> Tuple[int, int, int]:
    """Find checkers and pinned pieces of the side to move.

    Ray-walks the eight directions from the king. ``pin_line`` receives, for
    every pinned square, the ray from the king up to and including the pinner.

    Returns:
        Tuple[int, int, int]: (checkers, pinned, check_mask). ``check_mask``
            is every square when not in check, the checker plus blocking
            squares for a single check, and empty for a double check.
    """
    bb = position.bb
    tables = position.tables
    white = position.side_to_move == WHITE
    us = 0 if white else 6
    them = 6 - us
    us_occ = bb[us] | bb[us + 1] | bb[us + 2] | bb[us + 3] | bb[us + 4] | bb[us + 5]
    them_occ = bb[them] | bb[them + 1] | bb[them + 2] | bb[them + 3] | bb[them + 4] | bb[them + 5]
    occ = us_occ | them_occ
    ksq = position.king_square(position.side_to_move)

    orth = bb[them + ROOK] | bb[them + QUEEN]
    diag = bb[them + BISHOP] | bb[them + QUEEN]

    # Contact checks: enemy pawns stand where our own pawn on ksq would attack
    checkers = tables.knight[ksq] & bb[them + KNIGHT]
    checkers |= tables.pawn[0 if white else 1][ksq] & bb[them + PAWN]

    pinned = 0
    rays = _RAYS[ksq]
    for d in range(8):
        sliders = diag if _DIRECTIONS[d][2] else orth
        ray_mask = 0
        candidate = -1
        for s in rays[d]:
            b = 1 << s
            ray_mask |= b
            if not occ & b:
                continue
            if us_occ & b:
                if candidate >= 0:
                    break
                candidate = s
                continue
            if sliders & b:
                if candidate < 0:
                    checkers |= b
                else:
                    pinned |= 1 << candidate
                    pin_line[candidate] = ray_mask
            break

    count = popcount(checkers)
    if count == 0:
        check_mask = MASK64
    elif count == 1:
        csq = lsb(checkers)
        check_mask = checkers
        if checkers & (orth | diag):
            check_mask |= squares_between(ksq, csq)
    else:
        check_mask = 0
    return checkers, pinned, check_mask


def generate_legal_moves(position: "Position", scratch: Optional[MoveScratch] = None) -> List[Move]:
    """Return exactly the legal moves for the side to move.

    Order: king, knights, bishops, rooks, queens, pawns, castling, en passant;
    increasing origin then destination inside each group. Callers must not
    rely on the order for correctness.

    Args:
        position: Position with exactly one king per side.
        scratch: Working buffers; a fresh one is allocated when omitted.

    Returns:
        List[Move]: A new list (the scratch buffer may be reused afterwards).
    """
    if scratch is None:
        scratch = MoveScratch()
    scratch.reset()
    add = scratch.add
    pin_line = scratch.pin_line

    bb = position.bb
    tables = position.tables
    side = position.side_to_move
    enemy = opposite(side)
    white = side == WHITE
    us = 0 if white else 6
    them = 6 - us
    us_occ = bb[us] | bb[us + 1] | bb[us + 2] | bb[us + 3] | bb[us + 4] | bb[us + 5]
    them_occ = bb[them] | bb[them + 1] | bb[them + 2] | bb[them + 3] | bb[them + 4] | bb[them + 5]
    occ = us_occ | them_occ
    ksq = position.king_square(side)

    checkers, pinned, check_mask = analyze_king_safety(position, pin_line)

    # King: the king itself must not shield its destination from a slider
    occ_without_king = occ ^ (1 << ksq)
    for to in iter_squares(tables.king[ksq] & ~us_occ):
        if not position.is_attacked(to, enemy, occ_without_king):
            add(Move(ksq, to, MoveFlag.CAPTURE if (them_occ >> to) & 1 else MoveFlag.NONE))

    if popcount(checkers) >= 2:
        return list(scratch.moves)

    not_us = ~us_occ & MASK64

    # Knights: a pinned knight can never stay on its pin line
    for frm in iter_squares(bb[us + KNIGHT] & ~pinned):
        _add_targets(add, frm, tables.knight[frm] & not_us & check_mask, them_occ)

    rook = tables.rook
    bishop = tables.bishop
    for kind in (BISHOP, ROOK, QUEEN):
        for frm in iter_squares(bb[us + kind]):
            if kind == BISHOP:
                attacks = bishop.attacks(frm, occ)
            elif kind == ROOK:
                attacks = rook.attacks(frm, occ)
            else:
                attacks = rook.attacks(frm, occ) | bishop.attacks(frm, occ)
            allowed = check_mask
            if (pinned >> frm) & 1:
                allowed &= pin_line[frm]
            _add_targets(add, frm, attacks & not_us & allowed, them_occ)

    _gen_pawns(add, position, us, them_occ, occ, pinned, pin_line, check_mask)

    if not checkers:
        _gen_castling(add, position, occ)

    ep = position.ep_square
    if ep is not None:
        cap_sq = ep - 8 if white else ep + 8
        # Landing on ep must block the check, or the captured pawn must be the checker
        if (check_mask >> ep) & 1 or (checkers >> cap_sq) & 1:
            for frm in _en_passant_origins(position, ep):
                if (pinned >> frm) & 1 and not (pin_line[frm] >> ep) & 1:
                    continue
                mv = Move(frm, ep, MoveFlag.CAPTURE | MoveFlag.EN_PASSANT)
                if not position.apply_move(mv).in_check(side):
                    add(mv)

    return list(scratch.moves)


def generate_pseudo_legal_moves(position: "Position") -> List[Move]:
    """Moves that obey piece geometry but may leave the own king in check.

    Castling still requires rights, an empty path and unattacked king squares
    (those conditions cannot be checked after the fact). Serves as the
    brute-force oracle for :func:`generate_legal_moves`.
    """
    moves: List[Move] = []
    add = moves.append
    bb = position.bb
    tables = position.tables
    white = position.side_to_move == WHITE
    us = 0 if white else 6
    them = 6 - us
    us_occ = bb[us] | bb[us + 1] | bb[us + 2] | bb[us + 3] | bb[us + 4] | bb[us + 5]
    them_occ = bb[them] | bb[them + 1] | bb[them + 2] | bb[them + 3] | bb[them + 4] | bb[them + 5]
    occ = us_occ | them_occ
    not_us = ~us_occ & MASK64

    for kind in (KING, KNIGHT, BISHOP, ROOK, QUEEN):
        for frm in iter_squares(bb[us + kind]):
            if kind == KING:
                attacks = tables.king[frm]
            elif kind == KNIGHT:
                attacks = tables.knight[frm]
            elif kind == BISHOP:
                attacks = tables.bishop_attacks(frm, occ)
            elif kind == ROOK:
                attacks = tables.rook_attacks(frm, occ)
            else:
                attacks = tables.queen_attacks(frm, occ)
            _add_targets(add, frm, attacks & not_us, them_occ)

    no_pins = [MASK64] * 64
    _gen_pawns(add, position, us, them_occ, occ, 0, no_pins, MASK64)
    _gen_castling(add, position, occ)

    ep = position.ep_square
    if ep is not None:
        for frm in _en_passant_origins(position, ep):
            add(Move(frm, ep, MoveFlag.CAPTURE | MoveFlag.EN_PASSANT))
    return moves


def _add_targets(add, frm: int, targets: int, them_occ: int) -> None:
    for to in iter_squares(targets):
        add(Move(frm, to, MoveFlag.CAPTURE if (them_occ >> to) & 1 else MoveFlag.NONE))


def _add_pawn_move(add, frm: int, to: int, flags: MoveFlag) -> None:
    if to >= 56 or to < 8:
        for kind in PROMOTION_KINDS:
            add(Move(frm, to, flags, kind))
    else:
        add(Move(frm, to, flags))


def _gen_pawns(
    add,
    position: "Position",
    us: int,
    them_occ: int,
    occ: int,
    pinned: int,
    pin_line: List[int],
    check_mask: int,
) -> None:
    white = us == 0
    step = 8 if white else -8
    start_rank = 1 if white else 6
    for frm in iter_squares(position.bb[us + PAWN]):
        allowed = check_mask
        if (pinned >> frm) & 1:
            allowed &= pin_line[frm]

        to1 = frm + step
        if not (occ >> to1) & 1:
            if (allowed >> to1) & 1:
                _add_pawn_move(add, frm, to1, MoveFlag.NONE)
            to2 = to1 + step
            if rank_of(frm) == start_rank and not (occ >> to2) & 1 and (allowed >> to2) & 1:
                add(Move(frm, to2))

        file_idx = file_of(frm)
        if file_idx != 0:
            cap = to1 - 1
            if (them_occ >> cap) & 1 and (allowed >> cap) & 1:
                _add_pawn_move(add, frm, cap, MoveFlag.CAPTURE)
        if file_idx != 7:
            cap = to1 + 1
            if (them_occ >> cap) & 1 and (allowed >> cap) & 1:
                _add_pawn_move(add, frm, cap, MoveFlag.CAPTURE)


def _gen_castling(add, position: "Position", occ: int) -> None:
    side = position.side_to_move
    enemy = opposite(side)
    us = 0 if side == WHITE else 6
    for right, k_from, k_to, rook_home, empty, safe in _CASTLING_RULES[side]:
        if not position.castling & right:
            continue
        if not (position.bb[us + KING] >> k_from) & 1 or not (position.bb[us + ROOK] >> rook_home) & 1:
            continue
        if any((occ >> s) & 1 for s in empty):
            continue
        if any(position.is_attacked(s, enemy) for s in safe):
            continue
        add(Move(k_from, k_to, MoveFlag.CASTLE))


def _en_passant_origins(position: "Position", ep: int) -> List[int]:
    """Own pawns that geometrically capture onto ``ep`` (victim present, target empty)."""
    white = position.side_to_move == WHITE
    us = 0 if white else 6
    them = 6 - us
    cap_sq = ep - 8 if white else ep + 8
    if not 0 <= cap_sq < 64 or not (position.bb[them + PAWN] >> cap_sq) & 1:
        return []
    if (position.occupancy() >> ep) & 1:
        return []
    # Our pawns attacking ep sit where an enemy-colored pawn on ep would attack
    origins = position.tables.pawn[1 if white else 0][ep] & position.bb[us + PAWN]
    return list(iter_squares(origins))
