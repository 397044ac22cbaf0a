from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .move import Move


@runtime_checkable
class PositionView(Protocol):
    """Read-only capability surface consumed by collaborators (book, tools).

    ``Position`` satisfies it structurally.
    """

    side_to_move: str
    castling: int
    ep_square: Optional[int]

    def occupancy(self) -> int: ...

    def piece_at(self, sq: int) -> Optional[int]: ...

    def is_legal(self, move: Move) -> bool: ...
