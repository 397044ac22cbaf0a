from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .attacks import AttackTables
from .draw import HistoryNode, is_fifty_move_draw, is_insufficient_material, is_threefold_repetition
from .move import Move
from .position import GameStatus, Position


@dataclass(frozen=True)
class Game:
    """Game wrapper around a position with helper operations.

    Responsibility: hold the current position, the chain of reached hashes
    (for repetition) and the played moves. ``play`` returns a new ``Game``.
    """

    position: Position
    history: HistoryNode
    moves: Tuple[Move, ...] = ()

    @classmethod
    def new(cls, tables: Optional[AttackTables] = None) -> "Game":
        return cls.from_position(Position.startpos(tables))

    @classmethod
    def from_fen(cls, fen: str, tables: Optional[AttackTables] = None) -> "Game":
        return cls.from_position(Position.from_fen(fen, tables))

    @classmethod
    def from_position(cls, position: Position) -> "Game":
        return cls(position=position, history=HistoryNode(position.zobrist_hash))

    def to_fen(self) -> str:
        return self.position.to_fen()

    def legal_moves(self) -> List[Move]:
        return self.position.legal_moves()

    def play(self, move: Move) -> "Game":
        """Apply ``move`` if legal and return the resulting game.

        Moves are matched on (from, to, promotion) so that a parsed UCI move
        without flags resolves to the generated one.

        Raises:
            ValueError: If ``move`` is not legal in the current position.
        """
        for m in self.position.legal_moves():
            if (m.from_sq, m.to_sq, m.promotion) == (move.from_sq, move.to_sq, move.promotion):
                break
        else:
            raise ValueError("illegal move")
        child = self.position.apply_move(m)
        return Game(
            position=child,
            history=self.history.push(child.zobrist_hash),
            moves=self.moves + (m,),
        )

    def play_uci(self, uci: str) -> "Game":
        m = self.position.find_move(uci)
        if m is None:
            raise ValueError("illegal move")
        return self.play(m)

    # --- State flags ---
    def in_check(self) -> bool:
        return self.position.in_check()

    def status(self) -> GameStatus:
        return self.position.status()

    def checkmate(self) -> bool:
        return self.status() is GameStatus.CHECKMATE

    def stalemate(self) -> bool:
        return self.status() is GameStatus.STALEMATE

    def is_repetition(self) -> bool:
        return is_threefold_repetition(self.history)

    def is_draw(self) -> bool:
        # Draw by 50-move rule, stalemate, insufficient material, or threefold repetition
        if is_fifty_move_draw(self.position):
            return True
        if is_insufficient_material(self.position):
            return True
        if self.is_repetition():
            return True
        return self.stalemate()

    def move_history_uci(self) -> List[str]:
        return [m.to_uci() for m in self.moves]
