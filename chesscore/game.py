from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Union

import logging
import random

import chess

from .ai import SEARCH_DEPTH, AILevel, MoveChooser, create_ai
from .board import Board, Color, Move, PieceType


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameOutcome:
    winner: Optional[str]
    reason: str
    move_count: int
    ai_level: str

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class GameEngine:
    """Turn orchestration for one game, optionally against a computer player.

    Whether the game is awaiting the player, awaiting the AI or over is never
    stored; it follows from the current turn, the AI color and the ended flag.
    """

    def __init__(
        self,
        ai_level: Union[AILevel, str, int] = AILevel.NONE,
        ai_color: Optional[Color] = None,
        board: Optional[Board] = None,
        turn: Color = Color.WHITE,
        rng: Optional[random.Random] = None,
        search_depth: int = SEARCH_DEPTH,
    ) -> None:
        self.board = board if board is not None else Board()
        self.current_turn = turn
        self.ai_level = AILevel.parse(ai_level)
        # AI plays black unless told otherwise
        self.ai_color: Optional[Color] = None
        if self.ai_level is not AILevel.NONE:
            self.ai_color = ai_color or Color.BLACK
        self._ai: Optional[MoveChooser] = create_ai(self.ai_level, rng=rng, depth=search_depth)
        self.move_count = 0
        self.history: List[Move] = []
        self._ended = False
        self._resigned: Optional[Color] = None
        self._draw_declared = False

    @classmethod
    def from_fen(cls, fen: str, **kwargs) -> "GameEngine":
        ref = chess.Board(fen)
        turn = Color.WHITE if ref.turn == chess.WHITE else Color.BLACK
        return cls(board=Board.from_chess(ref), turn=turn, **kwargs)

    def set_ai_color(self, color: Optional[Color]) -> None:
        """Choose the AI's side; the human plays the other one."""
        self.ai_color = color

    def is_vs_computer(self) -> bool:
        return self.ai_level is not AILevel.NONE

    def is_game_ended(self) -> bool:
        return self._ended

    def set_game_ended(self, ended: bool) -> None:
        self._ended = ended

    def resign(self, color: Color) -> None:
        self._resigned = color
        self._ended = True

    def declare_draw(self) -> None:
        self._draw_declared = True
        self._ended = True

    # --- Moves ---
    def move_from_uci(self, text: str) -> Move:
        """Parse coordinate notation, flagging two-column king moves as castling."""
        move = Move.from_uci(text)
        piece = self.board.get_piece(move.from_row, move.from_col)
        castling = (
            piece is not None
            and piece.piece_type is PieceType.KING
            and move.from_row == move.to_row
            and abs(move.to_col - move.from_col) == 2
        )
        if castling:
            return Move.from_uci(text, is_castling=True)
        return move

    def make_player_move(self, move: Move) -> bool:
        if not Board.is_inside_board(move.from_row, move.from_col):
            return False
        piece = self.board.get_piece(move.from_row, move.from_col)
        if piece is None or piece.color is not self.current_turn:
            return False

        if not self.board.is_legal_move(move, self.current_turn):
            return False

        self._commit(move)
        return True

    def trigger_ai_move_if_due(self) -> Optional[Move]:
        """Let the AI move if it owns the current turn. Returns the move played."""
        if self._ai is None or self.ai_color is None or self.current_turn is not self.ai_color:
            return None

        move = self._ai.choose_move(self.board, self.current_turn)
        if move is None:
            log.info("Computer has no legal move (%s to play)", self.current_turn.value)
            self._ended = True
            return None

        self._commit(move)
        return move

    def _commit(self, move: Move) -> None:
        self.board.apply_move(move)
        self.move_count += 1
        self.history.append(move)
        self.current_turn = self.current_turn.opposite()

    # --- Status ---
    def is_in_check(self) -> bool:
        return self.board.is_in_check(self.current_turn)

    def is_checkmate(self) -> bool:
        return self.board.is_checkmate(self.current_turn)

    def is_stalemate(self) -> bool:
        return self.board.is_stalemate(self.current_turn)

    def is_game_over(self) -> bool:
        return self._ended or not self.board.has_any_legal_move(self.current_turn)

    def outcome(self) -> Optional[GameOutcome]:
        """Result for the outcome recorder, or None while the game is running."""
        side = self.current_turn
        if self._resigned is not None:
            return self._outcome(self._resigned.opposite(), "resignation")
        if self._draw_declared:
            return self._outcome(None, "draw")
        if self.board.is_checkmate(side):
            return self._outcome(side.opposite(), "checkmate")
        if self.board.is_stalemate(side):
            return self._outcome(None, "stalemate")
        if self._ended:
            return self._outcome(None, "ended")
        return None

    def _outcome(self, winner: Optional[Color], reason: str) -> GameOutcome:
        return GameOutcome(
            winner=winner.value if winner else None,
            reason=reason,
            move_count=self.move_count,
            ai_level=self.ai_level.label,
        )

    def snapshot(self) -> Dict[str, object]:
        outcome = self.outcome()
        return {
            "fen": self.board.fen(self.current_turn),
            "turn": self.current_turn.value,
            "legal_moves": [m.uci() for m in self.board.legal_moves(self.current_turn)],
            "in_check": self.is_in_check(),
            "checkmate": self.is_checkmate(),
            "stalemate": self.is_stalemate(),
            "game_over": outcome is not None,
            "ended": self._ended,
            "last_move": self.history[-1].uci() if self.history else None,
            "move_count": self.move_count,
            "ai_level": self.ai_level.label,
            "ai_color": self.ai_color.value if self.ai_color else None,
            "outcome": outcome.to_dict() if outcome else None,
        }
