from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Tuple, Union

import logging
import random

from .board import Board, Color, Move
from .evaluator import Evaluator


log = logging.getLogger(__name__)

SEARCH_DEPTH = 3  # own move, opponent reply, own counter-reply
CHECKMATE_SCORE = 1_000_000
INFINITY = 10**9

GREEDY_MOBILITY_WEIGHT = 2
MINIMAX_MOBILITY_WEIGHT = 3


class AILevel(Enum):
    NONE = 0
    BEGINNER = 1
    INTERMEDIATE = 2
    ADVANCED = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Union["AILevel", str, int]) -> "AILevel":
        """Accept an AILevel, its name (any case) or its tier number."""
        if isinstance(value, AILevel):
            return value
        text = str(value).strip()
        if text.isdigit():
            try:
                return cls(int(text))
            except ValueError:
                raise ValueError(f"Unknown AI level: {value!r}") from None
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown AI level: {value!r}") from None


class MoveChooser(Protocol):
    def choose_move(self, board: Board, color: Color) -> Optional[Move]:
        ...


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: int
    nodes: int
    # Exact for moves tied with the best, an upper bound for the rest
    scored_moves: List[Tuple[Move, int]] = field(default_factory=list)


def _report_no_move(board: Board, color: Color) -> None:
    if board.is_in_check(color):
        log.info("%s is in checkmate", color.value)
    else:
        log.info("%s is in stalemate (draw)", color.value)


def _is_capture(board: Board, move: Move, color: Color) -> bool:
    target = board.get_piece(move.to_row, move.to_col)
    return target is not None and target.color is not color


def _after(board: Board, move: Move) -> Board:
    scratch = board.copy()
    scratch.apply_move(move)
    return scratch


class RandomAI:
    """Beginner tier: uniform random move, captures preferred. No lookahead."""

    level = AILevel.BEGINNER

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def choose_move(self, board: Board, color: Color) -> Optional[Move]:
        moves = board.legal_moves(color)
        if not moves:
            _report_no_move(board, color)
            return None
        captures = [m for m in moves if _is_capture(board, m, color)]
        return self.rng.choice(captures or moves)


class GreedyAI:
    """Intermediate tier: one ply of material + positional evaluation.

    A move that mates on the spot is always played; otherwise the move leading
    to the best-scoring position wins, ties broken at random.
    """

    level = AILevel.INTERMEDIATE

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def choose_move(self, board: Board, color: Color) -> Optional[Move]:
        moves = board.legal_moves(color)
        if not moves:
            _report_no_move(board, color)
            return None

        opponent = color.opposite()
        mates = [m for m in moves if _after(board, m).is_checkmate(opponent)]
        if mates:
            log.info("Intermediate AI found checkmate")
            return self.rng.choice(mates)

        best_score = -INFINITY
        best_moves: List[Move] = []
        for move in moves:
            score = Evaluator.evaluate(
                _after(board, move), color, mobility_weight=GREEDY_MOBILITY_WEIGHT
            )
            if score > best_score:
                best_score = score
                best_moves = [move]
            elif score == best_score:
                best_moves.append(move)

        log.debug("Intermediate AI best score %d over %d moves", best_score, len(moves))
        return self.rng.choice(best_moves)


class MinimaxAI:
    """Advanced tier: fixed-depth minimax with alpha-beta pruning.

    Every node works on its own scratch copy of the board, so the caller's
    board is never touched.
    """

    level = AILevel.ADVANCED

    def __init__(self, depth: int = SEARCH_DEPTH, rng: Optional[random.Random] = None) -> None:
        if depth < 1:
            raise ValueError(f"Search depth must be at least 1, got {depth}")
        self.depth = depth
        self.rng = rng or random.Random()
        self._nodes = 0

    def choose_move(self, board: Board, color: Color) -> Optional[Move]:
        moves = board.legal_moves(color)
        if not moves:
            _report_no_move(board, color)
            return None

        opponent = color.opposite()
        for move in moves:
            if _after(board, move).is_checkmate(opponent):
                log.info("Advanced AI found checkmate")
                return move

        return self.search(board, color, moves).best_move

    def search(self, board: Board, color: Color, moves: Optional[List[Move]] = None) -> SearchResult:
        """Score every root move and pick one of the best at random.

        Once a best score exists, later root moves are searched with
        alpha = best - 1 instead of best. A move that only ties the best can
        then never come back as a cut-off bound equal to it, so the tied set
        is exactly what a full minimax would tie.

        The scores in scored_moves are exact for moves that reached the best
        score at the time they were searched. A move that failed low keeps
        the fail-soft result, an upper bound on its true value.
        """
        if moves is None:
            moves = board.legal_moves(color)
        self._nodes = 0
        if not moves:
            return SearchResult(best_move=None, score=self._evaluate(board, color), nodes=0)

        best_score = -INFINITY
        best_moves: List[Move] = []
        scored_moves: List[Tuple[Move, int]] = []

        for move in self._ordered(board, moves):
            alpha = best_score - 1 if best_moves else -INFINITY
            score = self._minimax(_after(board, move), self.depth - 1, alpha, INFINITY, False, color)
            self._nodes += 1
            scored_moves.append((move, score))
            if score > best_score:
                best_score = score
                best_moves = [move]
            elif score == best_score:
                best_moves.append(move)

        log.debug(
            "Advanced AI searched %d nodes, best score %d (%d tied)",
            self._nodes,
            best_score,
            len(best_moves),
        )
        return SearchResult(
            best_move=self.rng.choice(best_moves),
            score=best_score,
            nodes=self._nodes,
            scored_moves=scored_moves,
        )

    def _minimax(
        self,
        board: Board,
        depth: int,
        alpha: int,
        beta: int,
        maximizing: bool,
        ai_color: Color,
    ) -> int:
        if depth == 0:
            return self._evaluate(board, ai_color)

        side = ai_color if maximizing else ai_color.opposite()
        moves = board.legal_moves(side)
        if not moves:
            if board.is_in_check(side):
                # the side to move here is mated
                return -CHECKMATE_SCORE if maximizing else CHECKMATE_SCORE
            return 0

        if maximizing:
            value = -INFINITY
            for move in self._ordered(board, moves):
                self._nodes += 1
                value = max(value, self._minimax(_after(board, move), depth - 1, alpha, beta, False, ai_color))
                alpha = max(alpha, value)
                if beta <= alpha:
                    break
            return value

        value = INFINITY
        for move in self._ordered(board, moves):
            self._nodes += 1
            value = min(value, self._minimax(_after(board, move), depth - 1, alpha, beta, True, ai_color))
            beta = min(beta, value)
            if beta <= alpha:
                break
        return value

    @staticmethod
    def _evaluate(board: Board, color: Color) -> int:
        return Evaluator.evaluate(
            board, color, mobility_weight=MINIMAX_MOBILITY_WEIGHT, include_king_safety=True
        )

    @staticmethod
    def _ordered(board: Board, moves: List[Move]) -> List[Move]:
        # Basic move ordering: captures first
        return sorted(moves, key=lambda m: board.get_piece(m.to_row, m.to_col) is None)


def create_ai(
    level: AILevel,
    rng: Optional[random.Random] = None,
    depth: int = SEARCH_DEPTH,
) -> Optional[MoveChooser]:
    if level is AILevel.BEGINNER:
        return RandomAI(rng)
    if level is AILevel.INTERMEDIATE:
        return GreedyAI(rng)
    if level is AILevel.ADVANCED:
        return MinimaxAI(depth, rng)
    return None
