"""Chess rules engine with a tiered computer opponent.

Modules:
- board: Board, pieces, moves, legality and check/checkmate/stalemate detection
- evaluator: Material + positional evaluation used by the stronger AI tiers
- ai: Random, greedy and minimax (alpha-beta) move choosers
- game: Turn orchestration between a player and the configured AI
- config: Environment-driven settings and logging setup
"""

from .board import Board, Color, Move, Piece, PieceType
from .evaluator import Evaluator
from .ai import AILevel, GreedyAI, MinimaxAI, RandomAI, create_ai
from .game import GameEngine, GameOutcome

__all__ = [
    "Board",
    "Color",
    "Move",
    "Piece",
    "PieceType",
    "Evaluator",
    "AILevel",
    "RandomAI",
    "GreedyAI",
    "MinimaxAI",
    "create_ai",
    "GameEngine",
    "GameOutcome",
]
