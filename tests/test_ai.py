from __future__ import annotations

import random
import time

import pytest

from chesscore import AILevel, Board, Color, Evaluator, GreedyAI, MinimaxAI, Move, RandomAI, create_ai
from chesscore.ai import CHECKMATE_SCORE, MINIMAX_MOBILITY_WEIGHT


BACK_RANK_MATE = "7k/6pp/8/8/8/8/5PPP/R5K1 w - - 0 1"
HANGING_QUEEN = "7q/8/2k5/8/8/8/8/1K5R w - - 0 1"
STALEMATE_FEN = "k7/2Q5/8/8/8/8/8/7K b - - 0 1"
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


def _plain_minimax(board: Board, depth: int, maximizing: bool, ai_color: Color) -> int:
    """Full minimax without pruning, used as the reference for the advanced tier."""
    if depth == 0:
        return Evaluator.evaluate(
            board, ai_color, mobility_weight=MINIMAX_MOBILITY_WEIGHT, include_king_safety=True
        )
    side = ai_color if maximizing else ai_color.opposite()
    moves = board.legal_moves(side)
    if not moves:
        if board.is_in_check(side):
            return -CHECKMATE_SCORE if maximizing else CHECKMATE_SCORE
        return 0
    scores = []
    for move in moves:
        child = board.copy()
        child.apply_move(move)
        scores.append(_plain_minimax(child, depth - 1, not maximizing, ai_color))
    return max(scores) if maximizing else min(scores)


def _play_out(chooser, plies: int, seed_board: Board = None):
    board = seed_board or Board()
    color = Color.WHITE
    for _ in range(plies):
        legal = board.legal_moves(color)
        move = chooser.choose_move(board, color)
        if not legal:
            assert move is None
            break
        assert move in legal
        assert board.is_legal_move(move, color)
        board.apply_move(move)
        color = color.opposite()
    return board


def test_random_ai_only_plays_legal_moves():
    _play_out(RandomAI(random.Random(1)), 40)


def test_greedy_ai_only_plays_legal_moves():
    _play_out(GreedyAI(random.Random(2)), 6)


def test_random_ai_prefers_captures():
    board = Board.from_fen(HANGING_QUEEN)
    ai = RandomAI(random.Random(3))
    for _ in range(10):
        assert ai.choose_move(board, Color.WHITE) == Move(0, 7, 7, 7)


def test_random_ai_is_reproducible_with_seed():
    board = Board()
    first = [RandomAI(random.Random(42)).choose_move(board, Color.WHITE) for _ in range(3)]
    assert len(set(first)) == 1


@pytest.mark.parametrize("chooser", [RandomAI(), GreedyAI(), MinimaxAI()])
def test_no_move_when_checkmated_or_stalemated(chooser):
    assert chooser.choose_move(Board.from_fen(FOOLS_MATE), Color.WHITE) is None
    assert chooser.choose_move(Board.from_fen(STALEMATE_FEN), Color.BLACK) is None


@pytest.mark.parametrize("chooser", [GreedyAI(random.Random(4)), MinimaxAI(rng=random.Random(4))])
def test_stronger_tiers_play_mate_in_one(chooser):
    board = Board.from_fen(BACK_RANK_MATE)
    move = chooser.choose_move(board, Color.WHITE)
    assert move == Move(0, 0, 7, 0)
    board.apply_move(move)
    assert board.is_checkmate(Color.BLACK)


@pytest.mark.parametrize("chooser", [GreedyAI(random.Random(5)), MinimaxAI(rng=random.Random(5))])
def test_stronger_tiers_take_hanging_queen(chooser):
    board = Board.from_fen(HANGING_QUEEN)
    assert chooser.choose_move(board, Color.WHITE) == Move(0, 7, 7, 7)


def test_greedy_ai_responds_quickly_from_start():
    start = time.time()
    move = GreedyAI(random.Random(6)).choose_move(Board(), Color.WHITE)
    assert move in Board().legal_moves(Color.WHITE)
    assert time.time() - start < 5.0


@pytest.mark.parametrize(
    "chooser", [RandomAI(random.Random(8)), GreedyAI(random.Random(8)), MinimaxAI(depth=2, rng=random.Random(8))]
)
@pytest.mark.parametrize("fen", [HANGING_QUEEN, "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"])
def test_choosers_do_not_touch_callers_board(chooser, fen):
    board = Board.from_fen(fen)
    before = board.copy()
    chooser.choose_move(board, Color.WHITE)
    assert board == before


@pytest.mark.parametrize(
    "fen,color,depth",
    [
        ("7k/6p1/8/8/3N4/8/8/K7 w - - 0 1", Color.WHITE, 3),
        ("7k/8/8/3b4/8/8/1P6/K7 b - - 0 1", Color.BLACK, 3),
        ("4k3/8/8/8/8/2n5/8/R3K3 w Q - 0 1", Color.WHITE, 2),
    ],
)
def test_pruning_matches_full_minimax(fen, color, depth):
    board = Board.from_fen(fen)
    result = MinimaxAI(depth=depth, rng=random.Random(7)).search(board, color)

    reference = {}
    for move in board.legal_moves(color):
        child = board.copy()
        child.apply_move(move)
        reference[move] = _plain_minimax(child, depth - 1, False, color)

    best = max(reference.values())
    best_moves = {m for m, s in reference.items() if s == best}
    pruned_best = {m for m, s in result.scored_moves if s == result.score}

    assert result.score == best
    assert pruned_best == best_moves
    assert result.best_move in best_moves
    assert result.nodes > 0
    for move, score in result.scored_moves:
        assert score >= reference[move]
        if score == result.score:
            assert score == reference[move]


def test_search_on_position_without_moves():
    result = MinimaxAI(depth=2).search(Board.from_fen(STALEMATE_FEN), Color.BLACK)
    assert result.best_move is None
    assert result.scored_moves == []


def test_invalid_depth():
    with pytest.raises(ValueError):
        MinimaxAI(depth=0)


def test_create_ai():
    assert create_ai(AILevel.NONE) is None
    assert isinstance(create_ai(AILevel.BEGINNER), RandomAI)
    assert isinstance(create_ai(AILevel.INTERMEDIATE), GreedyAI)
    advanced = create_ai(AILevel.ADVANCED, depth=2)
    assert isinstance(advanced, MinimaxAI)
    assert advanced.depth == 2


@pytest.mark.parametrize(
    "text,expected",
    [
        ("beginner", AILevel.BEGINNER),
        ("ADVANCED", AILevel.ADVANCED),
        (" Intermediate ", AILevel.INTERMEDIATE),
        ("0", AILevel.NONE),
        (3, AILevel.ADVANCED),
        (AILevel.BEGINNER, AILevel.BEGINNER),
    ],
)
def test_ai_level_parse(text, expected):
    assert AILevel.parse(text) is expected


@pytest.mark.parametrize("text", ["expert", "7", ""])
def test_ai_level_parse_rejects_unknown(text):
    with pytest.raises(ValueError):
        AILevel.parse(text)
