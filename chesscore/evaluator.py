from __future__ import annotations

from typing import Dict

from .board import BOARD_SIZE, Board, Color, Piece, PieceType


class Evaluator:
    """Static evaluation shared by the intermediate and advanced AI tiers.

    Scores are from the perspective of the given color: positive is good for
    that color. Units are centipawns.
    """

    # Material values. The king's value only makes sure it is never traded.
    MATERIAL_VALUES: Dict[PieceType, int] = {
        PieceType.PAWN: 100,
        PieceType.KNIGHT: 320,
        PieceType.BISHOP: 330,
        PieceType.ROOK: 500,
        PieceType.QUEEN: 900,
        PieceType.KING: 20000,
    }

    CHECK_BONUS = 50
    KING_SHIELD_BONUS = 10
    BACK_RANK_KING_BONUS = 20
    CENTER = 3.5

    @classmethod
    def evaluate(
        cls,
        board: Board,
        color: Color,
        mobility_weight: int = 2,
        include_king_safety: bool = False,
    ) -> int:
        opponent = color.opposite()
        score = cls.material_and_position(board, color)

        if board.is_in_check(opponent):
            score += cls.CHECK_BONUS
        if board.is_in_check(color):
            score -= cls.CHECK_BONUS

        ours = len(board.legal_moves(color))
        theirs = len(board.legal_moves(opponent))
        score += (ours - theirs) * mobility_weight

        if include_king_safety:
            score += cls.king_safety(board, color)
            score -= cls.king_safety(board, opponent)

        return score

    @classmethod
    def material_and_position(cls, board: Board, color: Color) -> int:
        score = 0
        for row, col, piece in board.pieces():
            value = cls.MATERIAL_VALUES[piece.piece_type] + cls.positional_bonus(piece, row, col)
            if piece.color is color:
                score += value
            else:
                score -= value
        return score

    @classmethod
    def positional_bonus(cls, piece: Piece, row: int, col: int) -> int:
        # Manhattan distance from the middle of the board; d4/d5/e4/e5 sit at 1.0
        center_distance = abs(cls.CENTER - row) + abs(cls.CENTER - col)
        kind = piece.piece_type

        if kind is PieceType.PAWN:
            advanced = row if piece.color is Color.WHITE else (BOARD_SIZE - 1) - row
            bonus = advanced * 5
            if 2 <= col <= 5:
                bonus += 10
            return bonus
        if kind is PieceType.KNIGHT:
            return int(20 - center_distance * 5)
        if kind is PieceType.BISHOP:
            return int(15 - center_distance * 3)
        if kind is PieceType.ROOK:
            return int(5 - center_distance)
        if kind is PieceType.QUEEN:
            return int(10 - center_distance * 2)

        home = piece.color.home_row
        if abs(row - home) <= 1:
            return cls.BACK_RANK_KING_BONUS
        return 0

    @classmethod
    def king_safety(cls, board: Board, color: Color) -> int:
        """Pawn shield: bonus per friendly pawn on the three squares in front of the king."""
        king = board.find_king(color)
        if king is None:
            return 0

        king_row, king_col = king
        shield_row = king_row + color.pawn_direction
        if not 0 <= shield_row < BOARD_SIZE:
            return 0

        safety = 0
        for col in range(max(0, king_col - 1), min(BOARD_SIZE - 1, king_col + 1) + 1):
            piece = board.get_piece(shield_row, col)
            if piece is not None and piece.piece_type is PieceType.PAWN and piece.color is color:
                safety += cls.KING_SHIELD_BONUS
        return safety
