from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import chess


BOARD_SIZE = 8
KING_COL = 4

KING_FLAG = "king"
KINGSIDE_ROOK_FLAG = "kingside_rook"
QUEENSIDE_ROOK_FLAG = "queenside_rook"
_MOVED_FLAGS = (KING_FLAG, KINGSIDE_ROOK_FLAG, QUEENSIDE_ROOK_FLAG)

_KNIGHT_OFFSETS = ((2, 1), (2, -1), (-2, 1), (-2, -1), (1, 2), (1, -2), (-1, 2), (-1, -2))
_KING_OFFSETS = ((1, 0), (-1, 0), (0, 1), (0, -1), (1, 1), (1, -1), (-1, 1), (-1, -1))
_STRAIGHT = ((1, 0), (-1, 0), (0, 1), (0, -1))
_DIAGONAL = ((1, 1), (1, -1), (-1, 1), (-1, -1))


class Color(Enum):
    WHITE = "white"
    BLACK = "black"

    def opposite(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def home_row(self) -> int:
        return 0 if self is Color.WHITE else BOARD_SIZE - 1

    @property
    def pawn_direction(self) -> int:
        return 1 if self is Color.WHITE else -1

    @property
    def pawn_start_row(self) -> int:
        return 1 if self is Color.WHITE else BOARD_SIZE - 2


class PieceType(Enum):
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


_TO_CHESS: Dict[PieceType, chess.PieceType] = {
    PieceType.PAWN: chess.PAWN,
    PieceType.KNIGHT: chess.KNIGHT,
    PieceType.BISHOP: chess.BISHOP,
    PieceType.ROOK: chess.ROOK,
    PieceType.QUEEN: chess.QUEEN,
    PieceType.KING: chess.KING,
}
_FROM_CHESS: Dict[chess.PieceType, PieceType] = {v: k for k, v in _TO_CHESS.items()}

_BACK_RANK = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


@dataclass(frozen=True)
class Piece:
    piece_type: PieceType
    color: Color

    def symbol(self) -> str:
        letter = self.piece_type.value
        return letter.upper() if self.color is Color.WHITE else letter

    def __str__(self) -> str:
        return f"{self.color.value} {self.piece_type.name.lower()}"


@dataclass(frozen=True)
class Move:
    """Origin/destination pair. Row 0 is White's back rank, column 0 the a-file."""

    from_row: int
    from_col: int
    to_row: int
    to_col: int
    is_castling: bool = False

    def uci(self) -> str:
        from_sq = chess.square(self.from_col, self.from_row)
        to_sq = chess.square(self.to_col, self.to_row)
        return chess.square_name(from_sq) + chess.square_name(to_sq)

    @classmethod
    def from_uci(cls, text: str, is_castling: bool = False) -> "Move":
        text = text.strip().lower()
        if len(text) != 4:
            raise ValueError(f"Malformed move: {text!r}")
        # parse_square raises ValueError on names like "z9"
        from_sq = chess.parse_square(text[:2])
        to_sq = chess.parse_square(text[2:])
        return cls(
            chess.square_rank(from_sq),
            chess.square_file(from_sq),
            chess.square_rank(to_sq),
            chess.square_file(to_sq),
            is_castling,
        )

    def __str__(self) -> str:
        return self.uci()


@dataclass(frozen=True)
class _CastleRule:
    rook_flag: str
    king_to: int
    rook_from: int
    rook_to: int
    between: Tuple[int, ...]
    transit: Tuple[int, ...]


KINGSIDE = _CastleRule(KINGSIDE_ROOK_FLAG, 6, 7, 5, (5, 6), (5, 6))
QUEENSIDE = _CastleRule(QUEENSIDE_ROOK_FLAG, 2, 0, 3, (1, 2, 3), (2, 3))


@dataclass
class MoveRecord:
    """Everything apply_move changed, so undo_move can put it back."""

    move: Move
    squares: List[Tuple[int, int, Optional[Piece]]] = field(default_factory=list)
    flags: Dict[Tuple[Color, str], bool] = field(default_factory=dict)

    @property
    def captured(self) -> Optional[Piece]:
        # second entry is the destination square as it was before the move
        return self.squares[1][2] if len(self.squares) > 1 else None


class Board:
    """8x8 grid of optional pieces plus the six castling "has moved" flags.

    Legality is checked here and nowhere else. `is_legal_move` temporarily
    applies a candidate move to the live grid for the self-check test and
    always undoes it before returning, so the board must not be shared across
    threads without external locking.
    """

    SIZE = BOARD_SIZE

    def __init__(self, setup: bool = True) -> None:
        self._grid: List[List[Optional[Piece]]] = [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]
        self.has_moved: Dict[Tuple[Color, str], bool] = {
            (color, flag): False for color in Color for flag in _MOVED_FLAGS
        }
        if setup:
            self._setup_initial_position()

    @classmethod
    def empty(cls) -> "Board":
        return cls(setup=False)

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Build a board from a FEN string (side to move and clocks are ignored)."""
        return cls.from_chess(chess.Board(fen))

    @classmethod
    def from_chess(cls, ref: chess.Board) -> "Board":
        board = cls.empty()
        for square, piece in ref.piece_map().items():
            color = Color.WHITE if piece.color == chess.WHITE else Color.BLACK
            board.set_piece(
                chess.square_rank(square),
                chess.square_file(square),
                Piece(_FROM_CHESS[piece.piece_type], color),
            )
        for color, ref_color in ((Color.WHITE, chess.WHITE), (Color.BLACK, chess.BLACK)):
            kingside = ref.has_kingside_castling_rights(ref_color)
            queenside = ref.has_queenside_castling_rights(ref_color)
            board.has_moved[(color, KING_FLAG)] = not (kingside or queenside)
            board.has_moved[(color, KINGSIDE_ROOK_FLAG)] = not kingside
            board.has_moved[(color, QUEENSIDE_ROOK_FLAG)] = not queenside
        return board

    def to_chess(self, turn: Color = Color.WHITE) -> chess.Board:
        ref = chess.Board.empty()
        for row, col, piece in self.pieces():
            ref.set_piece_at(
                chess.square(col, row),
                chess.Piece(_TO_CHESS[piece.piece_type], piece.color is Color.WHITE),
            )
        rights = ""
        for color, letters in ((Color.WHITE, "KQ"), (Color.BLACK, "kq")):
            if self._has_castling_rights(color, KINGSIDE):
                rights += letters[0]
            if self._has_castling_rights(color, QUEENSIDE):
                rights += letters[1]
        ref.set_castling_fen(rights or "-")
        ref.turn = turn is Color.WHITE
        return ref

    def fen(self, turn: Color = Color.WHITE) -> str:
        return self.to_chess(turn).fen()

    def _setup_initial_position(self) -> None:
        for col, piece_type in enumerate(_BACK_RANK):
            self._grid[0][col] = Piece(piece_type, Color.WHITE)
            self._grid[7][col] = Piece(piece_type, Color.BLACK)
            self._grid[1][col] = Piece(PieceType.PAWN, Color.WHITE)
            self._grid[6][col] = Piece(PieceType.PAWN, Color.BLACK)

    # --- Grid access ---
    def get_piece(self, row: int, col: int) -> Optional[Piece]:
        return self._grid[row][col]

    def set_piece(self, row: int, col: int, piece: Optional[Piece]) -> None:
        self._grid[row][col] = piece

    @staticmethod
    def is_inside_board(row: int, col: int) -> bool:
        return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[int, int, Piece]]:
        for row in range(BOARD_SIZE):
            for col in range(BOARD_SIZE):
                piece = self._grid[row][col]
                if piece is not None and (color is None or piece.color is color):
                    yield row, col, piece

    def find_king(self, color: Color) -> Optional[Tuple[int, int]]:
        for row, col, piece in self.pieces(color):
            if piece.piece_type is PieceType.KING:
                return row, col
        return None

    def copy(self) -> "Board":
        clone = Board.empty()
        # pieces are immutable, so copying the rows is enough
        clone._grid = [row[:] for row in self._grid]
        clone.has_moved = dict(self.has_moved)
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._grid == other._grid and self.has_moved == other.has_moved

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        lines = []
        for row in range(BOARD_SIZE - 1, -1, -1):
            cells = [p.symbol() if p else "." for p in self._grid[row]]
            lines.append(" ".join(cells))
        return "\n".join(lines)

    # --- Move application ---
    def apply_move(self, move: Move) -> MoveRecord:
        """Perform `move` without any legality check and return its undo record."""
        record = MoveRecord(move=move, flags=dict(self.has_moved))
        piece = self._grid[move.from_row][move.from_col]
        self._relocate(record, move.from_row, move.from_col, move.to_row, move.to_col)
        if move.is_castling:
            rule = KINGSIDE if move.to_col > move.from_col else QUEENSIDE
            self._relocate(record, move.from_row, rule.rook_from, move.from_row, rule.rook_to)
        if piece is not None:
            self._mark_moved(piece, move.from_row, move.from_col)
        return record

    def undo_move(self, record: MoveRecord) -> None:
        for row, col, piece in reversed(record.squares):
            self._grid[row][col] = piece
        self.has_moved = dict(record.flags)

    def _relocate(self, record: MoveRecord, fr: int, fc: int, tr: int, tc: int) -> None:
        record.squares.append((fr, fc, self._grid[fr][fc]))
        record.squares.append((tr, tc, self._grid[tr][tc]))
        self._grid[tr][tc] = self._grid[fr][fc]
        self._grid[fr][fc] = None

    def _mark_moved(self, piece: Piece, row: int, col: int) -> None:
        if piece.piece_type is PieceType.KING:
            self.has_moved[(piece.color, KING_FLAG)] = True
        elif piece.piece_type is PieceType.ROOK and row == piece.color.home_row:
            if col == KINGSIDE.rook_from:
                self.has_moved[(piece.color, KINGSIDE_ROOK_FLAG)] = True
            elif col == QUEENSIDE.rook_from:
                self.has_moved[(piece.color, QUEENSIDE_ROOK_FLAG)] = True

    # --- Legality ---
    def is_legal_move(self, move: Move, mover: Color) -> bool:
        fr, fc, tr, tc = move.from_row, move.from_col, move.to_row, move.to_col
        if not (self.is_inside_board(fr, fc) and self.is_inside_board(tr, tc)):
            return False

        piece = self._grid[fr][fc]
        if piece is None or piece.color is not mover:
            return False

        target = self._grid[tr][tc]
        if target is not None and target.color is mover:
            return False

        if move.is_castling:
            # transit squares were already proven safe, no self-check replay
            return self._is_castling_move(move, piece)

        if not self._can_reach(piece, fr, fc, tr, tc, target):
            return False

        record = self.apply_move(move)
        try:
            return not self.is_in_check(mover)
        finally:
            self.undo_move(record)

    def _is_castling_move(self, move: Move, piece: Piece) -> bool:
        if piece.piece_type is not PieceType.KING:
            return False
        home = piece.color.home_row
        if (move.from_row, move.from_col) != (home, KING_COL) or move.to_row != home:
            return False
        if move.to_col == KINGSIDE.king_to:
            return self.can_castle(piece.color, kingside=True)
        if move.to_col == QUEENSIDE.king_to:
            return self.can_castle(piece.color, kingside=False)
        return False

    def _can_reach(
        self, piece: Piece, fr: int, fc: int, tr: int, tc: int, target: Optional[Piece]
    ) -> bool:
        dr = abs(tr - fr)
        dc = abs(tc - fc)
        kind = piece.piece_type
        if kind is PieceType.PAWN:
            return self._pawn_can_move(piece.color, fr, fc, tr, tc, target)
        if kind is PieceType.KNIGHT:
            return (dr == 2 and dc == 1) or (dr == 1 and dc == 2)
        if kind is PieceType.BISHOP:
            return dr == dc and self._is_path_clear(fr, fc, tr, tc)
        if kind is PieceType.ROOK:
            return (fr == tr or fc == tc) and self._is_path_clear(fr, fc, tr, tc)
        if kind is PieceType.QUEEN:
            if dr == dc or fr == tr or fc == tc:
                return self._is_path_clear(fr, fc, tr, tc)
            return False
        # two-column king moves only ever pass as flagged castling moves
        return dr <= 1 and dc <= 1

    def _pawn_can_move(
        self, color: Color, fr: int, fc: int, tr: int, tc: int, target: Optional[Piece]
    ) -> bool:
        direction = color.pawn_direction
        dr = tr - fr
        dc = abs(tc - fc)

        if dc == 0:
            if target is not None:
                return False
            if dr == direction:
                return True
            if fr == color.pawn_start_row and dr == 2 * direction:
                return self._grid[fr + direction][fc] is None
            return False

        # diagonal steps are capture-only
        return dc == 1 and dr == direction and target is not None

    def _is_path_clear(self, fr: int, fc: int, tr: int, tc: int) -> bool:
        d_row = (tr > fr) - (tr < fr)
        d_col = (tc > fc) - (tc < fc)
        r, c = fr + d_row, fc + d_col
        while r != tr or c != tc:
            if self._grid[r][c] is not None:
                return False
            r += d_row
            c += d_col
        return True

    # --- Castling ---
    def _has_castling_rights(self, color: Color, rule: _CastleRule) -> bool:
        row = color.home_row
        if self.has_moved[(color, KING_FLAG)] or self.has_moved[(color, rule.rook_flag)]:
            return False
        return (
            self._grid[row][KING_COL] == Piece(PieceType.KING, color)
            and self._grid[row][rule.rook_from] == Piece(PieceType.ROOK, color)
        )

    def can_castle(self, color: Color, kingside: bool) -> bool:
        rule = KINGSIDE if kingside else QUEENSIDE
        row = color.home_row
        if not self._has_castling_rights(color, rule):
            return False
        if any(self._grid[row][col] is not None for col in rule.between):
            return False
        if self.is_in_check(color):
            return False
        opponent = color.opposite()
        return not any(self.is_square_attacked(row, col, opponent) for col in rule.transit)

    # --- Attacks and check ---
    def is_square_attacked(self, row: int, col: int, by_color: Color) -> bool:
        """Geometry-only attack test; never consults the self-check rule.

        Works outward from the square instead of iterating the attackers.
        Pawns attack their forward diagonals whether or not the square is
        occupied and kings attack adjacent squares, which also covers the
        king-next-to-king case.
        """
        pawn_row = row - by_color.pawn_direction
        for dc in (-1, 1):
            if self._holds(pawn_row, col + dc, PieceType.PAWN, by_color):
                return True
        for dr, dc in _KNIGHT_OFFSETS:
            if self._holds(row + dr, col + dc, PieceType.KNIGHT, by_color):
                return True
        for dr, dc in _KING_OFFSETS:
            if self._holds(row + dr, col + dc, PieceType.KING, by_color):
                return True
        for dr, dc in _STRAIGHT:
            if self._ray_hits(row, col, dr, dc, by_color, (PieceType.ROOK, PieceType.QUEEN)):
                return True
        for dr, dc in _DIAGONAL:
            if self._ray_hits(row, col, dr, dc, by_color, (PieceType.BISHOP, PieceType.QUEEN)):
                return True
        return False

    def _holds(self, row: int, col: int, kind: PieceType, color: Color) -> bool:
        if not self.is_inside_board(row, col):
            return False
        piece = self._grid[row][col]
        return piece is not None and piece.piece_type is kind and piece.color is color

    def _ray_hits(
        self, row: int, col: int, dr: int, dc: int, by_color: Color, kinds: Tuple[PieceType, ...]
    ) -> bool:
        r, c = row + dr, col + dc
        while 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
            piece = self._grid[r][c]
            if piece is not None:
                return piece.color is by_color and piece.piece_type in kinds
            r += dr
            c += dc
        return False

    def is_in_check(self, color: Color) -> bool:
        king = self.find_king(color)
        if king is None:
            # captured king: degenerate but defined
            return False
        return self.is_square_attacked(king[0], king[1], color.opposite())

    # --- Move enumeration ---
    def iter_legal_moves(self, color: Color) -> Iterator[Move]:
        """Yield every legal move for `color`, castling moves flagged.

        Destinations are limited to squares the piece's geometry could reach;
        each candidate still goes through `is_legal_move`.
        """
        for row, col, piece in list(self.pieces(color)):
            if piece.piece_type is PieceType.KING:
                for rule in (KINGSIDE, QUEENSIDE):
                    castle = Move(row, col, row, rule.king_to, is_castling=True)
                    if self.is_legal_move(castle, color):
                        yield castle
            for to_row, to_col in self._candidate_targets(row, col, piece):
                move = Move(row, col, to_row, to_col)
                if self.is_legal_move(move, color):
                    yield move

    def legal_moves(self, color: Color) -> List[Move]:
        return list(self.iter_legal_moves(color))

    def has_any_legal_move(self, color: Color) -> bool:
        return any(True for _ in self.iter_legal_moves(color))

    def _candidate_targets(self, row: int, col: int, piece: Piece) -> List[Tuple[int, int]]:
        kind = piece.piece_type
        if kind is PieceType.PAWN:
            d = piece.color.pawn_direction
            return [(row + d, col), (row + 2 * d, col), (row + d, col - 1), (row + d, col + 1)]
        if kind is PieceType.KNIGHT:
            return [(row + dr, col + dc) for dr, dc in _KNIGHT_OFFSETS]
        if kind is PieceType.KING:
            return [(row + dr, col + dc) for dr, dc in _KING_OFFSETS]

        if kind is PieceType.BISHOP:
            directions = _DIAGONAL
        elif kind is PieceType.ROOK:
            directions = _STRAIGHT
        else:
            directions = _STRAIGHT + _DIAGONAL
        targets = []
        for dr, dc in directions:
            r, c = row + dr, col + dc
            while 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
                targets.append((r, c))
                if self._grid[r][c] is not None:
                    break
                r += dr
                c += dc
        return targets

    # --- Game state ---
    def is_checkmate(self, color: Color) -> bool:
        return self.is_in_check(color) and not self.has_any_legal_move(color)

    def is_stalemate(self, color: Color) -> bool:
        return not self.is_in_check(color) and not self.has_any_legal_move(color)
