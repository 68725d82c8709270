## Board representation helpers shared by every agent.
## A board is a 3x3 row-major grid of "X", "O" or " ". The search never works on the grid
## directly, it works on two 9-bit masks (one per symbol), bit i <=> cell row*3+col.

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidBoardError

EMPTY = " "
DRAW = "Draw"
FULL_MASK = 0x1FF


class Symbol(str, Enum):
    X = "X"
    O = "O"

    @property
    def other(self) -> "Symbol":
        return Symbol.O if self is Symbol.X else Symbol.X

    @classmethod
    def parse(cls, value: Union["Symbol", str]) -> "Symbol":
        if isinstance(value, Symbol):
            return value
        if isinstance(value, str) and value.strip().upper() in ("X", "O"):
            return cls(value.strip().upper())
        raise ValueError(f"Unknown symbol: {value!r}")


SymbolLike = Union[Symbol, str]


@dataclass(frozen=True)
class Move:
    row: int
    col: int

    @property
    def is_sentinel(self) -> bool:
        return self.row == -1 and self.col == -1

    @property
    def index(self) -> int:
        return self.row * 3 + self.col

    @classmethod
    def from_index(cls, index: int) -> "Move":
        return cls(index // 3, index % 3)


## Returned when the board has no empty cell
NO_MOVE = Move(-1, -1)


WIN_MASKS = (
    ## Rows
    (1 << 0) | (1 << 1) | (1 << 2),
    (1 << 3) | (1 << 4) | (1 << 5),
    (1 << 6) | (1 << 7) | (1 << 8),
    ## Columns
    (1 << 0) | (1 << 3) | (1 << 6),
    (1 << 1) | (1 << 4) | (1 << 7),
    (1 << 2) | (1 << 5) | (1 << 8),
    ## Diagonals
    (1 << 0) | (1 << 4) | (1 << 8),
    (1 << 2) | (1 << 4) | (1 << 6),
)


def _cell_value(cell) -> str:
    if isinstance(cell, Symbol):
        return cell.value
    if isinstance(cell, np.str_):
        cell = str(cell)
    if cell in ("X", "O", EMPTY):
        return cell
    ## numpy turns " " into "" when the array is built with a fixed-width dtype
    if cell == "":
        return EMPTY
    raise InvalidBoardError(f"Unknown cell value: {cell!r}")


def as_grid(board: Sequence[Sequence[SymbolLike]]) -> np.ndarray:
    """
    Normalises a caller snapshot into a fresh 3x3 numpy array of single characters.
    The caller's board is never modified.
    """
    try:
        rows = [list(row) for row in board]
    except TypeError as exc:
        raise InvalidBoardError("Board must be a 3x3 grid") from exc
    if len(rows) != 3 or any(len(row) != 3 for row in rows):
        raise InvalidBoardError(f"Board must be 3x3, got {[len(row) for row in rows]} cells per row")

    grid = np.full((3, 3), EMPTY, dtype="<U1")
    for r in range(3):
        for c in range(3):
            grid[r, c] = _cell_value(rows[r][c])
    return grid


def board_to_masks(board: Sequence[Sequence[SymbolLike]]) -> Tuple[int, int]:
    """Returns (mask_x, mask_o) for the board."""
    grid = as_grid(board)
    maskX = 0
    maskO = 0
    for r in range(3):
        for c in range(3):
            idx = r * 3 + c
            if grid[r, c] == "X":
                maskX |= 1 << idx
            elif grid[r, c] == "O":
                maskO |= 1 << idx
    return maskX, maskO


def masks_to_board(mask_x: int, mask_o: int) -> List[List[str]]:
    if mask_x & mask_o:
        raise InvalidBoardError("A cell cannot hold both symbols")
    if (mask_x | mask_o) & ~FULL_MASK:
        raise InvalidBoardError("Masks only have 9 cells")
    board = [[EMPTY] * 3 for _ in range(3)]
    for idx in range(9):
        bit = 1 << idx
        if mask_x & bit:
            board[idx // 3][idx % 3] = "X"
        elif mask_o & bit:
            board[idx // 3][idx % 3] = "O"
    return board


def is_winner_mask(mask: int) -> bool:
    for winMask in WIN_MASKS:
        if mask & winMask == winMask:
            return True
    return False


def is_full(mask_a: int, mask_b: int) -> bool:
    return (mask_a | mask_b) == FULL_MASK


## Checks whether its a win / draw / ongoing
def board_status(mask_x: int, mask_o: int) -> Optional[str]:
    if is_winner_mask(mask_x):
        return "X"
    if is_winner_mask(mask_o):
        return "O"
    if is_full(mask_x, mask_o):
        return DRAW
    return None


def count_bits(mask: int) -> int:
    return bin(mask).count("1")


def empty_cells(occupied: int) -> List[int]:
    return [idx for idx in range(9) if not occupied & (1 << idx)]


def infer_mover(mask_x: int, mask_o: int, symbol: SymbolLike, to_move: Optional[SymbolLike] = None) -> Symbol:
    """
    Works out whose turn it is from the piece counts alone.

    An explicit ``to_move`` always wins. On an empty board the requested symbol moves,
    otherwise the side with fewer (or equal) pieces moves, ties going to X.
    """
    if to_move is not None:
        return Symbol.parse(to_move)
    if mask_x == 0 and mask_o == 0:
        return Symbol.parse(symbol)
    if count_bits(mask_x) <= count_bits(mask_o):
        return Symbol.X
    return Symbol.O


def get_player_masks(mask_x: int, mask_o: int, symbol: SymbolLike,
                     to_move: Optional[SymbolLike] = None) -> Tuple[int, int]:
    """Returns (mover_mask, opponent_mask)."""
    mover = infer_mover(mask_x, mask_o, symbol, to_move)
    if mover is Symbol.X:
        return mask_x, mask_o
    return mask_o, mask_x


def validate_board(board: Sequence[Sequence[SymbolLike]]) -> Tuple[int, int]:
    """
    Strict consistency check used when the caller opts in.
    Rejects boards that cannot come from alternating play.
    """
    maskX, maskO = board_to_masks(board)
    countX = count_bits(maskX)
    countO = count_bits(maskO)
    if abs(countX - countO) > 1:
        raise InvalidBoardError(f"Piece counts differ by more than one (X={countX}, O={countO})")
    if is_winner_mask(maskX) and is_winner_mask(maskO):
        raise InvalidBoardError("Both symbols hold a winning line")
    return maskX, maskO
