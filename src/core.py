# core.py
# Stateless board-state transition engine for the sliding-tile merge puzzle.

import logging
import random
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

BOARD_SIZE = 4
INITIAL_TILE_COUNT = 2
FOUR_TILE_PROBABILITY = 0.1
MIN_TILE = 2
MAX_TILE = 32768
WIN_TILE = 2048

Board = List[List[int]]


class DIRECTION(Enum):
    """Represents the possible move directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class MoveOutcome(NamedTuple):
    """Result of applying one direction to a board. The caller decides whether to commit it."""
    board: Board
    score_delta: int
    changed: bool


# --- Errors ---

class InvalidDirection(ValueError):
    """Input outside the four recognized direction symbols."""


class InvalidDebugValue(ValueError):
    """Debug override value is not an integer power of two in [MIN_TILE, MAX_TILE]."""


class InvalidDebugCoordinate(ValueError):
    """Debug override coordinates fall outside the board."""


# --- Board Helper Functions ---

def get_board_size(board: Board) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board (Board): The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise ValueError("Board must be a non-empty square matrix.")
    return len(board)


def is_power_of_two(value) -> bool:
    # bool is an int subclass; True must not pass as tile value 1
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value > 0 and value & (value - 1) == 0


def validate_board(board: Board) -> int:
    """
    Checks that every cell is 0 or a power of two >= 2.
    Args:
        board (Board): The board to validate.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or holds an illegal cell value.
    """
    n = get_board_size(board)
    for r in range(n):
        for c in range(n):
            value = board[r][c]
            if value != 0 and not (is_power_of_two(value) and value >= MIN_TILE):
                raise ValueError(f"Cell ({r}, {c}) holds {value!r}; cells must be 0 or a power of two >= {MIN_TILE}.")
    return n


def empty_board(size: int = BOARD_SIZE) -> Board:
    if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
        raise ValueError("Board size must be a positive integer.")
    return [[0] * size for _ in range(size)]


def copy_board(board: Board) -> Board:
    return [list(row) for row in board]


def get_empty_cells(board: Board) -> List[Tuple[int, int]]:
    """
    Get coordinates of empty (0-value) cells in the given board, in row-major order.
    Args:
        board (Board): The board to check.
    Returns:
        List[Tuple[int, int]]: List of (row, col) tuples for empty cells.
    """
    n = get_board_size(board)
    empty_cells = []
    for row in range(n):
        for col in range(n):
            if board[row][col] == 0:
                empty_cells.append((row, col))
    return empty_cells


# --- Tile Spawning ---

def add_random_tile(board: Board, rng: Optional[random.Random] = None) -> Tuple[Board, bool]:
    """
    Adds a new tile (90% chance of 2, 10% chance of 4) to a uniformly chosen
    empty cell on a copy of the board.
    Args:
        board (Board): The current game board.
        rng (Optional[random.Random]): Random source; the process-wide one if None.
    Returns:
        Tuple[Board, bool]: A new board with the added tile and a boolean
                            indicating if a tile was added. A full board is a
                            no-op: an unchanged copy and False.
    """
    rng = rng or random
    empty_cells = get_empty_cells(board)
    new_board = copy_board(board)
    if not empty_cells:
        return new_board, False

    row, col = rng.choice(empty_cells)
    new_board[row][col] = 4 if rng.random() < FOUR_TILE_PROBABILITY else 2
    logger.debug("Spawned %d at (%d, %d)", new_board[row][col], row, col)
    return new_board, True


def initialize_board(size: int = BOARD_SIZE, rng: Optional[random.Random] = None) -> Board:
    """
    Creates an empty N x N board and spawns the initial tiles into it.
    Args:
        size (int): The dimension of the board. Default is 4.
        rng (Optional[random.Random]): Random source for the spawns.
    Returns:
        Board: The initial board.
    Raises:
        ValueError: If board size is not a positive integer.
    """
    board = empty_board(size)
    for _ in range(INITIAL_TILE_COUNT):
        board, _ = add_random_tile(board, rng)
    return board


# --- Line Reduction ---

def _compress_line(line: Sequence[int], n: int) -> List[int]:
    """Removes zeros preserving order, then right-pads with zeros to length n."""
    compressed = [value for value in line if value != 0]
    return compressed + [0] * (n - len(compressed))


def _merge_line(line: List[int]) -> int:
    """
    Single left-to-right pass over a compressed line, merging equal neighbours in place.
    The right tile of a merged pair becomes 0, so the freshly doubled tile
    never meets the next one in the same pass.
    Returns:
        int: Score gained from the merges.
    """
    gained = 0
    for i in range(len(line) - 1):
        if line[i] != 0 and line[i] == line[i + 1]:
            line[i] *= 2
            line[i + 1] = 0
            gained += line[i]
    return gained


def reduce_line(line: Sequence[int]) -> Tuple[List[int], int]:
    """
    Reduces one line towards index 0: compress, merge, compress again.
    Args:
        line (Sequence[int]): The line to reduce.
    Returns:
        Tuple[List[int], int]: The reduced line (same length) and the score gained.
    """
    n = len(line)
    reduced = _compress_line(line, n)
    gained = _merge_line(reduced)
    return _compress_line(reduced, n), gained


# --- Board Transformations ---

def parse_direction(symbol) -> DIRECTION:
    """
    Maps a direction symbol (DIRECTION member, or 'Up'/'down'/'LEFT'...) to a DIRECTION.
    Raises:
        InvalidDirection: If the symbol is not one of the four directions.
    """
    if isinstance(symbol, DIRECTION):
        return symbol
    if isinstance(symbol, str):
        try:
            return DIRECTION(symbol.strip().lower())
        except ValueError:
            pass
    raise InvalidDirection(f"Unknown direction {symbol!r}; expected one of Up, Down, Left, Right.")


def line_coordinates(n: int, direction: DIRECTION) -> List[List[Tuple[int, int]]]:
    """
    Lists, for every line of the board, the (row, col) cells in the order tiles
    travel towards, so that the first cell is the edge being moved to.
    Args:
        n (int): Board dimension.
        direction (DIRECTION): The direction to move.
    Returns:
        List[List[Tuple[int, int]]]: n lines of n coordinates each.
    """
    if direction == DIRECTION.LEFT:
        return [[(r, c) for c in range(n)] for r in range(n)]
    if direction == DIRECTION.RIGHT:
        return [[(r, c) for c in reversed(range(n))] for r in range(n)]
    if direction == DIRECTION.UP:
        return [[(r, c) for r in range(n)] for c in range(n)]
    if direction == DIRECTION.DOWN:
        return [[(r, c) for r in reversed(range(n))] for c in range(n)]
    raise InvalidDirection(f"Invalid direction {direction!r} specified for line_coordinates.")


# --- Core Game Move Processing ---

def process_move(board: Board, direction: DIRECTION) -> MoveOutcome:
    """
    Processes a move in the specified direction on a copy of the board.
    Args:
        board (Board): The current game board.
        direction (DIRECTION): The direction to move.
    Returns:
        MoveOutcome: The new board, the score gained from this move, and
                     whether any line differs from its pre-move sequence.
    Raises:
        InvalidDirection: If an invalid direction is specified.
        ValueError: If the board is not square.
    """
    n = get_board_size(board)
    new_board = copy_board(board)
    score_delta = 0
    changed = False

    for cells in line_coordinates(n, direction):
        original = [board[r][c] for r, c in cells]
        reduced, gained = reduce_line(original)
        score_delta += gained
        if reduced != original:
            changed = True
            for (r, c), value in zip(cells, reduced):
                new_board[r][c] = value

    return MoveOutcome(new_board, score_delta, changed)


# --- Game State Checks ---

def has_moves(board: Board) -> bool:
    """
    Checks whether any legal move remains.
    Every adjacent pair is compared from its left/top member, which covers the
    last row and column through their left and upper neighbours.
    Args:
        board (Board): The game board.
    Returns:
        bool: True if a cell is empty or two 4-neighbours share a value.
    """
    n = get_board_size(board)
    for r in range(n):
        for c in range(n):
            value = board[r][c]
            if value == 0:
                return True
            if c < n - 1 and value == board[r][c + 1]:
                return True
            if r < n - 1 and value == board[r + 1][c]:
                return True
    return False


def check_for_win(board: Board, win_tile: int = WIN_TILE) -> bool:
    """
    Check if a tile of at least win_tile exists.
    Args:
        board (Board): The game board.
        win_tile (int): The target tile value. Default is 2048.
    Returns:
        bool: True if the target has been reached.
    """
    return any(value >= win_tile for row in board for value in row)


# --- Debug Override ---

def debug_to_grid_coordinates(x: int, y: int, n: int = BOARD_SIZE) -> Tuple[int, int]:
    """
    Converts bottom-left-origin (x, y) to (row, col).
    Raises:
        InvalidDebugCoordinate: If x or y is not an integer in [0, n-1].
    """
    for name, value in (("x", x), ("y", y)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidDebugCoordinate(f"Coordinate {name} must be an integer between 0 and {n - 1}, got {value!r}.")
        if not 0 <= value <= n - 1:
            raise InvalidDebugCoordinate(f"Coordinate {name}={value} out of range; must be between 0 and {n - 1} (inclusive).")
    return n - 1 - y, x


def validate_tile_value(value) -> int:
    """
    Raises:
        InvalidDebugValue: If value is not an integer power of two in [MIN_TILE, MAX_TILE].
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidDebugValue(f"The tile value must be an integer, got {value!r}.")
    if not (is_power_of_two(value) and MIN_TILE <= value <= MAX_TILE):
        raise InvalidDebugValue(f"Invalid tile value {value}; must be a power of two between {MIN_TILE} and {MAX_TILE}.")
    return value


def set_cell(board: Board, value: int, x: int, y: int) -> Board:
    """
    Places value at bottom-left-origin (x, y) on a copy of the board.
    Args:
        board (Board): The current game board.
        value (int): Power of two in [2, 32768].
        x (int): Column, 0 is the left edge.
        y (int): Distance from the bottom edge, 0 is the bottom row.
    Returns:
        Board: A new board with the cell overridden.
    Raises:
        InvalidDebugValue: If value is rejected.
        InvalidDebugCoordinate: If (x, y) is outside the board.
    """
    n = get_board_size(board)
    validate_tile_value(value)
    row, col = debug_to_grid_coordinates(x, y, n)
    new_board = copy_board(board)
    new_board[row][col] = value
    return new_board
