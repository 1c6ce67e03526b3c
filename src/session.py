# session.py
# Owns one board and one score, and walks them through the Active/GameOver states.

import logging
import random
import threading
from enum import Enum
from typing import Callable, List, NamedTuple, Optional

from pydantic import BaseModel, Field

import core

logger = logging.getLogger(__name__)


class GameProgressState(Enum):
    """Represents the current progress state of the game."""
    ACTIVE = "ACTIVE"
    GAME_OVER = "GAME_OVER"


class InvalidInitials(ValueError):
    """Leaderboard initials must be exactly three letters."""


# --- Leaderboard Collaborator ---

class LeaderboardEntry(BaseModel):
    """Top score shown next to the board."""
    player: str = Field(default="---", description="Initials of the record holder.")
    top_score: int = Field(default=0, ge=0, description="Best score recorded.")


def validate_initials(initials: str) -> str:
    """
    Normalizes player initials to upper case.
    Raises:
        InvalidInitials: If initials are not exactly three letters.
    """
    if not isinstance(initials, str):
        raise InvalidInitials("Initials must be a string of 3 letters.")
    normalized = initials.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise InvalidInitials("Please enter 3 letters.")
    return normalized


class InMemoryLeaderboard:
    """Keeps the single best entry in process memory. Safe to share between threads."""

    def __init__(self, entry: Optional[LeaderboardEntry] = None):
        self._entry = entry or LeaderboardEntry()
        self._lock = threading.Lock()

    def fetch_top(self) -> LeaderboardEntry:
        with self._lock:
            return self._entry.model_copy()

    def submit(self, initials: str, score: int) -> bool:
        """
        Records (initials, score) if it beats the current top score.
        Returns:
            bool: True if the entry was replaced.
        """
        player = validate_initials(initials)
        with self._lock:
            if score <= self._entry.top_score:
                return False
            self._entry = LeaderboardEntry(player=player, top_score=score)
        logger.info("New top score %d by %s", score, player)
        return True


# --- Display Snapshots ---

class GameSnapshot(NamedTuple):
    """Everything a renderer needs after init, restart, or an accepted move."""
    board: core.Board
    score: int
    game_over: bool
    reached_target: bool
    leaderboard: Optional[LeaderboardEntry]


class MoveReport(NamedTuple):
    changed: bool
    score: int
    score_delta: int
    game_over: bool


Listener = Callable[[GameSnapshot], None]


class GameSession:
    """
    A single game: one board, one score, one random source.

    Not safe for concurrent moves; a host shared between threads must
    serialize calls to move/restart/set_cell itself.
    """

    def __init__(
        self,
        size: int = core.BOARD_SIZE,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        win_tile: int = core.WIN_TILE,
        leaderboard: Optional[InMemoryLeaderboard] = None,
        listeners: Optional[List[Listener]] = None,
    ):
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both.")
        self.size = size
        self.win_tile = win_tile
        self.rng = rng if rng is not None else random.Random(seed)
        self.leaderboard = leaderboard
        self.top_entry: Optional[LeaderboardEntry] = None
        self._listeners: List[Listener] = list(listeners or [])
        self._board: core.Board = []
        self._score = 0
        self.state = GameProgressState.ACTIVE
        self.restart()

    @classmethod
    def from_state(
        cls,
        board: core.Board,
        score: int = 0,
        rng: Optional[random.Random] = None,
        win_tile: int = core.WIN_TILE,
    ) -> "GameSession":
        """
        Rebuilds a session around an existing board, e.g. one held by a client.
        Raises:
            ValueError: If the board or score is malformed.
        """
        size = core.validate_board(board)
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise ValueError("Score must be a non-negative integer.")
        session = cls.__new__(cls)
        session.size = size
        session.win_tile = win_tile
        session.rng = rng if rng is not None else random.Random()
        session.leaderboard = None
        session.top_entry = None
        session._listeners = []
        session._board = core.copy_board(board)
        session._score = score
        session.state = GameProgressState.ACTIVE if core.has_moves(board) else GameProgressState.GAME_OVER
        return session

    # --- Read-only views ---

    @property
    def board(self) -> core.Board:
        return core.copy_board(self._board)

    @property
    def score(self) -> int:
        return self._score

    @property
    def is_over(self) -> bool:
        return self.state == GameProgressState.GAME_OVER

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            board=self.board,
            score=self._score,
            game_over=self.is_over,
            reached_target=core.check_for_win(self._board, self.win_tile),
            leaderboard=self.top_entry,
        )

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)

    # --- Transitions ---

    def restart(self) -> GameSnapshot:
        """Empties the board, zeroes the score, spawns the initial tiles and becomes ACTIVE."""
        self._board = core.initialize_board(self.size, self.rng)
        self._score = 0
        self.state = GameProgressState.ACTIVE
        if self.leaderboard is not None:
            self.top_entry = self.leaderboard.fetch_top()
        logger.info("New game started on a %dx%d board", self.size, self.size)
        self._publish()
        return self.snapshot()

    def move(self, direction) -> MoveReport:
        """
        Applies one move intent.

        Unknown direction symbols and moves after game over are ignored. A move
        that changes nothing is a normal no-op, not an error. Otherwise the new
        board is committed, the score grows by the merge total, one tile is
        spawned and the terminal check runs.
        """
        try:
            direction = core.parse_direction(direction)
        except core.InvalidDirection as exc:
            logger.warning("Ignoring move: %s", exc)
            return self._report(False, 0)

        if self.is_over:
            return self._report(False, 0)

        outcome = core.process_move(self._board, direction)
        logger.debug("Move %s: delta=%d changed=%s", direction.name, outcome.score_delta, outcome.changed)
        if not outcome.changed:
            return self._report(False, 0)

        self._board, _ = core.add_random_tile(outcome.board, self.rng)
        self._score += outcome.score_delta
        if not core.has_moves(self._board):
            self.state = GameProgressState.GAME_OVER
            logger.info("Game over with score %d", self._score)
        self._publish()
        return self._report(True, outcome.score_delta)

    def _report(self, changed: bool, score_delta: int) -> MoveReport:
        return MoveReport(changed=changed, score=self._score, score_delta=score_delta, game_over=self.is_over)

    def set_cell(self, value: int, x: int, y: int) -> core.Board:
        """
        Debug override: places value at bottom-left-origin (x, y).
        Neither spawns a tile nor runs the terminal check.
        Raises:
            core.InvalidDebugValue, core.InvalidDebugCoordinate: Session left unchanged.
        """
        try:
            self._board = core.set_cell(self._board, value, x, y)
        except ValueError as exc:
            logger.warning("Rejected debug override: %s", exc)
            raise
        return self.board

    # --- Leaderboard ---

    def beats_top_score(self) -> bool:
        return self.top_entry is not None and self._score > self.top_entry.top_score

    def submit_score(self, initials: str) -> bool:
        """
        Offers the final score to the leaderboard once the game is over.
        Returns:
            bool: True if the leaderboard entry was replaced.
        Raises:
            InvalidInitials: If initials are not three letters.
        """
        try:
            player = validate_initials(initials)
        except InvalidInitials:
            logger.warning("Rejected initials %r", initials)
            raise
        if self.leaderboard is None or not self.is_over or not self.beats_top_score():
            return False
        replaced = self.leaderboard.submit(player, self._score)
        if replaced:
            self.top_entry = self.leaderboard.fetch_top()
        return replaced
