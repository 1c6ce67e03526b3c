import logging
import os
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import core
from session import GameSession, InMemoryLeaderboard, LeaderboardEntry, validate_initials

logger = logging.getLogger(__name__)

RATE_LIMIT = os.environ.get("GAME_API_RATE_LIMIT", "100/minute")

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Game API",
    description="A stateless API for playing the 2048 game. "\
                "Manage your game state (board, score, win_tile) on the client side.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

leaderboard = InMemoryLeaderboard()

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    size: int = Field(
        default=core.BOARD_SIZE,
        gt=1,
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    win_tile: int = Field(
        default=core.WIN_TILE,
        gt=0,
        description="The tile value to reach; informational, the game continues past it."
    )

class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    board: List[List[int]] = Field(..., description="The N x N game board, represented as a list of lists.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    game_over: bool = Field(..., description="True once no legal move remains.")
    reached_target: bool = Field(..., description="True once a tile of at least win_tile exists.")
    win_tile: int = Field(..., gt=0, description="The target tile value for this game instance.")
    board_size: int = Field(..., gt=0, description="The dimension N of the N x N board.")
    leaderboard: LeaderboardEntry = Field(..., description="Current top score for display comparison.")

class MoveRequestData(BaseModel):
    """Data required to make a move."""
    board: List[List[int]] = Field(..., description="Current N x N game board state before the move.")
    score: int = Field(..., ge=0, description="Current score before the move.")
    direction: core.DIRECTION = Field(..., description="Direction of the move (up, down, left, right).")
    win_tile: int = Field(default=core.WIN_TILE, gt=0, description="The target tile for this game instance.")

class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    score_delta: int = Field(..., ge=0, description="Points gained by merges in this move.")
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was not effective or the game ended."
    )

class CheatRequestData(BaseModel):
    """Debug override of a single cell, with a bottom-left origin."""
    board: List[List[int]] = Field(..., description="Current N x N game board.")
    score: int = Field(default=0, ge=0, description="Current score; unchanged by the override.")
    value: int = Field(..., description="Power of two between 2 and 32768.")
    x: int = Field(..., description="Column counted from the left edge.")
    y: int = Field(..., description="Row counted from the bottom edge.")
    win_tile: int = Field(default=core.WIN_TILE, gt=0)

class ScoreSubmission(BaseModel):
    """A finished game's score offered to the leaderboard."""
    initials: str = Field(..., description="Exactly three letters.")
    board: List[List[int]] = Field(..., description="Final board; must admit no legal move.")
    score: int = Field(..., ge=0)

class ScoreSubmissionResult(BaseModel):
    accepted: bool
    leaderboard: LeaderboardEntry


def _state_data(game: GameSession) -> dict:
    snapshot = game.snapshot()
    return dict(
        board=snapshot.board,
        score=snapshot.score,
        game_over=snapshot.game_over,
        reached_target=snapshot.reached_target,
        win_tile=game.win_tile,
        board_size=game.size,
        leaderboard=leaderboard.fetch_top(),
    )

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(RATE_LIMIT)
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Initializes a new game: an empty N x N board with two random tiles and a score of 0.

    - **size**: Dimension of the N x N board (e.g., 4 for 4x4). Default is 4.
    - **win_tile**: Tile value to reach (e.g., 2048). Default is 2048.
    """
    try:
        game = GameSession(size=settings.size, win_tile=settings.win_tile, leaderboard=leaderboard)
        return GameStateData(**_state_data(game))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in /game/new: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(RATE_LIMIT)
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    The API will:
    1. Slide and merge tiles in the requested direction.
    2. If the board changed, add the merge total to the score and spawn a tile (2 or 4).
    3. Report whether any legal move remains.
    """
    try:
        game = GameSession.from_state(request_data.board, request_data.score, win_tile=request_data.win_tile)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid board structure in request: {str(e)}")

    try:
        report = game.move(request_data.direction)

        message_for_client: Optional[str] = None
        if not report.changed:
            message_for_client = "Move was not effective; board state unchanged by slide."
        if report.game_over:
            message_for_client = "Game Over. No more valid moves."

        return MoveResponseData(
            **_state_data(game),
            move_was_effective=report.changed,
            score_delta=report.score_delta,
            message=message_for_client
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error in /game/move: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")


@app.post("/game/cheat", response_model=GameStateData, summary="Override One Cell (Debug)")
@limiter.limit(RATE_LIMIT)
async def cheat(request: Request, request_data: CheatRequestData):
    """
    Sets one cell to `value` at (`x`, `y`), where (0, 0) is the bottom-left corner.
    No tile is spawned and the game-over state is not re-evaluated.
    """
    try:
        game = GameSession.from_state(request_data.board, request_data.score, win_tile=request_data.win_tile)
        game.set_cell(request_data.value, request_data.x, request_data.y)
        return GameStateData(**_state_data(game))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/leaderboard", response_model=LeaderboardEntry, summary="Current Top Score")
@limiter.limit(RATE_LIMIT)
async def get_leaderboard(request: Request):
    return leaderboard.fetch_top()


@app.post("/leaderboard", response_model=ScoreSubmissionResult, summary="Submit a Final Score")
@limiter.limit(RATE_LIMIT)
async def submit_score(request: Request, submission: ScoreSubmission):
    """Replaces the top entry if the finished game's score beats it."""
    try:
        validate_initials(submission.initials)
        game = GameSession.from_state(submission.board, submission.score)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not game.is_over:
        raise HTTPException(status_code=400, detail="Only finished games can be submitted.")

    game.leaderboard = leaderboard
    game.top_entry = leaderboard.fetch_top()
    accepted = game.submit_score(submission.initials)
    return ScoreSubmissionResult(accepted=accepted, leaderboard=leaderboard.fetch_top())
