# cli_driver.py
# This file is intended to be run to play or test the 2048 game on the CLI

import logging
import os
from typing import Callable, Optional

import core
from session import GameSession, GameSnapshot, InMemoryLeaderboard, InvalidInitials

DIRECTION_KEYS = {'W': core.DIRECTION.UP, 'A': core.DIRECTION.LEFT, 'S': core.DIRECTION.DOWN, 'D': core.DIRECTION.RIGHT}


def main(read: Callable[[str], str] = input, seed: Optional[int] = None):
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "WARNING").upper())

    leaderboard = InMemoryLeaderboard()
    game = GameSession(seed=seed, leaderboard=leaderboard, listeners=[display_board_state])

    while True:
        if game.is_over:
            if not offer_score(game, read):
                break
            game.restart()
            continue

        move_input = read("Enter move (W/A/S/D, R restart, C cheat, Q quit): ").strip().upper()

        if move_input == 'Q':
            print("Quitting game.")
            break
        if move_input == 'R':
            game.restart()
            continue
        if move_input == 'C':
            run_cheat(game, read)
            continue

        chosen_direction = DIRECTION_KEYS.get(move_input)
        if not chosen_direction:
            print("Invalid input. Use W, A, S, D.")
            continue

        report = game.move(chosen_direction)
        if not report.changed:
            print("Move did not change the board. Try a different direction.")

    return game


def run_cheat(game: GameSession, read: Callable[[str], str]):
    """Reads 'value x y' and applies the debug override; (0, 0) is the bottom-left corner."""
    parts = read("Cheat (value x y): ").split()
    try:
        value, x, y = (int(part) for part in parts)
    except ValueError:
        print("Expected three integers: value x y.")
        return
    try:
        game.set_cell(value, x, y)
    except ValueError as e:
        print(e)
        return
    display_board_state(game.snapshot())


def offer_score(game: GameSession, read: Callable[[str], str]) -> bool:
    """
    Shows the end-of-game prompt. Returns True if the player wants another game.
    """
    print(f"\nGAME OVER! Final score: {game.score}")
    if game.beats_top_score():
        while True:
            initials = read("New top score! Enter your initials (3 letters): ")
            try:
                game.submit_score(initials)
                break
            except InvalidInitials as e:
                print(e)
    answer = read("Play again? (Y/N): ").strip().upper()
    return answer == 'Y'


# --- Display Function (Example of external usage) ---
def display_board_state(snapshot: GameSnapshot):
    """Prints the board, score, and game status to the console."""
    print(f"\nScore: {snapshot.score}")
    if snapshot.leaderboard is not None:
        print(f"Top: {snapshot.leaderboard.player} - {snapshot.leaderboard.top_score}")
    if snapshot.game_over:
        print("GAME OVER!")
    elif snapshot.reached_target:
        print("Target tile reached! Keep going.")

    for row in snapshot.board:
        print("\t".join(str(value) if value else "." for value in row))
    print("-" * (len(snapshot.board) * 6)) # Adjust width based on board size


if __name__ == "__main__":
    main()
