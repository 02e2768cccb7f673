"""
Quickstart example for the Minesweeper bot.

This script demonstrates basic usage of the engine.
"""

from minebot import (
    HYBRID,
    PURE_AI,
    Board,
    Solver,
    play_game,
    run_bot_many_games,
)
from minebot.config import LEVELS


def main():
    print("=" * 60)
    print("Minesweeper Bot - Quickstart Example")
    print("=" * 60)

    # Example 1: Ask for moves one at a time
    print("\n1. First few moves on an Intermediate board (16x16, 40 mines)...")
    print("-" * 60)

    board = Board(16, 16, 40, seed=7)
    solver = Solver(board, HYBRID, seed=7)

    for _ in range(5):
        move = solver.next_move()
        if move is None:
            break
        print(
            f"{move.kind:4s} ({move.x:2d}, {move.y:2d})  strategy={move.strategy:10s} "
            f"confidence={move.confidence:.2f} guess={move.is_guess}"
        )
        if not solver.apply(move):
            break

    # Example 2: Let the bot finish the game
    print("\n2. Playing the rest of the game...")
    print("-" * 60)
    status, moves = play_game(solver)
    print(f"Result: {'WON' if status == 1 else 'LOST'} after {len(moves)} more moves")
    print(board.format_board(reveal_all=True))

    # Example 3: Compare modes on every level
    print("\n3. Win rates by level and mode (20 games each)...")
    print("-" * 60)

    for name, (w, h, m) in LEVELS.items():
        for mode in (HYBRID, PURE_AI):
            results = run_bot_many_games(w, h, m, runs=20, mode=mode)
            print(
                f"{name:13s} ({w}x{h}, {m:2d} mines) {mode:8s}: "
                f"{results['win_rate']*100:5.1f}% win rate, "
                f"{results['avg_guesses_total']:.1f} guesses/game"
            )

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
