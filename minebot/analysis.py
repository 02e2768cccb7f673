"""Autoplay and benchmarking tools for the move-selection engine."""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .board import Board
from .config import DEFAULT_MAX_SEGMENT_SIZE, LEVELS
from .estimator import NeuralEstimator
from .moves import FLAG, STRATEGIES
from .solver import HYBRID, PURE_AI, Solver


def play_game(solver: Solver, max_moves: Optional[int] = None) -> Tuple[int, List[Tuple[int, int, str, str]]]:
    """
    Let ``solver`` play its board until the game ends.

    Args:
        solver: Solver bound to a fresh (or partially played) board.
        max_moves: Safety bound on the number of moves; defaults to twice the
            number of cells, which no sound game can exceed.

    Returns:
        Tuple of (status, moves_sequence) where status is 1 (cleared) or -1
        (mine hit) and moves_sequence lists (x, y, kind, strategy).

    Raises:
        RuntimeError: If the move budget is exhausted or the solver stalls
            before the board is resolved.
    """
    board = solver.board
    if max_moves is None:
        max_moves = 2 * board.width * board.height

    moves_sequence: List[Tuple[int, int, str, str]] = []
    for _ in range(max_moves):
        if board.game_over:
            return -1, moves_sequence
        if board.check_clear():
            return 1, moves_sequence

        move = solver.next_move()
        if move is None:
            raise RuntimeError("Solver returned no move on an unresolved board.")

        moves_sequence.append((move.x, move.y, move.kind, move.strategy))
        if not solver.apply(move):
            return -1, moves_sequence

    if not board.game_over and board.check_clear():
        return 1, moves_sequence
    raise RuntimeError(f"Game not resolved after {max_moves} moves.")


def run_bot_single_game(
    width: int,
    height: int,
    mines_count: int,
    *,
    mode: str = HYBRID,
    seed: Optional[int] = None,
    show_board: bool = False,
    max_segment_size: int = DEFAULT_MAX_SEGMENT_SIZE,
    estimator: Optional[NeuralEstimator] = None,
) -> Dict[str, object]:
    """
    Play one game with a fresh Board and Solver.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        mode: Solver mode ("hybrid" or "pure_ai").
        seed: Seed for both mine placement and the random fallback.
        show_board: If True, print the final board with mines visible.
        max_segment_size: Largest segment the tank stage enumerates.
        estimator: Optional estimator shared across games.

    Returns:
        Payload with "status" (1 win, -1 loss), "moves_count", "open_moves_count",
        "flag_moves_count", "guesses_count", "revealed_cells_count",
        "flags_count", "moves_sequence" and "strategy_counts".
    """
    board = Board(width, height, mines_count, seed=seed)
    solver = Solver(
        board,
        mode,
        estimator=estimator,
        max_segment_size=max_segment_size,
        seed=seed,
    )

    status, moves_sequence = play_game(solver)

    if show_board:
        print(f"Mode: {mode}")
        print(board.format_board(reveal_all=True))
        print(f"Finished with status {status}.")

    flag_moves = sum(1 for m in moves_sequence if m[2] == FLAG)
    return {
        "status": status,
        "moves_count": len(moves_sequence),
        "open_moves_count": len(moves_sequence) - flag_moves,
        "flag_moves_count": flag_moves,
        "guesses_count": solver.guess_count,
        "revealed_cells_count": board.revealed_count(),
        "flags_count": board.flag_count(),
        "moves_sequence": moves_sequence,
        "strategy_counts": dict(solver.strategy_counts),
    }


def run_bot_many_games(
    width: int,
    height: int,
    mines_count: int,
    runs: int,
    *,
    mode: str = HYBRID,
    seed: Optional[int] = None,
    max_segment_size: int = DEFAULT_MAX_SEGMENT_SIZE,
) -> Dict[str, float]:
    """
    Play ``runs`` independent games and average their metrics.

    When ``seed`` is given, game i uses seed + i.

    Returns:
        Averages of the numeric payload fields (prefixed "avg_"), per-strategy
        averages ("avg_<strategy>_moves"), plus:
        - win_rate
        - avg_guesses_total
        - guess_failure_rate (losses per guess taken)

    Raises:
        ValueError: If runs is not positive.
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    estimator: Optional[NeuralEstimator] = None
    try:
        estimator = NeuralEstimator.from_file()
    except (OSError, ValueError):
        # Each Solver logs the failure and falls back to random.
        estimator = None

    sums: Dict[str, float] = defaultdict(float)
    wins = 0
    total_guesses = 0.0
    losses = 0

    for i in range(runs):
        payload = run_bot_single_game(
            width,
            height,
            mines_count,
            mode=mode,
            seed=None if seed is None else seed + i,
            max_segment_size=max_segment_size,
            estimator=estimator,
        )
        status = payload["status"]
        if status == 1:
            wins += 1
        elif status == -1:
            losses += 1
        else:
            raise RuntimeError(f"Unexpected game status: {status}")

        for key in (
            "moves_count",
            "open_moves_count",
            "flag_moves_count",
            "revealed_cells_count",
            "flags_count",
        ):
            sums[f"avg_{key}"] += float(payload[key])  # type: ignore[arg-type]

        total_guesses += float(payload["guesses_count"])  # type: ignore[arg-type]

        strategy_counts = payload["strategy_counts"]
        if not isinstance(strategy_counts, dict):
            raise TypeError("Expected strategy_counts to be a dict.")
        for strategy in STRATEGIES:
            sums[f"avg_{strategy}_moves"] += float(strategy_counts.get(strategy, 0))

    out: Dict[str, float] = {k: total / runs for k, total in sums.items()}
    out["win_rate"] = wins / runs
    out["avg_guesses_total"] = total_guesses / runs
    out["guess_failure_rate"] = (losses / total_guesses) if total_guesses > 0 else 0.0
    return out


def run_bot_level_analysis(
    runs: int,
    modes: Iterable[str] = (HYBRID, PURE_AI),
    *,
    max_segment_size: int = DEFAULT_MAX_SEGMENT_SIZE,
    show_plots: bool = True,
) -> Dict[str, Dict[str, Dict[str, float]]]:
    """
    Benchmark each mode on the standard difficulty levels and plot summaries.

    Returns:
        Mapping mode -> level -> statistics from run_bot_many_games().

    Standard difficulty levels:
        - Beginner: 9x9, 10 mines
        - Intermediate: 16x16, 40 mines
        - Expert: 30x16, 99 mines
    """
    modes = list(modes)
    results: Dict[str, Dict[str, Dict[str, float]]] = {}
    for mode in modes:
        results[mode] = {}
        for level, (w, h, m) in LEVELS.items():
            results[mode][level] = run_bot_many_games(
                w, h, m, runs, mode=mode, max_segment_size=max_segment_size
            )

    if not show_plots:
        return results

    level_names = list(LEVELS.keys())
    x = np.arange(len(level_names))
    bar_w = 0.8 / max(len(modes), 1)

    # 1) Win rate by level and mode
    plt.figure()  # type: ignore[misc]
    for k, mode in enumerate(modes):
        win_rates = [results[mode][n]["win_rate"] for n in level_names]
        plt.bar(x + (k - (len(modes) - 1) / 2) * bar_w, win_rates, width=bar_w, label=mode)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Win rate")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Win rate by difficulty level")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]

    # 2) Strategy mix per level (stacked) for each mode
    for mode in modes:
        plt.figure()  # type: ignore[misc]
        bottom = np.zeros(len(level_names))
        for strategy in STRATEGIES:
            values = np.array(
                [results[mode][n][f"avg_{strategy}_moves"] for n in level_names]
            )
            if not values.any():
                continue
            plt.bar(x, values, bottom=bottom, label=strategy)  # type: ignore[misc]
            bottom += values
        plt.xticks(x, level_names)  # type: ignore[misc]
        plt.ylabel("Average moves per game")  # type: ignore[misc]
        plt.title(f"Moves by strategy ({mode})")  # type: ignore[misc]
        plt.legend()  # type: ignore[misc]
        plt.tight_layout()
        plt.show()  # type: ignore[misc]

    return results


def summarize_strategy_mix(
    results: Dict[str, Dict[str, float]],
    *,
    level: str = "expert",
) -> Dict[str, float]:
    """
    Turn one mode's per-level results into strategy fractions.

    Args:
        results: Dict[level_name -> metrics_dict] from run_bot_many_games().
        level: Which level to summarize.

    Returns:
        "<strategy>_frac" for every strategy, "certain_frac" (logic, subset and
        exact tank moves), "guess_frac", and "total_moves".

    Raises:
        KeyError: If the level is missing.
        ZeroDivisionError: If the level recorded no moves.
    """
    if level not in results:
        raise KeyError(f"Level {level!r} not found in results.")
    m = results[level]

    per_strategy = {s: float(m.get(f"avg_{s}_moves", 0.0)) for s in STRATEGIES}
    total = sum(per_strategy.values())
    if total == 0.0:
        raise ZeroDivisionError("No moves recorded; cannot compute fractions.")

    out = {f"{s}_frac": v / total for s, v in per_strategy.items()}
    certain = per_strategy["logic"] + per_strategy["subset"] + per_strategy["tank"]
    out["certain_frac"] = certain / total
    out["guess_frac"] = 1.0 - out["certain_frac"]
    out["total_moves"] = total
    return out
