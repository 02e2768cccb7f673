"""Move selection: deterministic deduction first, estimation and chance last."""

import logging
import random
from collections import defaultdict
from pathlib import Path
from typing import DefaultDict, List, Optional, Tuple, Union

from .board import Board
from .config import DEFAULT_MAX_SEGMENT_SIZE
from .estimator import NeuralEstimator, encode_window
from .moves import (
    FLAG,
    OPEN,
    STRATEGY_AI,
    STRATEGY_LOGIC,
    STRATEGY_PURE_AI,
    STRATEGY_RANDOM,
    STRATEGY_SUBSET,
    DeductionStage,
    Move,
)
from .tank import TankStage
from .utils import Coord, row_major

logger = logging.getLogger(__name__)

HYBRID = "hybrid"
PURE_AI = "pure_ai"
MODES = (HYBRID, PURE_AI)


def neighbor_info(board: Board, x: int, y: int) -> Tuple[int, int, List[Coord]]:
    """
    Summarize the hidden neighbors of (x, y).

    Returns:
        Tuple of (hidden count including flags, flag count, hidden unflagged
        neighbors in row-major order).
    """
    total_hidden = 0
    flags = 0
    hidden: List[Coord] = []
    for nx, ny in board.neighbors(x, y):
        nbr = board.cells[ny][nx]
        if nbr.is_revealed:
            continue
        total_hidden += 1
        if nbr.is_flagged:
            flags += 1
        else:
            hidden.append((nx, ny))
    return total_hidden, flags, hidden


def _numbered_cells(board: Board):
    for x, y in row_major(board.width, board.height):
        c = board.cells[y][x]
        if c.is_revealed and c.neighbor_count > 0:
            yield x, y, c.neighbor_count


# -----------------------------------------------------------------------------
# Deterministic stages
# -----------------------------------------------------------------------------


class LogicStage(DeductionStage):
    """
    Single-number rules.

    Safe rule: a number whose flags already account for all its mines makes
    every other hidden neighbor safe. Mine rule: a number with exactly as many
    hidden neighbors as mines makes all of them mines. The whole board is
    scanned for a safe move before any flag is proposed.
    """

    name = STRATEGY_LOGIC

    def find_safe(self, board: Board) -> Optional[Move]:
        for x, y, count in _numbered_cells(board):
            _, flags, hidden = neighbor_info(board, x, y)
            if flags == count and hidden:
                tx, ty = hidden[0]
                return Move(tx, ty, OPEN, False, STRATEGY_LOGIC, 1.0)
        return None

    def find_flag(self, board: Board) -> Optional[Move]:
        for x, y, count in _numbered_cells(board):
            total_hidden, _, hidden = neighbor_info(board, x, y)
            if total_hidden == count and hidden:
                tx, ty = hidden[0]
                return Move(tx, ty, FLAG, False, STRATEGY_LOGIC, 1.0)
        return None

    def try_find(self, board: Board) -> Optional[Move]:
        return self.find_safe(board) or self.find_flag(board)


class SubsetStage(DeductionStage):
    """
    Pairwise subset elimination.

    For numbers c1 and c2 where the hidden neighbors H1 of c1 are a subset of
    H2, the cells of H2 - H1 hold exactly needed2 - needed1 mines. Only pairs
    lying within one cell of a shared hidden neighbor are compared.
    """

    name = STRATEGY_SUBSET

    def try_find(self, board: Board) -> Optional[Move]:
        for x1, y1, count1 in _numbered_cells(board):
            _, f1, h1 = neighbor_info(board, x1, y1)
            if not h1:
                continue
            needed1 = count1 - f1
            h1_set = set(h1)

            checked = {(x1, y1)}
            for hx, hy in h1:
                for x2, y2 in board.neighbors(hx, hy):
                    if (x2, y2) in checked:
                        continue
                    checked.add((x2, y2))

                    c2 = board.cells[y2][x2]
                    if not c2.is_revealed or c2.neighbor_count == 0:
                        continue

                    _, f2, h2 = neighbor_info(board, x2, y2)
                    if not h1_set.issubset(h2):
                        continue
                    diff = [p for p in h2 if p not in h1_set]
                    if not diff:
                        continue

                    mines_in_diff = (c2.neighbor_count - f2) - needed1
                    if mines_in_diff == 0:
                        tx, ty = diff[0]
                        return Move(tx, ty, OPEN, False, STRATEGY_SUBSET, 1.0)
                    if mines_in_diff == len(diff):
                        for tx, ty in diff:
                            if not board.cells[ty][tx].is_flagged:
                                return Move(tx, ty, FLAG, False, STRATEGY_SUBSET, 1.0)
        return None


# -----------------------------------------------------------------------------
# Fallback stages
# -----------------------------------------------------------------------------


class EstimatorStage(DeductionStage):
    """Open the hidden cell the estimator considers least likely to be a mine."""

    def __init__(self, estimator: NeuralEstimator, strategy: str = STRATEGY_AI) -> None:
        self.estimator = estimator
        self.name = strategy

    def try_find(self, board: Board) -> Optional[Move]:
        best: Optional[Move] = None
        best_prob = 1.0
        for x, y in board.hidden_cells():
            prob = self.estimator.predict(encode_window(board, x, y))
            if prob < best_prob:
                best_prob = prob
                best = Move(x, y, OPEN, True, self.name, 1.0 - prob)
        return best


class RandomStage(DeductionStage):
    """Open a uniformly random hidden, unflagged cell."""

    name = STRATEGY_RANDOM

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def try_find(self, board: Board) -> Optional[Move]:
        candidates = board.hidden_cells()
        if not candidates:
            return None
        x, y = self.rng.choice(candidates)
        return Move(x, y, OPEN, True, STRATEGY_RANDOM, 0.0)


# -----------------------------------------------------------------------------
# Move selector
# -----------------------------------------------------------------------------


class Solver:
    """
    Pick the next move for a board by running deduction stages in order.

    Modes:
        "hybrid" (default): logic -> subset -> tank -> estimator -> random.
        "pure_ai": estimator -> random, for evaluating the estimator alone.

    The first stage that produces a move wins. If the estimator weights cannot
    be loaded the estimator stage is dropped and play degrades to random.
    """

    def __init__(
        self,
        board: Board,
        mode: str = HYBRID,
        *,
        estimator: Optional[NeuralEstimator] = None,
        load_estimator: bool = True,
        weights_path: Optional[Union[str, Path]] = None,
        max_segment_size: int = DEFAULT_MAX_SEGMENT_SIZE,
        seed: Optional[int] = None,
    ) -> None:
        """
        Args:
            board: Board to analyze. Moves are suggested for it, and applied by apply().
            mode: "hybrid" or "pure_ai".
            estimator: Ready-made estimator; takes precedence over loading.
            load_estimator: If False and no estimator is given, run without one.
            weights_path: Weights file to load (defaults to $MINEBOT_WEIGHTS
                or the bundled weights).
            max_segment_size: Largest frontier segment the tank stage enumerates.
            seed: Seed for the random fallback.

        Raises:
            ValueError: If the mode or max_segment_size is invalid.
        """
        if mode not in MODES:
            raise ValueError(f'mode must be "{HYBRID}" or "{PURE_AI}".')
        if max_segment_size <= 0:
            raise ValueError("max_segment_size must be positive.")

        self.board = board
        self.mode = mode
        self.max_segment_size = max_segment_size
        self.rng = random.Random(seed)

        if estimator is None and load_estimator:
            try:
                estimator = NeuralEstimator.from_file(weights_path)
            except (OSError, ValueError) as e:
                logger.warning("Estimator disabled, weights failed to load: %s", e)
                estimator = None
        self.estimator: Optional[NeuralEstimator] = estimator

        self.stages: List[DeductionStage] = self._build_stages()

        # Metrics / counters (for analysis)
        self.strategy_counts: DefaultDict[str, int] = defaultdict(int)
        self.guess_count: int = 0

    def _build_stages(self) -> List[DeductionStage]:
        stages: List[DeductionStage] = []
        if self.mode == HYBRID:
            stages += [
                LogicStage(),
                SubsetStage(),
                TankStage(self.max_segment_size),
            ]
            if self.estimator is not None:
                stages.append(EstimatorStage(self.estimator, STRATEGY_AI))
        elif self.estimator is not None:
            stages.append(EstimatorStage(self.estimator, STRATEGY_PURE_AI))
        stages.append(RandomStage(self.rng))
        return stages

    def next_move(self) -> Optional[Move]:
        """
        Return the next move, or None once the board is resolved.

        None means the board is cleared, exploded, or has no hidden unflagged
        cell left; check ``board.check_clear()`` / ``board.game_over``.
        """
        if self.board.game_over or self.board.check_clear():
            return None

        for stage in self.stages:
            move = stage.try_find(self.board)
            if move is not None:
                logger.debug(
                    "%s -> %s (%d, %d) confidence=%.3f",
                    stage.name, move.kind, move.x, move.y, move.confidence,
                )
                self.strategy_counts[move.strategy] += 1
                if move.is_guess:
                    self.guess_count += 1
                return move
        return None

    def apply(self, move: Move) -> bool:
        """Apply ``move`` to the board. Returns False if it detonated a mine."""
        if move.kind == FLAG:
            self.board.toggle_flag(move.x, move.y)
            return True
        return self.board.open(move.x, move.y)
