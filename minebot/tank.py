"""Exact frontier solver ("tank"): segmentation, enumeration and marginals."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Deque, Dict, List, Optional, Set, Tuple

from .config import DEFAULT_MAX_SEGMENT_SIZE
from .moves import (
    FLAG,
    OPEN,
    STRATEGY_TANK,
    STRATEGY_TANK_GUESS,
    DeductionStage,
    Move,
)
from .utils import Coord, row_major

if TYPE_CHECKING:
    from .board import Board

logger = logging.getLogger(__name__)


@dataclass
class Rule:
    """``required_mines`` of the segment cells at ``cell_indices`` are mines."""

    cell_indices: List[int]
    required_mines: int


@dataclass
class Segment:
    """Connected group of frontier cells and the rules that constrain them."""

    unknowns: List[Coord]
    rules: List[Rule] = field(default_factory=list)


def _scan_neighbors(board: "Board", x: int, y: int) -> Tuple[int, List[Coord]]:
    """Return (flagged neighbor count, hidden unflagged neighbors) of (x, y)."""
    flags = 0
    hidden: List[Coord] = []
    for nx, ny in board.neighbors(x, y):
        nbr = board.cells[ny][nx]
        if nbr.is_flagged:
            flags += 1
        elif not nbr.is_revealed:
            hidden.append((nx, ny))
    return flags, hidden


def find_frontier(
    board: "Board",
) -> Tuple[List[Coord], List[Tuple[Coord, int, List[Coord]]]]:
    """
    Collect the frontier of the board.

    Returns:
        Tuple of:
        - frontier cells (hidden, unflagged, next to an unsatisfied number), row-major
        - active numbered cells as (cell, required_mines, frontier_neighbors)
    """
    frontier: Set[Coord] = set()
    active: List[Tuple[Coord, int, List[Coord]]] = []

    for x, y in row_major(board.width, board.height):
        c = board.cells[y][x]
        if not c.is_revealed or c.neighbor_count == 0:
            continue
        flags, hidden = _scan_neighbors(board, x, y)
        if flags >= c.neighbor_count or not hidden:
            continue
        frontier.update(hidden)
        active.append(((x, y), c.neighbor_count - flags, hidden))

    ordered = [p for p in row_major(board.width, board.height) if p in frontier]
    return ordered, active


def build_segments(board: "Board") -> List[Segment]:
    """
    Split the frontier into independent segments.

    Frontier cells are stored once in an arena list and referenced by index.
    Two cells are linked when they border the same active number; each
    connected component (found breadth-first, seeded row-major) is a segment.
    """
    frontier, active = find_frontier(board)
    arena_index: Dict[Coord, int] = {p: i for i, p in enumerate(frontier)}

    adjacency: List[Set[int]] = [set() for _ in frontier]
    for _, _, hidden in active:
        idxs = [arena_index[p] for p in hidden]
        for i in idxs:
            adjacency[i].update(j for j in idxs if j != i)

    component_of: List[int] = [-1] * len(frontier)
    segments: List[Segment] = []

    for start in range(len(frontier)):
        if component_of[start] != -1:
            continue

        seg_id = len(segments)
        members: List[int] = []
        queue: Deque[int] = deque([start])
        component_of[start] = seg_id

        while queue:
            cur = queue.popleft()
            members.append(cur)
            for nxt in sorted(adjacency[cur]):
                if component_of[nxt] == -1:
                    component_of[nxt] = seg_id
                    queue.append(nxt)

        segments.append(Segment(unknowns=[frontier[i] for i in members]))

    local_index: List[Dict[Coord, int]] = [
        {p: i for i, p in enumerate(seg.unknowns)} for seg in segments
    ]
    for _, required, hidden in active:
        # All frontier neighbors of one number are linked, so they share a segment.
        seg_id = component_of[arena_index[hidden[0]]]
        lookup = local_index[seg_id]
        segments[seg_id].rules.append(
            Rule(cell_indices=[lookup[p] for p in hidden], required_mines=required)
        )

    return segments


class SegmentSolver:
    """
    Enumerate every consistent mine assignment of each frontier segment.

    Segments larger than ``max_segment_size`` unknowns are skipped; they simply
    contribute nothing this turn.
    """

    def __init__(
        self, board: "Board", max_segment_size: int = DEFAULT_MAX_SEGMENT_SIZE
    ) -> None:
        if max_segment_size <= 0:
            raise ValueError("max_segment_size must be positive.")
        self.board = board
        self.max_segment_size = max_segment_size

    def count_solutions(self, segment: Segment) -> Tuple[int, List[int]]:
        """
        Count valid assignments of ``segment``.

        Each unknown is tried as a mine first, then as safe. A branch is cut
        as soon as a rule holds more mines than required, or can no longer
        reach its requirement with the cells left.

        Returns:
            Tuple of (number of valid assignments, per-unknown count of valid
            assignments marking it a mine).
        """
        n = len(segment.unknowns)
        rules_of: List[List[int]] = [[] for _ in range(n)]
        for r, rule in enumerate(segment.rules):
            for i in rule.cell_indices:
                rules_of[i].append(r)

        required = [rule.required_mines for rule in segment.rules]
        mines = [0] * len(segment.rules)
        unassigned = [len(rule.cell_indices) for rule in segment.rules]
        assignment = [False] * n
        mine_counts = [0] * n
        total = 0

        def backtrack(i: int) -> None:
            nonlocal total
            if i == n:
                if mines == required:
                    total += 1
                    for j in range(n):
                        if assignment[j]:
                            mine_counts[j] += 1
                return

            touched = rules_of[i]
            for is_mine in (True, False):
                for r in touched:
                    unassigned[r] -= 1
                    if is_mine:
                        mines[r] += 1

                if all(
                    required[r] - unassigned[r] <= mines[r] <= required[r]
                    for r in touched
                ):
                    assignment[i] = is_mine
                    backtrack(i + 1)

                for r in touched:
                    unassigned[r] += 1
                    if is_mine:
                        mines[r] -= 1
            assignment[i] = False

        backtrack(0)
        return total, mine_counts

    def _solved_segments(self):
        for seg in build_segments(self.board):
            if len(seg.unknowns) > self.max_segment_size:
                logger.debug(
                    "Skipping segment of %d unknowns (limit %d)",
                    len(seg.unknowns), self.max_segment_size,
                )
                continue

            total, mine_counts = self.count_solutions(seg)
            if total == 0:
                logger.debug(
                    "Segment of %d unknowns has no consistent assignment",
                    len(seg.unknowns),
                )
                continue
            yield seg, total, mine_counts

    def probabilities(self) -> Dict[Coord, float]:
        """Marginal mine probability of every cell in a solvable segment."""
        probs: Dict[Coord, float] = {}
        for seg, total, mine_counts in self._solved_segments():
            for cell, count in zip(seg.unknowns, mine_counts):
                probs[cell] = count / total
        return probs

    def find_move(self) -> Optional[Move]:
        """
        Return a certain move if any segment has one, else the safest guess.

        Certain moves (probability exactly 0 or 1) are returned as soon as
        they are found. The guess is the globally lowest-probability cell.
        """
        best: Optional[Move] = None
        best_prob = 1.0

        for seg, total, mine_counts in self._solved_segments():
            for (x, y), count in zip(seg.unknowns, mine_counts):
                if count == 0:
                    return Move(x, y, OPEN, False, STRATEGY_TANK, 1.0)
                if count == total and not self.board.cells[y][x].is_flagged:
                    return Move(x, y, FLAG, False, STRATEGY_TANK, 1.0)

                prob = count / total
                if prob < best_prob:
                    best_prob = prob
                    best = Move(x, y, OPEN, True, STRATEGY_TANK_GUESS, 1.0 - prob)

        return best


class TankStage(DeductionStage):
    """Pipeline stage wrapping SegmentSolver."""

    name = STRATEGY_TANK

    def __init__(self, max_segment_size: int = DEFAULT_MAX_SEGMENT_SIZE) -> None:
        if max_segment_size <= 0:
            raise ValueError("max_segment_size must be positive.")
        self.max_segment_size = max_segment_size

    def try_find(self, board: "Board") -> Optional[Move]:
        return SegmentSolver(board, self.max_segment_size).find_move()
