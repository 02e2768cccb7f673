"""Minesweeper board with lazy, first-click-safe mine placement."""

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, Dict, List, Optional, Sequence, Set, Tuple

from .utils import Coord, get_neighborhoods, in_bounds, row_major

if TYPE_CHECKING:
    from .solver import Solver

logger = logging.getLogger(__name__)

MINE_CHARS = frozenset("*M")


@dataclass
class Cell:
    """One square of the mine-field."""

    is_mine: bool = False
    is_revealed: bool = False
    is_flagged: bool = False
    neighbor_count: int = 0


class Board:
    """
    Rectangular mine-field that applies reveal/flag actions.

    Mines are not placed until the first ``open`` call, which keeps the 3x3
    block around the clicked cell free of mines. The board therefore moves
    through two states: uninitialized (blank cells, ``initialized=False``) and
    initialized (mines and neighbor counts fixed for the rest of the game).
    """

    def __init__(
        self,
        width: int,
        height: int,
        mine_count: int,
        seed: Optional[int] = None,
    ) -> None:
        """
        Create a blank board.

        Args:
            width: Number of columns, must be > 0.
            height: Number of rows, must be > 0.
            mine_count: Mines to place on the first open, must leave room for a
                mine-free 3x3 safe zone (mine_count <= width * height - 9).
            seed: Optional seed for mine placement, for reproducible games.

        Raises:
            ValueError: If the dimensions or the mine count are invalid.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if mine_count < 0:
            raise ValueError("mine_count must be non-negative.")
        if mine_count > width * height - 9:
            raise ValueError(
                "mine_count must leave room for a 3x3 safe zone around the first click."
            )

        self._reset(width, height, mine_count, seed)

    def _reset(
        self, width: int, height: int, mine_count: int, seed: Optional[int]
    ) -> None:
        self.width: int = width
        self.height: int = height
        self.mine_count: int = mine_count
        self.cells: List[List[Cell]] = [
            [Cell() for _ in range(width)] for _ in range(height)
        ]
        self.initialized: bool = False
        self.game_over: bool = False

        self._rng = random.Random(seed)
        self._neighborhoods: Dict[Coord, Tuple[Coord, ...]] = get_neighborhoods(
            width, height
        )

    @classmethod
    def from_layout(cls, rows: Sequence[str]) -> "Board":
        """
        Build an initialized board from an explicit mine layout.

        Each string is one row; ``*`` or ``M`` marks a mine, any other
        character a safe cell. The first-click safe zone does not apply, so
        tiny or dense layouts are accepted.

        Raises:
            ValueError: If the layout is empty or not rectangular.
        """
        if not rows or not rows[0]:
            raise ValueError("Layout must have at least one row and one column.")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("Layout rows must all have the same length.")

        height = len(rows)
        mines = {
            (x, y)
            for y, row in enumerate(rows)
            for x, ch in enumerate(row)
            if ch in MINE_CHARS
        }

        board = cls.__new__(cls)
        board._reset(width, height, len(mines), None)
        board._set_mines(mines)
        return board

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return in_bounds(x, y, self.width, self.height)

    def neighbors(self, x: int, y: int) -> Tuple[Coord, ...]:
        """Return the precomputed 8-neighborhood of (x, y), row-major."""
        return self._neighborhoods[(x, y)]

    def cell(self, x: int, y: int) -> Cell:
        return self.cells[y][x]

    def revealed_count(self) -> int:
        return sum(1 for row in self.cells for c in row if c.is_revealed)

    def flag_count(self) -> int:
        """Number of flagged cells."""
        return sum(1 for row in self.cells for c in row if c.is_flagged)

    def mines_remaining(self) -> int:
        """Mines not yet accounted for by a flag (can go negative)."""
        return self.mine_count - self.flag_count()

    def hidden_cells(self) -> List[Coord]:
        """Hidden, unflagged cells in row-major order."""
        return [
            (x, y)
            for x, y in row_major(self.width, self.height)
            if not self.cells[y][x].is_revealed and not self.cells[y][x].is_flagged
        ]

    def mine_positions(self) -> Set[Coord]:
        return {
            (x, y)
            for x, y in row_major(self.width, self.height)
            if self.cells[y][x].is_mine
        }

    def check_clear(self) -> bool:
        """True iff exactly mine_count cells remain unrevealed. Flags are ignored."""
        return self.width * self.height - self.revealed_count() == self.mine_count

    # -------------------------------------------------------------------------
    # Mine placement
    # -------------------------------------------------------------------------

    def _set_mines(self, mines: Set[Coord]) -> None:
        for mx, my in mines:
            self.cells[my][mx].is_mine = True

        for x, y in row_major(self.width, self.height):
            cell = self.cells[y][x]
            if cell.is_mine:
                continue
            cell.neighbor_count = sum(
                1 for nx, ny in self.neighbors(x, y) if self.cells[ny][nx].is_mine
            )

        self.initialized = True

    def place_mines(self, first_x: int, first_y: int) -> None:
        """
        Place the mines, keeping (first_x, first_y) and its neighbors free.

        Raises:
            ValueError: If the board is already initialized.
        """
        if self.initialized:
            raise ValueError("Mines have already been placed.")

        safe: Set[Coord] = set(self.neighbors(first_x, first_y)) | {(first_x, first_y)}
        eligible: List[Coord] = [
            (x, y) for x, y in row_major(self.width, self.height) if (x, y) not in safe
        ]

        # Sampling without replacement never retries, even at width*height - 9.
        self._set_mines(set(self._rng.sample(eligible, self.mine_count)))
        logger.debug(
            "Placed %d mines on %dx%d board, safe zone around (%d, %d)",
            self.mine_count, self.width, self.height, first_x, first_y,
        )

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def open(self, x: int, y: int) -> bool:
        """
        Reveal (x, y) and flood-fill through zero cells.

        Returns:
            False if a mine was revealed (the game is lost), True otherwise.
            Out-of-range, revealed and flagged targets are no-ops returning True.
        """
        if not self.in_bounds(x, y):
            return True

        if not self.initialized:
            self.place_mines(x, y)

        cell = self.cells[y][x]
        if cell.is_revealed or cell.is_flagged:
            return True

        cell.is_revealed = True
        if cell.is_mine:
            self.game_over = True
            return False

        if cell.neighbor_count == 0:
            self._flood_fill(x, y)
        return True

    def _flood_fill(self, x: int, y: int) -> None:
        frontier: Deque[Coord] = deque(self.neighbors(x, y))

        while frontier:
            cx, cy = frontier.popleft()
            cur = self.cells[cy][cx]
            if cur.is_revealed or cur.is_flagged:
                continue

            # Zero cells have no mine neighbors, so the fill never reaches a mine.
            cur.is_revealed = True
            if cur.neighbor_count == 0:
                for nx, ny in self.neighbors(cx, cy):
                    nbr = self.cells[ny][nx]
                    if not nbr.is_revealed and not nbr.is_flagged:
                        frontier.append((nx, ny))

    def toggle_flag(self, x: int, y: int) -> None:
        """Flip the flag on a hidden cell. Out-of-range and revealed cells are ignored."""
        if not self.in_bounds(x, y):
            return
        cell = self.cells[y][x]
        if cell.is_revealed:
            return
        cell.is_flagged = not cell.is_flagged

    # -------------------------------------------------------------------------
    # Display methods
    # -------------------------------------------------------------------------

    def format_board(self, reveal_all: bool = False) -> str:
        """
        Render the board as text.

        Hidden cells are ``-``, flags ``F``, revealed zeros ``.``, mines ``*``
        (only once revealed, or everywhere when ``reveal_all`` is set).
        """

        def cell_str(c: Cell) -> str:
            if c.is_revealed or reveal_all:
                if c.is_mine:
                    return "*"
                return "." if c.neighbor_count == 0 else str(c.neighbor_count)
            return "F" if c.is_flagged else "-"

        header = " ".join(f"{x:2d}" for x in range(self.width))
        out = ["    " + header, "    " + "-" * (3 * self.width - 1)]
        for y, row in enumerate(self.cells):
            out.append(f"{y:2d} |" + " ".join(f" {cell_str(c)}" for c in row))
        return "\n".join(out)


def play_cli(board: Board, solver: Optional["Solver"] = None) -> None:
    """
    Run a terminal loop on ``board``.

    Commands: ``x y`` opens a cell, ``f x y`` toggles a flag, ``h`` prints the
    solver's suggestion (when a solver is given), ``q`` quits.
    """
    print("Minesweeper CLI. 'x y' opens, 'f x y' flags, 'h' hints, 'q' quits.\n")
    print(board.format_board())

    while True:
        s = input("\nMove: ").strip().lower()
        if s in {"q", "quit", "exit"}:
            print("Quit.")
            return

        if s == "h":
            if solver is None:
                print("No solver attached.")
                continue
            move = solver.next_move()
            if move is None:
                print("No move available.")
            else:
                print(
                    f"{move.kind} ({move.x}, {move.y}) via {move.strategy}, "
                    f"confidence {move.confidence:.2f}"
                )
            continue

        parts = s.replace(",", " ").split()
        flag = bool(parts) and parts[0] == "f"
        if flag:
            parts = parts[1:]
        if len(parts) != 2:
            print("Invalid input. Example: 3 5  or  f 3 5")
            continue

        try:
            x = int(parts[0])
            y = int(parts[1])
        except ValueError:
            print("Invalid input. Coordinates must be integers.")
            continue

        if flag:
            board.toggle_flag(x, y)
            alive = True
        else:
            alive = board.open(x, y)

        print()
        print(board.format_board())

        if not alive:
            print("\nYou hit a mine. You lost.")
            print(board.format_board(reveal_all=True))
            return

        if board.check_clear():
            print("\nAll safe cells revealed. You won!")
            return
