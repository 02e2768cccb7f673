import itertools
from typing import Iterator, List, Sequence, Set, Tuple

from minebot import Board, Move, OPEN

# Picture legend:
#   *  hidden mine        F  flagged mine
#   #  hidden safe        x  flagged safe cell (wrong flag)
#   .  revealed zero      1-8 revealed number (checked against the layout)
MINES = "*F"
FLAGS = "Fx"
REVEALED = ".012345678"


def board_from_picture(rows: Sequence[str]) -> Board:
    board = Board.from_layout(
        ["".join("*" if ch in MINES else "." for ch in row) for row in rows]
    )
    for y, row in enumerate(rows):
        for x, ch in enumerate(row):
            cell = board.cells[y][x]
            if ch in REVEALED:
                cell.is_revealed = True
                expected = 0 if ch == "." else int(ch)
                assert cell.neighbor_count == expected, f"bad picture digit at {(x, y)}"
            elif ch in FLAGS:
                cell.is_flagged = True
    return board


def consistent_layouts(board: Board) -> Iterator[Set[Tuple[int, int]]]:
    """Yield every mine set over hidden cells that satisfies all revealed numbers.

    Flagged cells are taken to be mines.
    """
    flagged = {(x, y) for y, row in enumerate(board.cells) for x, c in enumerate(row) if c.is_flagged}
    free: List[Tuple[int, int]] = board.hidden_cells()
    numbers = [
        (x, y, c.neighbor_count)
        for y, row in enumerate(board.cells)
        for x, c in enumerate(row)
        if c.is_revealed and not c.is_mine
    ]
    for bits in itertools.product((False, True), repeat=len(free)):
        mines = flagged | {p for p, b in zip(free, bits) if b}
        if all(
            sum(1 for n in board.neighbors(x, y) if n in mines) == count
            for x, y, count in numbers
        ):
            yield mines


def assert_move_sound(board: Board, move: Move) -> None:
    layouts = list(consistent_layouts(board))
    assert layouts, "picture has no consistent layout"
    for mines in layouts:
        if move.kind == OPEN:
            assert move.cell not in mines
        else:
            assert move.cell in mines
