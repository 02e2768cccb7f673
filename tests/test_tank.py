import pytest

from minebot import FLAG, OPEN, Board, Move, SegmentSolver, Solver
from minebot.tank import Rule, Segment, build_segments, find_frontier

from conftest import assert_move_sound, board_from_picture


def one_by_three():
    board = Board.from_layout(["*.."])
    board.open(1, 0)
    return board


def test_single_number_with_two_hidden_cells():
    board = one_by_three()
    segments = build_segments(board)
    assert len(segments) == 1
    seg = segments[0]
    assert seg.unknowns == [(0, 0), (2, 0)]
    assert seg.rules == [Rule(cell_indices=[0, 1], required_mines=1)]

    solver = SegmentSolver(board)
    assert solver.count_solutions(seg) == (2, [1, 1])
    assert solver.probabilities() == {(0, 0): 0.5, (2, 0): 0.5}
    assert solver.find_move() == Move(0, 0, OPEN, True, "tank_guess", 0.5)


def test_hybrid_falls_through_to_tank_guess():
    board = one_by_three()
    solver = Solver(board, load_estimator=False)
    assert solver.next_move() == Move(0, 0, OPEN, True, "tank_guess", 0.5)
    assert solver.guess_count == 1


def test_one_two_one_pattern_is_fully_determined():
    board = board_from_picture([
        "*#*",
        "121",
    ])
    solver = SegmentSolver(board)
    assert solver.probabilities() == {(0, 0): 1.0, (1, 0): 0.0, (2, 0): 1.0}

    move = solver.find_move()
    assert move == Move(0, 0, FLAG, False, "tank", 1.0)
    assert_move_sound(board, move)


@pytest.mark.parametrize(
    "rules,expected",
    [
        ([Rule([0, 1, 2], 1)], (3, [1, 1, 1])),
        ([Rule([0, 1, 2], 0)], (1, [0, 0, 0])),
        ([Rule([0, 1, 2], 3)], (1, [1, 1, 1])),
        ([Rule([0, 1], 1), Rule([1, 2], 1)], (2, [1, 1, 1])),
        ([Rule([0, 1], 2), Rule([1, 2], 1)], (1, [1, 1, 0])),
        ([Rule([0], 1), Rule([0], 0)], (0, [0, 0, 0])),
        ([Rule([0, 1], 3)], (0, [0, 0, 0])),
    ],
)
def test_count_solutions(rules, expected):
    seg = Segment(unknowns=[(0, 0), (1, 0), (2, 0)], rules=rules)
    solver = SegmentSolver(Board(4, 4, 1))
    assert solver.count_solutions(seg) == expected


def test_independent_groups_become_separate_segments():
    board = board_from_picture(["*1.1*"])
    segments = build_segments(board)
    assert [s.unknowns for s in segments] == [[(0, 0)], [(4, 0)]]
    assert all(s.rules == [Rule([0], 1)] for s in segments)

    move = SegmentSolver(board).find_move()
    assert move == Move(0, 0, FLAG, False, "tank", 1.0)


def test_guess_is_lowest_probability_over_all_segments():
    board = board_from_picture([
        "*1.#*#",
        "#1.#1#",
    ])
    solver = SegmentSolver(board)
    probs = solver.probabilities()
    assert probs[(0, 0)] == pytest.approx(0.5)
    assert probs[(3, 0)] == pytest.approx(0.2)

    move = solver.find_move()
    assert move.cell == (3, 0)
    assert move.kind == OPEN
    assert move.is_guess
    assert move.strategy == "tank_guess"
    assert move.confidence == pytest.approx(0.8)


def test_satisfied_numbers_are_not_active():
    board = board_from_picture(["F1#"])
    frontier, active = find_frontier(board)
    assert frontier == []
    assert active == []
    assert build_segments(board) == []
    assert SegmentSolver(board).find_move() is None


def test_oversized_segments_are_skipped():
    board = one_by_three()
    solver = SegmentSolver(board, max_segment_size=1)
    assert solver.probabilities() == {}
    assert solver.find_move() is None

    hybrid = Solver(board, load_estimator=False, max_segment_size=1, seed=0)
    move = hybrid.next_move()
    assert move.strategy == "random"
    assert move.confidence == 0.0


def test_invalid_segment_limit():
    board = one_by_three()
    with pytest.raises(ValueError):
        SegmentSolver(board, max_segment_size=0)
    with pytest.raises(ValueError):
        Solver(board, load_estimator=False, max_segment_size=-1)


@pytest.mark.parametrize("seed", range(6))
def test_segments_partition_the_frontier(seed):
    board = Board(16, 16, 40, seed=seed)
    board.open(8, 8)
    frontier, active = find_frontier(board)
    segments = build_segments(board)

    cells = [p for seg in segments for p in seg.unknowns]
    assert sorted(cells) == sorted(frontier)
    assert len(cells) == len(set(cells))
    assert frontier == sorted(frontier, key=lambda p: (p[1], p[0]))

    owner = {p: i for i, seg in enumerate(segments) for p in seg.unknowns}
    for _, required, hidden in active:
        assert len({owner[p] for p in hidden}) == 1
        assert 0 < required <= len(hidden)

    assert sum(len(seg.rules) for seg in segments) == len(active)
    for seg in segments:
        for rule in seg.rules:
            assert all(0 <= i < len(seg.unknowns) for i in rule.cell_indices)


def mine_strip(length):
    """Hidden strip of alternating mines above a fully revealed row of numbers."""
    board = Board.from_layout([
        "".join("*" if x % 2 == 0 else "." for x in range(length)),
        "." * length,
    ])
    for cell in board.cells[1]:
        cell.is_revealed = True
    return board


def test_default_cutoff_is_eighteen_unknowns():
    solved = mine_strip(18)
    segments = build_segments(solved)
    assert [len(s.unknowns) for s in segments] == [18]
    probs = SegmentSolver(solved).probabilities()
    assert len(probs) == 18
    assert probs[(0, 0)] == 1.0
    assert probs[(1, 0)] == 0.0

    skipped = mine_strip(19)
    assert [len(s.unknowns) for s in build_segments(skipped)] == [19]
    assert SegmentSolver(skipped).probabilities() == {}
    assert SegmentSolver(skipped).find_move() is None
