"""Grid helpers shared by the board, the solver stages and the estimator."""

from typing import Dict, Iterator, List, Tuple

Coord = Tuple[int, int]

# (width, height) -> {(x, y): ((nx, ny), ...)}
_NEIGHBORHOODS_CACHE: Dict[Tuple[int, int], Dict[Coord, Tuple[Coord, ...]]] = {}


def in_bounds(x: int, y: int, width: int, height: int) -> bool:
    """Return True if (x, y) lies on a width x height grid."""
    return 0 <= x < width and 0 <= y < height


def row_major(width: int, height: int) -> Iterator[Coord]:
    """Yield every (x, y) of the grid, row by row."""
    for y in range(height):
        for x in range(width):
            yield x, y


def get_neighborhoods(width: int, height: int) -> Dict[Coord, Tuple[Coord, ...]]:
    """
    Build (once per grid size) the 8-connected neighbors of every cell.

    Neighbors are listed row-major (dy outer, dx inner), which is the scan
    order the deduction stages rely on when they report "the first" cell.

    Raises:
        ValueError: If width or height is non-positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")

    key = (width, height)
    cached = _NEIGHBORHOODS_CACHE.get(key)
    if cached is not None:
        return cached

    neighborhoods: Dict[Coord, Tuple[Coord, ...]] = {}
    for x, y in row_major(width, height):
        nbrs: List[Coord] = []
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                if in_bounds(x + dx, y + dy, width, height):
                    nbrs.append((x + dx, y + dy))
        neighborhoods[(x, y)] = tuple(nbrs)

    _NEIGHBORHOODS_CACHE[key] = neighborhoods
    return neighborhoods
