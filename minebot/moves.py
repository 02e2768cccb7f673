"""Move values and the interface shared by every deduction stage."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .utils import Coord

if TYPE_CHECKING:
    from .board import Board

# Move kinds
OPEN = "open"
FLAG = "flag"

# Strategy tags, in hybrid priority order
STRATEGY_LOGIC = "logic"
STRATEGY_SUBSET = "subset"
STRATEGY_TANK = "tank"
STRATEGY_TANK_GUESS = "tank_guess"
STRATEGY_AI = "ai"
STRATEGY_PURE_AI = "pure_ai"
STRATEGY_RANDOM = "random"

STRATEGIES = (
    STRATEGY_LOGIC,
    STRATEGY_SUBSET,
    STRATEGY_TANK,
    STRATEGY_TANK_GUESS,
    STRATEGY_AI,
    STRATEGY_PURE_AI,
    STRATEGY_RANDOM,
)


@dataclass(frozen=True)
class Move:
    """
    One action suggested by the solver.

    ``confidence`` is the claimed probability that the move is correct
    (1.0 for logically certain moves).
    """

    x: int
    y: int
    kind: str = OPEN
    is_guess: bool = False
    strategy: str = ""
    confidence: float = 1.0

    @property
    def cell(self) -> Coord:
        return self.x, self.y


class DeductionStage:
    """A step of the move-selection pipeline."""

    name = "stage"

    def try_find(self, board: "Board") -> Optional[Move]:
        """Return a move for ``board``, or None if this stage has nothing to offer."""
        raise NotImplementedError
