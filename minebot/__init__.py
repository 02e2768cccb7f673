"""
Minesweeper move-decision engine

A layered bot that picks the next move on a Minesweeper board:
- Logic: single-number safe/mine rules
- Subset: pairwise subset elimination between neighboring numbers
- Tank: exact enumeration over independent frontier segments
- Estimator: small feed-forward network scoring hidden cells
- Random: uniform choice when nothing else applies
"""

from .board import Board, Cell, play_cli
from .estimator import EstimatorWeights, NeuralEstimator, encode_window, load_weights
from .moves import FLAG, OPEN, DeductionStage, Move
from .solver import (
    HYBRID,
    PURE_AI,
    EstimatorStage,
    LogicStage,
    RandomStage,
    Solver,
    SubsetStage,
)
from .tank import Rule, Segment, SegmentSolver, TankStage, build_segments
from .analysis import (
    play_game,
    run_bot_single_game,
    run_bot_many_games,
    run_bot_level_analysis,
    summarize_strategy_mix,
)

__version__ = "1.0.0"

__all__ = [
    # Core classes
    "Board",
    "Cell",
    "Move",
    "Solver",
    "NeuralEstimator",
    "EstimatorWeights",
    # Stages
    "DeductionStage",
    "LogicStage",
    "SubsetStage",
    "TankStage",
    "EstimatorStage",
    "RandomStage",
    # Tank internals
    "Segment",
    "Rule",
    "SegmentSolver",
    "build_segments",
    # Helpers and constants
    "encode_window",
    "load_weights",
    "OPEN",
    "FLAG",
    "HYBRID",
    "PURE_AI",
    # CLI
    "play_cli",
    # Analysis functions
    "play_game",
    "run_bot_single_game",
    "run_bot_many_games",
    "run_bot_level_analysis",
    "summarize_strategy_mix",
]
