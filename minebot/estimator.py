"""Feed-forward mine-probability estimator over a 5x5 window."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence, Union

import numpy as np

from .config import weights_path_from_env

if TYPE_CHECKING:
    from .board import Board

logger = logging.getLogger(__name__)

WINDOW_RADIUS = 2
WINDOW_SIZE = (2 * WINDOW_RADIUS + 1) ** 2

# Window encoding of non-numbered cells.
OUT_OF_BOUNDS = 9.0
HIDDEN_FLAGGED = -2.0
HIDDEN = -1.0

WEIGHT_KEYS = (
    "fc1_weight",
    "fc1_bias",
    "fc2_weight",
    "fc2_bias",
    "fc3_weight",
    "fc3_bias",
)

# resolved path -> weights
_WEIGHTS_CACHE: Dict[str, "EstimatorWeights"] = {}


@dataclass(frozen=True)
class EstimatorWeights:
    """Parameters of the 25 -> h1 -> h2 -> 1 network, as read-only arrays."""

    fc1_weight: np.ndarray
    fc1_bias: np.ndarray
    fc2_weight: np.ndarray
    fc2_bias: np.ndarray
    fc3_weight: np.ndarray
    fc3_bias: np.ndarray

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EstimatorWeights":
        """
        Build weights from the JSON structure (row-major nested lists).

        Raises:
            ValueError: If a key is missing or the layer shapes do not chain.
        """
        missing = [k for k in WEIGHT_KEYS if k not in data]
        if missing:
            raise ValueError(f"Missing estimator weight keys: {missing}")

        arrays = {}
        for key in WEIGHT_KEYS:
            arr = np.array(data[key], dtype=np.float64)
            arr.setflags(write=False)
            arrays[key] = arr

        w1, b1 = arrays["fc1_weight"], arrays["fc1_bias"]
        w2, b2 = arrays["fc2_weight"], arrays["fc2_bias"]
        w3, b3 = arrays["fc3_weight"], arrays["fc3_bias"]

        if w1.ndim != 2 or w1.shape[1] != WINDOW_SIZE:
            raise ValueError(f"fc1_weight must have shape (h1, {WINDOW_SIZE}).")
        if w2.ndim != 2 or w2.shape[1] != w1.shape[0]:
            raise ValueError("fc2_weight columns must match fc1_weight rows.")
        if w3.ndim != 2 or w3.shape != (1, w2.shape[0]):
            raise ValueError("fc3_weight must have shape (1, h2).")
        for w, b, name in ((w1, b1, "fc1"), (w2, b2, "fc2"), (w3, b3, "fc3")):
            if b.shape != (w.shape[0],):
                raise ValueError(f"{name}_bias length must match {name}_weight rows.")

        return cls(**arrays)


def load_weights(path: Optional[Union[str, Path]] = None) -> EstimatorWeights:
    """
    Load estimator weights from a JSON file, once per path.

    Args:
        path: Weights file. Defaults to $MINEBOT_WEIGHTS or the bundled blob.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or the shapes are wrong.
    """
    resolved = Path(path) if path is not None else weights_path_from_env()
    key = str(resolved.resolve())

    cached = _WEIGHTS_CACHE.get(key)
    if cached is not None:
        return cached

    with open(resolved, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Estimator weights must be a JSON object.")

    weights = EstimatorWeights.from_dict(data)
    _WEIGHTS_CACHE[key] = weights
    logger.debug(
        "Loaded estimator weights from %s (hidden sizes %d, %d)",
        resolved, weights.fc1_weight.shape[0], weights.fc2_weight.shape[0],
    )
    return weights


def _sigmoid(z: float) -> float:
    # Split on sign so exp() never overflows.
    if z >= 0:
        return 1.0 / (1.0 + np.exp(-z))
    ez = np.exp(z)
    return ez / (1.0 + ez)


class NeuralEstimator:
    """Inference-only wrapper around a fixed set of EstimatorWeights."""

    def __init__(self, weights: EstimatorWeights) -> None:
        self.weights = weights

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None) -> "NeuralEstimator":
        return cls(load_weights(path))

    def predict(self, window: Sequence[float]) -> float:
        """
        Return the estimated probability that the window's center is a mine.

        Args:
            window: 25 encoded values, see encode_window().

        Raises:
            ValueError: If the window does not hold exactly 25 values.
        """
        x = np.asarray(window, dtype=np.float64)
        if x.shape != (WINDOW_SIZE,):
            raise ValueError(f"Estimator input must hold {WINDOW_SIZE} values.")

        w = self.weights
        h1 = np.maximum(w.fc1_weight @ x + w.fc1_bias, 0.0)
        h2 = np.maximum(w.fc2_weight @ h1 + w.fc2_bias, 0.0)
        out = w.fc3_weight @ h2 + w.fc3_bias
        return float(_sigmoid(float(out[0])))

    def predict_cell(self, board: "Board", x: int, y: int) -> float:
        return self.predict(encode_window(board, x, y))


def encode_window(board: "Board", tx: int, ty: int) -> np.ndarray:
    """
    Encode the 5x5 window centered on (tx, ty), row-major.

    Out-of-board cells are 9, hidden flagged cells -2, hidden unflagged cells
    -1, revealed cells their neighbor count.
    """
    values = np.empty(WINDOW_SIZE, dtype=np.float64)
    idx = 0
    for dy in range(-WINDOW_RADIUS, WINDOW_RADIUS + 1):
        for dx in range(-WINDOW_RADIUS, WINDOW_RADIUS + 1):
            nx, ny = tx + dx, ty + dy
            if not board.in_bounds(nx, ny):
                values[idx] = OUT_OF_BOUNDS
            else:
                cell = board.cells[ny][nx]
                if cell.is_revealed:
                    values[idx] = cell.neighbor_count
                elif cell.is_flagged:
                    values[idx] = HIDDEN_FLAGGED
                else:
                    values[idx] = HIDDEN
            idx += 1
    return values
