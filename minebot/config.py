"""Defaults and presets for the minebot engine."""

import os
from pathlib import Path
from typing import Dict, Tuple

# Segments with more unknowns than this are not enumerated (2**18 worst case).
DEFAULT_MAX_SEGMENT_SIZE = 18

# Environment variable pointing at an alternative estimator weights file.
WEIGHTS_ENV_VAR = "MINEBOT_WEIGHTS"

DEFAULT_WEIGHTS_PATH = Path(__file__).parent / "data" / "weights.json"

# name -> (width, height, mines)
LEVELS: Dict[str, Tuple[int, int, int]] = {
    "beginner": (9, 9, 10),
    "intermediate": (16, 16, 40),
    "expert": (30, 16, 99),
}


def weights_path_from_env() -> Path:
    """Return the estimator weights path, honouring MINEBOT_WEIGHTS when set."""
    override = os.getenv(WEIGHTS_ENV_VAR, "").strip()
    if override:
        return Path(override)
    return DEFAULT_WEIGHTS_PATH
