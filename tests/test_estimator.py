import json
import math

import numpy as np
import pytest

from minebot import Board, EstimatorWeights, NeuralEstimator, encode_window, load_weights
from minebot.config import WEIGHTS_ENV_VAR
from minebot.estimator import WEIGHT_KEYS

from conftest import board_from_picture


def zero_weights(out_bias=0.0, h1=3, h2=2):
    return {
        "fc1_weight": [[0.0] * 25 for _ in range(h1)],
        "fc1_bias": [0.0] * h1,
        "fc2_weight": [[0.0] * h1 for _ in range(h2)],
        "fc2_bias": [0.0] * h2,
        "fc3_weight": [[0.0] * h2],
        "fc3_bias": [out_bias],
    }


def sigmoid(z):
    return 1.0 / (1.0 + math.exp(-z))


def test_bundled_weights_load_with_expected_shapes():
    w = load_weights()
    assert w.fc1_weight.shape[1] == 25
    assert w.fc2_weight.shape[1] == w.fc1_weight.shape[0]
    assert w.fc3_weight.shape == (1, w.fc2_weight.shape[0])
    assert not w.fc1_weight.flags.writeable
    assert load_weights() is w


def test_predict_matches_manual_forward_pass():
    est = NeuralEstimator.from_file()
    w = est.weights
    rng = np.random.default_rng(0)
    for _ in range(5):
        x = rng.integers(-2, 10, size=25).astype(float)
        h1 = np.maximum(w.fc1_weight @ x + w.fc1_bias, 0)
        h2 = np.maximum(w.fc2_weight @ h1 + w.fc2_bias, 0)
        z = float((w.fc3_weight @ h2 + w.fc3_bias)[0])
        assert est.predict(x) == pytest.approx(sigmoid(z))


def test_bundled_weights_score_isolated_cell_lower_than_crowded_one():
    est = NeuralEstimator.from_file()
    isolated = [-1.0] * 25
    assert est.predict(isolated) == pytest.approx(sigmoid(-2.0))

    crowded = list(isolated)
    crowded[7] = 3.0  # the cell straight above the center
    assert est.predict(crowded) == pytest.approx(0.5)


def test_predict_is_deterministic_and_bounded():
    est = NeuralEstimator.from_file()
    windows = [
        [9.0] * 25,
        [-1.0] * 25,
        [-2.0] * 25,
        [8.0] * 25,
        [1e6] * 25,
        [-1e6] * 25,
    ]
    for window in windows:
        p = est.predict(window)
        assert 0.0 <= p <= 1.0
        assert est.predict(window) == p
        assert NeuralEstimator(load_weights()).predict(window) == p


def test_predict_rejects_wrong_window_size():
    est = NeuralEstimator(EstimatorWeights.from_dict(zero_weights()))
    with pytest.raises(ValueError):
        est.predict([0.0] * 24)


def test_zero_weights_predict_one_half():
    est = NeuralEstimator(EstimatorWeights.from_dict(zero_weights()))
    assert est.predict([5.0] * 25) == pytest.approx(0.5)


def test_encode_window_values():
    board = board_from_picture([
        "x1.",
        "*1.",
        "#1.",
    ])
    # Center on the top-left cell: two rows and two columns fall off the board.
    window = encode_window(board, 0, 0)
    assert window.shape == (25,)
    assert list(window[:12]) == [9.0] * 12
    assert window[12] == -2.0  # flagged center
    assert window[13] == 1.0
    assert window[14] == 0.0
    assert window[15] == 9.0
    assert window[17] == -1.0  # hidden mine below
    assert window[22] == -1.0  # hidden safe two rows down

    center = encode_window(board, 1, 1)
    assert center[6] == -2.0
    assert center[12] == 1.0
    assert center[11] == -1.0
    assert center[0] == 9.0


def test_predict_cell_uses_board_window():
    board = Board(6, 6, 4, seed=1)
    est = NeuralEstimator.from_file()
    assert est.predict_cell(board, 3, 3) == est.predict(encode_window(board, 3, 3))


def test_from_dict_missing_key():
    data = zero_weights()
    del data["fc2_bias"]
    with pytest.raises(ValueError):
        EstimatorWeights.from_dict(data)


@pytest.mark.parametrize("key", WEIGHT_KEYS)
def test_from_dict_bad_shape(key):
    data = zero_weights()
    value = np.array(data[key])
    data[key] = np.concatenate([value, value[:1]]).tolist()
    with pytest.raises(ValueError):
        EstimatorWeights.from_dict(data)


def test_load_weights_from_path_and_env(tmp_path, monkeypatch):
    path = tmp_path / "weights.json"
    path.write_text(json.dumps(zero_weights(out_bias=1.5)))

    w = load_weights(path)
    assert float(w.fc3_bias[0]) == 1.5

    monkeypatch.setenv(WEIGHTS_ENV_VAR, str(path))
    assert load_weights() is w


def test_load_weights_failures(tmp_path):
    with pytest.raises(OSError):
        load_weights(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ValueError):
        load_weights(broken)

    wrong = tmp_path / "list.json"
    wrong.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        load_weights(wrong)
