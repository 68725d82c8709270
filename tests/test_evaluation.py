import numpy as np
import pytest

from tttengine.evaluation import DEFAULT_MODEL, LinearEvaluator, LinearModel, extract_features, mask_features
from tttengine.utils import board_to_masks

BIAS = -1.6450287057758302


class TestFeatures:
    def test_own_marks_positive(self, blocking_board):
        features = extract_features(blocking_board, "X")
        assert features.tolist() == [1, 1, 0, 0, -1, 0, 0, 0, 0]

    def test_symbol_flips_sign(self, blocking_board):
        assert np.array_equal(extract_features(blocking_board, "O"), -extract_features(blocking_board, "X"))

    def test_masks_match_grid(self, drawn_board):
        maskX, maskO = board_to_masks(drawn_board)
        assert np.array_equal(mask_features(maskX, maskO), extract_features(drawn_board, "X"))


class TestLinearEvaluator:
    def test_empty_board_scores_bias(self, empty_board):
        assert LinearEvaluator().evaluateBoard(empty_board) == pytest.approx(BIAS)

    def test_dot_product(self, blocking_board):
        w = DEFAULT_MODEL.weights
        expected = w[0] + w[1] - w[4] + BIAS
        assert LinearEvaluator().evaluateBoard(blocking_board) == pytest.approx(expected)
        assert LinearEvaluator().evaluateMasks(*board_to_masks(blocking_board)) == pytest.approx(expected)

    def test_swapping_symbols_negates_pre_bias_score(self, blocking_board, drawn_board):
        """Exchanging every X and O flips the sign of everything but the bias."""
        swap = {"X": "O", "O": "X", " ": " "}
        evaluator = LinearEvaluator()
        for board in (blocking_board, drawn_board):
            swapped = [[swap[cell] for cell in row] for row in board]
            original = evaluator.evaluateBoard(board) - BIAS
            assert evaluator.evaluateBoard(swapped) - BIAS == pytest.approx(-original)

    def test_center_is_heaviest(self):
        assert int(np.argmax(DEFAULT_MODEL.weights)) == 4

    def test_probability_is_sigmoid(self, empty_board):
        assert LinearEvaluator().probability(empty_board) == pytest.approx(1 / (1 + np.exp(-BIAS)))

    def test_custom_model(self, blocking_board):
        model = LinearModel(weights=np.ones(9), bias=0.5)
        assert LinearEvaluator(model, "O").evaluateBoard(blocking_board) == pytest.approx(-1 - 1 + 1 + 0.5)

    def test_default_weights_are_read_only(self, empty_board):
        with pytest.raises(ValueError):
            DEFAULT_MODEL.weights[4] = -100.0
        with pytest.raises(ValueError):
            LinearEvaluator().model.weights[4] = -100.0
        assert DEFAULT_MODEL.weights[4] == pytest.approx(4.313335296889612)

    def test_model_copies_caller_weights(self, empty_board):
        """Changing the source array afterwards does not reach the model."""
        source = np.ones(9)
        model = LinearModel(weights=source, bias=0.0)
        source[0] = 50.0
        assert model.weights[0] == 1.0
        assert LinearEvaluator(model).evaluateBoard(empty_board) == 0.0

    def test_wrong_weight_count(self):
        with pytest.raises(ValueError):
            LinearModel(weights=np.ones(8), bias=0.0)
