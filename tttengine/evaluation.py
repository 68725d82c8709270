## Linear board evaluator for the easy tier.
## The weights come from a logistic regression fitted offline (see training.py).

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .utils import EMPTY, Symbol, SymbolLike, as_grid


@dataclass(frozen=True, eq=False)
class LinearModel:
    weights: np.ndarray
    bias: float

    def __post_init__(self):
        ## Private read-only copy of the weights
        weights = np.array(self.weights, dtype=np.float64).reshape(-1)
        if weights.shape != (9,):
            raise ValueError(f"Expected 9 weights, got {weights.size}")
        weights.setflags(write=False)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "bias", float(self.bias))

    def score_features(self, features: np.ndarray) -> float:
        value = np.dot(self.weights, features) + self.bias
        return float(value)


## From training (hardcoded), row-major. Center carries the largest weight
DEFAULT_MODEL = LinearModel(
    weights=np.array([
        3.928391392624212, 3.6032407817955696, 4.011058129716569,
        3.6831967066011444, 4.313335296889612, 3.6169667100902494,
        3.9842838685550195, 3.669842436819702, 3.984526284468059,
    ]),
    bias=-1.6450287057758302,
)


def extract_features(board: Sequence[Sequence[SymbolLike]], symbol: SymbolLike = Symbol.X) -> np.ndarray:
    """
    +1 where ``symbol`` has a mark, -1 where the other symbol has one, 0 for empty cells.
    Row-major, length 9.
    """
    own = Symbol.parse(symbol).value
    grid = as_grid(board).reshape(-1)
    features = np.zeros(9, dtype=np.float64)
    features[grid == own] = 1.0
    features[(grid != own) & (grid != EMPTY)] = -1.0
    return features


def mask_features(own_mask: int, opp_mask: int) -> np.ndarray:
    features = np.zeros(9, dtype=np.float64)
    for idx in range(9):
        bit = 1 << idx
        if own_mask & bit:
            features[idx] = 1.0
        elif opp_mask & bit:
            features[idx] = -1.0
    return features


class LinearEvaluator:
    def __init__(self, model: LinearModel = DEFAULT_MODEL, symbol: SymbolLike = Symbol.X):
        self.model = model
        self.symbol = Symbol.parse(symbol)

    def evaluateBoard(self, board: Sequence[Sequence[SymbolLike]]) -> float:
        """
        Evaluates the board using the formula sum(feature_i * weight_i) + bias,
        from the point of view of self.symbol.
        """
        return self.model.score_features(extract_features(board, self.symbol))

    def evaluateMasks(self, own_mask: int, opp_mask: int) -> float:
        return self.model.score_features(mask_features(own_mask, opp_mask))

    def probability(self, board: Sequence[Sequence[SymbolLike]]) -> float:
        ## Sigmoid of the raw score, diagnostics only
        value = self.evaluateBoard(board)
        return float(1 / (1 + np.exp(-value)))
