## Offline training for the linear evaluator.
## Random self-play generates labelled positions, a one-layer torch model is fitted on them,
## and the learnt weights/bias are exported as a LinearModel.

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim
from sklearn.metrics import accuracy_score
from sklearn.model_selection import train_test_split

from .evaluation import LinearModel, mask_features
from .utils import board_status, empty_cells

logger = logging.getLogger(__name__)


def generate_dataset(num_games: int, rng: Optional[np.random.Generator] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Plays ``num_games`` uniformly random games starting from the empty board with X first.

    Every position seen along the way (empty board included, final position included) becomes
    one sample: the X-perspective features, labelled 1.0 if X went on to win that game.
    """
    if num_games < 1:
        raise ValueError(f"num_games must be positive, got {num_games}")
    rng = rng if rng is not None else np.random.default_rng()

    features = []
    labels = []
    for _ in range(num_games):
        maskX = 0
        maskO = 0
        xToMove = True
        positions = [mask_features(maskX, maskO)]

        while board_status(maskX, maskO) is None:
            cells = empty_cells(maskX | maskO)
            bit = 1 << cells[int(rng.integers(0, len(cells)))]
            if xToMove:
                maskX |= bit
            else:
                maskO |= bit
            xToMove = not xToMove
            positions.append(mask_features(maskX, maskO))

        label = 1.0 if board_status(maskX, maskO) == "X" else 0.0
        features.extend(positions)
        labels.extend([label] * len(positions))

    return np.array(features, dtype=np.float32), np.array(labels, dtype=np.float32)


###### Regression Model ######
class LogisticRegressionModel(nn.Module):
    def __init__(self, input_dim: int = 9):
        super().__init__()
        self.linear = nn.Linear(input_dim, 1) ## Output 1 logit

    def forward(self, x):
        return self.linear(x)


@dataclass
class TrainingResult:
    model: LinearModel
    train_accuracy: float
    test_accuracy: float
    final_loss: float


def _accuracy(network: LogisticRegressionModel, X: torch.Tensor, y: np.ndarray) -> float:
    if len(y) == 0:
        return float("nan")
    with torch.no_grad():
        predicted = (network(X).squeeze(1) > 0).numpy().astype(np.float32)
    return float(accuracy_score(y, predicted))


def trainModel(features: np.ndarray, labels: np.ndarray, epochs: int = 2000, lr: float = 0.01,
               weight_decay: float = 1e-3, test_size: float = 0.2, seed: int = 0) -> TrainingResult:
    """
    Fits the logistic regression on the 9 cell features and returns the learnt parameters.
    """
    features = np.asarray(features, dtype=np.float32)
    labels = np.asarray(labels, dtype=np.float32).reshape(-1)
    if features.ndim != 2 or features.shape[1] != 9:
        raise ValueError(f"Expected features of shape (N, 9), got {features.shape}")
    if len(features) != len(labels):
        raise ValueError("features and labels must have the same length")

    torch.manual_seed(seed)
    X_train, X_test, y_train, y_test = train_test_split(features, labels, test_size=test_size, random_state=seed)

    Xtensor = torch.tensor(X_train)
    ytensor = torch.tensor(y_train).reshape(-1, 1)

    network = LogisticRegressionModel(input_dim=9)
    criterion = nn.BCEWithLogitsLoss()
    optimizer = optim.Adam(network.parameters(), lr=lr, weight_decay=weight_decay)

    loss = None
    for epoch in range(epochs):
        network.train()
        optimizer.zero_grad() ## Clear gradients from the previous iteration
        outputs = network(Xtensor)
        loss = criterion(outputs, ytensor)
        loss.backward()
        optimizer.step()

        if (epoch + 1) % 100 == 0:
            logger.info("Epoch [%d / %d], Loss: %.4f", epoch + 1, epochs, loss.item())

    network.eval()
    trainAccuracy = _accuracy(network, Xtensor, y_train)
    testAccuracy = _accuracy(network, torch.tensor(X_test), y_test)

    weights = network.linear.weight.data.numpy().reshape(-1).astype(np.float64)
    bias = float(network.linear.bias.data.numpy()[0])
    logger.info("Final weights %s, bias %.6f (train acc %.3f, test acc %.3f)",
                np.round(weights, 4).tolist(), bias, trainAccuracy, testAccuracy)

    return TrainingResult(
        model=LinearModel(weights=weights, bias=bias),
        train_accuracy=trainAccuracy,
        test_accuracy=testAccuracy,
        final_loss=float(loss.item()) if loss is not None else float("nan"),
    )


def save_model(model: LinearModel, path: Union[str, Path]) -> None:
    payload = {"weights": [float(w) for w in model.weights], "bias": model.bias}
    Path(path).write_text(json.dumps(payload, indent=2), encoding="utf-8")


def load_model(path: Union[str, Path]) -> LinearModel:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict) or "weights" not in raw or "bias" not in raw:
        raise ValueError(f"{path} does not contain weights and bias")
    if len(raw["weights"]) != 9:
        raise ValueError(f"Expected 9 weights in {path}, got {len(raw['weights'])}")
    return LinearModel(weights=np.array(raw["weights"], dtype=np.float64), bias=float(raw["bias"]))
