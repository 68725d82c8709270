"""Shared fixtures for the engine tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def empty_board():
    return [[" "] * 3 for _ in range(3)]


@pytest.fixture
def blocking_board():
    ## X threatens the top row, O must take (0, 2)
    return [["X", "X", " "], [" ", "O", " "], [" ", " ", " "]]


@pytest.fixture
def drawn_board():
    return [["X", "O", "X"], ["X", "O", "O"], ["O", "X", "X"]]


@pytest.fixture
def won_full_board():
    return [["X", "X", "X"], ["O", "O", "X"], ["X", "O", "O"]]
