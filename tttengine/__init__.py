"""Tic-tac-toe move engine: bitboard minimax with tiered difficulty."""

from .agents import (Decision, ModelAgent, PerfectAgent, ShallowAgent, Tier, TierConfig, choose_move,
                     make_agent)
from .errors import EngineError, InvalidBoardError
from .evaluation import DEFAULT_MODEL, LinearEvaluator, LinearModel
from .search import EXHAUSTIVE_POLICY, PERFECT_POLICY, SHALLOW_POLICY, SearchPolicy, SearchStats, minimax
from .utils import NO_MOVE, Move, Symbol, board_to_masks, masks_to_board

__all__ = [
    "DEFAULT_MODEL",
    "Decision",
    "EXHAUSTIVE_POLICY",
    "EngineError",
    "InvalidBoardError",
    "LinearEvaluator",
    "LinearModel",
    "ModelAgent",
    "Move",
    "NO_MOVE",
    "PERFECT_POLICY",
    "PerfectAgent",
    "SHALLOW_POLICY",
    "SearchPolicy",
    "SearchStats",
    "ShallowAgent",
    "Symbol",
    "Tier",
    "TierConfig",
    "board_to_masks",
    "choose_move",
    "make_agent",
    "masks_to_board",
    "minimax",
]
