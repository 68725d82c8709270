## Difficulty tiers.
## Each agent takes a board snapshot plus the symbol it is asked to play and returns a Move,
## or NO_MOVE when the board is full. Agents keep no state between calls apart from their rng.

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from .evaluation import LinearEvaluator
from .search import (MOVE_ORDER, NEG_INF, PERFECT_POLICY, POS_INF, SHALLOW_POLICY, SearchPolicy, SearchStats,
                     fisher_yates, minimax)
from .utils import (NO_MOVE, Move, Symbol, SymbolLike, as_grid, board_to_masks, empty_cells,
                    get_player_masks, infer_mover, validate_board)

logger = logging.getLogger(__name__)

Board = Sequence[Sequence[SymbolLike]]

FORCED_MISTAKE = "forced_mistake"
SHALLOW = "shallow"
MEDIUM_STYLES = (FORCED_MISTAKE, SHALLOW)


class Tier(str, Enum):
    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"

    @classmethod
    def parse(cls, value: Union["Tier", str]) -> "Tier":
        if isinstance(value, Tier):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for tier in cls:
                if key in (tier.value, tier.name.lower()):
                    return tier
        raise ValueError(f"Unknown tier: {value!r}")


@dataclass(frozen=True)
class TierConfig:
    error_rate: int = 20
    medium_style: str = FORCED_MISTAKE
    depth_cap: int = 5
    model_follows_symbol: bool = False
    strict: bool = False

    def __post_init__(self):
        if not 0 <= self.error_rate <= 100:
            raise ValueError(f"error_rate must be within [0, 100], got {self.error_rate}")
        if self.medium_style not in MEDIUM_STYLES:
            raise ValueError(f"medium_style must be one of {MEDIUM_STYLES}, got {self.medium_style!r}")
        if self.depth_cap < 1:
            raise ValueError(f"depth_cap must be at least 1, got {self.depth_cap}")


@dataclass
class Decision:
    move: Move
    stats: SearchStats = field(default_factory=SearchStats)
    score: Optional[float] = None
    forced_mistake: bool = False


class BaseAgent:
    def __init__(self, rng: Optional[np.random.Generator] = None, strict: bool = False):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.strict = strict

    def decide(self, board: Board, symbol: SymbolLike, to_move: Optional[SymbolLike] = None) -> Decision:
        raise NotImplementedError

    def choose_action(self, board: Board, symbol: SymbolLike, to_move: Optional[SymbolLike] = None) -> Move:
        """Returns a valid move for the board, or NO_MOVE if every cell is taken."""
        return self.decide(board, symbol, to_move).move

    def _masks(self, board: Board, symbol: SymbolLike, to_move: Optional[SymbolLike]):
        """Returns (mover_mask, opponent_mask) for this snapshot."""
        if self.strict:
            maskX, maskO = validate_board(board)
        else:
            maskX, maskO = board_to_masks(board)

        requested = Symbol.parse(symbol)
        mover = infer_mover(maskX, maskO, requested, to_move)
        if mover is not requested:
            logger.debug("Asked to play %s but the piece counts say %s moves; playing for %s",
                         requested.value, mover.value, mover.value)
        return get_player_masks(maskX, maskO, requested, to_move)


class PerfectAgent(BaseAgent):
    """
    Exhaustive alpha-beta search. With error_rate > 0 it first rolls a percentage die and
    plays a random legal cell when the roll lands below error_rate.

    ``policy`` only matters for benchmarking: EXHAUSTIVE_POLICY runs the same root without cutoffs.
    """

    def __init__(self, error_rate: int = 0, rng: Optional[np.random.Generator] = None, strict: bool = False,
                 policy: SearchPolicy = PERFECT_POLICY):
        super().__init__(rng, strict)
        if not 0 <= error_rate <= 100:
            raise ValueError(f"error_rate must be within [0, 100], got {error_rate}")
        self.error_rate = error_rate
        self.policy = policy

    def decide(self, board: Board, symbol: SymbolLike, to_move: Optional[SymbolLike] = None) -> Decision:
        playerMask, oppMask = self._masks(board, symbol, to_move)
        occupied = playerMask | oppMask
        stats = SearchStats()

        validCells = empty_cells(occupied)
        if not validCells:
            return Decision(NO_MOVE, stats)

        ## Forced mistake, skips the search entirely
        if self.error_rate > 0:
            roll = int(self.rng.integers(0, 100))
            if roll < self.error_rate:
                pos = validCells[int(self.rng.integers(0, len(validCells)))]
                logger.debug("Forced mistake (roll %d < %d), playing cell %d", roll, self.error_rate, pos)
                return Decision(Move.from_index(pos), stats, forced_mistake=True)

        bestValue = NEG_INF
        candidates = []
        for pos in MOVE_ORDER:
            bit = 1 << pos
            if occupied & bit:
                continue

            ## Opponent replies next, so the child is a minimizing node
            value = minimax(playerMask | bit, oppMask, 1, NEG_INF, POS_INF, False, self.policy, stats, self.rng)

            if value > bestValue:
                bestValue = value
                candidates = [pos]
            elif value == bestValue:
                candidates.append(pos)

        ## Several cells are usually equally good, pick one at random so play is not predictable
        pos = candidates[int(self.rng.integers(0, len(candidates)))]
        logger.debug("Perfect search: score %d, %d candidate(s), playing cell %d", bestValue, len(candidates), pos)
        return Decision(Move.from_index(pos), stats, score=bestValue)


class ShallowAgent(BaseAgent):
    """
    Same recursion as the perfect search but it gives up after depth_cap plies and explores
    the cells in a shuffled order. Beatable, and not obviously deterministic.
    """

    def __init__(self, depth_cap: int = 5, prune: bool = True, rng: Optional[np.random.Generator] = None,
                 strict: bool = False):
        super().__init__(rng, strict)
        self.policy = SHALLOW_POLICY
        if (depth_cap, prune) != (SHALLOW_POLICY.depth_cap, SHALLOW_POLICY.prune):
            self.policy = replace(SHALLOW_POLICY, depth_cap=depth_cap, prune=prune)

    def decide(self, board: Board, symbol: SymbolLike, to_move: Optional[SymbolLike] = None) -> Decision:
        playerMask, oppMask = self._masks(board, symbol, to_move)
        occupied = playerMask | oppMask
        stats = SearchStats()

        validCells = empty_cells(occupied)
        if not validCells:
            return Decision(NO_MOVE, stats)

        fisher_yates(validCells, self.rng)

        bestValue = NEG_INF
        bestPos = validCells[0]
        for pos in validCells:
            value = minimax(playerMask | (1 << pos), oppMask, 1, NEG_INF, POS_INF, False,
                            self.policy, stats, self.rng)
            if value > bestValue:
                bestValue = value
                bestPos = pos

        logger.debug("Shallow search (cap %s): score %d, playing cell %d", self.policy.depth_cap, bestValue, bestPos)
        return Decision(Move.from_index(bestPos), stats, score=bestValue)


class ModelAgent(BaseAgent):
    """
    One-ply greedy player: tries every empty cell and keeps the first one with the highest
    linear score. By default it always simulates X, whatever symbol it was asked to play.
    """

    def __init__(self, evaluator: Optional[LinearEvaluator] = None, follows_symbol: bool = False,
                 rng: Optional[np.random.Generator] = None, strict: bool = False):
        super().__init__(rng, strict)
        self.evaluator = evaluator if evaluator is not None else LinearEvaluator()
        self.follows_symbol = follows_symbol
        self._warned = False

    def _evaluator_for(self, requested: Symbol) -> LinearEvaluator:
        if self.follows_symbol:
            if requested is self.evaluator.symbol:
                return self.evaluator
            return LinearEvaluator(self.evaluator.model, requested)

        if requested is not self.evaluator.symbol and not self._warned:
            logger.warning("Model tier always plays as %s; requested symbol %s is ignored",
                           self.evaluator.symbol.value, requested.value)
            self._warned = True
        return self.evaluator

    def decide(self, board: Board, symbol: SymbolLike, to_move: Optional[SymbolLike] = None) -> Decision:
        if self.strict:
            validate_board(board)
        grid = as_grid(board)
        evaluator = self._evaluator_for(Symbol.parse(symbol))
        mark = evaluator.symbol.value

        bestValue = -np.inf
        bestMove = NO_MOVE
        for r in range(3):
            for c in range(3):
                if grid[r, c] != " ":
                    continue
                grid[r, c] = mark
                value = evaluator.evaluateBoard(grid)
                grid[r, c] = " "
                if value > bestValue:
                    bestValue = value
                    bestMove = Move(r, c)

        if bestMove.is_sentinel:
            return Decision(NO_MOVE)
        logger.debug("Model evaluation: score %.4f, playing %s", bestValue, bestMove)
        return Decision(bestMove, score=bestValue)


def make_agent(tier: Union[Tier, str], config: Optional[TierConfig] = None,
               rng: Optional[np.random.Generator] = None) -> BaseAgent:
    tier = Tier.parse(tier)
    config = config if config is not None else TierConfig()

    if tier is Tier.HARD:
        return PerfectAgent(error_rate=0, rng=rng, strict=config.strict)
    if tier is Tier.MEDIUM:
        if config.medium_style == SHALLOW:
            return ShallowAgent(depth_cap=config.depth_cap, rng=rng, strict=config.strict)
        return PerfectAgent(error_rate=config.error_rate, rng=rng, strict=config.strict)
    return ModelAgent(follows_symbol=config.model_follows_symbol, rng=rng, strict=config.strict)


def choose_move(board: Board, symbol: SymbolLike, tier: Union[Tier, str], config: Optional[TierConfig] = None,
                rng: Optional[np.random.Generator] = None, to_move: Optional[SymbolLike] = None) -> Move:
    """
    Single decision call for the game layer.

    Parameters
    ---------------
    board: 3x3 snapshot of "X", "O" and " ". Not modified.
    symbol: the symbol the engine plays.
    tier: hard, medium or easy.
    config: tier knobs, defaults to TierConfig().
    rng: numpy Generator for tie-breaks, mistakes and shuffles. Pass a seeded one for repeatable play.
    to_move: explicit side to move, overrides the piece-count inference.
    """
    return make_agent(tier, config, rng).choose_action(board, symbol, to_move)
