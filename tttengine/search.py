## Alpha-beta minimax over the two bitmasks.
## One recursive core, parameterised by a SearchPolicy instead of one copy per difficulty.

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .utils import is_full, is_winner_mask


WIN_SCORE = 10
NEG_INF = -1000
POS_INF = 1000

## Center, corners, then edges. Only affects how early alpha/beta tighten
MOVE_ORDER = (4, 0, 2, 6, 8, 1, 3, 5, 7)


@dataclass(frozen=True)
class SearchPolicy:
    """
    Knobs that distinguish the search variants.

    depth_cap: recursion depth at which a non-terminal position scores 0. None searches to the end.
    prune: alpha-beta cutoffs on/off. The value returned is the same either way.
    shuffle: visit the empty cells in a freshly shuffled order on every call instead of MOVE_ORDER.
    """
    depth_cap: Optional[int] = None
    prune: bool = True
    shuffle: bool = False

    def __post_init__(self):
        if self.depth_cap is not None and self.depth_cap < 1:
            raise ValueError(f"depth_cap must be at least 1, got {self.depth_cap}")


PERFECT_POLICY = SearchPolicy()
SHALLOW_POLICY = SearchPolicy(depth_cap=5, shuffle=True)
EXHAUSTIVE_POLICY = SearchPolicy(prune=False)


@dataclass
class SearchStats:
    """Accumulator for benchmarking. Passed in explicitly, never shared between callers."""
    nodes: int = 0
    max_depth: int = 0
    cutoffs: int = 0

    def visit(self, depth: int) -> None:
        self.nodes += 1
        if depth > self.max_depth:
            self.max_depth = depth

    def merge(self, other: "SearchStats") -> None:
        self.nodes += other.nodes
        self.max_depth = max(self.max_depth, other.max_depth)
        self.cutoffs += other.cutoffs


def fisher_yates(items: List[int], rng: np.random.Generator) -> List[int]:
    """Shuffles items in place and returns them."""
    for i in range(len(items) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def candidate_cells(occupied: int, policy: SearchPolicy = PERFECT_POLICY,
                    rng: Optional[np.random.Generator] = None) -> List[int]:
    if policy.shuffle:
        if rng is None:
            raise ValueError("A shuffling policy needs an rng")
        cells = [pos for pos in range(9) if not occupied & (1 << pos)]
        return fisher_yates(cells, rng)
    return [pos for pos in MOVE_ORDER if not occupied & (1 << pos)]


def minimax(playerMask: int, oppMask: int, depth: int, alpha: int = NEG_INF, beta: int = POS_INF,
            isMaximizing: bool = True, policy: SearchPolicy = PERFECT_POLICY,
            stats: Optional[SearchStats] = None, rng: Optional[np.random.Generator] = None) -> int:
    """
    Scores the position from the point of view of the player owning ``playerMask``.

    Parameters
    ---------------
    playerMask: cells held by the maximizing side.
    oppMask: cells held by the minimizing side.
    depth: plies played since the decision root. Wins score 10 - depth, losses -10 + depth.
    alpha, beta: current window.
    isMaximizing: True when it is playerMask's turn to place a mark.
    policy: depth cap / pruning / shuffling variant.
    stats: optional accumulator for node count and deepest depth visited.
    rng: required when policy.shuffle is set.
    """
    if stats is not None:
        stats.visit(depth)

    ## Terminal states
    if is_winner_mask(playerMask):
        return WIN_SCORE - depth
    if is_winner_mask(oppMask):
        return -WIN_SCORE + depth
    if is_full(playerMask, oppMask):
        return 0

    ## Horizon reached, position is uncertain
    if policy.depth_cap is not None and depth >= policy.depth_cap:
        return 0

    best = NEG_INF if isMaximizing else POS_INF

    for pos in candidate_cells(playerMask | oppMask, policy, rng):
        bit = 1 << pos

        if isMaximizing:
            val = minimax(playerMask | bit, oppMask, depth + 1, alpha, beta, False, policy, stats, rng)
            best = max(best, val)
            alpha = max(alpha, val)
        else:
            val = minimax(playerMask, oppMask | bit, depth + 1, alpha, beta, True, policy, stats, rng)
            best = min(best, val)
            beta = min(beta, val)

        if policy.prune and alpha >= beta:
            if stats is not None:
                stats.cutoffs += 1
            break

    return best
