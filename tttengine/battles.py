### Pits two agents against each other, and times single decisions ###

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Union

import numpy as np

from .agents import MEDIUM_STYLES, BaseAgent, PerfectAgent, Tier, TierConfig, make_agent
from .search import EXHAUSTIVE_POLICY, PERFECT_POLICY, SearchPolicy, SearchStats
from .utils import EMPTY, NO_MOVE, Move, Symbol, SymbolLike, as_grid, board_status, board_to_masks

logger = logging.getLogger(__name__)


@dataclass
class GameRecord:
    winner: Optional[str]
    moves: List[Move] = field(default_factory=list)
    invalid_count: int = 0


@dataclass
class MatchSummary:
    tier_a: str
    tier_b: str
    games: int
    wins: int = 0
    losses: int = 0
    draws: int = 0
    invalid: int = 0


@dataclass
class BenchmarkResult:
    tier: str
    iterations: int
    best_move: Move
    total_seconds: float
    avg_seconds: float
    max_depth: int
    nodes: int


@dataclass
class SearchBenchmarkResult:
    search: str
    iterations: int
    best_score: Optional[int]
    total_seconds: float
    avg_seconds: float
    max_depth: int
    nodes: int
    cutoffs: int


## Root search with and without alpha-beta cutoffs, for the pruning comparison
SEARCH_POLICIES = {
    "pruned": PERFECT_POLICY,
    "exhaustive": EXHAUSTIVE_POLICY,
}


def play_game(agent_x: BaseAgent, agent_o: BaseAgent, first: SymbolLike = Symbol.X) -> GameRecord:
    """
    Plays one game to completion. The side to move is passed to the agents explicitly,
    so games started by O are handled correctly.
    """
    board = [[EMPTY] * 3 for _ in range(3)]
    current = Symbol.parse(first)
    record = GameRecord(winner=None)

    while board_status(*board_to_masks(board)) is None:
        agent = agent_x if current is Symbol.X else agent_o
        move = agent.choose_action([row[:] for row in board], current, to_move=current)

        if move.is_sentinel or not (0 <= move.row < 3 and 0 <= move.col < 3) or board[move.row][move.col] != EMPTY:
            logger.info("%s agent made an invalid move %s, falling back to the first empty cell",
                        current.value, move)
            record.invalid_count += 1
            move = next(Move(r, c) for r in range(3) for c in range(3) if board[r][c] == EMPTY)

        board[move.row][move.col] = current.value
        record.moves.append(move)
        current = current.other

    status = board_status(*board_to_masks(board))
    record.winner = None if status == "Draw" else status
    return record


def run_match(tier_a: Union[Tier, str], tier_b: Union[Tier, str], games: int,
              config: Optional[TierConfig] = None, seed: Optional[int] = None,
              config_b: Optional[TierConfig] = None) -> MatchSummary:
    """
    Tier A always plays X, tier B plays O. The starting side alternates every game, so
    an odd game count is rounded up to keep the starts even.

    ``config`` applies to both sides unless ``config_b`` is given, in which case tier B uses it
    (e.g. medium at error rate 20 against medium at error rate 10).
    """
    if games < 1:
        raise ValueError(f"games must be positive, got {games}")
    games += games % 2
    tier_a = Tier.parse(tier_a)
    tier_b = Tier.parse(tier_b)

    seqA, seqB = np.random.SeedSequence(seed).spawn(2)
    agentA = make_agent(tier_a, config, rng=np.random.default_rng(seqA))
    agentB = make_agent(tier_b, config_b if config_b is not None else config, rng=np.random.default_rng(seqB))

    summary = MatchSummary(tier_a=tier_a.value, tier_b=tier_b.value, games=games)
    for i in range(games):
        first = Symbol.X if i % 2 == 0 else Symbol.O
        record = play_game(agentA, agentB, first)
        summary.invalid += record.invalid_count
        if record.winner == "X":
            summary.wins += 1
        elif record.winner == "O":
            summary.losses += 1
        else:
            summary.draws += 1

    logger.info("== %s (X) vs %s (O) over %d games: %d wins, %d losses, %d draws ==",
                tier_a.value, tier_b.value, games, summary.wins, summary.losses, summary.draws)
    return summary


def benchmark(tier: Union[Tier, str], iterations: int, board: Optional[Sequence[Sequence[SymbolLike]]] = None,
              config: Optional[TierConfig] = None, seed: Optional[int] = None) -> BenchmarkResult:
    """Times repeated decisions for X on ``board`` (the empty board by default, the worst case)."""
    if iterations < 1:
        raise ValueError(f"iterations must be positive, got {iterations}")
    tier = Tier.parse(tier)
    grid = as_grid(board if board is not None else [[EMPTY] * 3 for _ in range(3)])
    agent = make_agent(tier, config, rng=np.random.default_rng(seed))

    stats = SearchStats()
    move = NO_MOVE
    startTime = time.perf_counter()
    for _ in range(iterations):
        decision = agent.decide(grid, Symbol.X)
        stats.merge(decision.stats)
        move = decision.move
    totalTime = time.perf_counter() - startTime

    result = BenchmarkResult(
        tier=tier.value,
        iterations=iterations,
        best_move=move,
        total_seconds=totalTime,
        avg_seconds=totalTime / iterations,
        max_depth=stats.max_depth,
        nodes=stats.nodes,
    )
    logger.info("%s: %d runs in %.6fs (avg %.8fs), max depth %d, %d nodes",
                tier.value, iterations, totalTime, result.avg_seconds, stats.max_depth, stats.nodes)
    return result


def benchmark_search(search: Union[str, SearchPolicy], iterations: int,
                     board: Optional[Sequence[Sequence[SymbolLike]]] = None,
                     seed: Optional[int] = None) -> SearchBenchmarkResult:
    """
    Times the perfect root search for X under one SearchPolicy. ``search`` is a key of
    SEARCH_POLICIES ("pruned" or "exhaustive") or a policy instance.
    """
    if iterations < 1:
        raise ValueError(f"iterations must be positive, got {iterations}")
    if isinstance(search, SearchPolicy):
        name, policy = repr(search), search
    elif search in SEARCH_POLICIES:
        name, policy = search, SEARCH_POLICIES[search]
    else:
        raise ValueError(f"Unknown search {search!r}, expected one of {sorted(SEARCH_POLICIES)}")

    grid = as_grid(board if board is not None else [[EMPTY] * 3 for _ in range(3)])
    agent = PerfectAgent(rng=np.random.default_rng(seed), policy=policy)

    stats = SearchStats()
    score = None
    startTime = time.perf_counter()
    for _ in range(iterations):
        decision = agent.decide(grid, Symbol.X)
        stats.merge(decision.stats)
        score = decision.score
    totalTime = time.perf_counter() - startTime

    logger.info("%s search: %d runs in %.6fs, best score %s, max depth %d, %d nodes, %d cutoffs",
                name, iterations, totalTime, score, stats.max_depth, stats.nodes, stats.cutoffs)
    return SearchBenchmarkResult(
        search=name,
        iterations=iterations,
        best_score=score,
        total_seconds=totalTime,
        avg_seconds=totalTime / iterations,
        max_depth=stats.max_depth,
        nodes=stats.nodes,
        cutoffs=stats.cutoffs,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tier-vs-tier matches and decision benchmarks.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for every random draw.")
    parser.add_argument("--error-rate", type=int, default=20, help="Medium tier forced-mistake percentage.")
    parser.add_argument("--medium-style", choices=MEDIUM_STYLES, default=MEDIUM_STYLES[0])
    parser.add_argument("--depth-cap", type=int, default=5, help="Cutoff for the shallow medium style.")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG instead of INFO.")
    sub = parser.add_subparsers(dest="command", required=True)

    tiers = [tier.value for tier in Tier]
    match = sub.add_parser("match", help="Play tier A (X) against tier B (O).")
    match.add_argument("--tier-a", choices=tiers, default=Tier.HARD.value)
    match.add_argument("--tier-b", choices=tiers, default=Tier.MEDIUM.value)
    match.add_argument("--games", type=int, default=100)
    match.add_argument("--error-rate-b", type=int, default=None,
                       help="Forced-mistake percentage for tier B only, defaults to --error-rate.")

    bench = sub.add_parser("bench", help="Time decisions on the empty board.")
    bench.add_argument("--tier", choices=tiers, action="append", help="Tier(s) to time, all by default.")
    bench.add_argument("--search", choices=sorted(SEARCH_POLICIES), action="append",
                       help="Time the perfect root search with/without pruning instead of tiers.")
    bench.add_argument("--iterations", type=int, default=1000)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    try:
        config = TierConfig(error_rate=args.error_rate, medium_style=args.medium_style, depth_cap=args.depth_cap)
        configB = None
        if args.command == "match" and args.error_rate_b is not None:
            configB = replace(config, error_rate=args.error_rate_b)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    if args.command == "match":
        summary = run_match(args.tier_a, args.tier_b, args.games, config=config, seed=args.seed, config_b=configB)
        print(f"{summary.tier_a} (X) vs {summary.tier_b} (O), {summary.games} games")
        for label, count in (("Wins", summary.wins), ("Losses", summary.losses), ("Draws", summary.draws)):
            print(f"{label + ':':8}{count:6d} ({count / summary.games * 100:5.1f}%)")
        if summary.invalid:
            print(f"Invalid moves replaced: {summary.invalid}")
        return 0

    if args.search:
        results = [benchmark_search(name, args.iterations, seed=args.seed) for name in args.search]
        print(f"{'Search':12}{'Best':>6}{'Nodes':>12}{'Cutoffs':>10}{'Max depth':>11}{'Avg s/move':>14}")
        for result in results:
            print(f"{result.search:12}{result.best_score:>6}{result.nodes:>12}{result.cutoffs:>10}"
                  f"{result.max_depth:>11}{result.avg_seconds:>14.8f}")
        return 0

    for tier in args.tier or [tier.value for tier in Tier]:
        result = benchmark(tier, args.iterations, config=config, seed=args.seed)
        print(f"Mode: {result.tier}")
        print(f"Best Move: ({result.best_move.row}, {result.best_move.col})")
        print(f"Total Time ({result.iterations} runs): {result.total_seconds:.6f} seconds")
        print(f"Avg Time per Move: {result.avg_seconds:.8f} seconds")
        print(f"Max Recursion Depth: {result.max_depth}")
        print(f"Nodes Visited: {result.nodes}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
