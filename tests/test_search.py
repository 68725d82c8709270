"""Tests for the alpha-beta search core."""

import numpy as np
import pytest

from tttengine.search import (EXHAUSTIVE_POLICY, MOVE_ORDER, NEG_INF, PERFECT_POLICY, POS_INF, SearchPolicy,
                              SearchStats, candidate_cells, fisher_yates, minimax)
from tttengine.utils import board_to_masks

## Masks given as (mover, opponent) with the mover to play
POSITIONS = [
    (0b000000001, 0b000010000),
    (0b000010000, 0b000000001),
    (0b000000011, 0b000010100),
    (0b100000001, 0b000010010),
]


class TestTerminalScores:
    def test_mover_win_prefers_speed(self):
        """A completed line for the maximizing side scores 10 - depth."""
        assert minimax(0b111, 0b11000, 3) == 7
        assert minimax(0b111, 0b11000, 5) == 5

    def test_opponent_win_prefers_delay(self):
        assert minimax(0b11000, 0b111, 3, isMaximizing=False) == -7

    def test_draw_scores_zero(self, drawn_board):
        maskX, maskO = board_to_masks(drawn_board)
        assert minimax(maskX, maskO, 9) == 0

    def test_empty_board_is_a_draw(self):
        assert minimax(0, 0, 0) == 0

    def test_immediate_threat_is_lost_if_ignored(self):
        """Opponent holding two in a row with the third cell open wins next ply."""
        ## Mover put its mark in a corner instead of blocking cell 2
        assert minimax(0b000010000 | (1 << 8), 0b000000011, 1, isMaximizing=False) == -8


class TestPolicies:
    @pytest.mark.parametrize("mover, opponent", POSITIONS)
    def test_pruning_does_not_change_value(self, mover, opponent):
        """Alpha-beta and plain minimax agree; pruning only saves nodes."""
        pruned = SearchStats()
        full = SearchStats()
        a = minimax(mover, opponent, 2, NEG_INF, POS_INF, True, PERFECT_POLICY, pruned)
        b = minimax(mover, opponent, 2, NEG_INF, POS_INF, True, EXHAUSTIVE_POLICY, full)
        assert a == b
        assert pruned.nodes <= full.nodes
        assert full.cutoffs == 0

    @pytest.mark.parametrize("mover, opponent", POSITIONS)
    def test_shuffled_order_does_not_change_value(self, mover, opponent, rng):
        shuffled = SearchPolicy(shuffle=True)
        assert minimax(mover, opponent, 2, policy=shuffled, rng=rng) == minimax(mover, opponent, 2)

    def test_depth_cap_returns_uncertain(self):
        """Non-terminal positions at the cap score 0."""
        capped = SearchPolicy(depth_cap=1)
        ## Mover can win immediately, but the cap hides it
        assert minimax(0b011, 0b11000, 1, policy=capped) == 0
        assert minimax(0b011, 0b11000, 1) == 8

    def test_terminal_beats_depth_cap(self):
        capped = SearchPolicy(depth_cap=5)
        assert minimax(0b111, 0b11000, 5, policy=capped) == 5

    def test_depth_cap_limits_recursion(self):
        stats = SearchStats()
        minimax(0, 0, 0, policy=SearchPolicy(depth_cap=3), stats=stats)
        assert stats.max_depth == 3

    def test_shuffle_needs_rng(self):
        with pytest.raises(ValueError):
            minimax(0, 0, 0, policy=SearchPolicy(shuffle=True))

    def test_invalid_depth_cap(self):
        with pytest.raises(ValueError):
            SearchPolicy(depth_cap=0)


class TestSearchStats:
    def test_full_search_reaches_full_board(self):
        """The principal line of an empty board is a draw that fills all 9 cells."""
        stats = SearchStats()
        minimax(0, 0, 0, stats=stats)
        assert stats.max_depth == 9
        assert stats.nodes > 0
        assert stats.cutoffs > 0

    def test_merge(self):
        a = SearchStats(nodes=3, max_depth=4, cutoffs=1)
        a.merge(SearchStats(nodes=2, max_depth=7, cutoffs=0))
        assert (a.nodes, a.max_depth, a.cutoffs) == (5, 7, 1)


class TestCandidateCells:
    def test_fixed_order_skips_occupied(self):
        occupied = (1 << 4) | (1 << 0)
        assert candidate_cells(occupied) == [pos for pos in MOVE_ORDER if pos not in (0, 4)]

    def test_shuffle_is_a_permutation(self, rng):
        cells = candidate_cells(0b1, SearchPolicy(shuffle=True), rng)
        assert sorted(cells) == list(range(1, 9))

    def test_fisher_yates_is_seeded(self):
        a = fisher_yates(list(range(9)), np.random.default_rng(7))
        b = fisher_yates(list(range(9)), np.random.default_rng(7))
        assert a == b
        assert sorted(a) == list(range(9))
