"""Tests for board rank computation."""

import pytest

from taskrecon.board.ranking import append_rank, compute_rank


class TestComputeRank:
    """Test compute_rank."""

    def test_empty_column(self):
        assert compute_rank(None, None) == 0

    def test_insert_at_top(self):
        assert compute_rank(None, 500.0) == -500.0

    def test_insert_at_end(self):
        assert compute_rank(500.0, None) == 1500.0

    def test_midpoint(self):
        assert compute_rank(0.0, 1000.0) == 500.0

    def test_custom_step(self):
        assert compute_rank(10.0, None, step=5.0) == 15.0

    def test_gap_at_epsilon_falls_back(self):
        assert compute_rank(1.0, 1.0) == pytest.approx(1.0001)
        assert compute_rank(1.0, 1.00005) == pytest.approx(1.0001)

    def test_repeated_midpoint_stays_between_neighbours(self):
        before, after = 0.0, 1000.0
        for _ in range(20):
            rank = compute_rank(before, after)
            assert before < rank < after
            after = rank


class TestAppendRank:
    """Test appending to the end of a column."""

    def test_first_item_gets_zero(self):
        assert append_rank(None) == 0

    def test_appends_are_strictly_increasing(self):
        current = None
        ranks = []
        for _ in range(10):
            current = append_rank(current)
            ranks.append(current)
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == len(ranks)
        assert ranks[:3] == [0, 1000, 2000]
