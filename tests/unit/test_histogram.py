"""
Unit Tests for the P&L histogram

Run with: pytest tests/unit/test_histogram.py -v
"""

import pytest

from backtester.backtesting.histogram import MAX_BINS, MIN_BINS, bin_count, build_pnl_histogram


class TestBinCount:

    @pytest.mark.parametrize(
        "trades, expected",
        [(1, MIN_BINS), (24, MIN_BINS), (36, 6), (99, 9), (400, MAX_BINS), (5000, MAX_BINS)],
    )
    def test_sqrt_rule_clamped(self, trades, expected):
        assert bin_count(trades) == expected


class TestBuildPnlHistogram:

    def test_empty(self):
        assert build_pnl_histogram([]) == []

    def test_every_trade_lands_in_one_bin(self):
        pnls = [-120.5, -40.0, -3.0, 0.0, 12.0, 55.0, 60.0, 99.9, 150.0, 310.25]
        bins = build_pnl_histogram(pnls)

        assert len(bins) == 5
        assert sum(b.count for b in bins) == len(pnls)
        assert bins[0].range_start == pytest.approx(-120.5)
        assert bins[-1].range_end == pytest.approx(310.25)
        # the maximum lands in the last (closed) bin
        assert bins[-1].count >= 1
        assert bins[0].count >= 1

    def test_bins_are_contiguous_with_midpoints(self):
        bins = build_pnl_histogram([float(v) for v in range(-50, 50)])

        assert len(bins) == 10
        for left, right in zip(bins, bins[1:]):
            assert left.range_end == pytest.approx(right.range_start)
        for b in bins:
            assert b.pnl == pytest.approx((b.range_start + b.range_end) / 2)

    def test_identical_values_use_fallback_width(self):
        bins = build_pnl_histogram([50.0] * 9)

        assert len(bins) == 5
        assert bins[0].count == 9
        assert sum(b.count for b in bins[1:]) == 0
        assert bins[0].range_start == pytest.approx(50.0)
        assert bins[0].range_end == pytest.approx(55.0)

    def test_identical_zero_values_use_unit_width(self):
        bins = build_pnl_histogram([0.0, 0.0, 0.0])

        assert bins[0].count == 3
        assert bins[0].range_end - bins[0].range_start == pytest.approx(1.0)

    def test_identical_negative_values(self):
        bins = build_pnl_histogram([-20.0, -20.0])

        assert bins[0].count == 2
        assert bins[0].range_end - bins[0].range_start == pytest.approx(2.0)

    @pytest.mark.parametrize(
        "pnls",
        [[50.0, 50.000000000000014], [198.00000000000048, 198.0000000000004], [0.1 + 0.2, 0.3]],
    )
    def test_values_a_few_ulps_apart(self, pnls):
        bins = build_pnl_histogram(pnls)

        assert len(bins) == 5
        assert bins[0].count == len(pnls)
        assert all(left.range_end > left.range_start for left in bins)

    def test_narrow_but_resolvable_spread(self):
        bins = build_pnl_histogram([1.0, 1.0 + 1e-9, 1.0 + 2e-9])

        assert sum(b.count for b in bins) == 3
        assert bins[0].count == 1
        assert bins[-1].count == 1

    def test_large_sample_capped_at_max_bins(self):
        pnls = [float((i * 37) % 1000 - 500) for i in range(2500)]
        bins = build_pnl_histogram(pnls)

        assert len(bins) == MAX_BINS
        assert sum(b.count for b in bins) == 2500
