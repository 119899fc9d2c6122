"""
Unit Tests for performance metrics

Run with: pytest tests/unit/test_metrics.py -v
"""

import math
import statistics

import pytest

from backtester.backtesting.metrics import (
    average_duration,
    calculate_metrics,
    equity_returns,
    longest_streaks,
    periods_per_year,
    sharpe_ratio,
)
from backtester.models import BacktestTrade, Direction, EquityDataPoint, ExitReason


# ═══════════════════════════════════════════════════════════════════════════════
# Fixtures (Test Setup)
# ═══════════════════════════════════════════════════════════════════════════════


def make_trade(pnl: float, duration: int = 3600, start: int = 0) -> BacktestTrade:
    return BacktestTrade(
        entry_time=start,
        exit_time=start + duration,
        entry_price=100.0,
        exit_price=100.0 + pnl / 100,
        direction=Direction.LONG,
        size=10000.0,
        pnl=pnl,
        pnl_percent=pnl / 10000 * 100,
        exit_reason=ExitReason.SIGNAL,
    )


def curve(*equities: float):
    return [EquityDataPoint(time=i * 86400, equity=e) for i, e in enumerate(equities)]


@pytest.fixture
def mixed_trades():
    """W W L L L BE W"""
    pnls = [100.0, 200.0, -50.0, -25.0, -10.0, 0.0, 30.0]
    durations = [3600, 7200, 1800, 1800, 1800, 600, 3600]
    return [make_trade(p, d) for p, d in zip(pnls, durations)]


# ═══════════════════════════════════════════════════════════════════════════════
# Periods per year
# ═══════════════════════════════════════════════════════════════════════════════


class TestPeriodsPerYear:

    @pytest.mark.parametrize(
        "timeframe, expected",
        [
            ("1D", 252),
            ("1W", 252),
            ("1H", 252 * 24),
            ("4H", 252 * 6),
            ("4h", 252 * 6),
            ("15m", 252 * 24 * 4),
            ("1m", 252 * 24 * 60),
            ("1M", 252),  # upper-case M is not minutes
            ("daily", 252),
        ],
    )
    def test_timeframes(self, timeframe, expected):
        assert periods_per_year(timeframe) == pytest.approx(expected)


# ═══════════════════════════════════════════════════════════════════════════════
# Sharpe ratio
# ═══════════════════════════════════════════════════════════════════════════════


class TestSharpeRatio:

    def test_undefined_with_fewer_than_two_returns(self):
        assert sharpe_ratio(curve(100.0), "1D") is None
        assert sharpe_ratio(curve(100.0, 110.0), "1D") is None

    def test_matches_sample_stdev_formula(self):
        equities = (10000.0, 10100.0, 10050.0, 10200.0, 10150.0)
        returns = [(b - a) / a for a, b in zip(equities, equities[1:])]
        expected = (statistics.mean(returns) - 0.02 / 252) / statistics.stdev(returns) * math.sqrt(252)

        assert sharpe_ratio(curve(*equities), "1D", 0.02) == pytest.approx(expected)

    def test_annualization_uses_timeframe(self):
        equities = curve(10000.0, 10100.0, 10050.0, 10200.0)
        daily = sharpe_ratio(equities, "1D", 0.0)
        hourly = sharpe_ratio(equities, "1H", 0.0)

        assert hourly == pytest.approx(daily * math.sqrt(24))

    def test_zero_volatility_positive_return_is_infinite(self):
        assert sharpe_ratio(curve(100.0, 110.0, 121.0), "1D") == math.inf

    def test_zero_volatility_flat_is_zero(self):
        assert sharpe_ratio(curve(100.0, 100.0, 100.0, 100.0), "1D") == 0.0

    def test_zero_previous_equity_counts_as_zero_return(self):
        assert list(equity_returns(curve(0.0, 100.0, 100.0))) == [0.0, 0.0]


# ═══════════════════════════════════════════════════════════════════════════════
# Streaks and durations
# ═══════════════════════════════════════════════════════════════════════════════


class TestStreaksAndDurations:

    def test_longest_streaks(self, mixed_trades):
        assert longest_streaks(mixed_trades) == (2, 3)

    def test_breakeven_resets_streaks(self):
        trades = [make_trade(p) for p in (10.0, 0.0, 10.0, -1.0, 0.0, -1.0)]
        assert longest_streaks(trades) == (1, 1)

    def test_no_trades(self):
        assert longest_streaks([]) == (0, 0)
        assert average_duration([]) == 0.0

    def test_average_duration(self):
        trades = [make_trade(1.0, 100), make_trade(1.0, 300)]
        assert average_duration(trades) == 200.0


# ═══════════════════════════════════════════════════════════════════════════════
# Aggregate metrics
# ═══════════════════════════════════════════════════════════════════════════════


class TestCalculateMetrics:

    def test_mixed_trades(self, mixed_trades):
        final_equity = 10000.0 + sum(t.pnl for t in mixed_trades)
        metrics = calculate_metrics(
            mixed_trades,
            curve(10000.0, 10100.0, 10300.0, final_equity),
            timeframe="1D",
            risk_free_rate=0.02,
            initial_capital=10000.0,
            final_equity=final_equity,
        )

        assert metrics['total_trades'] == 7
        assert metrics['winning_trades'] == 3
        assert metrics['losing_trades'] == 3
        assert metrics['breakeven_trades'] == 1
        assert metrics['win_rate'] + metrics['loss_rate'] + metrics['breakeven_rate'] == pytest.approx(1.0)
        assert metrics['total_pnl'] == pytest.approx(245.0)
        assert metrics['total_pnl_percent'] == pytest.approx(2.45)
        assert metrics['profit_factor'] == pytest.approx(330.0 / 85.0)
        assert metrics['average_win_pnl'] == pytest.approx(110.0)
        assert metrics['average_loss_pnl'] == pytest.approx(85.0 / 3)
        assert metrics['average_loss_pnl_percent'] == pytest.approx(0.85 / 3)
        assert metrics['risk_reward_ratio'] == pytest.approx(110.0 / (85.0 / 3))
        assert metrics['expectancy'] == pytest.approx(245.0 / 7)
        assert metrics['longest_winning_streak'] == 2
        assert metrics['longest_losing_streak'] == 3
        assert metrics['average_holding_period_win'] == pytest.approx((3600 + 7200 + 3600) / 3)
        assert metrics['average_holding_period_loss'] == pytest.approx(1800.0)
        assert metrics['sharpe_ratio'] is not None

    def test_only_winners_profit_factor_infinite(self):
        trades = [make_trade(50.0), make_trade(20.0)]
        metrics = calculate_metrics(
            trades,
            curve(1000.0, 1050.0, 1070.0),
            timeframe="1D",
            risk_free_rate=0.02,
            initial_capital=1000.0,
            final_equity=1070.0,
        )

        assert metrics['profit_factor'] == math.inf
        assert metrics['risk_reward_ratio'] == math.inf

    def test_no_trades_all_ratios_zero(self):
        metrics = calculate_metrics(
            [],
            curve(*([10000.0] * 20)),
            timeframe="1H",
            risk_free_rate=0.02,
            initial_capital=10000.0,
            final_equity=10000.0,
        )

        assert metrics['profit_factor'] == 0
        assert metrics['risk_reward_ratio'] == 0
        assert metrics['expectancy'] == 0
        assert metrics['win_rate'] == 0
        assert metrics['sharpe_ratio'] is None
        assert metrics['total_pnl'] == 0
