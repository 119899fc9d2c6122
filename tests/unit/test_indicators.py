"""
Unit Tests for technical indicators

Run with: pytest tests/unit/test_indicators.py -v
"""

import math

import numpy as np
import pandas as pd
import pytest

from backtester.strategies.indicators import ema, macd, rolling_std, rsi, sma


def series(*values: float) -> pd.Series:
    return pd.Series(values, dtype=float)


class TestSMA:

    def test_warm_up_is_nan(self):
        result = sma(series(1, 2, 3, 4, 5), 3)

        assert result.iloc[:2].isna().all()
        assert list(result.iloc[2:]) == pytest.approx([2.0, 3.0, 4.0])

    def test_period_longer_than_data(self):
        assert sma(series(1, 2), 5).isna().all()


class TestEMA:

    def test_seeded_with_sma(self):
        result = ema(series(1, 2, 3, 4, 5), 3)

        assert result.iloc[:2].isna().all()
        # seed = mean(1, 2, 3) = 2; multiplier 2 / (3 + 1) = 0.5
        assert result.iloc[2] == pytest.approx(2.0)
        assert result.iloc[3] == pytest.approx(3.0)
        assert result.iloc[4] == pytest.approx(4.0)

    def test_recursive_step(self):
        values = series(10, 10, 10, 10, 20)
        result = ema(values, 4)

        assert result.iloc[3] == pytest.approx(10.0)
        assert result.iloc[4] == pytest.approx(10.0 + (20.0 - 10.0) * 2 / 5)

    def test_too_short(self):
        result = ema(series(1, 2), 3)

        assert len(result) == 2
        assert result.isna().all()


class TestRollingStd:

    def test_population_std(self):
        result = rolling_std(series(2, 4, 4, 4, 5, 5, 7, 9), 8)

        assert result.iloc[-1] == pytest.approx(2.0)
        assert result.iloc[:-1].isna().all()


class TestRSI:

    def test_wilder_smoothing(self):
        result = rsi(series(1, 2, 1, 2, 1), 2)

        assert result.iloc[:2].isna().all()
        assert result.iloc[2] == pytest.approx(50.0)
        assert result.iloc[3] == pytest.approx(75.0)
        assert result.iloc[4] == pytest.approx(37.5)

    def test_no_losses_is_100(self):
        result = rsi(pd.Series(np.arange(1, 21), dtype=float), 14)

        assert result.iloc[:14].isna().all()
        assert (result.iloc[14:] == 100).all()

    def test_no_gains_is_0(self):
        result = rsi(pd.Series(np.arange(20, 0, -1), dtype=float), 5)

        assert (result.iloc[5:] == 0).all()

    def test_needs_period_plus_one_values(self):
        assert rsi(series(1, 2, 3), 3).isna().all()


class TestMACD:

    def test_signal_line_starts_after_macd(self):
        values = pd.Series([10 + math.sin(i / 3) for i in range(30)])
        frame = macd(values, fast=3, slow=5, signal=4)

        # MACD defined from index slow - 1, signal line signal - 1 values later
        assert frame['macd'].iloc[:4].isna().all()
        assert frame['macd'].iloc[4:].notna().all()
        assert frame['signal'].iloc[:7].isna().all()
        assert frame['signal'].iloc[7:].notna().all()

    def test_signal_line_is_ema_of_macd(self):
        values = pd.Series([10 + math.sin(i / 3) for i in range(30)])
        frame = macd(values, fast=3, slow=5, signal=4)

        defined = frame['macd'].iloc[4:]
        expected = ema(defined.reset_index(drop=True), 4)
        assert list(frame['signal'].iloc[7:]) == pytest.approx(list(expected.iloc[3:]))
        assert list(frame['histogram'].iloc[7:]) == pytest.approx(
            list(frame['macd'].iloc[7:] - frame['signal'].iloc[7:])
        )
