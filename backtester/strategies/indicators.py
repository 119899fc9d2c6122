"""
Technical indicators on pandas Series.

All functions take a Series of prices and return a Series on the same index,
NaN wherever the indicator is not yet defined (warm-up) or the input is too
short. Recursive indicators are seeded with a simple average of the first
window rather than pandas' default of starting from the first observation.
"""

import numpy as np
import pandas as pd


def sma(values: pd.Series, period: int) -> pd.Series:
    """Simple moving average; first value at index period - 1."""
    return values.astype(float).rolling(window=period, min_periods=period).mean()


def rolling_std(values: pd.Series, period: int) -> pd.Series:
    """Population standard deviation over the window (ddof=0)."""
    return values.astype(float).rolling(window=period, min_periods=period).std(ddof=0)


def _seeded_ewm(values: pd.Series, seed_index: int, seed: float, alpha: float) -> pd.Series:
    """Exponential smoothing that starts from `seed` at position `seed_index`."""
    seeded = values.astype(float).copy()
    seeded.iloc[:seed_index] = np.nan
    seeded.iloc[seed_index] = seed
    return seeded.ewm(alpha=alpha, adjust=False).mean()


def ema(values: pd.Series, period: int) -> pd.Series:
    """
    Exponential moving average, multiplier 2 / (period + 1).

    The first value (index period - 1) is the SMA of the first `period` values.
    """
    values = values.astype(float)
    if period <= 0 or len(values) < period:
        return pd.Series(np.nan, index=values.index)
    seed = values.iloc[:period].mean()
    return _seeded_ewm(values, period - 1, seed, 2 / (period + 1))


def rsi(values: pd.Series, period: int = 14) -> pd.Series:
    """
    Relative Strength Index with Wilder smoothing.

    The first value (index `period`) uses the simple average gain/loss of the
    first `period` price changes. RSI is 100 whenever the average loss is 0.
    """
    values = values.astype(float)
    if period <= 0 or len(values) < period + 1:
        return pd.Series(np.nan, index=values.index)

    delta = values.diff()
    gains = delta.clip(lower=0)
    losses = (-delta).clip(lower=0)

    alpha = 1 / period
    avg_gain = _seeded_ewm(gains, period, gains.iloc[1:period + 1].mean(), alpha)
    avg_loss = _seeded_ewm(losses, period, losses.iloc[1:period + 1].mean(), alpha)

    with np.errstate(divide="ignore", invalid="ignore"):
        result = 100 - 100 / (1 + avg_gain / avg_loss)
    result = result.where(avg_loss != 0, 100.0)
    return result.where(avg_gain.notna())


def macd(values: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9) -> pd.DataFrame:
    """
    MACD line, signal line and histogram.

    The signal line is the EMA of the defined MACD values only, placed back on
    the index of the MACD value it was computed from.
    """
    macd_line = ema(values, fast) - ema(values, slow)
    defined = macd_line.dropna()
    signal_line = ema(defined, signal).reindex(macd_line.index)
    return pd.DataFrame(
        {
            'macd': macd_line,
            'signal': signal_line,
            'histogram': macd_line - signal_line,
        }
    )
