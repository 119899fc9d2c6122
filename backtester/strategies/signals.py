"""Helpers shared by the signal generators."""

from typing import List, Sequence

import pandas as pd

from backtester.models import Candle, Signal


def closes(candles: Sequence[Candle]) -> pd.Series:
    return pd.Series([c.close for c in candles], dtype=float)


def crosses_above(series: pd.Series, threshold) -> pd.Series:
    """True where `series` moves from at-or-below `threshold` to strictly above it."""
    prev_threshold = threshold.shift(1) if isinstance(threshold, pd.Series) else threshold
    return (series.shift(1) <= prev_threshold) & (series > threshold)


def crosses_below(series: pd.Series, threshold) -> pd.Series:
    """True where `series` moves from at-or-above `threshold` to strictly below it."""
    prev_threshold = threshold.shift(1) if isinstance(threshold, pd.Series) else threshold
    return (series.shift(1) >= prev_threshold) & (series < threshold)


def to_signals(prices: pd.Series, buy: pd.Series, sell: pd.Series) -> List[Signal]:
    """
    One signal per row: buy where `buy` is set, else sell where `sell` is set,
    else hold. Buy and sell signals carry the bar's close as their price.
    Comparisons against NaN are False, so warm-up rows are always hold.
    """
    buy_mask = buy.to_numpy(dtype=bool)
    sell_mask = sell.to_numpy(dtype=bool)
    price_values = prices.to_numpy(dtype=float)

    signals = []
    for i in range(len(price_values)):
        if buy_mask[i]:
            signals.append(Signal.buy(float(price_values[i])))
        elif sell_mask[i]:
            signals.append(Signal.sell(float(price_values[i])))
        else:
            signals.append(Signal.hold())
    return signals
