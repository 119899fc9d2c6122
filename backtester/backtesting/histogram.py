"""P&L distribution for the results histogram."""

import math
from typing import List, Sequence

import numpy as np

from backtester.models import PnlDistributionPoint

MIN_BINS = 5
MAX_BINS = 20


def bin_count(trade_count: int) -> int:
    """sqrt rule, clamped to [MIN_BINS, MAX_BINS]."""
    return min(MAX_BINS, max(MIN_BINS, math.floor(math.sqrt(trade_count))))


def build_pnl_histogram(pnls: Sequence[float]) -> List[PnlDistributionPoint]:
    """
    Bin trade P&L values into equal-width buckets spanning [min, max].

    Every value lands in exactly one bin; the last bin is closed on the right
    so the maximum is counted. When the values are identical, or closer
    together than float resolution can split into bins, the width
    falls back to 10% of |min| (or 1 when min is 0) and everything lands in
    the first bin.
    """
    if len(pnls) == 0:
        return []

    values = np.asarray(pnls, dtype=float)
    low = float(values.min())
    high = float(values.max())
    bins = bin_count(len(values))

    width = (high - low) / bins
    edges = low + width * np.arange(bins + 1)
    # identical values, or a spread too narrow for distinct float edges
    if not np.all(np.diff(edges) > 0):
        width = abs(low * 0.1) or 1.0
        edges = low + width * np.arange(bins + 1)

    # last bin is closed on the right
    index = np.clip(np.floor((values - low) / width), 0, bins - 1).astype(int)
    counts = np.bincount(index, minlength=bins)

    return [
        PnlDistributionPoint(
            pnl=float((edges[k] + edges[k + 1]) / 2),
            count=int(counts[k]),
            range_start=float(edges[k]),
            range_end=float(edges[k + 1]),
        )
        for k in range(bins)
    ]
