"""
Backtest domain models

- Candle, Signal: inputs supplied by data and strategy collaborators
- Position, BacktestTrade: simulated trade state and completed round-trips
- BacktestParams, BacktestResults, BacktestResponse: run request and outcome
"""

from backtester.models.market import Candle, Signal, SignalType
from backtester.models.trade import BacktestTrade, Direction, ExitReason, Position
from backtester.models.results import (
    BacktestParams,
    BacktestResponse,
    BacktestResults,
    DrawdownPoint,
    EquityDataPoint,
    PnlDistributionPoint,
)

__all__ = [
    "Candle",
    "Signal",
    "SignalType",
    "BacktestTrade",
    "Direction",
    "ExitReason",
    "Position",
    "BacktestParams",
    "BacktestResponse",
    "BacktestResults",
    "DrawdownPoint",
    "EquityDataPoint",
    "PnlDistributionPoint",
]
