"""
Backtesting module for rule-based trading strategies.

Provides:
- Bar-by-bar replay with no lookahead (backtest_engine)
- Stop-loss / take-profit, slippage and commission modelling
- Performance metrics (Sharpe, drawdown, win rate, streaks) and P&L histogram

The run_backtest() entry point lives in backtester.backtesting.runner.
"""

from .backtest_engine import BacktestConfig, BacktestEngine, SimulationState
from .alignment import align_signals
from .errors import BacktestError

__all__ = ["BacktestConfig", "BacktestEngine", "SimulationState", "align_signals", "BacktestError"]
