"""
Performance statistics for a completed backtest.

Everything here is a pure function of the trade list and the equity curve.
Conventions:
- wins are pnl > 0, losses pnl < 0, breakeven pnl == 0
- ratios with an empty denominator are +inf when the numerator is positive, else 0
- expectancy is the plain average P&L per trade (total_pnl / total_trades),
  not the win-rate weighted formula
"""

import math
import re
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from backtester.models import BacktestTrade, EquityDataPoint

TRADING_DAYS_PER_YEAR = 252

_TIMEFRAME_PATTERN = re.compile(r"^(\d+)([A-Za-z]+)$")


def periods_per_year(timeframe: str) -> float:
    """
    Bars per year used to annualize the Sharpe ratio.

    "4H" -> 252 * 24 / 4, "15m" -> 252 * 24 * 60 / 15; daily, weekly and
    anything unrecognized use the 252 trading-day baseline. Upper-case "M" is
    not treated as minutes.
    """
    match = _TIMEFRAME_PATTERN.match(timeframe.strip())
    if match is None:
        return TRADING_DAYS_PER_YEAR

    amount = int(match.group(1))
    unit = match.group(2)
    if amount <= 0:
        return TRADING_DAYS_PER_YEAR
    if unit in ("H", "h"):
        return TRADING_DAYS_PER_YEAR * (24 / amount)
    if unit == "m":
        return TRADING_DAYS_PER_YEAR * 24 * (60 / amount)
    return TRADING_DAYS_PER_YEAR


def _ratio(numerator: float, denominator: float) -> float:
    if denominator > 0:
        return numerator / denominator
    return math.inf if numerator > 0 else 0.0


def equity_returns(equity_curve: Sequence[EquityDataPoint]) -> np.ndarray:
    """Point-to-point returns; a zero previous equity yields a 0 return."""
    equity = np.array([p.equity for p in equity_curve], dtype=float)
    if len(equity) < 2:
        return np.array([], dtype=float)
    prev = equity[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(prev != 0, (equity[1:] - prev) / prev, 0.0)


def sharpe_ratio(
    equity_curve: Sequence[EquityDataPoint],
    timeframe: str,
    risk_free_rate: float = 0.02,
) -> Optional[float]:
    """
    Annualized Sharpe ratio of the equity curve.

    Returns None with fewer than two return observations. With zero volatility
    the ratio is +inf if the mean return beats the per-period risk-free rate,
    else 0.
    """
    returns = equity_returns(equity_curve)
    if len(returns) < 2:
        return None

    ppy = periods_per_year(timeframe)
    period_risk_free = risk_free_rate / ppy
    mean_return = float(np.mean(returns))
    std_return = float(np.std(returns, ddof=1))

    if std_return > 0:
        return (mean_return - period_risk_free) / std_return * math.sqrt(ppy)
    if mean_return > period_risk_free:
        return math.inf
    return 0.0


def longest_streaks(trades: Sequence[BacktestTrade]) -> Tuple[int, int]:
    """(longest winning streak, longest losing streak). Breakeven trades reset both."""
    longest_win = longest_loss = 0
    current_win = current_loss = 0
    for trade in trades:
        if trade.pnl > 0:
            current_win += 1
            current_loss = 0
            longest_win = max(longest_win, current_win)
        elif trade.pnl < 0:
            current_loss += 1
            current_win = 0
            longest_loss = max(longest_loss, current_loss)
        else:
            current_win = current_loss = 0
    return longest_win, longest_loss


def average_duration(trades: Sequence[BacktestTrade]) -> float:
    """Mean holding time in seconds (0 for no trades)."""
    if not trades:
        return 0.0
    return sum(t.duration for t in trades) / len(trades)


def calculate_metrics(
    trades: Sequence[BacktestTrade],
    equity_curve: Sequence[EquityDataPoint],
    *,
    timeframe: str,
    risk_free_rate: float,
    initial_capital: float,
    final_equity: float,
) -> Dict[str, Any]:
    """Calculate summary statistics for one run."""
    total_trades = len(trades)
    winners = [t for t in trades if t.pnl > 0]
    losers = [t for t in trades if t.pnl < 0]
    breakeven_count = sum(1 for t in trades if t.pnl == 0)

    total_pnl = final_equity - initial_capital
    total_pnl_percent = total_pnl / initial_capital * 100 if initial_capital else 0.0

    gross_profit = sum(t.pnl for t in winners)
    gross_loss = abs(sum(t.pnl for t in losers))

    average_win = gross_profit / len(winners) if winners else 0.0
    average_loss = gross_loss / len(losers) if losers else 0.0  # absolute value
    average_win_percent = sum(t.pnl_percent for t in winners) / len(winners) if winners else 0.0
    average_loss_percent = abs(sum(t.pnl_percent for t in losers)) / len(losers) if losers else 0.0

    longest_win, longest_loss = longest_streaks(trades)

    return {
        'total_pnl': total_pnl,
        'total_pnl_percent': total_pnl_percent,
        'final_equity': final_equity,
        'total_trades': total_trades,
        'winning_trades': len(winners),
        'losing_trades': len(losers),
        'breakeven_trades': breakeven_count,
        'win_rate': len(winners) / total_trades if total_trades else 0.0,
        'loss_rate': len(losers) / total_trades if total_trades else 0.0,
        'breakeven_rate': breakeven_count / total_trades if total_trades else 0.0,
        'profit_factor': _ratio(gross_profit, gross_loss),
        'average_win_pnl': average_win,
        'average_loss_pnl': average_loss,
        'average_win_pnl_percent': average_win_percent,
        'average_loss_pnl_percent': average_loss_percent,
        'risk_reward_ratio': _ratio(average_win, average_loss),
        'expectancy': total_pnl / total_trades if total_trades else 0.0,
        # undefined without trades, even over a long flat curve
        'sharpe_ratio': sharpe_ratio(equity_curve, timeframe, risk_free_rate) if trades else None,
        'longest_winning_streak': longest_win,
        'longest_losing_streak': longest_loss,
        'average_trade_duration': average_duration(trades),
        'average_holding_period_win': average_duration(winners),
        'average_holding_period_loss': average_duration(losers),
    }
