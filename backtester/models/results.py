from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from backtester.models.trade import BacktestTrade


@dataclass
class BacktestParams:
    """Everything a caller specifies for one backtest run."""
    instrument: str
    strategy_id: str
    timeframe: str  # e.g. "15m", "1H", "4H", "1D"
    start_date: Union[str, datetime]
    end_date: Union[str, datetime]
    initial_capital: float
    strategy_params: Dict[str, Any] = field(default_factory=dict)
    risk_free_rate: float = 0.02  # annualized
    stop_loss_percent: Optional[float] = None  # 5 means 5%
    take_profit_percent: Optional[float] = None


@dataclass
class EquityDataPoint:
    time: int
    equity: float


@dataclass
class DrawdownPoint:
    time: int
    drawdown: float  # fraction of running peak, 0.05 = 5%


@dataclass(frozen=True)
class PnlDistributionPoint:
    """One histogram bin of trade P&L. `pnl` is the bin midpoint."""
    pnl: float
    count: int
    range_start: float
    range_end: float


@dataclass(frozen=True)
class BacktestResults:
    """Fully populated outcome of a backtest run."""
    total_pnl: float
    total_pnl_percent: float
    final_equity: float
    win_rate: float
    loss_rate: float
    breakeven_rate: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    breakeven_trades: int
    max_drawdown: float
    sharpe_ratio: Optional[float]
    profit_factor: float
    average_win_pnl: float
    average_loss_pnl: float
    average_win_pnl_percent: float
    average_loss_pnl_percent: float
    risk_reward_ratio: float
    expectancy: float
    longest_winning_streak: int
    longest_losing_streak: int
    average_trade_duration: float
    average_holding_period_win: float
    average_holding_period_loss: float
    trades: List[BacktestTrade]
    equity_curve: List[EquityDataPoint]
    drawdown_curve: List[DrawdownPoint]
    pnl_distribution: List[PnlDistributionPoint]
    logs: List[str]
    start_time: int
    end_time: int
    total_duration_days: float

    def summary(self) -> Dict[str, Any]:
        """Scalar statistics only (no series)."""
        series = {'trades', 'equity_curve', 'drawdown_curve', 'pnl_distribution', 'logs'}
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name not in series}

    def to_dict(self) -> Dict[str, Any]:
        data = self.summary()
        data['trades'] = [t.to_dict() for t in self.trades]
        data['equity_curve'] = [{'time': p.time, 'equity': p.equity} for p in self.equity_curve]
        data['drawdown_curve'] = [{'time': p.time, 'drawdown': p.drawdown} for p in self.drawdown_curve]
        data['pnl_distribution'] = [
            {'pnl': b.pnl, 'count': b.count, 'range_start': b.range_start, 'range_end': b.range_end}
            for b in self.pnl_distribution
        ]
        data['logs'] = list(self.logs)
        return data

    def trades_frame(self) -> pd.DataFrame:
        """Trades as a DataFrame with datetime entry/exit columns."""
        if not self.trades:
            return pd.DataFrame()
        df = pd.DataFrame([t.to_dict() for t in self.trades])
        df['entry_time'] = pd.to_datetime(df['entry_time'], unit='s', utc=True)
        df['exit_time'] = pd.to_datetime(df['exit_time'], unit='s', utc=True)
        return df

    def equity_frame(self) -> pd.DataFrame:
        """Equity and drawdown curves joined on bar time."""
        equity = pd.DataFrame(
            {'time': [p.time for p in self.equity_curve], 'equity': [p.equity for p in self.equity_curve]}
        )
        drawdown = pd.DataFrame(
            {'time': [p.time for p in self.drawdown_curve], 'drawdown': [p.drawdown for p in self.drawdown_curve]}
        )
        df = equity.merge(drawdown, on='time', how='outer').sort_values('time')
        df['date'] = pd.to_datetime(df['time'], unit='s', utc=True)
        return df.set_index('date')


@dataclass
class BacktestResponse:
    """Return value of run_backtest(): results on success, error text otherwise."""
    results: Optional[BacktestResults] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.results is not None
