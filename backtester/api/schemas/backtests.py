import math
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_serializer

from backtester.config.settings import settings
from backtester.models import BacktestParams


class BacktestRequest(BaseModel):
    instrument: str = Field(..., min_length=1, examples=["EURUSD"])
    strategy_id: str = Field(..., examples=["sma_crossover"])
    timeframe: str = Field(..., examples=["1H"])
    start_date: datetime
    end_date: datetime
    initial_capital: float = Field(..., gt=0)
    strategy_params: dict[str, Any] = Field(default_factory=dict)
    risk_free_rate: float = Field(default=settings.default_risk_free_rate, description="Annualized")
    stop_loss_percent: Optional[float] = Field(default=None, ge=0, description="5 means 5%")
    take_profit_percent: Optional[float] = Field(default=None, ge=0, description="5 means 5%")

    def to_params(self) -> BacktestParams:
        return BacktestParams(
            instrument=self.instrument,
            strategy_id=self.strategy_id,
            timeframe=self.timeframe,
            start_date=self.start_date,
            end_date=self.end_date,
            initial_capital=self.initial_capital,
            strategy_params=dict(self.strategy_params),
            risk_free_rate=self.risk_free_rate,
            stop_loss_percent=self.stop_loss_percent,
            take_profit_percent=self.take_profit_percent,
        )


class TradeResponse(BaseModel):
    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    direction: str  # long/short
    size: float
    pnl: float
    pnl_percent: float
    exit_reason: str  # signal/sl/tp/end_of_data
    outcome: str  # win/loss/breakeven


class EquityPoint(BaseModel):
    time: int
    equity: float


class DrawdownPointResponse(BaseModel):
    time: int
    drawdown: float


class PnlBin(BaseModel):
    pnl: float
    count: int
    range_start: float
    range_end: float


class BacktestResultsResponse(BaseModel):
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
    trades: list[TradeResponse]
    equity_curve: list[EquityPoint]
    drawdown_curve: list[DrawdownPointResponse]
    pnl_distribution: list[PnlBin]
    logs: list[str]
    start_time: int
    end_time: int
    total_duration_days: float

    @field_serializer("profit_factor", "risk_reward_ratio", "sharpe_ratio", when_used="json")
    def _non_finite_as_string(self, value: Optional[float]) -> Union[float, str, None]:
        # JSON has no infinity; emit "Infinity" / "-Infinity" / "NaN"
        if value is None or math.isfinite(value):
            return value
        if math.isnan(value):
            return "NaN"
        return "Infinity" if value > 0 else "-Infinity"


class StrategyInfo(BaseModel):
    id: str
    name: str
    description: str
    is_reversal: bool
    implemented: bool
    default_params: dict[str, Any]


class StrategyListResponse(BaseModel):
    strategies: list[StrategyInfo]


class ErrorResponse(BaseModel):
    detail: str
