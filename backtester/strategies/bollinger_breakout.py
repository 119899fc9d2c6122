from typing import List, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from backtester.models import Candle, Signal
from backtester.strategies.base import StrategyDefinition
from backtester.strategies.indicators import rolling_std, sma
from backtester.strategies.signals import closes, to_signals


class BollingerBreakoutParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    period: int = Field(default=20, ge=1, validation_alias=AliasChoices("period", "bbPeriod", "bb_period"))
    std_dev: float = Field(
        default=2, gt=0, validation_alias=AliasChoices("std_dev", "bbStdDev", "stdDev", "bb_std_dev")
    )


def bollinger_bands(candles: Sequence[Candle], period: int, std_dev: float):
    """(middle, upper, lower) bands over the closes."""
    prices = closes(candles)
    middle = sma(prices, period)
    width = rolling_std(prices, period) * std_dev
    return middle, middle + width, middle - width


def bollinger_breakout_signals(candles: Sequence[Candle], params: BollingerBreakoutParams) -> List[Signal]:
    """
    Buy when the close breaks above the upper band, sell when it breaks below
    the lower band. A breakout needs the previous close inside (or on) the
    previous band.
    """
    prices = closes(candles)
    _, upper, lower = bollinger_bands(candles, params.period, params.std_dev)
    prev_close = prices.shift(1)

    buy = (prev_close <= upper.shift(1)) & (prices > upper)
    sell = (prev_close >= lower.shift(1)) & (prices < lower)
    return to_signals(prices, buy, sell)


BOLLINGER_BREAKOUT = StrategyDefinition(
    id="bb_breakout",
    name="Bollinger Band Breakout",
    description="Buy when price breaks above upper band, sell when it breaks below lower band",
    params_model=BollingerBreakoutParams,
    lookback_label="Bollinger Bands period",
    lookback=lambda p: p.period,
    signal_generator=bollinger_breakout_signals,
    is_reversal=True,
    aliases=("bollinger_breakout",),
)
