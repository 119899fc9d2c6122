from typing import List, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from backtester.models import Candle, Signal
from backtester.strategies.base import StrategyDefinition
from backtester.strategies.indicators import sma
from backtester.strategies.signals import closes, crosses_above, crosses_below, to_signals


class SmaCrossoverParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    short_period: int = Field(
        default=10, ge=1, validation_alias=AliasChoices("short_period", "shortMAPeriod", "short_ma_period")
    )
    long_period: int = Field(
        default=20, ge=1, validation_alias=AliasChoices("long_period", "longMAPeriod", "long_ma_period")
    )


def sma_crossover_signals(candles: Sequence[Candle], params: SmaCrossoverParams) -> List[Signal]:
    """
    Buy when the short SMA crosses above the long SMA, sell on the opposite cross.

    Emits one signal per candle from the second candle on (len(candles) - 1
    signals); the runner left-pads the missing first bar.
    """
    prices = closes(candles)
    short = sma(prices, params.short_period)
    long = sma(prices, params.long_period)
    signals = to_signals(prices, crosses_above(short, long), crosses_below(short, long))
    return signals[1:]


SMA_CROSSOVER = StrategyDefinition(
    id="sma_crossover",
    name="SMA Crossover",
    description="Buy when fast SMA crosses above slow SMA, sell when it crosses below",
    params_model=SmaCrossoverParams,
    lookback_label="MA periods",
    lookback=lambda p: p.long_period,
    signal_generator=sma_crossover_signals,
)
