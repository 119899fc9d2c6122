from typing import List, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from backtester.models import Candle, Signal
from backtester.strategies.base import StrategyDefinition
from backtester.strategies.indicators import rsi
from backtester.strategies.signals import closes, crosses_above, crosses_below, to_signals


class RsiThresholdParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    period: int = Field(default=14, ge=1, validation_alias=AliasChoices("period", "rsiPeriod", "rsi_period"))
    oversold: float = Field(
        default=30,
        validation_alias=AliasChoices("oversold", "oversoldLevel", "oversoldThreshold", "oversold_level"),
    )
    overbought: float = Field(
        default=70,
        validation_alias=AliasChoices("overbought", "overboughtLevel", "overboughtThreshold", "overbought_level"),
    )


def rsi_threshold_signals(candles: Sequence[Candle], params: RsiThresholdParams) -> List[Signal]:
    """Buy when RSI recovers up through oversold, sell when it falls back through overbought."""
    prices = closes(candles)
    values = rsi(prices, params.period)
    return to_signals(
        prices,
        crosses_above(values, params.oversold),
        crosses_below(values, params.overbought),
    )


RSI_THRESHOLD = StrategyDefinition(
    id="rsi_threshold",
    name="RSI Threshold",
    description="Buy when RSI crosses back above oversold, sell when it crosses back below overbought",
    params_model=RsiThresholdParams,
    lookback_label="RSI period",
    lookback=lambda p: p.period + 1,
    signal_generator=rsi_threshold_signals,
)
