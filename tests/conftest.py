"""Shared candle/signal builders for the test suite."""

from typing import Dict, List, Optional, Sequence

import pytest
from pydantic import BaseModel

from backtester.backtesting.backtest_engine import BacktestConfig
from backtester.models import Candle, Signal
from backtester.strategies.base import StrategyDefinition, StrategyRegistry

BASE_TIME = 1_704_067_200  # 2024-01-01T00:00:00Z
HOUR = 3600


def make_candles(
    closes: Sequence[float],
    lows: Optional[Dict[int, float]] = None,
    highs: Optional[Dict[int, float]] = None,
    spread: float = 1.0,
    step: int = HOUR,
) -> List[Candle]:
    """Hourly candles opening at the close, high/low `spread` away unless overridden per index."""
    lows = lows or {}
    highs = highs or {}
    return [
        Candle(
            time=BASE_TIME + i * step,
            open=close,
            high=highs.get(i, close + spread),
            low=lows.get(i, close - spread),
            close=close,
        )
        for i, close in enumerate(closes)
    ]


def make_signals(count: int, actions: Dict[int, Signal]) -> List[Signal]:
    """`count` hold signals with the given indices replaced."""
    return [actions.get(i, Signal.hold()) for i in range(count)]


class NoParams(BaseModel):
    pass


def scripted_strategy(
    signals_by_index: Dict[int, Signal],
    *,
    strategy_id: str = "scripted",
    is_reversal: bool = False,
    trim_front: int = 0,
) -> StrategyDefinition:
    """A strategy that replays fixed signals, optionally dropping the first `trim_front` of them."""

    def generate(candles, params):
        return make_signals(len(candles), signals_by_index)[trim_front:]

    return StrategyDefinition(
        id=strategy_id,
        name="Scripted",
        description="Replays a fixed signal list",
        params_model=NoParams,
        lookback_label="scripted period",
        lookback=lambda p: 1,
        signal_generator=generate,
        is_reversal=is_reversal,
    )


def static_source(candles: Sequence[Candle]):
    """fetch_candles-style callable that ignores its arguments."""

    def fetch(instrument, timeframe, start, end):
        return list(candles)

    return fetch


@pytest.fixture
def frictionless_config():
    """No slippage, no commission: P&L is pure price movement."""
    return BacktestConfig(slippage_percent=0.0, commission_per_side=0.0)


@pytest.fixture
def scripted_registry():
    def build(*definitions: StrategyDefinition) -> StrategyRegistry:
        return StrategyRegistry(definitions)

    return build


@pytest.fixture(name="make_candles")
def make_candles_fixture():
    return make_candles


@pytest.fixture(name="make_signals")
def make_signals_fixture():
    return make_signals


@pytest.fixture(name="scripted_strategy")
def scripted_strategy_fixture():
    return scripted_strategy


@pytest.fixture(name="static_source")
def static_source_fixture():
    return static_source
