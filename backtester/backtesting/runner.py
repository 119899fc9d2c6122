"""
Backtest entry point.

run_backtest() wires the pieces together:
  1. Fetch candles for the requested instrument/timeframe/date range
  2. Look up the strategy and resolve its parameters
  3. Check there are enough candles for the strategy's indicators
  4. Generate signals once and align them to the candles
  5. Replay through BacktestEngine
  6. Aggregate statistics and the P&L histogram

Every failure is reported through BacktestResponse.error; run_backtest()
itself never raises.

Usage:
    from backtester.backtesting.runner import run_backtest, format_report
    from backtester.models import BacktestParams

    response = run_backtest(BacktestParams(
        instrument="EURUSD", strategy_id="sma_crossover", timeframe="1H",
        start_date="2024-01-01", end_date="2024-03-01", initial_capital=10000,
    ))
    if response.ok:
        print(format_report(response.results))
"""

import json
import logging
from datetime import datetime
from typing import Optional, Sequence, Union

import pandas as pd

from backtester.backtesting.alignment import align_signals
from backtester.backtesting.backtest_engine import BacktestConfig, BacktestEngine
from backtester.backtesting.errors import (
    BacktestError,
    InsufficientDataError,
    InvalidDateError,
    NoDataError,
    UnimplementedStrategyError,
    UnknownStrategyError,
)
from backtester.backtesting.histogram import build_pnl_histogram
from backtester.backtesting.metrics import calculate_metrics
from backtester.data.historical import CandleSource, get_data_source
from backtester.models import BacktestParams, BacktestResponse, BacktestResults, Candle
from backtester.strategies.base import StrategyRegistry
from backtester.strategies.registry import default_registry

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


def parse_date(value: Union[str, datetime]) -> datetime:
    """ISO string or datetime -> timezone-aware UTC datetime. Naive values are taken as UTC."""
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise InvalidDateError(value) from e
    if ts is pd.NaT:
        raise InvalidDateError(value)
    ts = ts.tz_localize('UTC') if ts.tzinfo is None else ts.tz_convert('UTC')
    return ts.to_pydatetime()


def run_backtest(
    params: BacktestParams,
    config: Optional[BacktestConfig] = None,
    data_source: Optional[CandleSource] = None,
    registry: Optional[StrategyRegistry] = None,
) -> BacktestResponse:
    """
    Run one backtest.

    Args:
        params: Instrument, strategy, date range, capital and risk settings
        config: Trade cost model (defaults to the values in settings)
        data_source: fetch_candles-style callable (defaults to the configured provider)
        registry: Strategy registry (defaults to the built-in strategies)

    Returns:
        BacktestResponse with either results or an error message
    """
    try:
        results = _execute(
            params,
            config or BacktestConfig.from_settings(),
            data_source or get_data_source(),
            registry or default_registry,
        )
        return BacktestResponse(results=results)
    except BacktestError as e:
        logger.warning(f"Backtest for {params.instrument}/{params.strategy_id} rejected: {e}")
        return BacktestResponse(error=str(e))
    except Exception as e:
        logger.exception("Backtesting error")
        return BacktestResponse(error=f"An unexpected error occurred during backtesting: {e}")


def _execute(
    params: BacktestParams,
    config: BacktestConfig,
    data_source: CandleSource,
    registry: StrategyRegistry,
) -> BacktestResults:
    start = parse_date(params.start_date)
    end = parse_date(params.end_date)

    candles: Sequence[Candle] = list(data_source(params.instrument, params.timeframe, start, end))
    if not candles:
        raise NoDataError()

    definition = registry.get(params.strategy_id)
    if definition is None:
        raise UnknownStrategyError(params.strategy_id)

    logs = [
        f"Starting backtest for {params.instrument} with strategy {definition.name}",
        f"Date range: {start.isoformat()} to {end.isoformat()}, Timeframe: {params.timeframe}",
        f"Initial capital: ${params.initial_capital:.2f}",
        f"Strategy params: {json.dumps(params.strategy_params, default=str)}",
    ]
    if params.stop_loss_percent:
        logs.append(f"Stop Loss: {params.stop_loss_percent}%")
    if params.take_profit_percent:
        logs.append(f"Take Profit: {params.take_profit_percent}%")
    logs.append(f"Fetched {len(candles)} data points.")

    strategy_params = definition.resolve_params(params.strategy_params)
    required = definition.min_lookback(strategy_params)
    if len(candles) < required:
        raise InsufficientDataError(definition.id, definition.lookback_label, required, len(candles))
    if not definition.is_implemented:
        raise UnimplementedStrategyError(definition.id)

    raw_signals = definition.generate_signals(candles, strategy_params)
    logs.append(f"Generated {len(raw_signals)} signals.")
    if len(raw_signals) != len(candles):
        logs.append(
            f"Warning: Signals array length ({len(raw_signals)}) does not match "
            f"historical data length ({len(candles)})."
        )
    signals = align_signals(raw_signals, len(candles))

    logger.info(
        f"Running {definition.id} on {params.instrument} {params.timeframe}: {len(candles)} candles"
    )
    state = BacktestEngine(config).run(
        candles,
        signals,
        initial_capital=params.initial_capital,
        is_reversal=definition.is_reversal,
        stop_loss_percent=params.stop_loss_percent,
        take_profit_percent=params.take_profit_percent,
    )

    metrics = calculate_metrics(
        state.trades,
        state.equity_curve,
        timeframe=params.timeframe,
        risk_free_rate=params.risk_free_rate,
        initial_capital=params.initial_capital,
        final_equity=state.equity,
    )
    pnl_distribution = build_pnl_histogram([t.pnl for t in state.trades])

    logs.extend(state.logs)
    logs.append(
        f"Backtest finished. Total P&L: {metrics['total_pnl']:.2f}, "
        f"Win Rate: {metrics['win_rate'] * 100:.2f}%, Trades: {metrics['total_trades']}"
    )

    start_time = candles[0].time
    end_time = candles[-1].time

    return BacktestResults(
        **metrics,
        max_drawdown=state.max_drawdown,
        trades=state.trades,
        equity_curve=state.equity_curve,
        drawdown_curve=state.drawdown_curve,
        pnl_distribution=pnl_distribution,
        logs=logs,
        start_time=start_time,
        end_time=end_time,
        total_duration_days=(end_time - start_time) / SECONDS_PER_DAY,
    )


def format_report(results: BacktestResults, title: str = "BACKTEST REPORT") -> str:
    """Plain-text summary of a run."""
    sharpe = "n/a" if results.sharpe_ratio is None else f"{results.sharpe_ratio:.2f}"
    initial_capital = results.final_equity - results.total_pnl
    lines = [
        "=" * 60,
        title,
        "=" * 60,
        "",
        f"Capital: ${initial_capital:,.2f} -> ${results.final_equity:,.2f}",
        f"Total P&L: ${results.total_pnl:,.2f} ({results.total_pnl_percent:.2f}%)",
        f"Sharpe Ratio: {sharpe}",
        f"Max Drawdown: {results.max_drawdown:.2%}",
        f"Period: {results.total_duration_days:.1f} days",
        "",
        f"Trades: {results.total_trades} "
        f"(W {results.winning_trades} / L {results.losing_trades} / BE {results.breakeven_trades})",
        f"Win Rate: {results.win_rate:.2%}",
        f"Profit Factor: {results.profit_factor:.2f}",
        f"Avg Win: ${results.average_win_pnl:,.2f}",
        f"Avg Loss: ${results.average_loss_pnl:,.2f}",
        f"Risk/Reward: {results.risk_reward_ratio:.2f}",
        f"Expectancy: ${results.expectancy:,.2f}",
        f"Longest Streaks: {results.longest_winning_streak} wins / {results.longest_losing_streak} losses",
        "=" * 60,
    ]
    return "\n".join(lines)
