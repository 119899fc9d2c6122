#!/usr/bin/env python3
"""
Run a single backtest from the command line and print the report.

Example:
    python scripts/run_backtest.py EURUSD sma_crossover --timeframe 1H \
        --start 2025-01-01 --end 2025-06-01 --param shortMAPeriod=5 --param longMAPeriod=30 \
        --stop-loss 2 --take-profit 4
"""
import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from backtester.backtesting.runner import format_report, run_backtest
from backtester.config.settings import settings
from backtester.data.historical import get_data_source
from backtester.models import BacktestParams
from backtester.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def parse_param(raw: str):
    """KEY=VALUE; the value is parsed as JSON when possible (numbers, booleans), else kept as text."""
    key, sep, value = raw.partition('=')
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    try:
        return key, json.loads(value)
    except json.JSONDecodeError:
        return key, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Backtest a trading strategy on historical candles")
    parser.add_argument('instrument', help="e.g. EURUSD, BTCUSD, AAPL")
    parser.add_argument('strategy', help="sma_crossover, rsi_threshold, bb_breakout or macd_crossover")
    parser.add_argument('--timeframe', default='1H')
    parser.add_argument('--start', required=True, help="ISO date or datetime")
    parser.add_argument('--end', required=True, help="ISO date or datetime")
    parser.add_argument('--capital', type=float, default=10000.0)
    parser.add_argument('--param', action='append', type=parse_param, default=[], metavar='KEY=VALUE')
    parser.add_argument('--risk-free-rate', type=float, default=settings.default_risk_free_rate)
    parser.add_argument('--stop-loss', type=float, default=None, help="percent, 5 = 5%%")
    parser.add_argument('--take-profit', type=float, default=None, help="percent, 5 = 5%%")
    parser.add_argument('--provider', choices=['mock', 'yfinance'], default=None)
    parser.add_argument('--show-log', action='store_true', help="print the run log after the report")
    parser.add_argument('--trades-csv', type=Path, default=None, help="write the trade list to CSV")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    params = BacktestParams(
        instrument=args.instrument,
        strategy_id=args.strategy,
        timeframe=args.timeframe,
        start_date=args.start,
        end_date=args.end,
        initial_capital=args.capital,
        strategy_params=dict(args.param),
        risk_free_rate=args.risk_free_rate,
        stop_loss_percent=args.stop_loss,
        take_profit_percent=args.take_profit,
    )

    response = run_backtest(params, data_source=get_data_source(args.provider))
    if not response.ok:
        logger.error(f"Backtest failed: {response.error}")
        print(f"Error: {response.error}", file=sys.stderr)
        return 1

    results = response.results
    print(format_report(results, title=f"BACKTEST REPORT - {args.instrument} {args.strategy} {args.timeframe}"))

    if args.show_log:
        print("\n".join(results.logs))

    if args.trades_csv is not None:
        results.trades_frame().to_csv(args.trades_csv, index=False)
        logger.info(f"Wrote {results.total_trades} trades to {args.trades_csv}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
