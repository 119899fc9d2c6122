"""
Integration tests for scripts/run_backtest.py.

Tests verify that:
1. A run against the mock provider prints the report and exits 0
2. --trades-csv writes the trade list
3. Backtest errors exit 1
"""

import importlib.util
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pandas as pd
import pytest

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "run_backtest.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("run_backtest_cli", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def no_console_handler(cli, monkeypatch):
    """Keep main() from attaching a handler to the captured stdout."""
    monkeypatch.setattr(cli, "setup_logging", lambda: None)


@pytest.fixture
def window():
    now = datetime.now(timezone.utc)
    return ["--start", (now - timedelta(days=60)).isoformat(), "--end", (now - timedelta(days=10)).isoformat()]


class TestRunBacktestScript:

    def test_parse_param(self, cli):
        assert cli.parse_param("longMAPeriod=30") == ("longMAPeriod", 30)
        assert cli.parse_param("stdDev=2.5") == ("stdDev", 2.5)
        assert cli.parse_param("label=fast") == ("label", "fast")

    def test_prints_report_and_writes_csv(self, cli, window, tmp_path, capsys):
        csv_path = tmp_path / "trades.csv"

        exit_code = cli.main(
            ["EURUSD", "sma_crossover", "--timeframe", "1H", "--provider", "mock", *window,
             "--trades-csv", str(csv_path)]
        )

        assert exit_code == 0
        assert "BACKTEST REPORT - EURUSD sma_crossover 1H" in capsys.readouterr().out
        trades = pd.read_csv(csv_path)
        assert len(trades) > 0
        assert {'entry_time', 'exit_time', 'pnl', 'exit_reason', 'outcome'} <= set(trades.columns)

    def test_unknown_strategy_exits_1(self, cli, window, capsys):
        exit_code = cli.main(["EURUSD", "turtle", "--provider", "mock", *window])

        assert exit_code == 1
        assert "Invalid strategy selected." in capsys.readouterr().err
