"""
Integration tests for the HTTP API.

Tests verify that:
1. Service endpoints respond
2. POST /api/backtests runs against the configured (mock) provider
3. Backtest failures map to 400 and malformed requests to 422
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from backtester.api.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def request_body():
    now = datetime.now(timezone.utc)
    return {
        "instrument": "EURUSD",
        "strategy_id": "sma_crossover",
        "timeframe": "1D",
        "start_date": (now - timedelta(days=200)).isoformat(),
        "end_date": (now - timedelta(days=10)).isoformat(),
        "initial_capital": 10000,
        "strategy_params": {"shortMAPeriod": 5, "longMAPeriod": 15},
        "stop_loss_percent": 3,
    }


class TestServiceEndpoints:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["strategies"] == 4

    def test_list_strategies(self, client):
        response = client.get("/api/strategies")

        assert response.status_code == 200
        strategies = {s["id"]: s for s in response.json()["strategies"]}
        assert set(strategies) == {"sma_crossover", "rsi_threshold", "bb_breakout", "macd_crossover"}
        assert strategies["bb_breakout"]["is_reversal"] is True
        assert strategies["sma_crossover"]["default_params"] == {"short_period": 10, "long_period": 20}


class TestCreateBacktest:

    def test_success(self, client, request_body):
        response = client.post("/api/backtests", json=request_body)

        assert response.status_code == 200
        data = response.json()
        assert data["total_trades"] == len(data["trades"])
        assert len(data["equity_curve"]) == len(data["drawdown_curve"])
        assert data["equity_curve"][0]["equity"] == 10000
        assert data["logs"][0] == "Starting backtest for EURUSD with strategy SMA Crossover"
        assert isinstance(data["profit_factor"], (int, float, str))
        for trade in data["trades"]:
            assert trade["direction"] in ("long", "short")
            assert trade["exit_reason"] in ("signal", "sl", "tp", "end_of_data")

    def test_bollinger_alias(self, client, request_body):
        request_body.update(strategy_id="bollinger_breakout", strategy_params={})

        response = client.post("/api/backtests", json=request_body)

        assert response.status_code == 200

    def test_unknown_strategy_is_400(self, client, request_body):
        request_body["strategy_id"] = "turtle"

        response = client.post("/api/backtests", json=request_body)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid strategy selected."

    def test_unknown_instrument_is_400(self, client, request_body):
        request_body["instrument"] = "DOGE"

        response = client.post("/api/backtests", json=request_body)

        assert response.status_code == 400
        assert response.json()["detail"] == "No historical data found for the selected criteria."

    def test_insufficient_data_is_400(self, client, request_body):
        request_body["strategy_params"] = {"longMAPeriod": 500}

        response = client.post("/api/backtests", json=request_body)

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Not enough data for MA periods")

    @pytest.mark.parametrize(
        "field, value",
        [("initial_capital", 0), ("initial_capital", -5), ("stop_loss_percent", -1), ("start_date", "soon")],
    )
    def test_malformed_request_is_422(self, client, request_body, field, value):
        request_body[field] = value

        response = client.post("/api/backtests", json=request_body)

        assert response.status_code == 422
