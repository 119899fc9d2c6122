from fastapi import APIRouter, HTTPException, status

from backtester.api.schemas.backtests import (
    BacktestRequest,
    BacktestResultsResponse,
    ErrorResponse,
    StrategyInfo,
    StrategyListResponse,
)
from backtester.backtesting.runner import run_backtest
from backtester.strategies.registry import default_registry
from backtester.utils.logger import logger

router = APIRouter(tags=["backtests"])


@router.get("/strategies", response_model=StrategyListResponse)
async def list_strategies():
    """Available strategies with their default parameters."""
    return StrategyListResponse(
        strategies=[StrategyInfo(**definition.describe()) for definition in default_registry.list()]
    )


@router.post(
    "/backtests",
    response_model=BacktestResultsResponse,
    responses={400: {"model": ErrorResponse}},
)
def create_backtest(request: BacktestRequest):
    """
    Run a backtest and return the full results.

    CPU-bound, so this is a plain def and runs in FastAPI's threadpool.
    """
    logger.info(f"Backtest requested: {request.instrument} {request.strategy_id} {request.timeframe}")
    response = run_backtest(request.to_params())

    if response.error is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=response.error)

    return BacktestResultsResponse.model_validate(response.results.to_dict())
