"""
Backtest failure taxonomy.

All of these are raised before any position is opened and are converted into
BacktestResponse.error by run_backtest(); none escape the entry point.
"""


class BacktestError(Exception):
    """Base class for expected, user-facing backtest failures."""


class NoDataError(BacktestError):
    def __init__(self, message: str = "No historical data found for the selected criteria."):
        super().__init__(message)


class UnknownStrategyError(BacktestError):
    def __init__(self, strategy_id: str, message: str = "Invalid strategy selected."):
        self.strategy_id = strategy_id
        super().__init__(message)


class InvalidParametersError(BacktestError):
    def __init__(self, strategy_id: str, details: str):
        self.strategy_id = strategy_id
        super().__init__(f"Invalid strategy parameters: {details}")


class InsufficientDataError(BacktestError):
    """Fewer bars than the strategy's minimum lookback."""

    def __init__(self, strategy_id: str, label: str, required: int, actual: int):
        self.strategy_id = strategy_id
        self.required = required
        self.actual = actual
        super().__init__(
            f"Not enough data for {label}. Need at least {required} candles, got {actual}."
        )


class UnimplementedStrategyError(BacktestError):
    def __init__(self, strategy_id: str, message: str = "Strategy not implemented."):
        self.strategy_id = strategy_id
        super().__init__(message)


class InvalidDateError(BacktestError):
    def __init__(self, value):
        super().__init__(f"Invalid date: {value!r}")
