"""
Signal generators

Each strategy module exposes a pydantic params model, a pure
`(candles, params) -> list[Signal]` generator and its StrategyDefinition.
"""

from backtester.strategies.base import StrategyDefinition, StrategyRegistry
from backtester.strategies.registry import default_registry

__all__ = ["StrategyDefinition", "StrategyRegistry", "default_registry"]
