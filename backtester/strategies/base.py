"""
Strategy definitions and the registry that dispatches on strategy id.

A StrategyDefinition bundles everything the runner needs to validate and
execute one strategy: a pydantic model holding the parameter defaults, the
minimum number of candles the indicators need, the signal generator, and
whether opposite signals reverse an open position.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Type

from pydantic import BaseModel, ValidationError

from backtester.backtesting.errors import InvalidParametersError, UnimplementedStrategyError
from backtester.models import Candle, Signal

SignalGenerator = Callable[[Sequence[Candle], Any], List[Signal]]


@dataclass(frozen=True)
class StrategyDefinition:
    id: str
    name: str
    description: str
    params_model: Type[BaseModel]
    lookback_label: str
    lookback: Callable[[Any], int]
    signal_generator: Optional[SignalGenerator] = None
    is_reversal: bool = False
    aliases: tuple = field(default=())

    @property
    def is_implemented(self) -> bool:
        return self.signal_generator is not None

    def default_params(self) -> Dict[str, Any]:
        return self.params_model().model_dump()

    def resolve_params(self, raw: Optional[Mapping[str, Any]] = None) -> BaseModel:
        """
        Fill defaults and accept snake_case or camelCase keys. Unknown keys are ignored.

        Raises:
            InvalidParametersError: a value has the wrong type or is out of range
        """
        try:
            return self.params_model.model_validate(dict(raw or {}))
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise InvalidParametersError(self.id, details) from e

    def min_lookback(self, params: BaseModel) -> int:
        return self.lookback(params)

    def has_enough_data(self, candles: Sequence[Candle], params: BaseModel) -> bool:
        return len(candles) >= self.min_lookback(params)

    def generate_signals(self, candles: Sequence[Candle], params: BaseModel) -> List[Signal]:
        if self.signal_generator is None:
            raise UnimplementedStrategyError(self.id)
        return self.signal_generator(candles, params)

    def describe(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_reversal': self.is_reversal,
            'implemented': self.is_implemented,
            'default_params': self.default_params(),
        }


class StrategyRegistry:
    """Strategy id (or alias) -> definition."""

    def __init__(self, definitions: Iterable[StrategyDefinition] = ()):
        self._definitions: Dict[str, StrategyDefinition] = {}
        self._aliases: Dict[str, str] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: StrategyDefinition) -> StrategyDefinition:
        if definition.id in self._definitions:
            raise ValueError(f"Strategy '{definition.id}' is already registered")
        self._definitions[definition.id] = definition
        for alias in definition.aliases:
            self._aliases[alias] = definition.id
        return definition

    def get(self, strategy_id: str) -> Optional[StrategyDefinition]:
        strategy_id = self._aliases.get(strategy_id, strategy_id)
        return self._definitions.get(strategy_id)

    def __contains__(self, strategy_id: str) -> bool:
        return self.get(strategy_id) is not None

    def list(self) -> List[StrategyDefinition]:
        return list(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)
