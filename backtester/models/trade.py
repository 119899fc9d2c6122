from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Direction(Enum):
    LONG = "long"
    SHORT = "short"


class ExitReason(Enum):
    """Why a simulated trade was closed"""
    SIGNAL = "signal"
    STOP_LOSS = "sl"
    TAKE_PROFIT = "tp"
    END_OF_DATA = "end_of_data"


@dataclass(frozen=True)
class Position:
    """The single open simulated position."""
    direction: Direction
    entry_price: float
    entry_time: int
    stop_loss_price: Optional[float] = None
    take_profit_price: Optional[float] = None

    @property
    def is_long(self) -> bool:
        return self.direction is Direction.LONG


@dataclass(frozen=True)
class BacktestTrade:
    """Completed round-trip. Immutable once appended to the trade list."""
    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    direction: Direction
    size: float  # notional in USD
    pnl: float
    pnl_percent: float
    exit_reason: ExitReason

    @property
    def duration(self) -> int:
        """Holding time in seconds."""
        return self.exit_time - self.entry_time

    @property
    def outcome(self) -> str:
        if self.pnl > 0:
            return "win"
        if self.pnl < 0:
            return "loss"
        return "breakeven"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'entry_time': self.entry_time,
            'exit_time': self.exit_time,
            'entry_price': self.entry_price,
            'exit_price': self.exit_price,
            'direction': self.direction.value,
            'size': self.size,
            'pnl': self.pnl,
            'pnl_percent': self.pnl_percent,
            'exit_reason': self.exit_reason.value,
            'outcome': self.outcome,
        }
