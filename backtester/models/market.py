from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Candle:
    """One OHLC(V) bar. `time` is the bar open in unix seconds."""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Candle":
        volume = data.get('volume')
        return cls(
            time=int(data['time']),
            open=float(data['open']),
            high=float(data['high']),
            low=float(data['low']),
            close=float(data['close']),
            volume=float(volume) if volume is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'time': self.time,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume,
        }


class SignalType(Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


@dataclass(frozen=True)
class Signal:
    """A strategy recommendation for one bar, optionally carrying a fill price."""
    type: SignalType
    price: Optional[float] = None

    @classmethod
    def hold(cls) -> "Signal":
        return cls(SignalType.HOLD)

    @classmethod
    def buy(cls, price: float) -> "Signal":
        return cls(SignalType.BUY, price)

    @classmethod
    def sell(cls, price: float) -> "Signal":
        return cls(SignalType.SELL, price)

    @property
    def is_actionable(self) -> bool:
        """Buy/sell with a usable price. A priceless buy/sell is treated as hold."""
        return self.type is not SignalType.HOLD and bool(self.price)
