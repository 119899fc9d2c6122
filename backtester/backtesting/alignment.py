import logging
from typing import List, Sequence

from backtester.models import Signal

logger = logging.getLogger(__name__)


def align_signals(signals: Sequence[Signal], candle_count: int) -> List[Signal]:
    """
    Make the signal list index-aligned with the candle list.

    Strategy output is assumed to describe the most recent bars:
    - shorter: left-pad with hold signals
    - longer: keep the trailing `candle_count` signals

    A strategy with an internal off-by-one will still be shifted this way and
    produce misleading trades; nothing here tries to detect that.
    """
    diff = candle_count - len(signals)
    if diff == 0:
        return list(signals)

    logger.warning(
        f"Signals array length ({len(signals)}) does not match historical data length ({candle_count})"
    )
    if diff > 0:
        return [Signal.hold() for _ in range(diff)] + list(signals)
    return list(signals[-diff:])
