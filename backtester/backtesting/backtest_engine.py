"""
Bar-by-bar backtesting engine for a single instrument.

Features:
- Chronological replay (no lookahead: each bar only sees its own signal)
- At most one open position; reversal strategies flip sides within a bar
- Intrabar stop-loss / take-profit against the bar's high/low, stop-loss first
- Constant notional per trade, flat commission per side, percentage slippage
- Equity and drawdown curves with one point per bar time

Usage:
    from backtester.backtesting.backtest_engine import BacktestEngine, BacktestConfig

    engine = BacktestEngine(BacktestConfig(slippage_percent=0.001))
    state = engine.run(candles, signals, initial_capital=10000, is_reversal=False)

    print(state.equity, len(state.trades))
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from backtester.backtesting.errors import NoDataError
from backtester.config.settings import Settings, settings as default_settings
from backtester.models import (
    BacktestTrade,
    Candle,
    Direction,
    DrawdownPoint,
    EquityDataPoint,
    ExitReason,
    Position,
    Signal,
    SignalType,
)

logger = logging.getLogger(__name__)


@dataclass
class BacktestConfig:
    """Trade execution cost model."""
    fixed_trade_size_usd: float = 10000.0  # constant notional per trade, does not compound
    commission_per_side: float = 1.0  # USD, charged for both legs at exit
    slippage_percent: float = 0.0005  # 0.05% adverse fill per side

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "BacktestConfig":
        source = source or default_settings
        return cls(
            fixed_trade_size_usd=source.fixed_trade_size_usd,
            commission_per_side=source.commission_per_side_usd,
            slippage_percent=source.slippage_percent,
        )


@dataclass
class SimulationState:
    """Scratch state of one run. Created fresh per run and threaded through process_bar()."""
    equity: float
    peak_equity: float
    current_drawdown: float = 0.0
    max_drawdown: float = 0.0
    position: Optional[Position] = None
    trades: List[BacktestTrade] = field(default_factory=list)
    equity_curve: List[EquityDataPoint] = field(default_factory=list)
    drawdown_curve: List[DrawdownPoint] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    @classmethod
    def start(cls, initial_capital: float, first_time: int) -> "SimulationState":
        return cls(
            equity=initial_capital,
            peak_equity=initial_capital,
            equity_curve=[EquityDataPoint(first_time, initial_capital)],
            drawdown_curve=[DrawdownPoint(first_time, 0.0)],
        )


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class BacktestEngine:
    """
    Replays candles and their aligned signals through a simple execution model.

    The engine holds only configuration; all per-run state lives in the
    SimulationState it returns, so one engine can serve many runs.
    """

    def __init__(self, config: Optional[BacktestConfig] = None):
        self.config = config or BacktestConfig()

    def run(
        self,
        candles: Sequence[Candle],
        signals: Sequence[Signal],
        *,
        initial_capital: float,
        is_reversal: bool = False,
        stop_loss_percent: Optional[float] = None,
        take_profit_percent: Optional[float] = None,
    ) -> SimulationState:
        """
        Run the full replay loop.

        Args:
            candles: Chronologically ordered bars
            signals: One signal per candle (see align_signals())
            initial_capital: Starting equity
            is_reversal: Opposite signals close and flip an open position
            stop_loss_percent: Protective stop distance in percent of entry (5 = 5%)
            take_profit_percent: Profit target distance in percent of entry

        Returns:
            Final SimulationState (trades, curves, run log)
        """
        if not candles:
            raise NoDataError()
        if len(signals) != len(candles):
            raise ValueError(
                f"{len(signals)} signals for {len(candles)} candles; align signals before replay"
            )

        logger.info(f"Replaying {len(candles)} bars (reversal={is_reversal})")

        state = SimulationState.start(initial_capital, candles[0].time)
        last_index = len(candles) - 1

        for i, candle in enumerate(candles):
            self.process_bar(
                state,
                candle,
                signals[i] or Signal.hold(),
                is_last=i == last_index,
                is_reversal=is_reversal,
                stop_loss_percent=stop_loss_percent,
                take_profit_percent=take_profit_percent,
            )

        self._finalize(state, candles[-1].time)

        logger.info(f"Replay complete: {len(state.trades)} trades, equity {state.equity:.2f}")
        return state

    def process_bar(
        self,
        state: SimulationState,
        candle: Candle,
        signal: Signal,
        *,
        is_last: bool = False,
        is_reversal: bool = False,
        stop_loss_percent: Optional[float] = None,
        take_profit_percent: Optional[float] = None,
    ) -> None:
        """Advance the simulation by one bar."""
        self._record_bar(state, candle)

        equity_changed = False

        if state.position is not None:
            protective_exit = self._check_protective_exit(state.position, candle)
            if protective_exit is not None:
                exit_price, reason = protective_exit
                self._close_position(state, exit_price, candle.time, reason)
                equity_changed = True

        # Signals are ignored on a bar where a stop or target already fired
        if not equity_changed and signal.is_actionable:
            equity_changed = self._apply_signal(
                state, candle, signal, is_reversal, stop_loss_percent, take_profit_percent
            )

        if is_last and state.position is not None:
            self._close_position(state, candle.close, candle.time, ExitReason.END_OF_DATA)
            equity_changed = True

        if equity_changed:
            self._set_equity_point(state, candle.time)

    # ─────────────────────────────────────────────────────────────────────────
    # Bookkeeping
    # ─────────────────────────────────────────────────────────────────────────

    def _record_bar(self, state: SimulationState, candle: Candle) -> None:
        """Equity point for the bar, then peak / drawdown from the equity carried into it."""
        if state.equity_curve[-1].time != candle.time:
            state.equity_curve.append(EquityDataPoint(candle.time, state.equity))

        state.peak_equity = max(state.peak_equity, state.equity)
        state.current_drawdown = (
            (state.peak_equity - state.equity) / state.peak_equity if state.peak_equity > 0 else 0.0
        )
        state.max_drawdown = max(state.max_drawdown, state.current_drawdown)

        if state.drawdown_curve[-1].time != candle.time:
            state.drawdown_curve.append(DrawdownPoint(candle.time, state.current_drawdown))
        else:
            state.drawdown_curve[-1].drawdown = state.current_drawdown

    def _set_equity_point(self, state: SimulationState, time: int) -> None:
        if state.equity_curve[-1].time != time:
            state.equity_curve.append(EquityDataPoint(time, state.equity))
        else:
            state.equity_curve[-1].equity = state.equity

    def _finalize(self, state: SimulationState, last_time: int) -> None:
        self._set_equity_point(state, last_time)
        if state.drawdown_curve[-1].time != last_time:
            state.drawdown_curve.append(DrawdownPoint(last_time, state.current_drawdown))
        else:
            state.drawdown_curve[-1].drawdown = state.current_drawdown

    # ─────────────────────────────────────────────────────────────────────────
    # Exits and entries
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _check_protective_exit(
        position: Position,
        candle: Candle,
    ) -> Optional[Tuple[float, ExitReason]]:
        """Stop-loss is checked before take-profit: if both levels sit inside the bar, assume the loss."""
        sl = position.stop_loss_price
        tp = position.take_profit_price

        if position.is_long:
            if sl is not None and candle.low <= sl:
                return sl, ExitReason.STOP_LOSS
            if tp is not None and candle.high >= tp:
                return tp, ExitReason.TAKE_PROFIT
        else:
            if sl is not None and candle.high >= sl:
                return sl, ExitReason.STOP_LOSS
            if tp is not None and candle.low <= tp:
                return tp, ExitReason.TAKE_PROFIT
        return None

    def _apply_signal(
        self,
        state: SimulationState,
        candle: Candle,
        signal: Signal,
        is_reversal: bool,
        stop_loss_percent: Optional[float],
        take_profit_percent: Optional[float],
    ) -> bool:
        """Returns True if a position was opened (and possibly one closed) on this bar."""
        direction = Direction.LONG if signal.type is SignalType.BUY else Direction.SHORT
        position = state.position

        if position is not None and position.direction is not direction and is_reversal:
            exit_price = self.exit_fill_price(position.direction, signal.price)
            self._close_position(
                state, exit_price, candle.time, ExitReason.SIGNAL, reversing_to=direction
            )

        if state.position is not None:
            return False

        self._open_position(
            state, direction, signal.price, candle.time, stop_loss_percent, take_profit_percent
        )
        return True

    def entry_fill_price(self, direction: Direction, price: float) -> float:
        """Slippage always works against the trader: longs pay up, shorts sell lower."""
        slip = self.config.slippage_percent
        return price * (1 + slip) if direction is Direction.LONG else price * (1 - slip)

    def exit_fill_price(self, direction: Direction, price: float) -> float:
        slip = self.config.slippage_percent
        return price * (1 - slip) if direction is Direction.LONG else price * (1 + slip)

    def _open_position(
        self,
        state: SimulationState,
        direction: Direction,
        signal_price: float,
        time: int,
        stop_loss_percent: Optional[float],
        take_profit_percent: Optional[float],
    ) -> None:
        entry_price = self.entry_fill_price(direction, signal_price)
        sign = 1 if direction is Direction.LONG else -1

        stop_loss_price = None
        if stop_loss_percent:
            stop_loss_price = entry_price * (1 - sign * stop_loss_percent / 100)
        take_profit_price = None
        if take_profit_percent:
            take_profit_price = entry_price * (1 + sign * take_profit_percent / 100)

        state.position = Position(
            direction=direction,
            entry_price=entry_price,
            entry_time=time,
            stop_loss_price=stop_loss_price,
            take_profit_price=take_profit_price,
        )

        state.logs.append(f"[{_iso(time)}] Opened {direction.value.upper()} @ {entry_price:.4f}")
        logger.debug(f"Opened {direction.value} @ {entry_price:.4f} (sl={stop_loss_price}, tp={take_profit_price})")

    def calculate_pnl(self, position: Position, exit_price: float) -> float:
        """Realized P&L of closing `position` at `exit_price`, net of both commission legs."""
        units = self.config.fixed_trade_size_usd / position.entry_price
        if position.is_long:
            move = exit_price - position.entry_price
        else:
            move = position.entry_price - exit_price
        return move * units - self.config.commission_per_side * 2

    def _close_position(
        self,
        state: SimulationState,
        exit_price: float,
        exit_time: int,
        reason: ExitReason,
        reversing_to: Optional[Direction] = None,
    ) -> BacktestTrade:
        position = state.position
        pnl = self.calculate_pnl(position, exit_price)
        state.equity += pnl

        trade = BacktestTrade(
            entry_time=position.entry_time,
            exit_time=exit_time,
            entry_price=position.entry_price,
            exit_price=exit_price,
            direction=position.direction,
            size=self.config.fixed_trade_size_usd,
            pnl=pnl,
            pnl_percent=pnl / self.config.fixed_trade_size_usd * 100,
            exit_reason=reason,
        )
        state.trades.append(trade)
        state.position = None

        side = position.direction.value.upper()
        if reversing_to is not None:
            action = f"Reversed {side} to {reversing_to.value.upper()} @ {exit_price:.4f}."
        elif reason is ExitReason.END_OF_DATA:
            action = f"Force closed {side} @ {exit_price:.4f} (end of data)."
        else:
            action = f"Closed {side} @ {exit_price:.4f} by {reason.value.upper()}."
        state.logs.append(
            f"[{_iso(exit_time)}] {action} P&L: {pnl:.2f}. Equity: {state.equity:.2f}"
        )
        logger.debug(f"Closed {position.direction.value} P&L={pnl:.2f} ({reason.value})")

        return trade
