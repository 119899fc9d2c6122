"""
Historical candle providers.

Every provider exposes fetch_candles(instrument, timeframe, start, end) and
returns a chronologically ordered list of Candles with start <= time <= end
(an empty list when nothing matches). run_backtest() accepts any callable
with that signature.

- MockHistoricalData: seeded random walks, no network
- YfinanceHistoricalData: Yahoo Finance bars via yfinance, retried on transient errors
"""

import functools
import logging
import zlib
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import yfinance as yf

from backtester.config.settings import settings
from backtester.models import Candle
from backtester.utils.retry import YFINANCE_CONFIG, retry_with_backoff

logger = logging.getLogger(__name__)

CandleSource = Callable[[str, str, datetime, datetime], List[Candle]]


def _to_unix(value: datetime) -> int:
    return int(pd.Timestamp(value).timestamp())


def frame_to_candles(df: pd.DataFrame) -> List[Candle]:
    """Convert an OHLC(V) frame with a `time` column (unix seconds) to Candles."""
    has_volume = 'volume' in df.columns
    return [
        Candle(
            time=int(row.time),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume) if has_volume and pd.notna(row.volume) else None,
        )
        for row in df.itertuples(index=False)
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# Mock data
# ═══════════════════════════════════════════════════════════════════════════════

# instrument -> timeframe -> (bars, start price, volatility, bar minutes)
MOCK_SERIES: Dict[str, Dict[str, Tuple[int, float, float, int]]] = {
    'EURUSD': {
        '1H': (24 * 365, 1.1, 0.001, 60),
        '4H': (6 * 365, 1.1, 0.002, 240),
        '1D': (365, 1.1, 0.005, 1440),
    },
    'BTCUSD': {
        '1H': (24 * 365, 30000.0, 0.01, 60),
        '4H': (6 * 365, 30000.0, 0.02, 240),
        '1D': (365, 30000.0, 0.05, 1440),
    },
    'AAPL': {
        '1H': (24 * 252, 170.0, 0.005, 60),
        '4H': (6 * 252, 170.0, 0.01, 240),
        '1D': (252, 170.0, 0.02, 1440),
    },
}


def generate_price_walk(
    start: datetime,
    bars: int,
    initial_price: float,
    volatility: float,
    bar_minutes: int,
    rng: np.random.Generator,
) -> pd.DataFrame:
    """
    Random-walk OHLC bars.

    Each bar opens at the previous close and moves by up to +/- volatility;
    high/low extend beyond the body by up to half the volatility.
    """
    changes = (rng.random(bars) - 0.5) * 2 * volatility
    close = initial_price * np.cumprod(1 + changes)
    open_ = np.concatenate(([initial_price], close[:-1]))
    high = np.maximum(open_, close) * (1 + rng.random(bars) * volatility * 0.5)
    low = np.minimum(open_, close) * (1 - rng.random(bars) * volatility * 0.5)
    time = _to_unix(start) + np.arange(bars, dtype=np.int64) * bar_minutes * 60

    return pd.DataFrame({'time': time, 'open': open_, 'high': high, 'low': low, 'close': close})


class MockHistoricalData:
    """
    Deterministic synthetic market data for EURUSD, BTCUSD and AAPL in 1H, 4H and 1D.

    Each series covers the year before `anchor` and is generated on first use.
    The same seed and anchor always produce the same candles.
    """

    def __init__(self, seed: Optional[int] = None, anchor: Optional[datetime] = None):
        self.seed = settings.mock_data_seed if seed is None else seed
        if anchor is None:
            anchor = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        self.anchor = anchor
        self._cache: Dict[Tuple[str, str], pd.DataFrame] = {}

    @property
    def instruments(self) -> List[str]:
        return list(MOCK_SERIES)

    def timeframes(self, instrument: str) -> List[str]:
        return list(MOCK_SERIES.get(instrument, {}))

    def _series(self, instrument: str, timeframe: str) -> Optional[pd.DataFrame]:
        key = (instrument, timeframe)
        if key not in self._cache:
            layout = MOCK_SERIES.get(instrument, {}).get(timeframe)
            if layout is None:
                return None
            bars, price, volatility, minutes = layout
            rng = np.random.default_rng([self.seed, zlib.crc32(f"{instrument}:{timeframe}".encode())])
            start = self.anchor - timedelta(days=365)
            self._cache[key] = generate_price_walk(start, bars, price, volatility, minutes, rng)
            logger.debug(f"Generated {bars} mock {timeframe} bars for {instrument}")
        return self._cache[key]

    def fetch_candles(self, instrument: str, timeframe: str, start: datetime, end: datetime) -> List[Candle]:
        if instrument not in MOCK_SERIES:
            logger.warning(f"No mock data for instrument: {instrument}")
            return []
        df = self._series(instrument, timeframe)
        if df is None:
            logger.warning(f"No mock data for instrument: {instrument}, timeframe: {timeframe}")
            return []

        start_ts, end_ts = _to_unix(start), _to_unix(end)
        window = df[(df['time'] >= start_ts) & (df['time'] <= end_ts)]
        return frame_to_candles(window)


# ═══════════════════════════════════════════════════════════════════════════════
# Yahoo Finance
# ═══════════════════════════════════════════════════════════════════════════════

YF_INTERVALS = {
    '1m': '1m',
    '5m': '5m',
    '15m': '15m',
    '30m': '30m',
    '1H': '1h',
    '1h': '1h',
    '1D': '1d',
    '1d': '1d',
    '1W': '1wk',
    '1w': '1wk',
}

# Timeframes Yahoo does not serve directly: (download interval, pandas resample rule)
YF_RESAMPLED = {
    '4H': ('1h', '4h'),
    '4h': ('1h', '4h'),
}


class YfinanceHistoricalData:
    """Candles from Yahoo Finance. Intraday intervals have a limited lookback on Yahoo's side."""

    def __init__(self, auto_adjust: bool = False):
        self.auto_adjust = auto_adjust

    @retry_with_backoff(config=YFINANCE_CONFIG)
    def _download(self, symbol: str, interval: str, start: datetime, end: datetime) -> pd.DataFrame:
        ticker = yf.Ticker(symbol)
        return ticker.history(start=start, end=end, interval=interval, auto_adjust=self.auto_adjust)

    @staticmethod
    def _standardize(df: pd.DataFrame) -> pd.DataFrame:
        df = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
        missing = [c for c in ('open', 'high', 'low', 'close') if c not in df.columns]
        if missing:
            raise ValueError(f"Missing required OHLC columns: {missing}")
        columns = ['open', 'high', 'low', 'close'] + (['volume'] if 'volume' in df.columns else [])
        df = df[columns].astype(float)
        return df[~df.index.duplicated(keep='last')].sort_index()

    @staticmethod
    def _resample(df: pd.DataFrame, rule: str) -> pd.DataFrame:
        agg = {'open': 'first', 'high': 'max', 'low': 'min', 'close': 'last'}
        if 'volume' in df.columns:
            agg['volume'] = 'sum'
        return df.resample(rule).agg(agg).dropna(subset=['open', 'high', 'low', 'close'])

    def fetch_candles(self, instrument: str, timeframe: str, start: datetime, end: datetime) -> List[Candle]:
        if timeframe in YF_RESAMPLED:
            interval, rule = YF_RESAMPLED[timeframe]
        elif timeframe in YF_INTERVALS:
            interval, rule = YF_INTERVALS[timeframe], None
        else:
            logger.warning(f"Unsupported yfinance timeframe: {timeframe}")
            return []

        logger.info(f"Downloading {instrument} {interval} bars from {start} to {end}")
        raw = self._download(instrument, interval, start, end)
        if raw is None or raw.empty:
            logger.warning(f"yfinance returned no data for {instrument}")
            return []

        df = self._standardize(raw)
        if rule is not None:
            df = self._resample(df, rule)

        index = pd.to_datetime(df.index, utc=True)
        df = df.assign(time=[int(ts.timestamp()) for ts in index]).reset_index(drop=True)

        start_ts, end_ts = _to_unix(start), _to_unix(end)
        df = df[(df['time'] >= start_ts) & (df['time'] <= end_ts)]
        return frame_to_candles(df)


def get_data_source(name: Optional[str] = None) -> CandleSource:
    """fetch_candles of the configured provider ("mock" or "yfinance")."""
    return _data_source(name or settings.data_provider)


@functools.lru_cache(maxsize=None)
def _data_source(name: str) -> CandleSource:
    if name == 'mock':
        return MockHistoricalData().fetch_candles
    if name == 'yfinance':
        return YfinanceHistoricalData().fetch_candles
    raise ValueError(f"Unknown data provider: {name}")
