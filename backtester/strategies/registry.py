from backtester.strategies.base import StrategyRegistry
from backtester.strategies.bollinger_breakout import BOLLINGER_BREAKOUT
from backtester.strategies.macd_crossover import MACD_CROSSOVER
from backtester.strategies.rsi_threshold import RSI_THRESHOLD
from backtester.strategies.sma_crossover import SMA_CROSSOVER

default_registry = StrategyRegistry([SMA_CROSSOVER, RSI_THRESHOLD, BOLLINGER_BREAKOUT, MACD_CROSSOVER])
