"""
Retry and Backoff Utilities

Market data downloads occasionally fail with rate limits or dropped
connections. retry_with_backoff() re-runs the wrapped call with exponentially
growing delays for transient failures and re-raises anything else.
"""

import functools
import logging
import random
import re
import time
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

TRANSIENT_STATUS_CODES = (429, 500, 502, 503, 504)
NETWORK_KEYWORDS = ('timeout', 'timed out', 'connection', 'refused', 'reset', 'temporarily')
HTTP_STATUS_IN_MESSAGE = re.compile(r'http (\d{3})')


class RetryConfig:
    """Configuration for retry behavior"""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
    ):
        """
        Args:
            max_retries: Maximum number of retries (not including initial attempt)
            base_delay: Initial delay in seconds (grows exponentially)
            max_delay: Maximum delay cap
            exponential_base: Base for exponential growth (2 = doubling)
            jitter: Randomize each delay by +/-10%
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    def get_delay(self, retry_count: int) -> float:
        """Delay before retry number `retry_count` (0-based).

        With base_delay=1 and exponential_base=2: 1s, 2s, 4s, 8s ... capped at max_delay.
        """
        delay = min(self.base_delay * (self.exponential_base ** retry_count), self.max_delay)
        if self.jitter:
            delay *= random.uniform(0.9, 1.1)
        return delay


def should_retry(exception: Exception) -> bool:
    """Return True for transient failures (timeouts, connection drops, 429/5xx)."""
    if isinstance(exception, (TimeoutError, ConnectionError)):
        return True

    status_code = getattr(exception, 'status_code', None)
    if status_code is None and hasattr(exception, 'response'):
        status_code = getattr(exception.response, 'status_code', None)
    if status_code is not None:
        if status_code in TRANSIENT_STATUS_CODES:
            logger.warning(f"Transient HTTP {status_code}, will retry")
            return True
        return False

    error_msg = str(exception).lower()
    if 'too many requests' in error_msg or 'rate limit' in error_msg:
        logger.warning("Rate limited, will retry")
        return True

    # e.g. "HTTP 503: Service Unavailable"
    match = HTTP_STATUS_IN_MESSAGE.search(error_msg)
    if match:
        return int(match.group(1)) in TRANSIENT_STATUS_CODES

    return any(keyword in error_msg for keyword in NETWORK_KEYWORDS)


def retry_with_backoff(
    config: Optional[RetryConfig] = None,
    on_retry: Optional[Callable] = None
) -> Callable[[F], F]:
    """
    Decorator for retrying functions with exponential backoff.

    Usage:
        @retry_with_backoff(config=YFINANCE_CONFIG)
        def download(symbol):
            ...

    Args:
        config: RetryConfig instance (uses defaults if None)
        on_retry: Optional callback(attempt, exception, delay) invoked before sleeping
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(config.max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not should_retry(e):
                        logger.error(f"Non-transient error in {func.__name__}: {e}")
                        raise

                    if attempt >= config.max_retries:
                        logger.error(f"Max retries ({config.max_retries}) exhausted for {func.__name__}")
                        raise

                    delay = config.get_delay(attempt)
                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1}/{config.max_retries + 1} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    if on_retry:
                        on_retry(attempt, e, delay)
                    time.sleep(delay)

        return wrapper  # type: ignore

    return decorator


YFINANCE_CONFIG = RetryConfig(
    max_retries=3,
    base_delay=1.0,
    max_delay=30.0,
)
