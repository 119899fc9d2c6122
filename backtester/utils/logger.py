"""
Logging configuration

Every module logs through a stdlib logger named after the module. Call
setup_logging() once from an entry point (API startup, CLI) to attach the
console handler and, when LOG_FILE is set, a rotating file handler.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from backtester.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Configure the root logger.

    Handlers are only added if an equivalent one is not already attached, so
    calling this twice (or after uvicorn configured logging) is harmless.
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    has_console_handler = any(
        isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout
        for h in root_logger.handlers
    )
    if not has_console_handler:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(console_handler)

    if settings.log_file:
        log_file_path = Path(settings.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        has_file_handler = any(
            isinstance(h, RotatingFileHandler) and h.baseFilename == str(log_file_path.resolve())
            for h in root_logger.handlers
        )
        if not has_file_handler:
            file_handler = RotatingFileHandler(
                log_file_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root_logger.addHandler(file_handler)

    logging.getLogger("backtester").setLevel(log_level)

    configured = logging.getLogger(__name__)
    configured.info("Logging configured (level=%s)", logging.getLevelName(log_level))
    return configured


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the backtester namespace."""
    return logging.getLogger(name)


logger = get_logger("backtester")
