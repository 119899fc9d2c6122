"""
Application settings.

Values come from environment variables (or a local .env file) and fall back to
the defaults below. The trade-cost literals that the engine historically
hardcoded live here so that every run can be reproduced with an alternate
cost model.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Backtester settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Project
    project_name: str = "Concentrade Backtester"
    version: str = "1.0.0"
    environment: str = "development"

    # API
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None  # console only when unset

    # Trade execution model
    fixed_trade_size_usd: float = Field(
        default=10000.0,
        gt=0,
        description="Constant notional (USD) committed to every simulated trade",
    )
    commission_per_side_usd: float = Field(
        default=1.0,
        ge=0,
        description="Flat commission per trade side; charged twice when a trade closes",
    )
    slippage_percent: float = Field(
        default=0.0005,
        ge=0,
        description="Adverse fill adjustment per side (0.0005 = 0.05%)",
    )
    default_risk_free_rate: float = Field(
        default=0.02,
        description="Annualized risk-free rate used for the Sharpe ratio",
    )

    # Historical data
    data_provider: Literal["mock", "yfinance"] = "mock"
    mock_data_seed: int = 42


settings = Settings()
