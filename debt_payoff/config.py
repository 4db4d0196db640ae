"""Configuration management for the debt payoff planner."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .data_models import Currency
from .exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("standard", "json")


@dataclass
class DebtPayoffConfig:
    """Settings shared by the CLI and the web API."""

    database_url: str = "sqlite:///debt_payoff.sqlite3"
    secret_key: str = "dev-secret-key"
    log_level: str = "INFO"
    log_format: str = "standard"
    default_currency: Currency = Currency.USD
    seed_examples: bool = False

    def __post_init__(self) -> None:
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(f"Unknown log format: {self.log_format}")
        if not self.database_url:
            raise ConfigurationError("Database URL must not be empty")

    @classmethod
    def from_env(cls) -> "DebtPayoffConfig":
        """Create config from environment variables."""
        currency_code = os.getenv("DEFAULT_CURRENCY", "USD").upper()
        try:
            currency = Currency(currency_code)
        except ValueError as exc:
            raise ConfigurationError(f"Unsupported currency: {currency_code}") from exc

        return cls(
            database_url=os.getenv("DEBT_PAYOFF_DATABASE_URL", "sqlite:///debt_payoff.sqlite3"),
            secret_key=os.getenv("FLASK_SECRET_KEY", "dev-secret-key"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
            default_currency=currency,
            seed_examples=os.getenv("DEBT_PAYOFF_SEED_EXAMPLES", "false").lower() == "true",
        )
