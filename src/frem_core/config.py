"""Configuration system for the FREM engine.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for the allocation and projection
engine.

Usage:
    from frem_core.config import EngineSettings, configure_logging

    # Load from environment variables and .env file
    settings = EngineSettings()
    configure_logging(settings)

    engine = FinancialEngine(store, settings=settings)
"""

import logging
from decimal import Decimal

import structlog
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Root configuration for the FREM engine.

    Environment Variables:
        FREM_ENV: Environment name (development, staging, production, test)
        FREM_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        FREM_DEFAULT_DAILY_BUDGET_TARGET: Daily target used when a user has no settings
        FREM_DEFAULT_CURRENCY: Currency used when a user has no settings
        FREM_RECONCILIATION_TOLERANCE: Allowed gap between a goal ledger and its balance
        FREM_MAX_PROJECTION_MONTHS: Horizon beyond which no completion date is given
        FREM_TIMELINE_MONTHS: Default length of the monthly timeline
        FREM_MAX_TIMELINE_MONTHS: Hard cap on timeline requests

    Example:
        settings = EngineSettings(env="test", timeline_months=6)
        if settings.is_debug:
            print(settings.max_projection_months)
    """

    model_config = SettingsConfigDict(
        env_prefix="FREM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment settings
    env: str = Field(
        default="development",
        description="Environment name (development, staging, production, test)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    # User defaults
    default_daily_budget_target: Decimal = Field(
        default=Decimal("150"),
        ge=0,
        description="Daily target used when the user has no settings record",
    )
    default_currency: str = Field(
        default="USD",
        description="Currency used when the user has no settings record",
    )

    # Calculation limits
    reconciliation_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Maximum gap between a goal's ledger and its balance",
    )
    max_projection_months: int = Field(
        default=1200,
        gt=0,
        description="No completion date is projected beyond this many months",
    )
    timeline_months: int = Field(
        default=12,
        gt=0,
        description="Default number of months in the monthly timeline",
    )
    max_timeline_months: int = Field(
        default=24,
        gt=0,
        description="Maximum number of months a timeline request may ask for",
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @field_validator("default_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Currency codes are three-letter uppercase."""
        v_upper = v.upper().strip()
        if len(v_upper) != 3 or not v_upper.isalpha():
            raise ValueError(f"Invalid currency code: {v}")
        return v_upper

    @model_validator(mode="after")
    def validate_timeline(self) -> "EngineSettings":
        """The default timeline must fit under the cap."""
        if self.timeline_months > self.max_timeline_months:
            raise ValueError("timeline_months must not exceed max_timeline_months")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.env == "development"

    @property
    def is_debug(self) -> bool:
        """Check if debug logging is enabled."""
        return self.log_level == "DEBUG"


def configure_logging(settings: EngineSettings) -> None:
    """Set structlog's filtering level from the settings.

    Production gets JSON lines; every other environment gets the console
    renderer.
    """
    level = logging.getLevelName(settings.log_level)
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.is_production
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
