"""
Configuration Management for PayPlan

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable engine constants live here.
The core functions take these values as plain arguments, so tests can
pass them directly and the planner facade reads them once from settings.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Scheduling and projection engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PAYPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Paycheck assignment
    balance_threshold: Decimal = Field(
        default=Decimal("200"),
        ge=0,
        description="Leftover difference above which the balancing pass runs"
    )
    paycheck_count: int = Field(
        default=4,
        ge=2,
        le=26,
        description="How many upcoming paychecks to generate"
    )

    # Simulation safety bounds
    amortization_iteration_cap: int = Field(
        default=1000,
        ge=1,
        le=5000,
        description="Maximum periods simulated for an amortization schedule"
    )
    payoff_iteration_cap: int = Field(
        default=1200,
        ge=1,
        le=5000,
        description="Maximum months simulated for a debt payoff projection"
    )

    # Bill history
    history_cap: int = Field(
        default=12,
        ge=1,
        le=120,
        description="Number of historical payments kept per variable bill"
    )

    # Semimonthly pay defaults
    first_anchor_day: int = Field(
        default=1,
        ge=1,
        le=31,
        description="Default first semimonthly pay day"
    )
    second_anchor_day: int = Field(
        default=15,
        ge=1,
        le=31,
        description="Default second semimonthly pay day"
    )

    # Calendar collaborator
    calendar_months_ahead: int = Field(
        default=2,
        ge=0,
        le=24,
        description="Months past the current one included in calendar exports"
    )

    @model_validator(mode='after')
    def validate_anchor_days(self) -> 'EngineSettings':
        """Semimonthly anchors must be two distinct days."""
        if self.first_anchor_day == self.second_anchor_day:
            raise ValueError("Semimonthly anchor days must differ")
        return self

    @property
    def default_anchors(self) -> tuple[int, int]:
        """Default semimonthly anchors, ordered."""
        return tuple(sorted((self.first_anchor_day, self.second_anchor_day)))


class LoggingSettings(BaseSettings):
    """structlog configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PAYPLAN_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    renderer: str = Field(
        default="json",
        description="Log renderer: 'json' or 'console'"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return v.upper()

    @field_validator('renderer')
    @classmethod
    def validate_renderer(cls, v: str) -> str:
        if v.lower() not in {"json", "console"}:
            raise ValueError(f"Unsupported log renderer: {v}")
        return v.lower()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings groups.

    Returns a dict of {group_name: is_valid}, plus "<group>_error"
    entries describing any failure. Useful for startup checks.
    """
    results: dict[str, object] = {}

    settings = get_settings()

    try:
        _ = settings.engine
        results["engine"] = True
    except Exception as e:
        results["engine"] = False
        results["engine_error"] = str(e)

    try:
        _ = settings.logging
        results["logging"] = True
    except Exception as e:
        results["logging"] = False
        results["logging_error"] = str(e)

    return results
