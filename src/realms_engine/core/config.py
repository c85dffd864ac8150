"""Configuration management for the build rules engine.

Settings are loaded with pydantic-settings from environment variables and an
optional ``.env`` file. They only tune logging, presentation and the rules
override loader; game arithmetic lives in the progression rules table.

Example:
    >>> from realms_engine.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.display.energy_precision
    1

Environment Variables:
    REALMS_ENGINE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    REALMS_ENGINE_JSON_LOGS: Emit JSON log lines instead of console output
    REALMS_ENGINE_RULES_OVERRIDE_PATH: JSON file holding rules table overrides
    REALMS_ENGINE_RULES_RETRY_ATTEMPTS: Attempts made against a flaky rules source
    REALMS_ENGINE_DISPLAY_ENERGY_PRECISION: Decimal places energy is rounded up to
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from realms_engine.core.exceptions import ConfigurationError


class RulesSettings(BaseSettings):
    """Configuration for loading the progression rules table.

    Attributes:
        override_path: JSON file with category overrides, if any.
        retry_attempts: Attempts made against a source raising transient errors.
        retry_wait_min: Lower bound of the exponential backoff, in seconds.
        retry_wait_max: Upper bound of the exponential backoff, in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="REALMS_ENGINE_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    override_path: Path | None = Field(
        default=None,
        description="JSON file with rules table overrides",
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts against a transiently failing rules source",
    )
    retry_wait_min: float = Field(
        default=0.5,
        ge=0,
        description="Minimum backoff between attempts",
    )
    retry_wait_max: float = Field(
        default=4.0,
        ge=0,
        description="Maximum backoff between attempts",
    )

    @model_validator(mode="after")
    def validate_backoff_window(self) -> "RulesSettings":
        """Ensure the backoff window is ordered.

        Raises:
            ConfigurationError: If retry_wait_min exceeds retry_wait_max.
        """
        if self.retry_wait_min > self.retry_wait_max:
            raise ConfigurationError(
                f"retry_wait_min ({self.retry_wait_min}) must not exceed "
                f"retry_wait_max ({self.retry_wait_max})",
                config_key="retry_wait_min",
            )
        return self


class DisplaySettings(BaseSettings):
    """Configuration for derived display values.

    Attributes:
        energy_precision: Decimal places energy totals are rounded up to.
        unknown_part_label: Prefix of the placeholder chip for unresolved parts.
    """

    model_config = SettingsConfigDict(
        env_prefix="REALMS_ENGINE_DISPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    energy_precision: int = Field(
        default=1,
        ge=0,
        le=4,
        description="Decimal places for energy totals",
    )
    unknown_part_label: str = Field(
        default="Unknown part",
        min_length=1,
        description="Label prefix for unresolved references",
    )


class Settings(BaseSettings):
    """Top-level engine settings.

    Attributes:
        app_name: Application name bound into every log line.
        log_level: Engine logging level.
        json_logs: Render logs as JSON.
        log_file: Optional file receiving a copy of the log output.
        rules: Rules table loading settings.
        display: Display projection settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="REALMS_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="realms-build-engine",
        description="Application name",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    rules: RulesSettings = Field(default_factory=RulesSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the engine settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If the environment holds invalid configuration.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load engine settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "RulesSettings",
    "DisplaySettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
