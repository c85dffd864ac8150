"""Core infrastructure: configuration, logging and exceptions.

Exports:
    Exceptions:
        RealmsEngineError: Base exception for all engine errors.
        ConfigurationError: Configuration-related errors.
        RulesSourceError: Rules override source failures.
        CatalogError: Strict lookup failures.

    Configuration:
        Settings: Top-level settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up engine logging.
        get_logger: Get a configured logger instance.
"""

from __future__ import annotations

from realms_engine.core.config import (
    DisplaySettings,
    RulesSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from realms_engine.core.exceptions import (
    CatalogError,
    ConfigurationError,
    RealmsEngineError,
    RulesError,
    RulesSourceError,
)
from realms_engine.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)


__all__ = [
    # Exceptions
    "RealmsEngineError",
    "ConfigurationError",
    "RulesError",
    "RulesSourceError",
    "CatalogError",
    # Configuration
    "Settings",
    "RulesSettings",
    "DisplaySettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
