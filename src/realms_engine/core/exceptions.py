"""Exception hierarchy for the build rules engine.

The public engine contract never raises: unresolved references, rejected
pool mutations and broken rules overrides all come back as degraded but
valid values. These exceptions exist for the seams around that contract
(settings, rules sources, strict lookup helpers) and are caught inside the
engine wherever the contract demands a fallback.

Example:
    >>> from realms_engine.core.exceptions import RulesSourceError
    >>> raise RulesSourceError("Override file is not a mapping", source="rules.json")
"""

from __future__ import annotations

from typing import Any


class RealmsEngineError(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error description.
        details: Additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Render the message followed by any details as ``[k=v, ...]``."""
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class ConfigurationError(RealmsEngineError):
    """Raised when engine settings are missing or inconsistent."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Human-readable error description.
            config_key: The settings field that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


# =============================================================================
# Rules Exceptions
# =============================================================================


class RulesError(RealmsEngineError):
    """Base exception for progression rules table problems."""


class RulesSourceError(RulesError):
    """Raised by a rules source that cannot produce an override mapping.

    ``load_rules`` catches this and falls back to the hardcoded table.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize rules source error.

        Args:
            message: Human-readable error description.
            source: Description of the source (file path, callable name).
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if source:
            combined_details["source"] = source
        super().__init__(message, details=combined_details)


# =============================================================================
# Catalog Exceptions
# =============================================================================


class CatalogError(RealmsEngineError):
    """Raised by strict catalog helpers when a reference matches nothing."""

    def __init__(
        self,
        message: str,
        *,
        reference: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error description.
            reference: The reference that failed to resolve.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if reference is not None:
            combined_details["reference"] = reference
        super().__init__(message, details=combined_details)


__all__ = [
    "RealmsEngineError",
    "ConfigurationError",
    "RulesError",
    "RulesSourceError",
    "CatalogError",
]
