"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from realms_engine.core.exceptions import (
    CatalogError,
    ConfigurationError,
    RealmsEngineError,
    RulesError,
    RulesSourceError,
)


class TestRealmsEngineError:
    """Tests for the base RealmsEngineError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = RealmsEngineError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = RealmsEngineError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(RealmsEngineError("Test", details={"x": 1}))
        assert "RealmsEngineError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestDomainExceptions:
    """Tests for the domain-specific exceptions."""

    def test_configuration_error_key(self) -> None:
        """Test ConfigurationError records the offending key."""
        exc = ConfigurationError("Bad value", config_key="retry_wait_min")
        assert exc.details["config_key"] == "retry_wait_min"
        assert "config_key='retry_wait_min'" in str(exc)

    def test_rules_source_error_source(self) -> None:
        """Test RulesSourceError records its source and extra details."""
        exc = RulesSourceError("Invalid JSON", source="rules.json", details={"line": 3})
        assert exc.details == {"line": 3, "source": "rules.json"}

    def test_catalog_error_reference(self) -> None:
        """Test CatalogError records the failed reference."""
        exc = CatalogError("Unknown", reference={"id": "7", "name": None})
        assert exc.details["reference"] == {"id": "7", "name": None}

    def test_catalog_error_without_reference(self) -> None:
        """Test CatalogError omits a missing reference."""
        assert "reference" not in CatalogError("Unknown").details


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize(
        "exc_class",
        [ConfigurationError, RulesError, RulesSourceError, CatalogError],
    )
    def test_all_inherit_from_base(self, exc_class: type[RealmsEngineError]) -> None:
        """Test all exceptions inherit from RealmsEngineError."""
        assert issubclass(exc_class, RealmsEngineError)

    def test_rules_source_is_rules_error(self) -> None:
        """Test RulesSourceError can be caught as RulesError."""
        with pytest.raises(RulesError):
            raise RulesSourceError("boom")
