"""Tests for structured logging setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog
from structlog.testing import capture_logs

from realms_engine.core.config import Settings
from realms_engine.core.logging import (
    app_context,
    bind_context,
    build_processors,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    trim_float_noise,
)


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults and drop file handlers after each test."""
    yield
    clear_context()
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


def _file_handlers() -> list[logging.FileHandler]:
    return [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]


class TestProcessors:
    """Tests for the processor chain."""

    def test_console_chain(self) -> None:
        """Test the console chain ends in the console renderer."""
        processors = build_processors(json_format=False, app_name="creator")

        assert trim_float_noise in processors
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_json_chain(self) -> None:
        """Test the JSON chain formats exceptions before rendering."""
        processors = build_processors(json_format=True, app_name="creator")

        assert structlog.processors.format_exc_info in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_app_context(self) -> None:
        """Test the app name is added without overriding an explicit one."""
        add_app = app_context("creator")

        assert add_app(None, "info", {"event": "x"})["app"] == "creator"
        assert add_app(None, "info", {"event": "x", "app": "other"})["app"] == "other"

    def test_trim_float_noise(self) -> None:
        """Test float costs lose binary noise and other values pass through."""
        event = trim_float_noise(
            None,
            "debug",
            {"event": "Part evaluated", "energy": 0.1 * 3, "tp": 6, "part": "Bolt"},
        )
        assert event == {"event": "Part evaluated", "energy": 0.3, "tp": 6, "part": "Bolt"}


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console_renderer(self) -> None:
        """Test the default console configuration."""
        configure_logging(level="DEBUG")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert logging.getLogger().level == logging.DEBUG

    def test_json_renderer(self) -> None:
        """Test JSON output configuration."""
        configure_logging(level="INFO", json_format=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_unknown_level_defaults_to_info(self) -> None:
        """Test an unrecognised level name falls back to INFO."""
        configure_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_log_file_handler(self, tmp_path: Path) -> None:
        """Test a file handler is attached when a log file is given."""
        log_file = tmp_path / "engine.log"
        configure_logging(level="WARNING", log_file=log_file)

        handlers = _file_handlers()
        assert [h.baseFilename for h in handlers] == [str(log_file)]
        assert handlers[0].level == logging.WARNING

    def test_reconfigure_replaces_handlers(self, tmp_path: Path) -> None:
        """Test configuring twice leaves a single file handler."""
        configure_logging(log_file=tmp_path / "first.log")
        configure_logging(log_file=tmp_path / "second.log")

        assert [h.baseFilename for h in _file_handlers()] == [str(tmp_path / "second.log")]


class TestConfigureFromSettings:
    """Tests for configure_from_settings."""

    def test_explicit_settings(self, tmp_path: Path) -> None:
        """Test every logging setting is applied."""
        settings = Settings(
            log_level="ERROR",
            json_logs=True,
            log_file=tmp_path / "engine.log",
        )
        configure_from_settings(settings)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert logging.getLogger().level == logging.ERROR
        assert [h.baseFilename for h in _file_handlers()] == [str(tmp_path / "engine.log")]

    def test_cached_settings(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test configuration from environment-driven settings."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("REALMS_ENGINE_JSON_LOGS", "true")

        configure_from_settings()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)


class TestContext:
    """Tests for bound context variables and loggers."""

    def test_bind_and_clear_context(self) -> None:
        """Test binding and clearing context variables."""
        bind_context(build="Flame Lash")
        assert structlog.contextvars.get_contextvars() == {"build": "Flame Lash"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_get_logger_logs_key_values(self) -> None:
        """Test the logger accepts key/value context."""
        logger = get_logger("tests")
        with capture_logs() as logs:
            logger.warning("Something degraded", pool="ability")

        assert logs == [{"event": "Something degraded", "pool": "ability", "log_level": "warning"}]
