"""Unit tests for logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from partial_tar_brotli.logging_utils import configure_logging

pytestmark = pytest.mark.unit


@pytest.fixture
def root_handlers():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_file_handler_added(self, tmp_path: Path, root_handlers: logging.Logger) -> None:
        """Test that a log file gets its own handler next to the console one."""
        log_file = tmp_path / "logs" / "run.log"
        logger = configure_logging("INFO", log_file)
        logger.info("pack.test_event")

        assert logger.name == "partial_tar_brotli"
        assert len(root_handlers.handlers) == 2
        for handler in root_handlers.handlers:
            handler.flush()
        assert "pack.test_event" in log_file.read_text(encoding="utf-8")

    def test_bad_log_path_keeps_existing_handlers(self, tmp_path: Path, root_handlers: logging.Logger) -> None:
        """Test that a log path under a regular file fails before handlers change."""
        (tmp_path / "blocker").write_text("x", encoding="utf-8")
        before = list(root_handlers.handlers)
        with pytest.raises(OSError):
            configure_logging("INFO", tmp_path / "blocker" / "run.log")
        assert root_handlers.handlers == before
