"""Tests for logging configuration."""

import structlog

from src.core.logging import (
    LOG_FILE_PREFIX,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


class TestLoggingConfiguration:
    """Tests for logging setup."""

    def test_configure_logging_sets_up_structlog(self, tmp_path):
        """configure_logging() sets up structlog properly."""
        configure_logging(logs_dir=tmp_path)
        logger = structlog.get_logger("test")
        assert logger is not None

    def test_configure_logging_writes_log_file(self, tmp_path):
        configure_logging(logs_dir=tmp_path)

        log_files = list(tmp_path.glob(f"{LOG_FILE_PREFIX}*.log"))
        assert len(log_files) == 1

    def test_old_log_files_culled(self, tmp_path):
        for i in range(4):
            (tmp_path / f"{LOG_FILE_PREFIX}2020010{i}_000000.log").write_text("")

        configure_logging(log_sessions_to_keep=2, logs_dir=tmp_path)

        assert len(list(tmp_path.glob(f"{LOG_FILE_PREFIX}*.log"))) == 2

    def test_get_logger_returns_bound_logger(self):
        """get_logger() returns a BoundLogger (or proxy)."""
        logger = get_logger("test_module")
        assert logger is not None
        assert hasattr(logger, "info")
        assert hasattr(logger, "error")
        assert hasattr(logger, "debug")

    def test_logger_can_bind_context(self):
        """Logger can bind context variables."""
        logger = get_logger("test")
        bound_logger = logger.bind(session_id="test-123", interpreter_id="interp-1")
        bound_logger.info("test_message")


def test_context_binding(tmp_path):
    """Context variables can be bound and cleared."""
    configure_logging(logs_dir=tmp_path)

    bind_context(request_id="req-123")
    assert structlog.contextvars.get_contextvars()["request_id"] == "req-123"

    clear_context()
    assert structlog.contextvars.get_contextvars() == {}
