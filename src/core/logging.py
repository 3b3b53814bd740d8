"""
Structured logging configuration using structlog.

Provides consistent, structured logging across the booking engine with:
- JSON output in production
- Pretty console output in development
- Context binding for request tracing (request_id, session_id, interpreter_id)
- File output to logs/ directory (one file per process run)
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.typing import Processor

from src.core.config import settings

LOG_FILE_PREFIX = "booking_"


def _cull_old_logs(logs_dir: Path, keep: int) -> None:
    """Delete old log files, keeping only the N most recent.

    Args:
        logs_dir: Directory containing log files
        keep: Number of recent log files to retain
    """
    log_files = sorted(
        logs_dir.glob(f"{LOG_FILE_PREFIX}*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )

    for old_file in log_files[keep:]:
        try:
            os.remove(old_file)
        except OSError:
            pass  # another process may hold or have removed it


def configure_logging(
    log_sessions_to_keep: Optional[int] = None, logs_dir: Path = Path("logs")
) -> None:
    """Configure structlog for the application.

    Call this once at application startup, before any logging.

    Args:
        log_sessions_to_keep: Number of recent log files to retain
            (default: settings.log_sessions_to_keep)
        logs_dir: Directory for log files

    Outputs:
        - Console (colored in dev, JSON in production)
        - File: logs/booking_YYYYMMDD_HHMMSS.log
    """
    keep = log_sessions_to_keep or settings.log_sessions_to_keep

    # Ensure logs directory exists
    logs_dir.mkdir(parents=True, exist_ok=True)

    # keep-1 to make room for the new file
    _cull_old_logs(logs_dir, keep=keep - 1)

    # Create timestamped log file for this run
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"{LOG_FILE_PREFIX}{timestamp}.log"

    # Shared processors for all outputs
    shared_processors: List[Processor] = [
        # Request-scoped context (request_id, user_id)
        structlog.contextvars.merge_contextvars,
        # Add log level to event dict
        structlog.processors.add_log_level,
        # Add timestamp in ISO format
        structlog.processors.TimeStamper(fmt="iso"),
        # Add extra attributes from stdlib logger
        structlog.stdlib.ExtraAdder(),
    ]

    if settings.debug:
        # Development: pretty console output with colors
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        # Production: JSON output for log aggregation
        processors = shared_processors + [
            # Format exceptions as dicts
            structlog.processors.dict_tracebacks,
            # Render as JSON
            structlog.processors.JSONRenderer(),
        ]

    # Clear existing handlers (reconfiguration in tests/long-running processes)
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    root_logger.setLevel(logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    # File handler (new file per run)
    file_handler = logging.FileHandler(log_file, mode="w")
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(file_handler)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from src.core.logging import get_logger

        log = get_logger(__name__)
        log.info("session_confirmed", session_id=session.id)
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """
    Bind context variables that will be included in all subsequent logs.

        bind_context(request_id=request_id, actor_id=actor.user_id)
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables from the logging context."""
    structlog.contextvars.clear_contextvars()
