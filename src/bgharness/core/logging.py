"""Structured logging infrastructure for bgharness.

Provides structured logging using structlog with harness-specific context
such as the test id and component name. Supports console output on stderr
and JSON output to stdout or a rotating log file.

Example usage:
    from bgharness.core.logging import get_logger, configure_logging, with_context

    # Configure once, e.g. from a conftest.py or the CLI callback
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("launcher")

    # Log with auto-context
    logger.info("process.launched", pid=1234)

    # Use a test context for automatic correlation
    ctx = TestContext(test_id="tests/test_server.py::test_ready")
    with with_context(ctx):
        logger.info("watch.matched")  # Automatically includes test_id
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


@dataclass(frozen=True)
class TestContext:
    """Immutable context for correlating log entries with one test.

    Attributes:
        test_id: Identifier of the test owning the background process
            (usually the pytest node id).
        component: Component name for the current operation.
    """

    __test__ = False  # not a pytest test class

    test_id: str
    component: str = "harness"

    def with_component(self, component: str) -> TestContext:
        """Create a new context with the specified component."""
        return TestContext(test_id=self.test_id, component=component)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging."""
        return {"test_id": self.test_id, "component": self.component}


# ContextVar keeps contexts isolated between concurrently running tasks
_current_context: ContextVar[TestContext | None] = ContextVar(
    "bgharness_context", default=None
)


def get_current_context() -> TestContext | None:
    """Get the current TestContext if set."""
    return _current_context.get()


def set_context(ctx: TestContext) -> None:
    """Set the current TestContext.

    Generally prefer using `with_context()` for automatic cleanup.
    """
    _current_context.set(ctx)


def clear_context() -> None:
    """Clear the current TestContext."""
    _current_context.set(None)


@contextmanager
def with_context(ctx: TestContext) -> Iterator[TestContext]:
    """Context manager that sets TestContext for the duration of a block.

    Args:
        ctx: The TestContext to use for the block.

    Yields:
        The TestContext that was set.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds TestContext fields to log entries.

    Explicit bindings take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            if key not in event_dict:
                event_dict[key] = value
    return event_dict


class HarnessLogger:
    """bgharness logger wrapper around structlog.

    The logger is bound to a component name and can have additional context
    bound for a specific scope (e.g., pid, capture path).

    Note: the underlying structlog logger is fetched lazily on each call so
    that loggers created at module import time still respect configuration
    applied later via configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> HarnessLogger:
        """Create a new logger with additional bound context."""
        new_logger = HarnessLogger.__new__(HarnessLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an exception with traceback.

        Should be called from within an exception handler.
        """
        self._get_logger().exception(event, **kw)


def _get_processors(
    format: Literal["json", "console"],  # noqa: A002
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    """Get structlog processors for the requested output format."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,  # Filter before processing
        structlog.stdlib.add_log_level,
    ]

    if include_context:
        processors.append(_add_context)

    if include_timestamps:
        processors.append(_add_timestamp)

    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ])

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Configure bgharness structured logging.

    Args:
        level: Minimum log level to capture.
        format: "console" for human-readable output on stderr, "json" for
            one JSON object per line.
        file_path: Optional log file. When set, records go to a rotating
            file instead of a stream.
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to include ISO8601 timestamps.
        include_context: Whether to include TestContext fields when a
            context is active.
    """
    log_level = getattr(logging, level)

    handler: logging.Handler
    if file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            file_path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
    elif format == "json":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    # NOTE: cache_logger_on_first_use=False so module-level loggers pick up
    # configuration applied after import
    structlog.configure(
        processors=_get_processors(format, include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> HarnessLogger:
    """Get a bgharness logger for a component.

    Args:
        component: The component name (e.g., "launcher", "watcher", "reaper").
        **initial_context: Additional context to bind.

    Returns:
        A HarnessLogger instance bound to the component.
    """
    return HarnessLogger(component, **initial_context)


__all__ = [
    "HarnessLogger",
    "TestContext",
    "clear_context",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "set_context",
    "with_context",
]
