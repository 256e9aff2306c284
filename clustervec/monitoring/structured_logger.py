"""
Structured logging for clustervec.

Store-level operations (split, merge, export, import) are logged through a
structlog-backed StructuredLogger tagged with the emitting component, and
timed with OperationLogger. Lower-level modules log through the standard
``logging`` module; configure_logging sets up the handler both end up in.
"""

import json
import logging
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import structlog


class LogLevel(Enum):
    """Log levels for structured logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class TimestampProcessor:
    """Processor to add consistent timestamps."""

    def __call__(self, logger, method_name, event_dict):
        now = time.time()
        event_dict["timestamp"] = now
        event_dict["timestamp_iso"] = datetime.fromtimestamp(now, tz=timezone.utc).isoformat()
        return event_dict


class ComponentProcessor:
    """Processor to add component information."""

    def __call__(self, logger, method_name, event_dict):
        event_dict.setdefault("component", getattr(logger, "name", None))
        return event_dict


class StoreEventFormatter:
    """Adds level and thread details to every event."""

    def __call__(self, logger, method_name, event_dict):
        event_dict.setdefault("level", method_name)
        event_dict["thread_name"] = threading.current_thread().name
        return event_dict


_structlog_lock = threading.Lock()
_structlog_configured = False


def _configure_structlog() -> None:
    """Configure structlog processors once per process."""
    global _structlog_configured
    with _structlog_lock:
        if _structlog_configured:
            return
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                TimestampProcessor(),
                ComponentProcessor(),
                StoreEventFormatter(),
                structlog.dev.ConsoleRenderer(colors=False),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _structlog_configured = True


class StructuredLogger:
    """
    Structured logger with a component tag.

    Wraps a structlog BoundLogger so that keyword arguments become structured
    fields on the emitted event.
    """

    def __init__(self, name: str, component: Optional[str] = None):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            component: Component name for logging context
        """
        self.name = name
        self.component = component or name

        _configure_structlog()
        self.logger = structlog.get_logger(name).bind(component=self.component)

    def _log(self, level: LogLevel, message: str, **kwargs):
        getattr(self.logger, level.value)(message, **kwargs)

    def debug(self, message: str, **kwargs):
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, error: Optional[Exception] = None, **kwargs):
        """Log error message with optional exception."""
        if error:
            kwargs.update({"error_type": type(error).__name__, "error_message": str(error)})
        self._log(LogLevel.ERROR, message, **kwargs)

    def with_context(self, **context) -> "StructuredLogger":
        """Create a new logger with additional context."""
        new_logger = StructuredLogger(self.name, self.component)
        new_logger.logger = self.logger.bind(**context)
        return new_logger


class OperationLogger:
    """Logger for tracking operations with timing."""

    def __init__(self, logger: StructuredLogger, operation: str, **context):
        """
        Initialize operation logger.

        Args:
            logger: Structured logger instance
            operation: Operation name
            **context: Fields attached to the start, success and error events
        """
        self.logger = logger
        self.operation = operation
        self.context: Dict[str, Any] = context
        self.start_time: Optional[float] = None

    def _elapsed_ms(self) -> float:
        return (time.perf_counter() - self.start_time) * 1000 if self.start_time else 0.0

    def start(self):
        self.start_time = time.perf_counter()
        self.logger.debug(
            f"Starting operation: {self.operation}",
            operation=self.operation,
            operation_status="started",
            **self.context,
        )

    def success(self, **additional_context):
        self.logger.info(
            f"Operation completed successfully: {self.operation}",
            operation=self.operation,
            operation_status="success",
            duration_ms=self._elapsed_ms(),
            **self.context,
            **additional_context,
        )

    def error(self, error: Exception, **additional_context):
        self.logger.error(
            f"Operation failed: {self.operation}",
            error=error,
            operation=self.operation,
            operation_status="error",
            duration_ms=self._elapsed_ms(),
            **self.context,
            **additional_context,
        )

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Exceptions propagate; only the outcome is logged here.
        if exc_type:
            self.error(exc_val)
        elif self.start_time is not None:
            self.success()
        return False


class JSONFormatter(logging.Formatter):
    """JSON formatter for standard library logging integration."""

    def format(self, record):
        log_entry = {
            "timestamp": record.created,
            "timestamp_iso": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread_name": record.threadName,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def get_logger(name: str, component: Optional[str] = None) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name
        component: Component name for context

    Returns:
        Configured structured logger
    """
    return StructuredLogger(name, component)


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    enable_console: bool = True,
):
    """
    Configure the ``clustervec`` logger hierarchy.

    Args:
        log_level: Minimum log level
        json_format: Whether to use JSON formatting
        log_format: Format string for plain-text output
        enable_console: Attach a console handler
    """
    level = getattr(logging, log_level.upper())

    package_logger = logging.getLogger("clustervec")
    package_logger.setLevel(level)

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    if not enable_console:
        package_logger.addHandler(logging.NullHandler())
        return

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(log_format))
    package_logger.addHandler(console_handler)
