"""
Monitoring module for clustervec.

Provides structlog-based structured logging and operation timing for store
operations.
"""

from .structured_logger import (
    StructuredLogger,
    OperationLogger,
    JSONFormatter,
    LogLevel,
    get_logger,
    configure_logging,
)

__all__ = [
    "StructuredLogger",
    "OperationLogger",
    "JSONFormatter",
    "LogLevel",
    "get_logger",
    "configure_logging",
]
