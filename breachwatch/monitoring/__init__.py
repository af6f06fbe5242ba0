"""
BreachWatch - Monitoring Module

- Structured logging
- Request correlation context
"""

from .logging import (
    LoggingContextMiddleware,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    log_duration,
    unbind_context,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LoggingContextMiddleware",
    "log_duration",
]
