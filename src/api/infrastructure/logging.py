"""Structured logging utilities with context management."""

import contextvars
import sys
from typing import Any

from loguru import logger

from src.config import LoggingConfig


# Context variables for maintaining engine-cycle context
cycle_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar("cycle_context", default={})


class LoggingContext:
    """
    Context manager for structured logging with automatic context injection.

    Example:
        with LoggingContext(trigger="mqtt"):
            logger.info("Evaluating alerts")  # Will include trigger=mqtt
    """

    def __init__(self, **context_data):
        """
        Initialize logging context.

        Args:
            **context_data: Key-value pairs to add to logging context
        """
        self.context_data = context_data
        self.token = None

    def __enter__(self):
        """Enter context and set context variables."""
        current = cycle_context.get().copy()
        current.update(self.context_data)
        self.token = cycle_context.set(current)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context and restore previous context."""
        if self.token:
            cycle_context.reset(self.token)


def get_logging_context() -> dict[str, Any]:
    """
    Get current logging context.

    Returns:
        Dictionary of current context variables
    """
    return cycle_context.get().copy()


def _context_filter(record) -> bool:
    """Add context variables to log record."""
    record["extra"].update(cycle_context.get())
    return True


def configure_structured_logging(config: LoggingConfig | None = None):
    """
    Configure loguru to include the cycle trigger in all log messages.

    This should be called once at application startup.
    """
    config = config or LoggingConfig()

    logger.remove()
    logger.configure(extra={"trigger": "-"})

    logger.add(
        sink=sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[trigger]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        filter=_context_filter,
        level=config.level,
        colorize=True,
    )

    if config.file:
        logger.add(
            sink=config.file,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra} | {name}:{function}:{line} | {message}",
            filter=_context_filter,
            level="INFO",
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
            serialize=False,
        )
