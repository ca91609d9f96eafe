"""Structured logging helpers shared by every component."""

import logging
from typing import Optional

from .config import configure_logging, redact_secrets
from .context import clear_log_context, get_log_context, log_context


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges the component field with per-call extra fields."""

    def process(self, msg, kwargs):
        # Call-site extra wins over the adapter default.
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Get a logger that tags every record with ``component``.

    Example:
        >>> logger = get_logger(__name__, component="scheduler")
        >>> logger.info("Trigger fired", extra={"event": "scheduler.trigger.fired"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger


__all__ = [
    "ComponentLoggerAdapter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "get_logger",
    "log_context",
    "redact_secrets",
]
