"""Structured logging helpers shared by every component."""

import logging
from typing import Optional

from .config import configure_logging
from .context import log_context


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that stamps a component field and keeps per-call extras."""

    def process(self, msg, kwargs):
        # Call-site extras take precedence over the adapter's component
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Get a logger, optionally tagging every record with a component name.

    Example:
        >>> logger = get_logger(__name__, component="alerts")
        >>> logger.info("Pass started", extra={"event": "alerts.pass.started"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger


__all__ = ["get_logger", "configure_logging", "log_context", "ComponentLoggerAdapter"]
