"""Context propagation for structured logging.

Fields pushed here (``run_id``, ``pass_name``, ``posting_id``,
``saved_search_id``...) are merged into every log record emitted inside the
scope. Backed by ``contextvars`` so worker threads started with a copied
context see the fields of the pass that spawned them.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the current logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the logging context.

    Returns:
        Token for ``pop_log_context`` to restore the previous state

    Example:
        >>> token = push_log_context(run_id="abc123", pass_name="saved_search_alerts")
        >>> pop_log_context(token)
    """
    current = LogContextVar.get()
    return LogContextVar.set({**current, **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context captured by ``push_log_context``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop all logging context fields (used by tests)."""
    LogContextVar.set({})


class log_context:
    """Context manager for scoped logging context.

    Example:
        >>> with log_context(run_id="abc123", posting_id="p-1"):
        ...     logger.info("Dispatching reminders")
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
