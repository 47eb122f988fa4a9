"""Root logger configuration: JSON or key-value output with context enrichment."""

import json
import logging
import sys
from datetime import date, datetime, timezone
from typing import IO, Any, Dict, Literal, Optional

from .context import get_log_context

LogFormat = Literal["json", "key-value"]

SERVICE_NAME = "jobboard"

# LogRecord attributes that are never emitted as extra fields
_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "asctime",
    "exc_info", "exc_text", "stack_info", "taskName",
})


def _extra_fields(record: logging.LogRecord, skip=frozenset()) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and key not in skip and not key.startswith("_")
    }


class ContextualFilter(logging.Filter):
    """Adds static service metadata and the active log context to every record.

    Explicit ``extra`` values on the log call win over context values.
    """

    def __init__(self, service: str = SERVICE_NAME, environment: str = "local"):
        super().__init__()
        self.service = service
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        record.environment = self.environment

        for key, value in get_log_context().items():
            if not hasattr(record, key):
                setattr(record, key, value)

        return True


class JSONFormatter(logging.Formatter):
    """Single-line JSON output with stable top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": self._format_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in _extra_fields(record).items():
            if isinstance(value, (datetime, date)):
                log_obj[key] = value.isoformat()
            elif isinstance(value, (str, int, float, bool, type(None), list, dict)):
                log_obj[key] = value
            else:
                log_obj[key] = str(value)

        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, ensure_ascii=False, default=str)

    @staticmethod
    def _format_timestamp(created: float) -> str:
        dt = datetime.fromtimestamp(created, tz=timezone.utc)
        return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class KeyValueFormatter(logging.Formatter):
    """Human-readable output: ``timestamp [level] logger: message key=value ...``"""

    SKIP_ATTRS = frozenset({"service", "environment"})

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        extras = []
        for key, value in sorted(_extra_fields(record, self.SKIP_ATTRS).items()):
            extras.append(f"{key}={self._format_value(value)}")

        if extras:
            return f"{base} {' '.join(extras)}"
        return base

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, str):
            if " " in value or "=" in value or "," in value:
                return f'"{value}"'
            return value
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, bool):
            return str(value).lower()
        if value is None:
            return "null"
        return str(value)


def configure_logging(
    level: str = "INFO",
    format_type: LogFormat = "key-value",
    environment: str = "local",
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure the root logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'json' for JSON lines or 'key-value' for human-readable
        environment: Environment label (production, staging, local)
        stream: Output stream (defaults to stdout)

    Raises:
        ValueError: If level or format_type is invalid
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    if format_type not in ("json", "key-value"):
        raise ValueError(f"Invalid log format: {format_type}. Must be 'json' or 'key-value'")

    handler = logging.StreamHandler(stream or sys.stdout)

    if format_type == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = KeyValueFormatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    handler.addFilter(ContextualFilter(service=SERVICE_NAME, environment=environment))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # APScheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={
            "event": "logging.configured",
            "component": "logging",
            "log_level": str(level).upper(),
            "log_format": format_type,
        },
    )
