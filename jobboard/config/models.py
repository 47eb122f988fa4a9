"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class EmailTransportType(str, Enum):
    """Supported outbound email transports."""

    SMTP = "smtp"
    HTTP = "http"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _duration_field_seconds(value: str, label: str, min_seconds: int, max_seconds: int) -> int:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds=min_seconds, max_seconds=max_seconds, label=label)
        return seconds
    except DurationParseError as e:
        raise ValueError(str(e)) from e


class AlertsConfig(BaseModel):
    """Behaviour of the periodic alert passes."""

    reminder_days_before: int = Field(
        3, ge=0, le=30, description="Lookahead window for deadline reminders (days)"
    )
    new_search_lookback: str = Field(
        "24h", description="How far back a subscription's first alert looks for new postings"
    )
    max_postings_per_alert: int = Field(
        10, ge=1, le=100, description="Cap on postings included in one saved-search alert"
    )
    close_expired_postings: bool = Field(
        True, description="Whether the expired-posting pass deactivates past-deadline postings"
    )
    remind_pending_applications: bool = Field(
        True, description="Whether posting owners are told about applications left pending"
    )
    pending_application_days: int = Field(
        7, ge=1, le=90, description="Days an application may stay pending before its owner is told"
    )

    new_search_lookback_seconds: Optional[int] = None

    @field_validator("new_search_lookback")
    @classmethod
    def validate_lookback(cls, v: str) -> str:
        _duration_field_seconds(v, "new_search_lookback", min_seconds=3600, max_seconds=30 * 86400)
        return v

    @model_validator(mode="after")
    def compute_lookback_seconds(self):
        self.new_search_lookback_seconds = parse_duration(self.new_search_lookback)
        return self


class ScheduleConfig(BaseModel):
    """Intervals at which daemon mode triggers each pass."""

    deadline_reminders: str = Field("24h", description="Deadline reminder pass interval")
    saved_search_alerts: str = Field("1h", description="Saved-search alert pass interval")
    expired_postings: str = Field("24h", description="Expired posting closure pass interval")
    pending_applications: str = Field("24h", description="Pending application reminder pass interval")

    @field_validator(
        "deadline_reminders", "saved_search_alerts", "expired_postings", "pending_applications"
    )
    @classmethod
    def validate_interval(cls, v: str, info) -> str:
        _duration_field_seconds(v, info.field_name, min_seconds=300, max_seconds=7 * 86400)
        return v

    def interval_seconds(self, pass_name: str) -> int:
        """Return the configured interval for a pass name in seconds."""
        return parse_duration(getattr(self, pass_name))


class EmailConfig(BaseModel):
    """Email delivery settings (credentials live in the environment)."""

    transport: EmailTransportType = Field(
        EmailTransportType.SMTP, description="Outbound transport (smtp or http)"
    )
    use_tls: bool = Field(True, description="Use TLS/STARTTLS for SMTP connections")
    max_retries: int = Field(
        2, ge=0, le=10, description="Transport-level retries per recipient"
    )
    retry_backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier for retries"
    )
    retry_initial_delay: float = Field(
        1.0, ge=0.0, le=60.0, description="Initial retry delay in seconds"
    )
    send_timeout: float = Field(
        30.0, gt=0, le=300, description="I/O timeout for a single send (seconds)"
    )
    max_parallel_sends: int = Field(
        4, ge=1, le=32, description="Worker threads used to fan out one batch"
    )
    batch_timeout: float = Field(
        300.0, gt=0, le=3600, description="Time allowed for one batch before stragglers fail"
    )

    model_config = {"use_enum_values": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class DatabaseConfig(BaseModel):
    """Datastore connection settings (the URL itself comes from DATABASE_URL)."""

    query_timeout: int = Field(
        30, ge=1, le=600, description="Seconds to wait on a locked database before failing"
    )


class AppConfig(BaseModel):
    """Root configuration object for the job board notification service."""

    site_url: str = Field(..., min_length=1, description="Public base URL of the job board")
    board_name: str = Field(
        "University Job Board", min_length=1, description="Name used in email signatures"
    )
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        stripped = v.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("site_url must start with http:// or https://")
        return stripped

    def posting_url(self, posting_id: str) -> str:
        """Link to a posting's detail page."""
        return f"{self.site_url}/jobs/{posting_id}"

    @property
    def preferences_url(self) -> str:
        """Link to the notification preferences page."""
        return f"{self.site_url}/profile/notifications"
