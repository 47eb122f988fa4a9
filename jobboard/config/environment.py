"""Environment variable loading and validation."""

import os
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError
from .models import EmailTransportType

DEFAULT_DATABASE_URL = "sqlite:///./data/jobboard.db"
DEFAULT_SENDER_NAME = "University Job Board"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Secrets and deployment-specific settings read from the environment."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        email_api_url: Optional[str] = None,
        email_api_key: Optional[str] = None,
        sender_name: Optional[str] = None,
        sender_address: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.email_api_url = email_api_url
        self.email_api_key = email_api_key
        self.sender_name = sender_name or DEFAULT_SENDER_NAME
        self.sender_address = sender_address
        self.log_level = log_level

    @property
    def from_header(self) -> str:
        """Formatted ``From`` header, e.g. ``University Job Board <noreply@uni.edu>``."""
        if self.sender_address:
            address = self.sender_address
        elif self.smtp_user and "@" in self.smtp_user:
            address = self.smtp_user
        else:
            address = f"noreply@{self.smtp_host or 'localhost'}"
        return f"{self.sender_name} <{address}>"


def load_environment_config(transport: str = EmailTransportType.SMTP.value) -> EnvironmentConfig:
    """
    Load and validate environment variables for the selected email transport.

    Always optional:
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/jobboard.db)
    - EMAIL_SENDER_NAME / EMAIL_SENDER_ADDRESS: ``From`` header parts
    - LOG_LEVEL: overrides the configured log level

    Required for ``smtp``: SMTP_HOST, SMTP_PORT (SMTP_USER/SMTP_PASS together or not at all)
    Required for ``http``: EMAIL_API_URL, EMAIL_API_KEY

    Args:
        transport: ``smtp`` or ``http``; decides which credentials are required

    Returns:
        EnvironmentConfig with validated environment variables

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors: List[str] = []

    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    email_api_url = os.getenv("EMAIL_API_URL")
    email_api_key = os.getenv("EMAIL_API_KEY")
    sender_address = os.getenv("EMAIL_SENDER_ADDRESS")
    log_level = os.getenv("LOG_LEVEL")

    smtp_port = None
    if transport == EmailTransportType.SMTP.value:
        if not smtp_host:
            errors.append("Missing required environment variable: SMTP_HOST")
        if not smtp_port_str:
            errors.append("Missing required environment variable: SMTP_PORT")

        if smtp_user and not smtp_pass:
            errors.append(
                "SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication."
            )
        elif smtp_pass and not smtp_user:
            errors.append(
                "SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication."
            )
    elif transport == EmailTransportType.HTTP.value:
        if not email_api_url:
            errors.append("Missing required environment variable: EMAIL_API_URL")
        elif not email_api_url.startswith(("http://", "https://")):
            errors.append(f"Invalid EMAIL_API_URL: '{email_api_url}'. Must be an http(s) URL.")
        if not email_api_key:
            errors.append("Missing required environment variable: EMAIL_API_KEY")
        if not sender_address:
            errors.append("EMAIL_SENDER_ADDRESS is required when using the http transport")
    else:
        errors.append(f"Unknown email transport: '{transport}'")

    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if smtp_port < 1 or smtp_port > 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer.")

    if sender_address:
        try:
            sender_address = validate_email(sender_address, check_deliverability=False).normalized
        except EmailNotValidError as e:
            errors.append(f"Invalid EMAIL_SENDER_ADDRESS: '{sender_address}' - {e}")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Ensure the variables required by email.transport are set",
                "Verify SMTP_PORT is a number between 1 and 65535",
            ],
        )

    return EnvironmentConfig(
        database_url=os.getenv("DATABASE_URL"),
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        email_api_url=email_api_url,
        email_api_key=email_api_key,
        sender_name=os.getenv("EMAIL_SENDER_NAME"),
        sender_address=sender_address,
        log_level=log_level.upper() if log_level else None,
    )
