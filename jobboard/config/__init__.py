"""Configuration management for the job board notification service."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_config_file, validate_config_file
from .models import (
    AlertsConfig,
    AppConfig,
    DatabaseConfig,
    EmailConfig,
    EmailTransportType,
    LogFormat,
    LogLevel,
    LoggingConfig,
    ScheduleConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_config_file",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "AlertsConfig",
    "ScheduleConfig",
    "EmailConfig",
    "LoggingConfig",
    "DatabaseConfig",
    "EnvironmentConfig",
    # Enums
    "EmailTransportType",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
