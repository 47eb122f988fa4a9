"""Integration tests for configuration module."""

import warnings
from pathlib import Path

import pytest

from jobboard.config import (
    ConfigurationError,
    EmailTransportType,
    load_config,
    validate_config_file,
)
from jobboard.config.duration import DurationParseError, parse_duration, validate_duration_range
from jobboard.config.environment import DEFAULT_DATABASE_URL, load_environment_config
from jobboard.config.loader import parse_config_file
from jobboard.config.validators import check_for_warnings

VALID_CONFIG = """
site_url: "https://jobs.uni.edu/"
alerts:
  reminder_days_before: 5
  new_search_lookback: "2d"
  max_postings_per_alert: 8
schedule:
  saved_search_alerts: "30m"
  deadline_reminders: "PT12H"
email:
  transport: smtp
  max_retries: 3
  max_parallel_sends: 8
logging:
  level: DEBUG
  format: json
database:
  query_timeout: 10
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(VALID_CONFIG)
    return path


def write_config(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return path


# Pytest fixtures
@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock required environment variables for testing."""
    for name in ("EMAIL_API_URL", "EMAIL_API_KEY", "EMAIL_SENDER_ADDRESS", "LOG_LEVEL", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SMTP_HOST", "smtp.uni.edu")
    monkeypatch.setenv("SMTP_PORT", "587")
    monkeypatch.setenv("SMTP_USER", "jobs@uni.edu")
    monkeypatch.setenv("SMTP_PASS", "testpass123")


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, config_file, mock_env_vars):
        app_config, env_config = load_config(config_file)

        assert app_config.site_url == "https://jobs.uni.edu"
        assert app_config.alerts.reminder_days_before == 5
        assert app_config.alerts.new_search_lookback_seconds == 2 * 86400
        assert app_config.alerts.max_postings_per_alert == 8
        assert app_config.alerts.close_expired_postings is True
        assert app_config.schedule.interval_seconds("saved_search_alerts") == 1800
        assert app_config.schedule.interval_seconds("deadline_reminders") == 12 * 3600
        assert app_config.schedule.interval_seconds("expired_postings") == 86400
        assert app_config.email.transport == EmailTransportType.SMTP.value
        assert app_config.email.max_retries == 3
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"
        assert app_config.database.query_timeout == 10
        assert env_config.smtp_port == 587
        assert env_config.database_url == DEFAULT_DATABASE_URL

    def test_load_minimal_config_uses_defaults(self, tmp_path, mock_env_vars):
        app_config, _ = load_config(write_config(tmp_path, 'site_url: "http://localhost:3000"\n'))

        assert app_config.alerts.reminder_days_before == 3
        assert app_config.alerts.new_search_lookback_seconds == 86400
        assert app_config.alerts.max_postings_per_alert == 10
        assert app_config.email.max_parallel_sends == 4
        assert app_config.alerts.remind_pending_applications is True
        assert app_config.alerts.pending_application_days == 7
        assert app_config.schedule.interval_seconds("pending_applications") == 86400
        assert app_config.board_name == "University Job Board"

    def test_links(self, config_file, mock_env_vars):
        app_config, _ = load_config(config_file)

        assert app_config.posting_url("abc") == "https://jobs.uni.edu/jobs/abc"
        assert app_config.preferences_url == "https://jobs.uni.edu/profile/notifications"

    def test_config_file_not_found(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(Path("nonexistent.yaml"))

        assert "not found" in str(exc_info.value).lower()

    def test_default_location_lookup(self, tmp_path, monkeypatch, mock_env_vars):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text(VALID_CONFIG)
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config.alerts.reminder_days_before == 5

    def test_invalid_yaml_syntax(self, tmp_path, mock_env_vars):
        path = write_config(tmp_path, "site_url: 'https://x\n  alerts: [")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert "parse" in str(exc_info.value).lower()

    def test_empty_file(self, tmp_path, mock_env_vars):
        with pytest.raises(ConfigurationError, match="empty"):
            load_config(write_config(tmp_path, ""))


class TestConfigurationValidation:
    """Test configuration validation rules."""

    def test_missing_site_url(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config_file(write_config(tmp_path, "alerts:\n  reminder_days_before: 2\n"))

        assert "Missing required field: site_url" in exc_info.value.errors

    def test_site_url_must_be_http(self, tmp_path):
        with pytest.raises(ConfigurationError, match="site_url"):
            parse_config_file(write_config(tmp_path, "site_url: ftp://jobs.uni.edu\n"))

    def test_schedule_interval_too_short(self, tmp_path):
        content = 'site_url: "https://jobs.uni.edu"\nschedule:\n  saved_search_alerts: "1m"\n'

        with pytest.raises(ConfigurationError) as exc_info:
            parse_config_file(write_config(tmp_path, content))

        assert any("saved_search_alerts" in error for error in exc_info.value.errors)

    def test_pending_application_days_must_be_positive(self, tmp_path):
        content = 'site_url: "https://jobs.uni.edu"\nalerts:\n  pending_application_days: 0\n'

        with pytest.raises(ConfigurationError):
            parse_config_file(write_config(tmp_path, content))

    def test_negative_reminder_window(self, tmp_path):
        content = 'site_url: "https://jobs.uni.edu"\nalerts:\n  reminder_days_before: -1\n'

        with pytest.raises(ConfigurationError):
            parse_config_file(write_config(tmp_path, content))

    def test_unknown_transport(self, tmp_path):
        content = 'site_url: "https://jobs.uni.edu"\nemail:\n  transport: carrier_pigeon\n'

        with pytest.raises(ConfigurationError):
            parse_config_file(write_config(tmp_path, content))

    def test_warnings_for_suspicious_settings(self):
        messages = check_for_warnings(
            {
                "alerts": {"reminder_days_before": 0, "max_postings_per_alert": 50},
                "schedule": {"saved_search_alerts": "2h"},
                "email": {"use_tls": False},
            }
        )

        assert len(messages) == 4

    def test_warnings_are_emitted(self, tmp_path):
        content = 'site_url: "https://jobs.uni.edu"\nalerts:\n  reminder_days_before: 0\n'

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            parse_config_file(write_config(tmp_path, content))

        assert any("reminder_days_before" in str(w.message) for w in caught)

    def test_validate_config_file_utility(self, config_file, tmp_path):
        assert validate_config_file(config_file) is True

        invalid = tmp_path / "invalid.yaml"
        invalid.write_text("alerts: {}\n")
        assert validate_config_file(invalid) is False


class TestDurationParsing:
    """Test duration parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [("15m", 900), ("1h", 3600), ("30s", 30), ("2d", 172800), ("1h30m", 5400),
         ("PT15M", 900), ("PT1H30M", 5400), ("P1D", 86400), ("P1DT12H", 129600)],
    )
    def test_parse_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "fifteen", "1h30x", "0m", "PT0S", "P1H"])
    def test_parse_invalid(self, value):
        with pytest.raises(DurationParseError):
            parse_duration(value)

    def test_validate_duration_range(self):
        validate_duration_range(900, min_seconds=300, max_seconds=86400)

        with pytest.raises(DurationParseError, match="too short"):
            validate_duration_range(60, min_seconds=300)
        with pytest.raises(DurationParseError, match="too long"):
            validate_duration_range(30 * 86400, max_seconds=7 * 86400)


class TestEnvironmentVariables:
    """Test environment variable loading and validation."""

    def test_load_smtp_environment(self, mock_env_vars):
        env_config = load_environment_config()

        assert env_config.smtp_host == "smtp.uni.edu"
        assert env_config.smtp_port == 587
        assert env_config.from_header == "University Job Board <jobs@uni.edu>"

    def test_missing_smtp_vars(self, monkeypatch):
        monkeypatch.delenv("SMTP_HOST", raising=False)
        monkeypatch.delenv("SMTP_PORT", raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config("smtp")

        assert "SMTP_HOST" in str(exc_info.value)
        assert "SMTP_PORT" in str(exc_info.value)

    def test_invalid_smtp_port(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("SMTP_PORT", "invalid")

        with pytest.raises(ConfigurationError, match="SMTP_PORT"):
            load_environment_config()

    def test_user_without_password(self, mock_env_vars, monkeypatch):
        monkeypatch.delenv("SMTP_PASS")

        with pytest.raises(ConfigurationError, match="SMTP_PASS"):
            load_environment_config()

    def test_http_transport_requirements(self, monkeypatch):
        for name in ("EMAIL_API_URL", "EMAIL_API_KEY", "EMAIL_SENDER_ADDRESS"):
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config("http")

        message = str(exc_info.value)
        assert "EMAIL_API_URL" in message
        assert "EMAIL_API_KEY" in message
        assert "EMAIL_SENDER_ADDRESS" in message

    def test_http_transport(self, monkeypatch):
        monkeypatch.delenv("SMTP_HOST", raising=False)
        monkeypatch.delenv("SMTP_PORT", raising=False)
        monkeypatch.setenv("EMAIL_API_URL", "https://api.mail.example.com/emails")
        monkeypatch.setenv("EMAIL_API_KEY", "key-123")
        monkeypatch.setenv("EMAIL_SENDER_ADDRESS", "jobs@uni.edu")
        monkeypatch.setenv("EMAIL_SENDER_NAME", "State U Careers")

        env_config = load_environment_config("http")

        assert env_config.email_api_key == "key-123"
        assert env_config.from_header == "State U Careers <jobs@uni.edu>"

    def test_invalid_sender_address(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("EMAIL_SENDER_ADDRESS", "invalid-email")

        with pytest.raises(ConfigurationError, match="EMAIL_SENDER_ADDRESS"):
            load_environment_config()

    def test_optional_env_vars(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("DATABASE_URL", "sqlite:///tmp/jobs.db")

        env_config = load_environment_config()

        assert env_config.log_level == "DEBUG"
        assert env_config.database_url == "sqlite:///tmp/jobs.db"

    def test_invalid_log_level(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
            load_environment_config()
