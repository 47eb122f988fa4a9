"""Shared pytest fixtures."""

import pytest

from jobboard.config.models import EmailConfig
from jobboard.notifications.service import NotificationService
from jobboard.persistence import close_database, init_database
from tests.helpers import FakeTransport, make_app_config, make_env_config


@pytest.fixture
def test_database(tmp_path):
    """File-backed SQLite database, closed after the test."""
    db_url = f"sqlite:///{tmp_path / 'jobboard_test.db'}"
    init_database(db_url)
    yield db_url
    close_database()


@pytest.fixture
def app_config():
    return make_app_config()


@pytest.fixture
def env_config():
    return make_env_config()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def email_config():
    return EmailConfig(max_retries=1, retry_initial_delay=0.0, batch_timeout=10)


@pytest.fixture
def notification_service(email_config, env_config, transport):
    return NotificationService(email_config, env_config, transport=transport, sleep=lambda _: None)
