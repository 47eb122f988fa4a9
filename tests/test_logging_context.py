"""Tests for logging context propagation."""

from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context

import pytest

from jobboard.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


def test_empty_context():
    assert get_log_context() == {}


def test_push_and_pop():
    token = push_log_context(run_id="abc123", pass_name="deadline_reminders")
    assert get_log_context() == {"run_id": "abc123", "pass_name": "deadline_reminders"}

    pop_log_context(token)
    assert get_log_context() == {}


def test_nested_push_restores_each_layer():
    token1 = push_log_context(run_id="abc123")
    token2 = push_log_context(posting_id="job-1")
    assert get_log_context() == {"run_id": "abc123", "posting_id": "job-1"}

    pop_log_context(token2)
    assert get_log_context() == {"run_id": "abc123"}

    pop_log_context(token1)
    assert get_log_context() == {}


def test_inner_value_overrides_outer():
    with log_context(posting_id="job-1"):
        with log_context(posting_id="job-2"):
            assert get_log_context()["posting_id"] == "job-2"
        assert get_log_context()["posting_id"] == "job-1"


def test_context_manager_restores_on_exception():
    with pytest.raises(RuntimeError):
        with log_context(saved_search_id="search-1"):
            raise RuntimeError("boom")

    assert get_log_context() == {}


def test_get_log_context_returns_copy():
    with log_context(run_id="abc123"):
        snapshot = get_log_context()
        snapshot["run_id"] = "mutated"

        assert get_log_context()["run_id"] == "abc123"


def test_copied_context_reaches_worker_threads():
    with log_context(run_id="abc123", pass_name="saved_search_alerts"):
        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(copy_context().run, get_log_context) for _ in range(3)
            ]
            results = [future.result() for future in futures]

    assert all(r == {"run_id": "abc123", "pass_name": "saved_search_alerts"} for r in results)
