"""Unit tests for domain models."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from jobboard.domain.models import (
    AlertFrequency,
    JobCategory,
    Posting,
    Profile,
    SavedSearch,
    SearchCriteria,
)


class TestEnums:
    def test_job_category_parse_known_value(self):
        assert JobCategory.parse("Teaching_Assistant") is JobCategory.TEACHING_ASSISTANT

    def test_job_category_parse_unknown_value_is_other(self):
        assert JobCategory.parse("postdoc") is JobCategory.OTHER
        assert JobCategory.parse(None) is JobCategory.OTHER

    def test_alert_frequency_parse_unknown_value(self):
        """Test unrecognized stored frequencies map to UNKNOWN, not an error."""
        assert AlertFrequency.parse("hourly") is AlertFrequency.UNKNOWN
        assert AlertFrequency.parse("") is AlertFrequency.UNKNOWN
        assert AlertFrequency.parse(" Weekly ") is AlertFrequency.WEEKLY


class TestPosting:
    """Tests for Posting model."""

    def test_minimal_posting_defaults(self):
        """Test missing optional fields default to empty values."""
        posting = Posting(id="job-1", posted_by="faculty-1", created_at=datetime(2026, 11, 1))

        assert posting.title == ""
        assert posting.description == ""
        assert posting.requirements is None
        assert posting.category is JobCategory.OTHER
        assert posting.is_active is True

    def test_naive_created_at_becomes_utc(self):
        posting = Posting(id="job-1", posted_by="f", created_at=datetime(2026, 11, 1, 9, 30))

        assert posting.created_at.tzinfo == timezone.utc

    def test_unknown_category_is_coerced(self):
        posting = Posting(id="job-1", posted_by="f", created_at=datetime(2026, 11, 1), category="lab_tech")

        assert posting.category is JobCategory.OTHER

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError):
            Posting(id="job-1")

    def test_is_expired(self):
        today = date(2026, 11, 4)
        posting = Posting(
            id="job-1",
            posted_by="f",
            created_at=datetime(2026, 11, 1),
            application_deadline=today,
        )

        assert not posting.is_expired(today)
        assert posting.is_expired(today + timedelta(days=1))

    def test_posting_without_deadline_never_expires(self):
        posting = Posting(id="job-1", posted_by="f", created_at=datetime(2026, 11, 1))

        assert not posting.is_expired(date(2100, 1, 1))


class TestProfile:
    def test_display_name_prefers_full_name(self):
        profile = Profile(id="s1", email="ada@uni.edu", full_name="  Ada Lovelace ")
        assert profile.display_name == "Ada Lovelace"

    def test_display_name_falls_back_to_email(self):
        profile = Profile(id="s1", email="ada@uni.edu")
        assert profile.display_name == "ada"


class TestSavedSearch:
    """Tests for SavedSearch and SearchCriteria."""

    def test_blank_criteria_strings_become_none(self):
        criteria = SearchCriteria(query="   ", department="", sort_by=" title ")

        assert criteria.query is None
        assert criteria.department is None
        assert criteria.sort_by == "title"

    def test_unknown_frequency_is_coerced(self):
        saved_search = SavedSearch(id="s", user_id="u", name="n", alert_frequency="fortnightly")

        assert saved_search.alert_frequency is AlertFrequency.UNKNOWN

    def test_defaults(self):
        saved_search = SavedSearch(id="s", user_id="u", name="n")

        assert saved_search.is_alert_enabled is False
        assert saved_search.alert_frequency is AlertFrequency.DAILY
        assert saved_search.last_alert_sent is None
        assert saved_search.criteria == SearchCriteria()
