"""Unit tests for notification template rendering.

Tests the TemplateRenderer for:
- Subject, HTML, and text template rendering for both alert emails
- HTML auto-escaping (text bodies are left alone)
- Strict undefined variable detection
"""

import pytest

from jobboard.notifications.models import NotificationTemplateError
from jobboard.notifications.templates import (
    DEADLINE_REMINDER_TEMPLATE,
    JOB_ALERT_TEMPLATE,
    TemplateRenderer,
)


@pytest.fixture
def renderer():
    return TemplateRenderer()


@pytest.fixture
def reminder_context():
    return {
        "student_name": "Ada",
        "job_title": "Research Assistant",
        "department": "Biology",
        "application_deadline": "2026-11-07",
        "days_remaining": 3,
        "job_url": "https://jobs.uni.edu/jobs/job-1",
        "board_name": "University Job Board",
        "site_url": "https://jobs.uni.edu",
        "preferences_url": "https://jobs.uni.edu/profile/notifications",
    }


@pytest.fixture
def alert_context():
    return {
        "user_name": "Ada",
        "search_name": "Biology jobs",
        "job_count": 2,
        "jobs": [
            {
                "title": "Lab Assistant",
                "department": "Biology",
                "category": "research_assistant",
                "compensation": "$15/hour",
                "application_deadline": "2026-11-20",
                "url": "https://jobs.uni.edu/jobs/job-1",
            },
            {
                "title": "Field Station <Helper>",
                "department": "Biology",
                "category": "work_study",
                "compensation": None,
                "application_deadline": None,
                "url": "https://jobs.uni.edu/jobs/job-2",
            },
        ],
        "unsubscribe_url": "https://jobs.uni.edu/profile/notifications",
        "board_name": "University Job Board",
    }


class TestDeadlineReminderTemplate:
    def test_renders_all_parts(self, renderer, reminder_context):
        rendered = renderer.render(DEADLINE_REMINDER_TEMPLATE, reminder_context)

        assert rendered["subject"] == "Reminder: Application Deadline Approaching for Research Assistant"
        assert "Hello Ada" in rendered["text_body"]
        assert "Days Remaining:       3" in rendered["text_body"]
        assert 'href="https://jobs.uni.edu/jobs/job-1"' in rendered["html_body"]

    def test_missing_variable_raises(self, renderer, reminder_context):
        del reminder_context["job_url"]

        with pytest.raises(NotificationTemplateError, match="deadline_reminder"):
            renderer.render(DEADLINE_REMINDER_TEMPLATE, reminder_context)


class TestJobAlertTemplate:
    def test_subject_pluralization(self, renderer, alert_context):
        assert renderer.render(JOB_ALERT_TEMPLATE, alert_context)["subject"] == (
            'New Job Alert: 2 new jobs matching "Biology jobs"'
        )

        alert_context["job_count"] = 1
        alert_context["jobs"] = alert_context["jobs"][:1]
        assert renderer.render(JOB_ALERT_TEMPLATE, alert_context)["subject"] == (
            'New Job Alert: 1 new job matching "Biology jobs"'
        )

    def test_lists_every_job_with_humanized_category(self, renderer, alert_context):
        text = renderer.render(JOB_ALERT_TEMPLATE, alert_context)["text_body"]

        assert "1. Lab Assistant" in text
        assert "2. Field Station <Helper>" in text
        assert "Research Assistant" in text
        assert "Work Study" in text
        assert "Not specified" in text
        assert "Compensation: $15/hour" in text

    def test_html_is_escaped(self, renderer, alert_context):
        html = renderer.render(JOB_ALERT_TEMPLATE, alert_context)["html_body"]

        assert "Field Station &lt;Helper&gt;" in html
        assert "<Helper>" not in html

    def test_unknown_template(self, renderer, alert_context):
        with pytest.raises(NotificationTemplateError):
            renderer.render("weekly_digest", alert_context)
