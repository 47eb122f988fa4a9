"""Deadline alert scheduler: reminders, saved-search alerts, expired-posting
closure and pending-application reminders."""

from .eligibility import (
    FREQUENCY_THRESHOLDS,
    alert_lookback_start,
    days_remaining,
    deadline_window,
    is_alert_due,
    is_in_deadline_window,
)
from .exceptions import AlertSchedulerError
from .jobs import (
    AlertPass,
    DeadlineReminderJob,
    ExpiredPostingCloser,
    PendingApplicationsJob,
    SavedSearchAlertJob,
)
from .models import (
    AlertRunSummary,
    DeadlineReminderResult,
    ExpiredPostingResult,
    PassResult,
    PendingApplicationResult,
    SavedSearchAlertResult,
)
from .runner import (
    DEADLINE_REMINDERS,
    EXPIRED_POSTINGS,
    PASS_ORDER,
    PENDING_APPLICATIONS,
    SAVED_SEARCH_ALERTS,
    AlertScheduler,
)

__all__ = [
    # Eligibility
    "is_alert_due",
    "alert_lookback_start",
    "deadline_window",
    "is_in_deadline_window",
    "days_remaining",
    "FREQUENCY_THRESHOLDS",
    # Passes
    "AlertPass",
    "DeadlineReminderJob",
    "SavedSearchAlertJob",
    "ExpiredPostingCloser",
    "PendingApplicationsJob",
    "AlertScheduler",
    "PASS_ORDER",
    "DEADLINE_REMINDERS",
    "SAVED_SEARCH_ALERTS",
    "EXPIRED_POSTINGS",
    "PENDING_APPLICATIONS",
    # Results
    "PassResult",
    "DeadlineReminderResult",
    "SavedSearchAlertResult",
    "ExpiredPostingResult",
    "PendingApplicationResult",
    "AlertRunSummary",
    # Errors
    "AlertSchedulerError",
]
