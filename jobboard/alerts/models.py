"""Result models for the alert passes."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class PassResult:
    """
    Common outcome fields of one alert pass.

    Attributes:
        pass_name: Which pass produced this result
        started_at: The instant the pass evaluated everything against
        finished_at: When the pass returned
        errors: Per-item failures (datastore or delivery); the pass kept going
        skipped: True if a previous run of the same pass was still in progress
    """

    pass_name: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    errors: List[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def had_errors(self) -> bool:
        return bool(self.errors)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


@dataclass
class DeadlineReminderResult(PassResult):
    """
    Attributes:
        postings_found: Active postings with a deadline inside the window
        postings_notified: Postings whose cohort had at least one delivery
        recipients_targeted: Students across all cohorts
        notifications_sent: Successful deliveries
        notifications_failed: Failed deliveries
    """

    postings_found: int = 0
    postings_notified: int = 0
    recipients_targeted: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0


@dataclass
class SavedSearchAlertResult(PassResult):
    """
    Attributes:
        searches_checked: Alert-enabled saved searches seen
        searches_not_due: Searches whose frequency threshold had not elapsed
        searches_processed: Searches whose last_alert_sent was advanced
        searches_skipped: Searches claimed by a concurrent pass
        postings_matched: New postings found across processed searches
        alerts_sent: Alert emails delivered
        processed_ids: Ids of processed searches, in processing order
    """

    searches_checked: int = 0
    searches_not_due: int = 0
    searches_processed: int = 0
    searches_skipped: int = 0
    postings_matched: int = 0
    alerts_sent: int = 0
    processed_ids: List[str] = field(default_factory=list)


@dataclass
class ExpiredPostingResult(PassResult):
    """
    Attributes:
        postings_closed: Postings flipped to inactive
        closed_ids: Their ids
        owners_notified: In-app "closed" notifications recorded
        disabled: True when closure is turned off in configuration
    """

    postings_closed: int = 0
    closed_ids: List[str] = field(default_factory=list)
    owners_notified: int = 0
    disabled: bool = False


@dataclass
class PendingApplicationResult(PassResult):
    """
    Attributes:
        applications_found: Applications still pending past the threshold
        owners_notified: Posting owners who got an in-app reminder
        disabled: True when the reminder is turned off in configuration
    """

    applications_found: int = 0
    owners_notified: int = 0
    disabled: bool = False


@dataclass
class AlertRunSummary:
    """Results of running several passes back to back.

    ``failures`` maps a pass name to the error that aborted it.
    """

    results: Dict[str, PassResult] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def had_errors(self) -> bool:
        return bool(self.failures) or any(r.had_errors for r in self.results.values())
