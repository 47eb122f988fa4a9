"""AlertScheduler: one entry point for triggering the alert passes."""

from datetime import datetime
from typing import Callable, Dict, Iterable, Optional

from jobboard.config.models import AppConfig
from jobboard.logging import get_logger
from jobboard.notifications.service import NotificationService
from jobboard.persistence.database import get_session
from jobboard.utils.timestamps import utc_now

from .exceptions import AlertSchedulerError
from .jobs import (
    AlertPass,
    DeadlineReminderJob,
    ExpiredPostingCloser,
    PendingApplicationsJob,
    SavedSearchAlertJob,
)
from .models import AlertRunSummary, PassResult

logger = get_logger(__name__, component="alerts")

DEADLINE_REMINDERS = DeadlineReminderJob.name
SAVED_SEARCH_ALERTS = SavedSearchAlertJob.name
EXPIRED_POSTINGS = ExpiredPostingCloser.name
PENDING_APPLICATIONS = PendingApplicationsJob.name

# Closing expired postings first keeps them out of the reminder window query
PASS_ORDER = (EXPIRED_POSTINGS, DEADLINE_REMINDERS, SAVED_SEARCH_ALERTS, PENDING_APPLICATIONS)


class AlertScheduler:
    """Owns one instance of each pass so their locks are shared by every trigger."""

    def __init__(
        self,
        app_config: AppConfig,
        notification_service: NotificationService,
        session_factory: Callable = get_session,
    ):
        self.passes: Dict[str, AlertPass] = {
            EXPIRED_POSTINGS: ExpiredPostingCloser(app_config, session_factory),
            DEADLINE_REMINDERS: DeadlineReminderJob(
                app_config, notification_service, session_factory
            ),
            SAVED_SEARCH_ALERTS: SavedSearchAlertJob(
                app_config, notification_service, session_factory
            ),
            PENDING_APPLICATIONS: PendingApplicationsJob(app_config, session_factory),
        }

    def run_pass(self, pass_name: str, now: Optional[datetime] = None) -> PassResult:
        """Run a single pass by name.

        Raises:
            KeyError: If ``pass_name`` is unknown
            AlertSchedulerError: If the pass's candidate query fails
        """
        return self.passes[pass_name].run(now)

    def run_all(
        self, now: Optional[datetime] = None, pass_names: Iterable[str] = PASS_ORDER
    ) -> AlertRunSummary:
        """Run several passes against the same ``now``.

        A pass that raises AlertSchedulerError is recorded in
        ``summary.failures`` and the remaining passes still run.
        """
        now = now or utc_now()
        summary = AlertRunSummary()
        for pass_name in pass_names:
            try:
                summary.results[pass_name] = self.run_pass(pass_name, now)
            except AlertSchedulerError as e:
                logger.error(
                    f"{pass_name} aborted: {e}",
                    extra={"event": "alerts.pass.failed", "pass_name": pass_name},
                )
                summary.failures[pass_name] = str(e)
        return summary
