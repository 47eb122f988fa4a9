"""The periodic alert passes.

Every pass:
- evaluates everything against a single ``now`` captured at the start
- runs under a non-blocking lock, so an overlapping call returns a skipped result
- raises AlertSchedulerError only if its candidate query fails
- records per-item failures in ``result.errors`` and moves on to the next item

Database work happens on the calling thread in short sessions. Email fan-out
happens in the NotificationService, outside any transaction.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from jobboard.config.models import AppConfig
from jobboard.domain.models import NotificationType, Posting, SavedSearch
from jobboard.logging import get_logger
from jobboard.logging.context import log_context
from jobboard.notifications.models import BatchResult, NotificationBatch
from jobboard.notifications.payloads import (
    build_deadline_reminder_recipient,
    build_job_alert_recipient,
    deadline_reminder_subject,
    job_alert_subject,
)
from jobboard.notifications.service import NotificationService
from jobboard.notifications.templates import DEADLINE_REMINDER_TEMPLATE, JOB_ALERT_TEMPLATE
from jobboard.persistence.database import get_session
from jobboard.persistence.exceptions import PersistenceError
from jobboard.persistence.repositories import (
    ApplicationRepository,
    NotificationRepository,
    PostingRepository,
    ProfileRepository,
    SavedSearchRepository,
)
from jobboard.utils.timestamps import ensure_utc, format_date, format_timestamp_for_log, utc_now, utc_today

from .eligibility import alert_lookback_start, days_remaining, is_alert_due
from .exceptions import AlertSchedulerError
from .models import (
    DeadlineReminderResult,
    ExpiredPostingResult,
    PassResult,
    PendingApplicationResult,
    SavedSearchAlertResult,
)

logger = get_logger(__name__, component="alerts")


class AlertPass(ABC):
    """Shared run/lock/log-context scaffolding for the passes.

    Subclasses set ``name`` and implement ``_new_result`` and ``_execute``.
    """

    name = "alert_pass"

    def __init__(self, app_config: AppConfig, session_factory: Callable = get_session):
        self.app_config = app_config
        self.session_factory = session_factory
        self._lock = threading.Lock()

    def run(self, now: Optional[datetime] = None) -> PassResult:
        """Run the pass once.

        Args:
            now: Instant to evaluate against (defaults to the current UTC time)

        Raises:
            AlertSchedulerError: If the candidate query fails
        """
        now = ensure_utc(now) if now else utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id, pass_name=self.name):
                logger.warning(
                    f"{self.name} skipped: previous run still in progress",
                    extra={"event": "alerts.pass.skipped", "reason": "lock_held"},
                )
            result = self._new_result(now)
            result.skipped = True
            result.finished_at = utc_now()
            return result

        try:
            with log_context(run_id=run_id, pass_name=self.name):
                logger.info(
                    f"{self.name} started",
                    extra={
                        "event": "alerts.pass.started",
                        "pass_started_at": format_timestamp_for_log(now),
                    },
                )
                result = self._new_result(now)
                self._execute(now, result)
                result.finished_at = utc_now()
                logger.info(
                    f"{self.name} completed with {len(result.errors)} errors",
                    extra={
                        "event": "alerts.pass.completed",
                        "duration_ms": int(result.duration_seconds * 1000),
                        "error_count": len(result.errors),
                    },
                )
                return result
        finally:
            self._lock.release()

    @abstractmethod
    def _new_result(self, now: datetime) -> PassResult:
        """Return an empty result for a run starting at ``now``."""

    @abstractmethod
    def _execute(self, now: datetime, result: PassResult) -> None:
        """Do the pass's work, filling in ``result``.

        Raises:
            AlertSchedulerError: If the candidate query fails
        """

    def _record_deliveries(self, batch_result: BatchResult, now: datetime) -> int:
        """Write one in-app notification per successful delivery.

        A failure here is logged and never turns a delivery into a failure.
        """
        delivered = [o for o in batch_result.successful if o.recipient.user_id]
        if not delivered:
            return 0

        try:
            with self.session_factory() as session:
                repo = NotificationRepository(session)
                for outcome in delivered:
                    repo.record(
                        user_id=outcome.recipient.user_id,
                        title=outcome.subject,
                        message=outcome.message_preview,
                        notification_type=batch_result.template_id,
                        created_at=now,
                    )
            return len(delivered)
        except PersistenceError as e:
            logger.warning(
                f"Failed to log {len(delivered)} deliveries: {e}",
                extra={"event": "alerts.delivery_log.failed", "error_type": type(e).__name__},
            )
            return 0


class DeadlineReminderJob(AlertPass):
    """Reminds students who have not applied that a deadline is close.

    One batch per posting whose deadline lies within
    ``alerts.reminder_days_before`` days of today (both ends inclusive).
    """

    name = "deadline_reminders"

    def __init__(
        self,
        app_config: AppConfig,
        notification_service: NotificationService,
        session_factory: Callable = get_session,
    ):
        super().__init__(app_config, session_factory)
        self.notification_service = notification_service

    def _new_result(self, now: datetime) -> DeadlineReminderResult:
        return DeadlineReminderResult(pass_name=self.name, started_at=now)

    def _execute(self, now: datetime, result: DeadlineReminderResult) -> None:
        today = utc_today(now)
        days_before = self.app_config.alerts.reminder_days_before

        try:
            with self.session_factory() as session:
                postings = PostingRepository(session).get_upcoming_deadlines(today, days_before)
        except PersistenceError as e:
            logger.error(
                f"Failed to fetch postings with upcoming deadlines: {e}",
                extra={"event": "alerts.candidates.failed"},
            )
            raise AlertSchedulerError(
                f"Failed to fetch postings with upcoming deadlines: {e}", pass_name=self.name
            ) from e

        result.postings_found = len(postings)
        logger.info(
            f"Found {len(postings)} postings with deadlines through {format_date(today + timedelta(days=days_before))}",
            extra={"event": "alerts.deadlines.found", "posting_count": len(postings)},
        )

        for posting in postings:
            with log_context(posting_id=posting.id):
                try:
                    self._remind(posting, now, result)
                except Exception as e:
                    logger.error(
                        f"Unexpected error sending reminders for posting {posting.id}: {e}",
                        exc_info=True,
                        extra={"event": "alerts.posting.error"},
                    )
                    result.errors.append(f"posting {posting.id}: {e}")

    def _remind(self, posting, now: datetime, result: DeadlineReminderResult) -> None:
        try:
            with self.session_factory() as session:
                students = ProfileRepository(session).get_students_without_application(posting.id)
        except PersistenceError as e:
            logger.error(
                f"Failed to fetch reminder recipients for posting {posting.id}: {e}",
                extra={"event": "alerts.recipients.failed"},
            )
            result.errors.append(f"posting {posting.id}: failed to fetch recipients: {e}")
            return

        if not students:
            logger.debug(
                f"No students left to remind for posting {posting.id}",
                extra={"event": "alerts.recipients.empty"},
            )
            return

        remaining = days_remaining(posting.application_deadline, now)
        batch = NotificationBatch(
            template_id=DEADLINE_REMINDER_TEMPLATE,
            subject=deadline_reminder_subject(posting.title),
            recipients=[
                build_deadline_reminder_recipient(student, posting, remaining, self.app_config)
                for student in students
            ],
        )
        result.recipients_targeted += len(batch)

        batch_result = self.notification_service.send_batch(batch)
        result.notifications_sent += len(batch_result.successful)
        result.notifications_failed += len(batch_result.failed)
        if batch_result.successful:
            result.postings_notified += 1
        result.errors.extend(f"posting {posting.id}: {error}" for error in batch_result.errors)

        logger.info(
            f"Sent {len(batch_result.successful)}/{batch_result.total} reminders for '{posting.title}'",
            extra={
                "event": "alerts.deadline.dispatched",
                "days_remaining": remaining,
                "sent": len(batch_result.successful),
                "failed": len(batch_result.failed),
            },
        )

        self._record_deliveries(batch_result, now)


class SavedSearchAlertJob(AlertPass):
    """Emails saved-search owners about postings created since their last alert.

    For each due search the sequence is: claim (advance ``last_alert_sent``
    to ``now``), look up the owner, query new matches, all in one
    transaction; then dispatch. A datastore failure rolls the claim back.
    A dispatch failure does not, so the clock always advances for a
    processed search.
    """

    name = "saved_search_alerts"

    def __init__(
        self,
        app_config: AppConfig,
        notification_service: NotificationService,
        session_factory: Callable = get_session,
    ):
        super().__init__(app_config, session_factory)
        self.notification_service = notification_service

    def _new_result(self, now: datetime) -> SavedSearchAlertResult:
        return SavedSearchAlertResult(pass_name=self.name, started_at=now)

    def _execute(self, now: datetime, result: SavedSearchAlertResult) -> None:
        try:
            with self.session_factory() as session:
                searches = SavedSearchRepository(session).get_alert_enabled()
        except PersistenceError as e:
            logger.error(
                f"Failed to fetch alert-enabled saved searches: {e}",
                extra={"event": "alerts.candidates.failed"},
            )
            raise AlertSchedulerError(
                f"Failed to fetch alert-enabled saved searches: {e}", pass_name=self.name
            ) from e

        result.searches_checked = len(searches)

        for saved_search in searches:
            with log_context(saved_search_id=saved_search.id):
                if not is_alert_due(saved_search.alert_frequency, saved_search.last_alert_sent, now):
                    logger.debug(
                        f"Saved search {saved_search.id} not due",
                        extra={
                            "event": "alerts.saved_search.not_due",
                            "frequency": saved_search.alert_frequency,
                        },
                    )
                    result.searches_not_due += 1
                    continue

                try:
                    self._process(saved_search, now, result)
                except Exception as e:
                    logger.error(
                        f"Unexpected error processing saved search {saved_search.id}: {e}",
                        exc_info=True,
                        extra={"event": "alerts.saved_search.error"},
                    )
                    result.errors.append(f"saved search {saved_search.id}: {e}")

    def _process(self, saved_search: SavedSearch, now: datetime, result: SavedSearchAlertResult) -> None:
        alerts_config = self.app_config.alerts
        lookback = timedelta(seconds=alerts_config.new_search_lookback_seconds)
        since = alert_lookback_start(saved_search.last_alert_sent, now, lookback)

        try:
            with self.session_factory() as session:
                claimed = SavedSearchRepository(session).claim_alert(
                    saved_search.id, saved_search.last_alert_sent, now
                )
                if not claimed:
                    owner, postings = None, []
                else:
                    owner = ProfileRepository(session).get_by_id(saved_search.user_id)
                    postings = PostingRepository(session).find_new_matches(
                        saved_search.criteria, since, alerts_config.max_postings_per_alert
                    )
        except PersistenceError as e:
            logger.error(
                f"Datastore failure processing saved search {saved_search.id}; claim rolled back: {e}",
                extra={"event": "alerts.saved_search.failed"},
            )
            result.errors.append(f"saved search {saved_search.id}: {e}")
            return

        if not claimed:
            logger.info(
                f"Saved search {saved_search.id} already claimed by a concurrent pass",
                extra={"event": "alerts.saved_search.skipped", "reason": "claim_lost"},
            )
            result.searches_skipped += 1
            return

        result.searches_processed += 1
        result.processed_ids.append(saved_search.id)
        result.postings_matched += len(postings)

        if not postings:
            logger.info(
                f"No new postings for saved search '{saved_search.name}' since "
                f"{format_timestamp_for_log(since)}",
                extra={"event": "alerts.saved_search.no_matches"},
            )
            return

        if owner is None:
            logger.error(
                f"Owner {saved_search.user_id} of saved search {saved_search.id} not found",
                extra={"event": "alerts.saved_search.owner_missing"},
            )
            result.errors.append(
                f"saved search {saved_search.id}: owner {saved_search.user_id} not found"
            )
            return

        batch = NotificationBatch(
            template_id=JOB_ALERT_TEMPLATE,
            subject=job_alert_subject(len(postings), saved_search.name),
            recipients=[
                build_job_alert_recipient(owner, saved_search, postings, self.app_config)
            ],
        )
        batch_result = self.notification_service.send_batch(batch)

        if batch_result.successful:
            result.alerts_sent += 1
            logger.info(
                f"Sent alert with {len(postings)} postings for saved search '{saved_search.name}'",
                extra={"event": "alerts.saved_search.sent", "posting_count": len(postings)},
            )
            self._record_deliveries(batch_result, now)
        else:
            result.errors.extend(
                f"saved search {saved_search.id}: {error}" for error in batch_result.errors
            )


class ExpiredPostingCloser(AlertPass):
    """Deactivates active postings whose deadline has passed and tells their owners."""

    name = "expired_postings"

    def _new_result(self, now: datetime) -> ExpiredPostingResult:
        return ExpiredPostingResult(pass_name=self.name, started_at=now)

    def _execute(self, now: datetime, result: ExpiredPostingResult) -> None:
        if not self.app_config.alerts.close_expired_postings:
            logger.info(
                "Expired posting closure disabled by configuration",
                extra={"event": "alerts.expired.disabled"},
            )
            result.disabled = True
            return

        today = utc_today(now)
        try:
            with self.session_factory() as session:
                repo = PostingRepository(session)
                expired = repo.get_expired(today)
                closed = repo.deactivate([posting.id for posting in expired], now)
        except PersistenceError as e:
            logger.error(
                f"Failed to close expired postings: {e}",
                extra={"event": "alerts.candidates.failed"},
            )
            raise AlertSchedulerError(
                f"Failed to close expired postings: {e}", pass_name=self.name
            ) from e

        result.postings_closed = closed
        result.closed_ids = [posting.id for posting in expired]
        logger.info(
            f"Closed {closed} postings due to passed deadlines",
            extra={"event": "alerts.expired.closed", "closed_count": closed},
        )

        for posting in expired:
            try:
                with self.session_factory() as session:
                    NotificationRepository(session).record(
                        user_id=posting.posted_by,
                        title="Job Posting Closed",
                        message=(
                            f'Your job posting "{posting.title}" was closed automatically '
                            f"because its application deadline "
                            f"({format_date(posting.application_deadline)}) has passed."
                        ),
                        notification_type=NotificationType.JOB_CLOSED.value,
                        created_at=now,
                    )
                result.owners_notified += 1
            except PersistenceError as e:
                logger.warning(
                    f"Closed posting {posting.id} but could not notify owner {posting.posted_by}: {e}",
                    extra={"event": "alerts.expired.notify_failed", "posting_id": posting.id},
                )


class PendingApplicationsJob(AlertPass):
    """Reminds posting owners about applications left pending too long.

    Each owner gets one in-app notification per run, listing how many of
    their applications have waited longer than
    ``alerts.pending_application_days`` and on which postings.
    """

    name = "pending_applications"

    def _new_result(self, now: datetime) -> PendingApplicationResult:
        return PendingApplicationResult(pass_name=self.name, started_at=now)

    def _execute(self, now: datetime, result: PendingApplicationResult) -> None:
        if not self.app_config.alerts.remind_pending_applications:
            logger.info(
                "Pending application reminders disabled by configuration",
                extra={"event": "alerts.pending.disabled"},
            )
            result.disabled = True
            return

        days = self.app_config.alerts.pending_application_days
        try:
            with self.session_factory() as session:
                pending = ApplicationRepository(session).get_pending_older_than(
                    now - timedelta(days=days)
                )
        except PersistenceError as e:
            logger.error(
                f"Failed to load pending applications: {e}",
                extra={"event": "alerts.candidates.failed"},
            )
            raise AlertSchedulerError(
                f"Failed to load pending applications: {e}", pass_name=self.name
            ) from e

        result.applications_found = len(pending)
        if not pending:
            logger.info(
                "No applications pending past the threshold",
                extra={"event": "alerts.pending.none", "pending_days": days},
            )
            return

        by_owner: Dict[str, List[Posting]] = {}
        for application, posting in pending:
            logger.debug(
                f"Application {application.id} has been pending for over {days} days",
                extra={"event": "alerts.pending.found", "posting_id": posting.id},
            )
            by_owner.setdefault(posting.posted_by, []).append(posting)

        for owner_id, postings in by_owner.items():
            titles = sorted({posting.title for posting in postings})
            count = len(postings)
            noun = "application has" if count == 1 else "applications have"
            try:
                with self.session_factory() as session:
                    NotificationRepository(session).record(
                        user_id=owner_id,
                        title="Applications Awaiting Review",
                        message=(
                            f"{count} {noun} been pending for over {days} days "
                            f"on: {', '.join(titles)}."
                        ),
                        notification_type=NotificationType.APPLICATIONS_PENDING.value,
                        created_at=now,
                    )
                result.owners_notified += 1
            except PersistenceError as e:
                logger.warning(
                    f"Could not remind {owner_id} about pending applications: {e}",
                    extra={"event": "alerts.pending.notify_failed", "owner_id": owner_id},
                )
                result.errors.append(f"owner {owner_id}: {e}")

        logger.info(
            f"Found {len(pending)} applications needing attention "
            f"across {len(by_owner)} owners",
            extra={
                "event": "alerts.pending.completed",
                "applications_found": len(pending),
                "owners_notified": result.owners_notified,
            },
        )
