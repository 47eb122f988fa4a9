"""Data access layer (repositories) for persistence operations.

Repositories encapsulate database operations for postings, profiles,
applications, saved searches and in-app notifications. They take a session
owned by the caller (see ``get_session``) and return domain models rather
than ORM models.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobboard.domain.models import (
    Application,
    InAppNotification,
    JobCategory,
    Posting,
    Profile,
    SavedSearch,
    SearchCriteria,
    UserRole,
)
from jobboard.utils.timestamps import ensure_utc, format_date, format_timestamp, parse_iso_datetime

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    ApplicationModel,
    JobPostingModel,
    NotificationModel,
    ProfileModel,
    SavedSearchModel,
)

logger = logging.getLogger(__name__)


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class PostingRepository:
    """Repository for job posting queries and the closure update."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, posting_id: str) -> Optional[Posting]:
        """Retrieve a posting by primary key, or None if it does not exist.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            posting_model = self.session.get(JobPostingModel, posting_id)
            if posting_model is None:
                return None
            return posting_model.to_domain()

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving posting {posting_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve posting: {e}") from e

    def add(self, posting: Posting) -> Posting:
        """Insert a new posting.

        Raises:
            DataIntegrityError: If the id already exists or the owner is unknown
            PersistenceError: If database error occurs
        """
        try:
            posting_model = JobPostingModel.from_domain(posting)
            self.session.add(posting_model)
            self.session.flush()
            return posting_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error adding posting {posting.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to add posting due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding posting {posting.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add posting: {e}") from e

    def get_upcoming_deadlines(self, today: date, days_before: int) -> List[Posting]:
        """Active postings whose deadline falls in ``[today, today + days_before]``.

        Both bounds are inclusive. Ordered by deadline, soonest first.

        Args:
            today: First deadline date in the window
            days_before: Window length in days after ``today``

        Raises:
            PersistenceError: If database error occurs
        """
        window_end = today + timedelta(days=days_before)
        try:
            stmt = (
                select(JobPostingModel)
                .where(
                    JobPostingModel.is_active.is_(True),
                    JobPostingModel.application_deadline.is_not(None),
                    JobPostingModel.application_deadline >= format_date(today),
                    JobPostingModel.application_deadline <= format_date(window_end),
                )
                .order_by(JobPostingModel.application_deadline.asc(), JobPostingModel.id.asc())
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving upcoming deadlines: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve upcoming deadlines: {e}") from e

    def get_expired(self, today: date) -> List[Posting]:
        """Active postings whose deadline is strictly before ``today``.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(JobPostingModel)
                .where(
                    JobPostingModel.is_active.is_(True),
                    JobPostingModel.application_deadline.is_not(None),
                    JobPostingModel.application_deadline < format_date(today),
                )
                .order_by(JobPostingModel.application_deadline.asc(), JobPostingModel.id.asc())
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving expired postings: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve expired postings: {e}") from e

    def deactivate(self, posting_ids: Sequence[str], now: datetime) -> int:
        """Flip the given postings to inactive in one update.

        Postings that are already inactive are left untouched.

        Returns:
            Number of postings deactivated

        Raises:
            PersistenceError: If database error occurs
        """
        if not posting_ids:
            return 0

        try:
            stmt = (
                update(JobPostingModel)
                .where(
                    JobPostingModel.id.in_(list(posting_ids)),
                    JobPostingModel.is_active.is_(True),
                )
                .values(is_active=False, updated_at=format_timestamp(now))
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount

        except SQLAlchemyError as e:
            logger.error(f"Error deactivating {len(posting_ids)} postings: {e}", exc_info=True)
            raise PersistenceError(f"Failed to deactivate postings: {e}") from e

    def get_expiring_soon(self, owner_id: str, today: date, days_ahead: int = 7) -> List[Posting]:
        """An owner's active postings with a deadline within ``days_ahead`` days.

        Raises:
            PersistenceError: If database error occurs
        """
        window_end = today + timedelta(days=days_ahead)
        try:
            stmt = (
                select(JobPostingModel)
                .where(
                    JobPostingModel.posted_by == owner_id,
                    JobPostingModel.is_active.is_(True),
                    JobPostingModel.application_deadline.is_not(None),
                    JobPostingModel.application_deadline >= format_date(today),
                    JobPostingModel.application_deadline <= format_date(window_end),
                )
                .order_by(JobPostingModel.application_deadline.asc())
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving expiring postings for {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve expiring postings: {e}") from e

    def find_new_matches(
        self, criteria: SearchCriteria, since: datetime, limit: int = 10
    ) -> List[Posting]:
        """Active postings created at or after ``since`` that match saved criteria.

        The free-text query is matched case-insensitively as a substring of the
        title or description. Department and category must match exactly, and
        the deadline bounds are inclusive. Results are newest first, capped at
        ``limit``.

        Args:
            criteria: Saved search criteria
            since: Lower bound on ``created_at``, inclusive
            limit: Maximum number of postings returned

        Returns:
            Matching postings, newest first

        Raises:
            PersistenceError: If database error occurs
        """
        conditions = [
            JobPostingModel.is_active.is_(True),
            JobPostingModel.created_at >= format_timestamp(since),
        ]
        if criteria.query:
            pattern = _like_pattern(criteria.query)
            conditions.append(
                or_(
                    JobPostingModel.title.ilike(pattern, escape="\\"),
                    JobPostingModel.description.ilike(pattern, escape="\\"),
                )
            )
        if criteria.department:
            conditions.append(JobPostingModel.department == criteria.department)
        if criteria.category:
            conditions.append(JobPostingModel.job_type == JobCategory.parse(criteria.category).value)
        if criteria.deadline_from:
            conditions.append(JobPostingModel.application_deadline >= format_date(criteria.deadline_from))
        if criteria.deadline_to:
            conditions.append(JobPostingModel.application_deadline <= format_date(criteria.deadline_to))

        try:
            stmt = (
                select(JobPostingModel)
                .where(and_(*conditions))
                .order_by(JobPostingModel.created_at.desc(), JobPostingModel.id.asc())
                .limit(limit)
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error matching new postings: {e}", exc_info=True)
            raise PersistenceError(f"Failed to match new postings: {e}") from e


class ProfileRepository:
    """Repository for account lookups."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        """Retrieve a profile by id, or None if it does not exist.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            profile_model = self.session.get(ProfileModel, profile_id)
            return profile_model.to_domain() if profile_model else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving profile {profile_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve profile: {e}") from e

    def add(self, profile: Profile) -> Profile:
        """Insert a new profile.

        Raises:
            DataIntegrityError: If the id already exists
            PersistenceError: If database error occurs
        """
        try:
            profile_model = ProfileModel.from_domain(profile)
            self.session.add(profile_model)
            self.session.flush()
            return profile_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error adding profile {profile.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to add profile due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding profile {profile.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add profile: {e}") from e

    def get_students_without_application(self, posting_id: str) -> List[Profile]:
        """Students who have not applied to ``posting_id`` (anti-join).

        Ordered by profile id so cohorts are deterministic.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            applied = select(ApplicationModel.applicant_id).where(
                ApplicationModel.job_id == posting_id
            )
            stmt = (
                select(ProfileModel)
                .where(
                    ProfileModel.role == UserRole.STUDENT.value,
                    ProfileModel.id.not_in(applied),
                )
                .order_by(ProfileModel.id.asc())
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving non-applicants for posting {posting_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve students without application: {e}") from e


class ApplicationRepository:
    """Repository for student applications."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, application: Application) -> Application:
        """Insert an application.

        Raises:
            DataIntegrityError: If the student already applied to this posting
            PersistenceError: If database error occurs
        """
        try:
            application_model = ApplicationModel.from_domain(application)
            self.session.add(application_model)
            self.session.flush()
            return application_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error adding application {application.id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to add application due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding application {application.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add application: {e}") from e

    def has_applied(self, posting_id: str, applicant_id: str) -> bool:
        """Check whether a student has applied to a posting.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(ApplicationModel.id).where(
                ApplicationModel.job_id == posting_id,
                ApplicationModel.applicant_id == applicant_id,
            )
            return self.session.execute(stmt).first() is not None

        except SQLAlchemyError as e:
            logger.error(
                f"Error checking application of {applicant_id} to {posting_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to check application: {e}") from e

    def get_pending_older_than(self, cutoff: datetime) -> List[Tuple[Application, Posting]]:
        """Pending applications submitted before ``cutoff``, with their postings.

        Args:
            cutoff: Applications with ``applied_at`` strictly earlier are returned

        Returns:
            (application, posting) pairs, oldest application first

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(ApplicationModel, JobPostingModel)
                .join(JobPostingModel, JobPostingModel.id == ApplicationModel.job_id)
                .where(
                    ApplicationModel.status == "pending",
                    ApplicationModel.applied_at < format_timestamp(cutoff),
                )
                .order_by(ApplicationModel.applied_at.asc(), ApplicationModel.id.asc())
            )
            return [
                (application.to_domain(), posting.to_domain())
                for application, posting in self.session.execute(stmt).all()
            ]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving pending applications: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve pending applications: {e}") from e


class SavedSearchRepository:
    """Repository for saved searches and their alert throttle state."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, saved_search_id: str) -> Optional[SavedSearch]:
        """Retrieve a saved search by id, or None if it does not exist.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            saved_search_model = self.session.get(SavedSearchModel, saved_search_id)
            return saved_search_model.to_domain() if saved_search_model else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving saved search {saved_search_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve saved search: {e}") from e

    def add(self, saved_search: SavedSearch) -> SavedSearch:
        """Insert a saved search.

        Raises:
            DataIntegrityError: If the id already exists or the owner is unknown
            PersistenceError: If database error occurs
        """
        try:
            saved_search_model = SavedSearchModel.from_domain(saved_search)
            self.session.add(saved_search_model)
            self.session.flush()
            return saved_search_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error adding saved search {saved_search.id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to add saved search due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding saved search {saved_search.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add saved search: {e}") from e

    def get_alert_enabled(self) -> List[SavedSearch]:
        """All saved searches with alerts enabled, ordered by id.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(SavedSearchModel)
                .where(SavedSearchModel.is_alert_enabled.is_(True))
                .order_by(SavedSearchModel.id.asc())
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving alert-enabled saved searches: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve alert-enabled saved searches: {e}") from e

    def claim_alert(
        self,
        saved_search_id: str,
        observed_last_sent: Optional[datetime],
        now: datetime,
    ) -> bool:
        """Advance ``last_alert_sent`` to ``now`` if nobody else has since.

        The stored value is read back and compared as an instant, so rows
        written by other tools (``...Z``, ``+00:00``, no fractional seconds)
        still match the ``observed_last_sent`` they load as. An unparseable
        stored value loads as None and matches an observed None. The update
        is then conditioned on that exact stored string, so a concurrent
        pass that advanced it first makes this claim fail.

        Args:
            saved_search_id: ID of the saved search to claim
            observed_last_sent: ``last_alert_sent`` as seen when the
                subscription was selected
            now: New ``last_alert_sent`` value, written canonically

        Returns:
            True if this caller won the claim, False otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stored = self.session.execute(
                select(SavedSearchModel.last_alert_sent).where(SavedSearchModel.id == saved_search_id)
            ).first()
            if stored is None:
                return False

            raw_value = stored.last_alert_sent
            if parse_iso_datetime(raw_value) != ensure_utc(observed_last_sent):
                return False

            if raw_value is None:
                unchanged = SavedSearchModel.last_alert_sent.is_(None)
            else:
                unchanged = SavedSearchModel.last_alert_sent == raw_value

            now_str = format_timestamp(now)
            stmt = (
                update(SavedSearchModel)
                .where(SavedSearchModel.id == saved_search_id, unchanged)
                .values(last_alert_sent=now_str, updated_at=now_str)
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount == 1

        except SQLAlchemyError as e:
            logger.error(f"Error claiming alert for saved search {saved_search_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to claim alert: {e}") from e


class NotificationRepository:
    """Repository for the in-app notification feed."""

    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        user_id: str,
        title: str,
        message: str,
        notification_type: str,
        created_at: datetime,
    ) -> InAppNotification:
        """Append a notification to a user's feed.

        Raises:
            RecordNotFoundError: If the user does not exist
            PersistenceError: If database error occurs
        """
        try:
            notification_model = NotificationModel(
                user_id=user_id,
                title=title,
                message=message,
                type=notification_type,
                read=False,
                created_at=format_timestamp(created_at),
            )
            self.session.add(notification_model)
            self.session.flush()
            return notification_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error recording notification for {user_id}: {e}", exc_info=True)
            raise RecordNotFoundError(f"Cannot record notification for unknown user {user_id}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error recording notification for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record notification: {e}") from e

    def get_for_user(self, user_id: str, limit: int = 50) -> List[InAppNotification]:
        """A user's notifications, newest first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(NotificationModel)
                .where(NotificationModel.user_id == user_id)
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .limit(limit)
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving notifications for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve notifications: {e}") from e
