"""Database schema definition and ORM models.

This module defines SQLAlchemy ORM models for the job board tables and the
conversion methods between ORM rows and domain models. Enum values are stored
as plain strings and converted back here, at the edge.

Instants are stored as fixed-width ``YYYY-MM-DDTHH:MM:SS.ffffffZ`` strings and
deadlines as ``YYYY-MM-DD`` so range comparisons work lexicographically.
"""

import logging
from typing import Any, Dict

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobboard.domain.models import (
    AlertFrequency,
    Application,
    InAppNotification,
    JobCategory,
    Posting,
    Profile,
    SavedSearch,
    SearchCriteria,
    UserRole,
)
from jobboard.utils.timestamps import (
    format_date,
    format_timestamp,
    parse_date,
    parse_iso_datetime,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


class ProfileModel(Base):
    """ORM model for profiles table."""

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, nullable=False)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value)
    department = Column(String(255), nullable=True)
    created_at = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_profiles_role", "role"),)

    def to_domain(self) -> Profile:
        return Profile(
            id=self.id,
            email=self.email,
            full_name=self.full_name,
            role=UserRole(self.role),
            department=self.department,
            created_at=parse_iso_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileModel":
        return cls(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=UserRole(profile.role).value,
            department=profile.department,
            created_at=format_timestamp(profile.created_at),
        )


class JobPostingModel(Base):
    """ORM model for job_postings table."""

    __tablename__ = "job_postings"

    id = Column(String(64), primary_key=True, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    requirements = Column(Text, nullable=True)
    compensation = Column(String(255), nullable=True)
    job_type = Column(String(50), nullable=False, default=JobCategory.OTHER.value)
    department = Column(String(255), nullable=False, default="")
    duration = Column(String(255), nullable=True)
    application_deadline = Column(String(10), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    posted_by = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_job_postings_active_deadline", "is_active", "application_deadline"),
        Index("idx_job_postings_created_at", "created_at"),
        Index("idx_job_postings_posted_by", "posted_by"),
    )

    def to_domain(self) -> Posting:
        return Posting(
            id=self.id,
            title=self.title or "",
            description=self.description or "",
            requirements=self.requirements,
            compensation=self.compensation,
            category=JobCategory.parse(self.job_type),
            department=self.department or "",
            duration=self.duration,
            application_deadline=parse_date(self.application_deadline),
            is_active=bool(self.is_active),
            posted_by=self.posted_by,
            created_at=parse_iso_datetime(self.created_at),
            updated_at=parse_iso_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, posting: Posting) -> "JobPostingModel":
        return cls(
            id=posting.id,
            title=posting.title,
            description=posting.description,
            requirements=posting.requirements,
            compensation=posting.compensation,
            job_type=JobCategory(posting.category).value,
            department=posting.department,
            duration=posting.duration,
            application_deadline=format_date(posting.application_deadline),
            is_active=posting.is_active,
            posted_by=posting.posted_by,
            created_at=format_timestamp(posting.created_at),
            updated_at=format_timestamp(posting.updated_at),
        )


class ApplicationModel(Base):
    """ORM model for applications table. One application per student per posting."""

    __tablename__ = "applications"

    id = Column(String(64), primary_key=True, nullable=False)
    job_id = Column(String(64), ForeignKey("job_postings.id"), nullable=False)
    applicant_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    applied_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("job_id", "applicant_id", name="uq_applications_job_applicant"),
        Index("idx_applications_applicant", "applicant_id"),
    )

    def to_domain(self) -> Application:
        return Application(
            id=self.id,
            job_id=self.job_id,
            applicant_id=self.applicant_id,
            status=self.status,
            applied_at=parse_iso_datetime(self.applied_at),
        )

    @classmethod
    def from_domain(cls, application: Application) -> "ApplicationModel":
        return cls(
            id=application.id,
            job_id=application.job_id,
            applicant_id=application.applicant_id,
            status=application.status,
            applied_at=format_timestamp(application.applied_at),
        )


class SavedSearchModel(Base):
    """ORM model for saved_searches table.

    ``search_criteria`` is a JSON document with the keys search, department,
    job_type, deadline_from, deadline_to, sort_by and sort_order.
    """

    __tablename__ = "saved_searches"

    id = Column(String(64), primary_key=True, nullable=False)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    name = Column(String(255), nullable=False)
    search_criteria = Column(JSON, nullable=False, default=dict)
    is_alert_enabled = Column(Boolean, nullable=False, default=False)
    alert_frequency = Column(String(20), nullable=False, default=AlertFrequency.DAILY.value)
    last_alert_sent = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=True)
    updated_at = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_saved_searches_alert_enabled", "is_alert_enabled"),)

    def to_domain(self) -> SavedSearch:
        return SavedSearch(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            criteria=criteria_from_document(self.search_criteria or {}),
            is_alert_enabled=bool(self.is_alert_enabled),
            alert_frequency=AlertFrequency.parse(self.alert_frequency),
            last_alert_sent=parse_iso_datetime(self.last_alert_sent),
            created_at=parse_iso_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, saved_search: SavedSearch) -> "SavedSearchModel":
        return cls(
            id=saved_search.id,
            user_id=saved_search.user_id,
            name=saved_search.name,
            search_criteria=criteria_to_document(saved_search.criteria),
            is_alert_enabled=saved_search.is_alert_enabled,
            alert_frequency=AlertFrequency(saved_search.alert_frequency).value,
            last_alert_sent=format_timestamp(saved_search.last_alert_sent),
            created_at=format_timestamp(saved_search.created_at),
            updated_at=format_timestamp(saved_search.created_at),
        )


class NotificationModel(Base):
    """ORM model for notifications table (in-app notification feed)."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_notifications_user_created", "user_id", "created_at"),)

    def to_domain(self) -> InAppNotification:
        return InAppNotification(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            message=self.message,
            type=self.type,
            read=bool(self.read),
            created_at=parse_iso_datetime(self.created_at),
        )


def criteria_from_document(document: Dict[str, Any]) -> SearchCriteria:
    """Build SearchCriteria from the stored JSON document.

    Unknown categories and unparseable dates are dropped rather than rejected
    so one bad row cannot break an alert pass.
    """
    job_type = document.get("job_type")
    category = None
    if job_type:
        try:
            category = JobCategory(job_type)
        except ValueError:
            logger.warning(f"Ignoring unknown job_type in saved search criteria: {job_type!r}")

    return SearchCriteria(
        query=document.get("search"),
        department=document.get("department"),
        category=category,
        deadline_from=parse_date(document.get("deadline_from")),
        deadline_to=parse_date(document.get("deadline_to")),
        sort_by=document.get("sort_by"),
        sort_order=document.get("sort_order"),
    )


def criteria_to_document(criteria: SearchCriteria) -> Dict[str, Any]:
    document = {
        "search": criteria.query,
        "department": criteria.department,
        "job_type": JobCategory(criteria.category).value if criteria.category else None,
        "deadline_from": format_date(criteria.deadline_from),
        "deadline_to": format_date(criteria.deadline_to),
        "sort_by": criteria.sort_by,
        "sort_order": criteria.sort_order,
    }
    return {key: value for key, value in document.items() if value is not None}


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
