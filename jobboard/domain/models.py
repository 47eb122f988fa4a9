"""Core domain models for postings, subscriptions and notifications.

This module defines the data structures shared by the search engine, the
alert scheduler and the persistence layer:
- Posting: one job opening published by a faculty member
- SavedSearch / SearchCriteria: a standing query with alert preferences
- Profile / Application: the people involved and who applied where
- InAppNotification: an entry in a user's notification feed

Enums are the canonical representation inside the application. Conversion
from the datastore's plain strings happens in the persistence layer only.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class JobCategory(str, Enum):
    """Kind of position a posting advertises."""

    RESEARCH_ASSISTANT = "research_assistant"
    TEACHING_ASSISTANT = "teaching_assistant"
    WORK_STUDY = "work_study"
    INTERNSHIP = "internship"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "JobCategory":
        """Convert a stored value, mapping anything unrecognized to OTHER."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.OTHER


class AlertFrequency(str, Enum):
    """Minimum spacing between two alerts for one saved search.

    UNKNOWN stands in for a stored value the application does not recognize.
    Subscriptions carrying it are never considered due.
    """

    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AlertFrequency":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class UserRole(str, Enum):
    """Role of a job board account."""

    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"


class NotificationType(str, Enum):
    """Kinds of entries written to the in-app notification feed."""

    APPLICATION_RECEIVED = "application_received"
    STATUS_UPDATE = "status_update"
    NEW_JOB = "new_job"
    DEADLINE_REMINDER = "deadline_reminder"
    JOB_ALERT = "job_alert"
    JOB_CLOSED = "job_closed"
    APPLICATIONS_PENDING = "applications_pending"


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class Profile(BaseModel):
    """A job board account."""

    id: str = Field(..., description="Account identifier")
    email: str = Field(..., description="Address notifications are sent to")
    full_name: Optional[str] = Field(None, description="Display name")
    role: UserRole = Field(UserRole.STUDENT, description="Account role")
    department: Optional[str] = Field(None, description="Home department")
    created_at: Optional[datetime] = Field(None, description="When the account was created (UTC)")

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def display_name(self) -> str:
        """Name used in greetings; falls back to the local part of the email."""
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        return self.email.split("@")[0]


class Posting(BaseModel):
    """A job opening.

    Optional text fields may be missing. The search engine treats a missing
    field as an empty string, so malformed records never raise during ranking.
    """

    id: str = Field(..., description="Posting identifier")
    title: str = Field("", description="Position title")
    description: str = Field("", description="Full description text")
    requirements: Optional[str] = Field(None, description="Applicant requirements")
    compensation: Optional[str] = Field(None, description="Free-text pay information")
    category: JobCategory = Field(JobCategory.OTHER, description="Kind of position")
    department: str = Field("", description="Department offering the position")
    duration: Optional[str] = Field(None, description="Free-text duration, e.g. 'Spring term'")
    application_deadline: Optional[date] = Field(None, description="Last day to apply")
    is_active: bool = Field(True, description="Whether the posting accepts applications")
    posted_by: str = Field(..., description="Profile id of the owner")
    created_at: datetime = Field(..., description="When the posting was created (UTC)")
    updated_at: Optional[datetime] = Field(None, description="When the posting last changed (UTC)")

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return _as_utc(v)

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v):
        if isinstance(v, JobCategory):
            return v
        return JobCategory.parse(v)

    def is_expired(self, today: date) -> bool:
        """True when the deadline has passed (a deadline of today is still open)."""
        return self.application_deadline is not None and self.application_deadline < today

    model_config = {"json_schema_extra": {"example": {
        "id": "5b0c2f1e-0d7a-4e8b-9c39-3c1d2a9f7b10",
        "title": "Research Assistant",
        "description": "Assist with field work and sequencing in the genomics lab.",
        "requirements": "Introductory biology coursework",
        "compensation": "$15/hour",
        "category": "research_assistant",
        "department": "Biology",
        "duration": "Spring 2027",
        "application_deadline": "2027-01-15",
        "is_active": True,
        "posted_by": "faculty-42",
        "created_at": "2026-11-01T12:00:00Z",
    }}}


class SearchCriteria(BaseModel):
    """Stored query of a saved search.

    Sort preferences are kept as the strings the user picked; the search
    engine resolves them when the criteria are turned into filters.
    """

    query: Optional[str] = Field(None, description="Free-text query")
    department: Optional[str] = Field(None, description="Exact department")
    category: Optional[JobCategory] = Field(None, description="Exact category")
    deadline_from: Optional[date] = Field(None, description="Earliest deadline")
    deadline_to: Optional[date] = Field(None, description="Latest deadline")
    sort_by: Optional[str] = Field(None, description="Preferred sort field")
    sort_order: Optional[str] = Field(None, description="Preferred sort direction")

    @field_validator("query", "department", "sort_by", "sort_order")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None


class SavedSearch(BaseModel):
    """A user's standing query plus alert preferences.

    ``last_alert_sent`` only ever moves forward; it is advanced once per
    processed alert pass whether or not anything matched.
    """

    id: str = Field(..., description="Saved search identifier")
    user_id: str = Field(..., description="Owner profile id")
    name: str = Field(..., description="Label shown to the user")
    criteria: SearchCriteria = Field(default_factory=SearchCriteria)
    is_alert_enabled: bool = Field(False, description="Whether alerts are sent")
    alert_frequency: AlertFrequency = Field(AlertFrequency.DAILY, description="Alert spacing")
    last_alert_sent: Optional[datetime] = Field(None, description="When the last alert pass ran")
    created_at: Optional[datetime] = Field(None, description="When the search was saved (UTC)")

    @field_validator("last_alert_sent", "created_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @field_validator("alert_frequency", mode="before")
    @classmethod
    def coerce_frequency(cls, v):
        if isinstance(v, AlertFrequency):
            return v
        return AlertFrequency.parse(v)


class Application(BaseModel):
    """A student's application to a posting."""

    id: str
    job_id: str
    applicant_id: str
    status: str = "pending"
    applied_at: datetime

    @field_validator("applied_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class InAppNotification(BaseModel):
    """Entry in a user's notification feed."""

    id: Optional[int] = Field(None, description="Assigned by the datastore")
    user_id: str
    title: str
    message: str
    type: str
    read: bool = False
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)
