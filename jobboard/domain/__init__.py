"""Domain models for the job board."""

from .models import (
    AlertFrequency,
    Application,
    InAppNotification,
    JobCategory,
    NotificationType,
    Posting,
    Profile,
    SavedSearch,
    SearchCriteria,
    UserRole,
)

__all__ = [
    "Posting",
    "JobCategory",
    "SavedSearch",
    "SearchCriteria",
    "AlertFrequency",
    "Profile",
    "UserRole",
    "Application",
    "InAppNotification",
    "NotificationType",
]
