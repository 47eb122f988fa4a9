"""Persistence layer for the job board datastore.

Public API:
    # Database initialization and session management
    - init_database(database_url: str, query_timeout: int = 30) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - PostingRepository: posting lookups, deadline windows, closure
    - ProfileRepository: accounts and the non-applicant anti-join
    - ApplicationRepository: applications
    - SavedSearchRepository: saved searches and the alert claim
    - NotificationRepository: in-app notification feed

    # Exceptions
    - PersistenceError and its subclasses

Example usage:
    >>> from jobboard.persistence import init_database, get_session, PostingRepository
    >>> init_database("sqlite:///./data/jobboard.db")
    >>> with get_session() as session:
    ...     repo = PostingRepository(session)
    ...     upcoming = repo.get_upcoming_deadlines(today, days_before=3)
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import (
    ApplicationRepository,
    NotificationRepository,
    PostingRepository,
    ProfileRepository,
    SavedSearchRepository,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "PostingRepository",
    "ProfileRepository",
    "ApplicationRepository",
    "SavedSearchRepository",
    "NotificationRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
