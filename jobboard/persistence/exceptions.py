"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can catch
every datastore failure with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid or empty database URL
    - Database file not accessible
    - Database server unreachable within the query timeout
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a required database record is not found.

    Optional lookups (``get_by_id``) return None instead of raising this.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a constraint is violated (duplicate id, unknown owner, ...)."""

    pass
