"""Database-specific exceptions."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseUnavailableError(DatabaseError):
    """Raised when the tenant store cannot be reached."""

    pass
