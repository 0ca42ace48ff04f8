"""Database infrastructure - shared connection primitives."""

from infrastructure.database.exceptions import (
    DatabaseError,
    DatabaseUnavailableError,
)

__all__ = [
    "DatabaseError",
    "DatabaseUnavailableError",
]
