"""Tenancy ports - interfaces for persistence and the business pointer."""

from tenancy.ports.exceptions import DefaultBusinessConflictError
from tenancy.ports.pointer_store import CurrentBusinessPointerStore
from tenancy.ports.repositories import IBusinessRepository

__all__ = [
    "CurrentBusinessPointerStore",
    "DefaultBusinessConflictError",
    "IBusinessRepository",
]
