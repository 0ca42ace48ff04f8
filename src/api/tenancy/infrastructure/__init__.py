"""Tenancy infrastructure layer."""

from tenancy.infrastructure.business_repository import BusinessRepository
from tenancy.infrastructure.cookie_pointer_store import CookiePointerStore

__all__ = [
    "BusinessRepository",
    "CookiePointerStore",
]
