"""Tenancy domain layer."""

from tenancy.domain.aggregates import PROFILE_FIELDS, Business
from tenancy.domain.exceptions import (
    BusinessValidationError,
    NotOwnerError,
    StaleTenantPointerError,
)
from tenancy.domain.value_objects import BusinessId

__all__ = [
    "Business",
    "BusinessId",
    "BusinessValidationError",
    "NotOwnerError",
    "PROFILE_FIELDS",
    "StaleTenantPointerError",
]
