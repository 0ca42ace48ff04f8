"""ORM models for the tenancy bounded context."""

from tenancy.infrastructure.models.business import DEFAULT_BUSINESS_INDEX, BusinessModel

__all__ = ["BusinessModel", "DEFAULT_BUSINESS_INDEX"]
