"""Pydantic models for business API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from tenancy.domain.aggregates import Business


class _BusinessProfileFields(BaseModel):
    """Descriptive fields shared by create and update requests."""

    description: str | None = Field(default=None, max_length=2000)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=32)
    website: str | None = Field(default=None, max_length=2048)
    gst_number: str | None = Field(default=None, max_length=32)
    registration_no: str | None = Field(default=None, max_length=64)
    pan_number: str | None = Field(default=None, max_length=16)
    currency: str | None = Field(default=None, max_length=8)
    fiscal_year: str | None = Field(default=None, max_length=32)
    logo_image: str | None = Field(default=None)


class CreateBusinessRequest(_BusinessProfileFields):
    """Request model for creating a business."""

    name: str = Field(..., description="Business name", max_length=255)
    switch_to: bool = Field(
        default=False, description="Make the new business the current one"
    )

    def profile(self) -> dict[str, Any]:
        """Descriptive fields the caller provided."""
        return self.model_dump(exclude={"name", "switch_to"}, exclude_none=True)


class UpdateBusinessRequest(_BusinessProfileFields):
    """Request model for a partial business update.

    Only fields present in the request body are changed.
    """

    name: str | None = Field(default=None, max_length=255)

    def patch(self) -> dict[str, Any]:
        """Fields the caller explicitly set, including explicit nulls."""
        return self.model_dump(exclude_unset=True)


class SwitchBusinessRequest(BaseModel):
    """Request model for switching the current business."""

    business_id: str = Field(..., description="Business ID (ULID format)")


class BusinessResponse(BaseModel):
    """Response model for business."""

    id: str = Field(..., description="Business ID (ULID format)")
    name: str
    description: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    gst_number: str | None = None
    registration_no: str | None = None
    pan_number: str | None = None
    currency: str
    fiscal_year: str
    logo_image: str | None = None
    is_default: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, business: Business) -> BusinessResponse:
        """Convert domain Business aggregate to API response.

        Args:
            business: Business domain aggregate

        Returns:
            BusinessResponse
        """
        return cls(
            id=business.id.value,
            name=business.name,
            is_default=business.is_default,
            created_at=business.created_at,
            updated_at=business.updated_at,
            **business.profile(),
        )
