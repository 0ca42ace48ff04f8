"""Business aggregate for the tenancy context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from tenancy.domain.exceptions import BusinessValidationError
from tenancy.domain.value_objects import BusinessId

NAME_MAX_LENGTH = 255

# Descriptive fields a caller may set on create or patch
PROFILE_FIELDS = (
    "description",
    "email",
    "phone",
    "website",
    "gst_number",
    "registration_no",
    "pan_number",
    "currency",
    "fiscal_year",
    "logo_image",
)


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise BusinessValidationError("Business name is required")
    if len(cleaned) > NAME_MAX_LENGTH:
        raise BusinessValidationError(
            f"Business name must be at most {NAME_MAX_LENGTH} characters"
        )
    return cleaned


@dataclass
class Business:
    """Business aggregate: the tenant every business record is scoped to.

    Business rules:
    - A business has exactly one owner, the identity subject that created it
    - The name is required and non-empty after trimming
    - At most one active auto-provisioned (default) business per owner;
      the store enforces this with a partial unique index
    - Deletion is soft: the business is deactivated, never removed
    """

    id: BusinessId
    owner_id: str
    name: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    gst_number: str | None = None
    registration_no: str | None = None
    pan_number: str | None = None
    currency: str = "INR"
    fiscal_year: str = "april-march"
    logo_image: str | None = None
    is_default: bool = False
    is_active: bool = True

    @classmethod
    def create(
        cls,
        owner_id: str,
        name: str,
        is_default: bool = False,
        now: datetime | None = None,
        **profile: Any,
    ) -> Business:
        """Factory method for creating a new business.

        Args:
            owner_id: Identity subject that owns the business
            name: Business name (trimmed)
            is_default: True for auto-provisioned businesses
            now: Creation timestamp (defaults to the current UTC time)
            **profile: Descriptive fields, see PROFILE_FIELDS

        Raises:
            BusinessValidationError: If the name is empty or too long, or
                an unknown field is given
        """
        unknown = set(profile) - set(PROFILE_FIELDS)
        if unknown:
            raise BusinessValidationError(
                f"Unknown business fields: {', '.join(sorted(unknown))}"
            )
        timestamp = now or datetime.now(UTC)
        values = {key: value for key, value in profile.items() if value is not None}
        return cls(
            id=BusinessId.generate(),
            owner_id=owner_id,
            name=_clean_name(name),
            created_at=timestamp,
            updated_at=timestamp,
            is_default=is_default,
            **values,
        )

    def is_owned_by(self, subject: str) -> bool:
        """Return True if the subject owns this business."""
        return self.owner_id == subject

    def update(self, patch: dict[str, Any], now: datetime | None = None) -> None:
        """Apply a partial update.

        Only keys present in ``patch`` change. An explicit empty name is
        rejected. ``updated_at`` is always bumped.

        Raises:
            BusinessValidationError: On an empty name or an unknown field
        """
        allowed = {"name", *PROFILE_FIELDS}
        unknown = set(patch) - allowed
        if unknown:
            raise BusinessValidationError(
                f"Unknown business fields: {', '.join(sorted(unknown))}"
            )
        if "name" in patch:
            patch = {**patch, "name": _clean_name(patch["name"])}
        for key in ("currency", "fiscal_year"):
            if key in patch and not patch[key]:
                raise BusinessValidationError(f"Business {key} cannot be empty")

        for key, value in patch.items():
            setattr(self, key, value)
        self.updated_at = now or datetime.now(UTC)

    def deactivate(self, now: datetime | None = None) -> None:
        """Soft-delete the business."""
        self.is_active = False
        self.updated_at = now or datetime.now(UTC)

    def profile(self) -> dict[str, Any]:
        """Return the descriptive fields as a dict."""
        return {key: getattr(self, key) for key in PROFILE_FIELDS}
