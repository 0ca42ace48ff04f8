"""Repository protocols (ports) for the tenancy bounded context."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tenancy.domain.aggregates import Business
from tenancy.domain.value_objects import BusinessId


@runtime_checkable
class IBusinessRepository(Protocol):
    """Repository for Business aggregate persistence.

    Reads return inactive (soft-deleted) businesses only from
    ``get_by_id``; every owner-scoped query sees active businesses only.
    """

    async def save(self, business: Business) -> None:
        """Persist a business (insert or update).

        Raises:
            DefaultBusinessConflictError: If the owner already has an
                active default business
        """
        ...

    async def get_by_id(self, business_id: BusinessId) -> Business | None:
        """Retrieve a business by id, active or not."""
        ...

    async def list_by_owner(
        self, owner_id: str, newest_first: bool = False
    ) -> list[Business]:
        """List the owner's active businesses in creation order."""
        ...

    async def first_by_owner(self, owner_id: str) -> Business | None:
        """Return the owner's earliest created active business."""
        ...
