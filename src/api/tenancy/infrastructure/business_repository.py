"""PostgreSQL implementation of IBusinessRepository.

Businesses are simple aggregates stored in a single table. The
one-default-per-owner rule is enforced by a partial unique index, so a
losing concurrent provisioning surfaces here as an integrity error.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.exceptions import DatabaseUnavailableError
from tenancy.domain.aggregates import PROFILE_FIELDS, Business
from tenancy.domain.value_objects import BusinessId
from tenancy.infrastructure.models import DEFAULT_BUSINESS_INDEX, BusinessModel
from tenancy.infrastructure.observability import (
    BusinessRepositoryProbe,
    DefaultBusinessRepositoryProbe,
)
from tenancy.ports.exceptions import DefaultBusinessConflictError
from tenancy.ports.repositories import IBusinessRepository

_COLUMNS = (
    "owner_id",
    "name",
    *PROFILE_FIELDS,
    "is_default",
    "is_active",
    "created_at",
    "updated_at",
)


def _to_domain(model: BusinessModel) -> Business:
    values: dict[str, Any] = {column: getattr(model, column) for column in _COLUMNS}
    return Business(id=BusinessId(value=model.id), **values)


class BusinessRepository(IBusinessRepository):
    """Repository managing PostgreSQL storage for Business aggregates."""

    def __init__(
        self,
        session: AsyncSession,
        probe: BusinessRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: AsyncSession from FastAPI dependency injection
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultBusinessRepositoryProbe()

    async def save(self, business: Business) -> None:
        """Persist a business, inserting or updating its row.

        Args:
            business: The Business aggregate to persist

        Raises:
            DefaultBusinessConflictError: If the owner already has an
                active default business
            DatabaseUnavailableError: If the database cannot be reached
        """
        try:
            model = await self._session.get(BusinessModel, business.id.value)
            if model is None:
                model = BusinessModel(id=business.id.value)
                self._session.add(model)
            for column in _COLUMNS:
                setattr(model, column, getattr(business, column))

            # Flush to surface the partial unique index violation here
            await self._session.flush()
        except IntegrityError as e:
            if DEFAULT_BUSINESS_INDEX in str(e):
                self._probe.default_business_conflict(owner_id=business.owner_id)
                raise DefaultBusinessConflictError(
                    f"Owner {business.owner_id} already has a default business"
                ) from e
            raise
        except OperationalError as e:
            self._probe.database_unavailable(operation="save", error=e)
            raise DatabaseUnavailableError("Business store is unavailable") from e

        self._probe.business_saved(
            business_id=business.id.value, owner_id=business.owner_id
        )

    async def get_by_id(self, business_id: BusinessId) -> Business | None:
        """Fetch a business by id, active or not.

        Args:
            business_id: The unique identifier of the business

        Returns:
            The Business aggregate, or None if not found
        """
        stmt = select(BusinessModel).where(BusinessModel.id == business_id.value)
        models = await self._fetch(stmt, operation="get_by_id")
        if not models:
            self._probe.business_not_found(business_id=business_id.value)
            return None
        return _to_domain(models[0])

    async def list_by_owner(
        self, owner_id: str, newest_first: bool = False
    ) -> list[Business]:
        """List the owner's active businesses in creation order.

        Ties on created_at are broken by id, which is a ULID and so sorts
        by creation time as well.
        """
        stmt = select(BusinessModel).where(
            BusinessModel.owner_id == owner_id,
            BusinessModel.is_active.is_(True),
        )
        if newest_first:
            stmt = stmt.order_by(BusinessModel.created_at.desc(), BusinessModel.id.desc())
        else:
            stmt = stmt.order_by(BusinessModel.created_at.asc(), BusinessModel.id.asc())
        models = await self._fetch(stmt, operation="list_by_owner")
        return [_to_domain(model) for model in models]

    async def first_by_owner(self, owner_id: str) -> Business | None:
        """Return the owner's earliest created active business."""
        stmt = (
            select(BusinessModel)
            .where(
                BusinessModel.owner_id == owner_id,
                BusinessModel.is_active.is_(True),
            )
            .order_by(BusinessModel.created_at.asc(), BusinessModel.id.asc())
            .limit(1)
        )
        models = await self._fetch(stmt, operation="first_by_owner")
        return _to_domain(models[0]) if models else None

    async def _fetch(
        self, stmt: Select[tuple[BusinessModel]], operation: str
    ) -> list[BusinessModel]:
        try:
            result = await self._session.execute(stmt)
        except OperationalError as e:
            self._probe.database_unavailable(operation=operation, error=e)
            raise DatabaseUnavailableError("Business store is unavailable") from e
        return list(result.scalars().all())
