"""Tenant context application service.

Maintains the "current business" a session operates against and the
owner-scoped business operations that move it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from shared_kernel.auth.session import Session
from tenancy.application.observability import (
    DefaultTenantContextProbe,
    TenantContextProbe,
)
from tenancy.domain.aggregates import Business
from tenancy.domain.exceptions import NotOwnerError, StaleTenantPointerError
from tenancy.domain.value_objects import BusinessId
from tenancy.ports.exceptions import DefaultBusinessConflictError
from tenancy.ports.pointer_store import CurrentBusinessPointerStore
from tenancy.ports.repositories import IBusinessRepository


class TenantContextManager:
    """Application service for the current business of a session.

    Every operation takes the caller's session explicitly. Ownership is
    checked on every read and mutation of a specific business.
    """

    def __init__(
        self,
        repository: IBusinessRepository,
        pointer_store: CurrentBusinessPointerStore,
        session: AsyncSession,
        default_business_name: str = "My Business",
        default_currency: str = "INR",
        default_fiscal_year: str = "april-march",
        provision_retry_limit: int = 3,
        probe: TenantContextProbe | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize TenantContextManager with dependencies.

        Args:
            repository: Repository for business persistence
            pointer_store: Holds the current-business pointer
            session: Database session for transaction management
            default_business_name: Name given to auto-provisioned businesses
            default_currency: Currency of auto-provisioned businesses
            default_fiscal_year: Fiscal year of auto-provisioned businesses
            provision_retry_limit: Attempts before a contended
                auto-provisioning gives up
            probe: Optional domain probe for observability
            clock: Returns the current UTC time
        """
        self._repository = repository
        self._pointer_store = pointer_store
        self._session = session
        self._default_business_name = default_business_name
        self._default_currency = default_currency
        self._default_fiscal_year = default_fiscal_year
        self._provision_retry_limit = provision_retry_limit
        self._probe = probe or DefaultTenantContextProbe()
        self._clock = clock or (lambda: datetime.now(UTC))

    async def resolve_current_business(self, session: Session) -> BusinessId:
        """Return the business the session operates against.

        Uses the pointer when it names an active business the subject
        owns. Otherwise falls back to the subject's first business, or
        provisions a default one, and repoints. Safe to call
        concurrently for the same subject.

        Raises:
            DefaultBusinessConflictError: If provisioning stayed contended
                for every retry
        """
        business = await self._resolve(session)
        return business.id

    async def get_current_business(self, session: Session) -> Business:
        """Resolve the current business and return the full record."""
        return await self._resolve(session)

    async def switch_current_business(
        self, session: Session, business_id: str
    ) -> Business:
        """Point the session at another business it owns.

        Raises:
            NotOwnerError: Unless the subject owns an active business
                with that id; the pointer is left unchanged
        """
        async with self._session.begin():
            business = await self._get_owned(session, business_id, "switch")

        self._pointer_store.set(business.id)
        self._probe.business_switched(
            business_id=business.id.value, owner_id=session.subject
        )
        return business

    async def create_business(
        self,
        session: Session,
        name: str,
        profile: dict[str, Any] | None = None,
        switch_to: bool = False,
    ) -> Business:
        """Create a business owned by the session's subject.

        Args:
            session: Caller's session
            name: Business name
            profile: Optional descriptive fields
            switch_to: Also make the new business current

        Raises:
            BusinessValidationError: If the name is empty
        """
        business = Business.create(
            owner_id=session.subject,
            name=name,
            now=self._clock(),
            **(profile or {}),
        )
        async with self._session.begin():
            await self._repository.save(business)

        self._probe.business_created(
            business_id=business.id.value,
            owner_id=session.subject,
            name=business.name,
        )
        if switch_to:
            self._pointer_store.set(business.id)
            self._probe.business_switched(
                business_id=business.id.value, owner_id=session.subject
            )
        return business

    async def update_business(
        self, session: Session, business_id: str, patch: dict[str, Any]
    ) -> Business:
        """Merge the given fields into a business the subject owns.

        Raises:
            NotOwnerError: Unless the subject owns the business
            BusinessValidationError: On an explicit empty name
        """
        async with self._session.begin():
            business = await self._get_owned(session, business_id, "update")
            business.update(patch, now=self._clock())
            await self._repository.save(business)

        self._probe.business_updated(
            business_id=business.id.value,
            owner_id=session.subject,
            fields=sorted(patch),
        )
        return business

    async def delete_business(self, session: Session, business_id: str) -> None:
        """Soft-delete a business the subject owns.

        Clears the pointer when it referenced the deleted business, so the
        next resolution picks another one.

        Raises:
            NotOwnerError: Unless the subject owns the business
        """
        async with self._session.begin():
            business = await self._get_owned(session, business_id, "delete")
            business.deactivate(now=self._clock())
            await self._repository.save(business)

        pointer_cleared = self._pointer_store.get() == business.id.value
        if pointer_cleared:
            self._pointer_store.clear()
        self._probe.business_deleted(
            business_id=business.id.value,
            owner_id=session.subject,
            pointer_cleared=pointer_cleared,
        )

    async def list_businesses(self, session: Session) -> list[Business]:
        """List the subject's active businesses, newest first."""
        async with self._session.begin():
            businesses = await self._repository.list_by_owner(
                session.subject, newest_first=True
            )
        self._probe.businesses_listed(owner_id=session.subject, count=len(businesses))
        return businesses

    async def _resolve(self, session: Session) -> Business:
        owner_id = session.subject
        pointer = self._pointer_store.get()

        if pointer is not None:
            try:
                async with self._session.begin():
                    business = await self._load_pointer(pointer, owner_id)
                self._probe.business_resolved(
                    business_id=business.id.value, owner_id=owner_id, source="pointer"
                )
                return business
            except StaleTenantPointerError as e:
                self._probe.stale_pointer_repaired(
                    pointer=pointer, owner_id=owner_id, reason=str(e)
                )

        business, source = await self._first_or_provision(owner_id)
        self._pointer_store.set(business.id)
        self._probe.business_resolved(
            business_id=business.id.value, owner_id=owner_id, source=source
        )
        return business

    async def _load_pointer(self, pointer: str, owner_id: str) -> Business:
        try:
            business_id = BusinessId.from_string(pointer)
        except ValueError as e:
            raise StaleTenantPointerError("Pointer is not a business id") from e

        business = await self._repository.get_by_id(business_id)
        if business is None:
            raise StaleTenantPointerError("Business does not exist")
        if not business.is_active:
            raise StaleTenantPointerError("Business was deleted")
        if not business.is_owned_by(owner_id):
            raise StaleTenantPointerError("Business belongs to another subject")
        return business

    async def _first_or_provision(self, owner_id: str) -> tuple[Business, str]:
        for attempt in range(1, self._provision_retry_limit + 1):
            try:
                async with self._session.begin():
                    existing = await self._repository.first_by_owner(owner_id)
                    if existing is not None:
                        return existing, "first"

                    business = Business.create(
                        owner_id=owner_id,
                        name=self._default_business_name,
                        is_default=True,
                        now=self._clock(),
                        currency=self._default_currency,
                        fiscal_year=self._default_fiscal_year,
                    )
                    await self._repository.save(business)
            except DefaultBusinessConflictError:
                self._probe.provisioning_conflict(owner_id=owner_id, attempt=attempt)
                continue

            self._probe.default_business_provisioned(
                business_id=business.id.value, owner_id=owner_id
            )
            return business, "provisioned"

        raise DefaultBusinessConflictError(
            f"Could not provision a default business for {owner_id} "
            f"after {self._provision_retry_limit} attempts"
        )

    async def _get_owned(
        self, session: Session, business_id: str, operation: str
    ) -> Business:
        try:
            parsed = BusinessId.from_string(business_id)
        except ValueError:
            parsed = None

        business = await self._repository.get_by_id(parsed) if parsed else None
        if (
            business is None
            or not business.is_active
            or not business.is_owned_by(session.subject)
        ):
            self._probe.access_denied(
                business_id=business_id, owner_id=session.subject, operation=operation
            )
            raise NotOwnerError(f"Business {business_id} is not owned by the caller")
        return business
