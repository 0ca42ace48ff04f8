"""Fixtures shared by tenancy tests.

Provides an in-memory repository that enforces the one-default-business
per owner rule the way the database index does, an in-memory pointer
store, and a fake database session whose transactions are no-ops.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

import pytest

from tenancy.domain import Business, BusinessId
from tenancy.ports.exceptions import DefaultBusinessConflictError


class InMemoryBusinessRepository:
    """Dict-backed business repository.

    ``first_by_owner`` yields to the event loop after reading so
    concurrent resolutions interleave the way they would against a real
    database.
    """

    def __init__(self):
        self.businesses: dict[str, Business] = {}
        self.conflicts = 0

    async def save(self, business: Business) -> None:
        if business.is_default and business.is_active:
            for other in self.businesses.values():
                if (
                    other.id != business.id
                    and other.owner_id == business.owner_id
                    and other.is_default
                    and other.is_active
                ):
                    self.conflicts += 1
                    raise DefaultBusinessConflictError("duplicate default")
        self.businesses[business.id.value] = business

    async def get_by_id(self, business_id: BusinessId) -> Business | None:
        return self.businesses.get(business_id.value)

    async def list_by_owner(self, owner_id: str, newest_first: bool = False) -> list[Business]:
        owned = sorted(
            (
                b
                for b in self.businesses.values()
                if b.owner_id == owner_id and b.is_active
            ),
            key=lambda b: (b.created_at, b.id.value),
            reverse=newest_first,
        )
        return owned

    async def first_by_owner(self, owner_id: str) -> Business | None:
        owned = await self.list_by_owner(owner_id)
        await asyncio.sleep(0)
        return owned[0] if owned else None


class InMemoryPointerStore:
    """Pointer store for one client."""

    def __init__(self, value: str | None = None):
        self.value = value

    def get(self) -> str | None:
        return self.value

    def set(self, business_id: BusinessId) -> None:
        self.value = business_id.value

    def clear(self) -> None:
        self.value = None


class FakeDatabaseSession:
    """Stands in for AsyncSession; transactions do nothing."""

    def __init__(self):
        self.transactions = 0

    def begin(self):
        self.transactions += 1
        return self._transaction()

    @asynccontextmanager
    async def _transaction(self):
        yield


class Clock:
    """Clock that ticks one second per call so creation order is strict."""

    def __init__(self):
        self.now = datetime(2025, 4, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def repository() -> InMemoryBusinessRepository:
    return InMemoryBusinessRepository()


@pytest.fixture
def pointer() -> InMemoryPointerStore:
    return InMemoryPointerStore()


@pytest.fixture
def make_pointer_store():
    """Factory for additional clients' pointer stores."""
    return InMemoryPointerStore


@pytest.fixture
def db_session() -> FakeDatabaseSession:
    return FakeDatabaseSession()


@pytest.fixture
def clock() -> Clock:
    return Clock()
