"""Integration test fixtures for the tenancy bounded context."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from tenancy.infrastructure import BusinessRepository

TEST_OWNER_PREFIX = "it-owner-"


@pytest_asyncio.fixture
async def clean_businesses(async_session: AsyncSession) -> AsyncGenerator[None, None]:
    """Delete businesses created by integration tests before and after each test."""

    async def cleanup() -> None:
        await async_session.execute(
            text("DELETE FROM businesses WHERE owner_id LIKE :prefix"),
            {"prefix": f"{TEST_OWNER_PREFIX}%"},
        )
        await async_session.commit()

    await cleanup()
    yield
    await cleanup()


@pytest_asyncio.fixture
async def business_repository(async_session: AsyncSession) -> BusinessRepository:
    return BusinessRepository(session=async_session)
