"""Integration test fixtures for database tests.

These fixtures require a running PostgreSQL instance with the migrations
applied (``alembic upgrade head``). Use docker-compose for testing.
"""

from collections.abc import AsyncGenerator
import os

import pytest
import pytest_asyncio
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_write_engine
from infrastructure.settings import DatabaseSettings


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires database)",
    )


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests.

    Override with environment variables:
        LEDGERDESK_DB_HOST, LEDGERDESK_DB_PORT, etc.
    """
    return DatabaseSettings(
        host=os.getenv("LEDGERDESK_DB_HOST", "localhost"),
        port=int(os.getenv("LEDGERDESK_DB_PORT", "5432")),
        database=os.getenv("LEDGERDESK_DB_DATABASE", "ledgerdesk"),
        username=os.getenv("LEDGERDESK_DB_USERNAME", "ledgerdesk"),
        password=SecretStr(
            os.getenv("LEDGERDESK_DB_PASSWORD", "ledgerdesk_dev_password")
        ),
    )


@pytest_asyncio.fixture
async def session_factory(
    integration_db_settings: DatabaseSettings,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Provide a session factory for tests that need several sessions.

    Concurrent provisioning tests give each simulated request its own
    session, the way the API does.
    """
    engine = create_write_engine(integration_db_settings)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    yield factory

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async session for integration tests."""
    async with session_factory() as session:
        yield session
