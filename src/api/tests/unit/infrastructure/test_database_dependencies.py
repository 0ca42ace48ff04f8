"""Unit tests for database session dependencies.

Engines are created lazily and never connect in these tests.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database import dependencies
from infrastructure.database.dependencies import EngineRegistry
from infrastructure.database.engines import EngineRole


@pytest.fixture
def probe() -> MagicMock:
    return MagicMock()


@pytest.fixture
def registry(probe) -> EngineRegistry:
    return EngineRegistry(probe=probe)


class TestEngineRegistry:
    """Tests for lazily created engines."""

    @pytest.mark.asyncio
    async def test_engine_is_created_once_per_role(self, registry, probe):
        write_1 = registry.engine(EngineRole.WRITE)
        write_2 = registry.engine(EngineRole.WRITE)
        read = registry.engine(EngineRole.READ)

        assert write_1 is write_2
        assert write_1 is not read
        assert probe.engine_created.call_count == 2

        await registry.dispose()

    @pytest.mark.asyncio
    async def test_created_event_reports_pool_size(self, registry, probe):
        registry.engine(EngineRole.READ)

        kwargs = probe.engine_created.call_args.kwargs
        assert kwargs["role"] == "read"
        assert kwargs["pool_size"] >= 1

        await registry.dispose()

    @pytest.mark.asyncio
    async def test_dispose_resets_engines(self, registry, probe):
        engine = registry.engine(EngineRole.WRITE)

        await registry.dispose()

        probe.engine_disposed.assert_called_once_with(role="write")
        assert registry.engine(EngineRole.WRITE) is not engine

        await registry.dispose()

    @pytest.mark.asyncio
    async def test_session_is_bound_to_role_engine(self, registry):
        engine = registry.engine(EngineRole.READ)

        async with registry.session(EngineRole.READ) as session:
            assert isinstance(session, AsyncSession)
            assert session.bind.sync_engine is engine.sync_engine

        await registry.dispose()

    @pytest.mark.asyncio
    async def test_session_failure_is_reported_and_reraised(self, registry, probe):
        error = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            async with registry.session(EngineRole.WRITE):
                raise error

        probe.session_failed.assert_called_once_with(role="write", error=error)

        await registry.dispose()


class TestSessionDependencies:
    """Tests for the FastAPI dependency generators."""

    @pytest.mark.asyncio
    async def test_write_session_uses_write_engine(self):
        engine = dependencies._registry.engine(EngineRole.WRITE)

        async for session in dependencies.get_write_session():
            assert session.bind.sync_engine is engine.sync_engine

        await dependencies.close_database_connections()

    @pytest.mark.asyncio
    async def test_read_session_uses_read_engine(self):
        engine = dependencies._registry.engine(EngineRole.READ)

        async for session in dependencies.get_read_session():
            assert session.bind.sync_engine is engine.sync_engine

        await dependencies.close_database_connections()

    @pytest.mark.asyncio
    async def test_error_inside_request_reaches_probe(self, monkeypatch, probe):
        monkeypatch.setattr(dependencies._registry, "probe", probe)
        generator = dependencies.get_write_session()
        await generator.__anext__()

        with pytest.raises(ValueError):
            await generator.athrow(ValueError("handler failed"))

        probe.session_failed.assert_called_once()
        await dependencies.close_database_connections()
