"""FastAPI dependencies for database sessions.

Engines are created on first use, one per role, and disposed on
application shutdown. Sessions never auto-commit: services open their
own ``async with session.begin()`` scopes.
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import EngineRole, create_engine_for, pool_limits
from infrastructure.observability import ConnectionProbe, DefaultConnectionProbe
from infrastructure.settings import get_database_settings


class EngineRegistry:
    """Lazily created engines and session makers keyed by role."""

    def __init__(self, probe: ConnectionProbe | None = None):
        self._engines: dict[EngineRole, AsyncEngine] = {}
        self._sessionmakers: dict[EngineRole, async_sessionmaker[AsyncSession]] = {}
        self._lock = threading.Lock()
        self.probe = probe or DefaultConnectionProbe()

    def engine(self, role: EngineRole) -> AsyncEngine:
        engine = self._engines.get(role)
        if engine is not None:
            return engine

        with self._lock:
            if role not in self._engines:
                settings = get_database_settings()
                engine = create_engine_for(settings, role)
                self._sessionmakers[role] = async_sessionmaker(
                    engine, expire_on_commit=False, class_=AsyncSession
                )
                self._engines[role] = engine
                self.probe.engine_created(
                    role=role.value,
                    host=settings.host,
                    database=settings.database,
                    pool_size=pool_limits(settings, role)[0],
                )
            return self._engines[role]

    def sessionmaker(self, role: EngineRole) -> async_sessionmaker[AsyncSession]:
        self.engine(role)
        return self._sessionmakers[role]

    @asynccontextmanager
    async def session(self, role: EngineRole) -> AsyncIterator[AsyncSession]:
        """Open a session for one request, reporting failures that escape it."""
        async with self.sessionmaker(role)() as session:
            try:
                yield session
            except Exception as e:
                self.probe.session_failed(role=role.value, error=e)
                raise

    async def dispose(self) -> None:
        """Dispose every engine; the next use creates fresh ones."""
        for role, engine in list(self._engines.items()):
            await engine.dispose()
            self.probe.engine_disposed(role=role.value)
        self._engines.clear()
        self._sessionmakers.clear()


_registry = EngineRegistry()


async def get_write_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide the request's write session (FastAPI dependency)."""
    async with _registry.session(EngineRole.WRITE) as session:
        yield session


async def get_read_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a read-only session (FastAPI dependency)."""
    async with _registry.session(EngineRole.READ) as session:
        yield session


async def close_database_connections() -> None:
    """Dispose all engines. Called from the application lifespan."""
    await _registry.dispose()
