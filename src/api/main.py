"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from identity.dependencies import get_session_cookie_jar, get_session_token_codec
from identity.presentation import routes as identity_routes
from infrastructure.database.dependencies import (
    close_database_connections,
    get_read_session,
)
from infrastructure.logging import configure_logging
from infrastructure.settings import get_cookie_settings, get_gate_settings, get_settings
from infrastructure.version import __version__
from shared_kernel.middleware import (
    EdgeAuthorizationGate,
    EdgeAuthorizationMiddleware,
    RouteRules,
)
from shared_kernel.middleware.observability import DefaultEdgeGateProbe
from tenancy.presentation import routes as tenancy_routes


def require_challenge_signing_key() -> None:
    """Refuse to start without a key for signing OTP challenge cookies."""
    if not get_cookie_settings().challenge_signing_key.get_secret_value():
        raise RuntimeError("LEDGERDESK_COOKIE_CHALLENGE_SIGNING_KEY is not set")


@asynccontextmanager
async def ledgerdesk_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Required secrets check
    - Database engine lifecycle (created lazily, disposed on shutdown)
    """
    configure_logging(debug=get_settings().debug)
    require_challenge_signing_key()
    yield
    await close_database_connections()


def build_edge_gate() -> EdgeAuthorizationGate:
    """Build the edge authorization gate from gate settings."""
    settings = get_gate_settings()
    return EdgeAuthorizationGate(
        codec=get_session_token_codec(),
        rules=RouteRules.from_lists(
            protected_prefixes=settings.protected_prefixes,
            auth_only_paths=settings.auth_only_paths,
        ),
        probe=DefaultEdgeGateProbe(),
        unauthorized_path=settings.unauthorized_path,
        authorized_path=settings.authorized_path,
    )


app = FastAPI(
    title=get_settings().app_name,
    description="Session and multi-tenant authorization engine",
    version=__version__,
    lifespan=ledgerdesk_lifespan,
)

app.add_middleware(
    EdgeAuthorizationMiddleware,
    gate=build_edge_gate(),
    cookies=get_session_cookie_jar(),
    probe=DefaultEdgeGateProbe(),
)

# Include Identity bounded context routes
app.include_router(identity_routes.router)
app.include_router(identity_routes.gate_router)

# Include Tenancy bounded context routes
app.include_router(tenancy_routes.router)
app.include_router(tenancy_routes.init_router)


@app.get("/health")
def health():
    """Liveness check; also reports the running version."""
    return {"status": "ok", "version": __version__}


@app.get("/health/db")
async def health_db(
    session: Annotated[AsyncSession, Depends(get_read_session)],
) -> dict:
    """Check database connection health."""
    try:
        await session.execute(text("SELECT 1"))
        return {"status": "ok", "connected": True}
    except SQLAlchemyError as e:
        return {
            "status": "error",
            "connected": False,
            "error": str(e),
        }
