"""FastAPI dependencies for the tenancy bounded context."""

from typing import Annotated

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from identity.dependencies import get_current_session, get_observation_context
from infrastructure.database.dependencies import get_write_session
from infrastructure.settings import (
    CookieSettings,
    TenancySettings,
    get_cookie_settings,
    get_tenancy_settings,
)
from shared_kernel.auth import Session
from shared_kernel.observability_context import ObservationContext
from tenancy.application.observability import (
    DefaultTenantContextProbe,
    TenantContextProbe,
)
from tenancy.application.services import TenantContextManager
from tenancy.domain.value_objects import BusinessId
from tenancy.infrastructure import BusinessRepository, CookiePointerStore
from tenancy.infrastructure.observability import DefaultBusinessRepositoryProbe


def get_tenant_context_probe(
    context: Annotated[ObservationContext, Depends(get_observation_context)],
) -> TenantContextProbe:
    """Get TenantContextProbe instance bound to the request context."""
    return DefaultTenantContextProbe().with_context(context)


def get_business_repository(
    session: Annotated[AsyncSession, Depends(get_write_session)],
    context: Annotated[ObservationContext, Depends(get_observation_context)],
) -> BusinessRepository:
    """Get BusinessRepository instance.

    Args:
        session: Async database session
        context: Observation context of the request

    Returns:
        BusinessRepository sharing the request's session
    """
    return BusinessRepository(
        session=session,
        probe=DefaultBusinessRepositoryProbe().with_context(context),
    )


def get_pointer_store(
    request: Request,
    response: Response,
    settings: Annotated[CookieSettings, Depends(get_cookie_settings)],
) -> CookiePointerStore:
    """Get the request-scoped current-business pointer store."""
    return CookiePointerStore(
        cookies=request.cookies,
        response=response,
        cookie_name=settings.business_name,
        max_age_seconds=settings.business_max_age_seconds,
        secure=settings.secure,
        samesite=settings.samesite,
    )


def get_tenant_context_manager(
    repository: Annotated[BusinessRepository, Depends(get_business_repository)],
    pointer_store: Annotated[CookiePointerStore, Depends(get_pointer_store)],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    settings: Annotated[TenancySettings, Depends(get_tenancy_settings)],
    probe: Annotated[TenantContextProbe, Depends(get_tenant_context_probe)],
) -> TenantContextManager:
    """Get TenantContextManager instance.

    Args:
        repository: Business repository (shares session via FastAPI dependency caching)
        pointer_store: Current-business pointer store
        session: Database session for transaction management
        settings: Tenancy settings
        probe: Tenant context probe for observability
    """
    return TenantContextManager(
        repository=repository,
        pointer_store=pointer_store,
        session=session,
        default_business_name=settings.default_business_name,
        default_currency=settings.default_currency,
        default_fiscal_year=settings.default_fiscal_year,
        provision_retry_limit=settings.provision_retry_limit,
        probe=probe,
    )


async def get_current_business_id(
    session: Annotated[Session, Depends(get_current_session)],
    manager: Annotated[TenantContextManager, Depends(get_tenant_context_manager)],
) -> BusinessId:
    """Resolve the business the request operates against.

    Business-scoped routes in any bounded context depend on this.
    """
    return await manager.resolve_current_business(session)
