"""HTTP API routes for businesses and the current-business pointer."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import RedirectResponse

from identity.dependencies import get_current_session
from infrastructure.database.exceptions import DatabaseUnavailableError
from shared_kernel.auth import Session
from tenancy.application.services import TenantContextManager
from tenancy.dependencies import get_tenant_context_manager
from tenancy.domain.exceptions import BusinessValidationError, NotOwnerError
from tenancy.ports.exceptions import DefaultBusinessConflictError
from tenancy.presentation.models import (
    BusinessResponse,
    CreateBusinessRequest,
    SwitchBusinessRequest,
    UpdateBusinessRequest,
)

router = APIRouter(prefix="/businesses", tags=["businesses"])
init_router = APIRouter(prefix="/api", tags=["businesses"])

_DEFAULT_PATH = "/dashboard"


def _unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Business store is unavailable, try again",
    )


@router.get("", response_model=list[BusinessResponse])
async def list_businesses(
    session: Annotated[Session, Depends(get_current_session)],
    manager: Annotated[TenantContextManager, Depends(get_tenant_context_manager)],
) -> list[BusinessResponse]:
    """List the caller's businesses, newest first."""
    try:
        businesses = await manager.list_businesses(session)
    except DatabaseUnavailableError as e:
        raise _unavailable() from e
    return [BusinessResponse.from_domain(b) for b in businesses]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=BusinessResponse)
async def create_business(
    request: CreateBusinessRequest,
    session: Annotated[Session, Depends(get_current_session)],
    manager: Annotated[TenantContextManager, Depends(get_tenant_context_manager)],
) -> BusinessResponse:
    """Create a business owned by the caller.

    Args:
        request: Business fields; ``switch_to`` also makes it current

    Returns:
        The created business

    Raises:
        HTTPException: 422 if the name is empty
    """
    try:
        business = await manager.create_business(
            session,
            name=request.name,
            profile=request.profile(),
            switch_to=request.switch_to,
        )
    except BusinessValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e)
        ) from e
    except DatabaseUnavailableError as e:
        raise _unavailable() from e
    return BusinessResponse.from_domain(business)


@router.get("/current", response_model=BusinessResponse)
async def get_current_business(
    session: Annotated[Session, Depends(get_current_session)],
    manager: Annotated[TenantContextManager, Depends(get_tenant_context_manager)],
) -> BusinessResponse:
    """Return the current business, provisioning one on first use."""
    try:
        business = await manager.get_current_business(session)
    except (DatabaseUnavailableError, DefaultBusinessConflictError) as e:
        raise _unavailable() from e
    return BusinessResponse.from_domain(business)


@router.put("/current", response_model=BusinessResponse)
async def switch_current_business(
    request: SwitchBusinessRequest,
    session: Annotated[Session, Depends(get_current_session)],
    manager: Annotated[TenantContextManager, Depends(get_tenant_context_manager)],
) -> BusinessResponse:
    """Make another of the caller's businesses current.

    Raises:
        HTTPException: 403 unless the caller owns the business
    """
    try:
        business = await manager.switch_current_business(session, request.business_id)
    except NotOwnerError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except DatabaseUnavailableError as e:
        raise _unavailable() from e
    return BusinessResponse.from_domain(business)


@router.patch("/{business_id}", response_model=BusinessResponse)
async def update_business(
    business_id: str,
    request: UpdateBusinessRequest,
    session: Annotated[Session, Depends(get_current_session)],
    manager: Annotated[TenantContextManager, Depends(get_tenant_context_manager)],
) -> BusinessResponse:
    """Update fields of a business the caller owns.

    Raises:
        HTTPException: 403 unless the caller owns the business, 422 on an
            empty name
    """
    try:
        business = await manager.update_business(session, business_id, request.patch())
    except NotOwnerError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except BusinessValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e)
        ) from e
    except DatabaseUnavailableError as e:
        raise _unavailable() from e
    return BusinessResponse.from_domain(business)


@router.delete("/{business_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_business(
    business_id: str,
    session: Annotated[Session, Depends(get_current_session)],
    manager: Annotated[TenantContextManager, Depends(get_tenant_context_manager)],
) -> None:
    """Delete a business the caller owns.

    Raises:
        HTTPException: 403 unless the caller owns the business
    """
    try:
        await manager.delete_business(session, business_id)
    except NotOwnerError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except DatabaseUnavailableError as e:
        raise _unavailable() from e


@init_router.get("/init_business")
async def init_business(
    response: Response,
    session: Annotated[Session, Depends(get_current_session)],
    manager: Annotated[TenantContextManager, Depends(get_tenant_context_manager)],
    path: str = Query(default=_DEFAULT_PATH),
) -> RedirectResponse:
    """Make sure the caller has a current business, then redirect to ``path``.

    Used right after sign-in so the first page already has a business.
    """
    try:
        await manager.resolve_current_business(session)
    except (DatabaseUnavailableError, DefaultBusinessConflictError) as e:
        raise _unavailable() from e

    if not path.startswith("/") or path.startswith("//"):
        path = _DEFAULT_PATH
    redirect = RedirectResponse(url=path, status_code=status.HTTP_302_FOUND)
    # The pointer cookie was written to the dependency response
    redirect.raw_headers.extend(
        header for header in response.raw_headers if header[0] == b"set-cookie"
    )
    return redirect
