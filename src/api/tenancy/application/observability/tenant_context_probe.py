"""Protocol for tenant context observability.

Defines the interface for domain probes that capture application-level
domain events for current-business resolution and business management.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantContextProbe(Protocol):
    """Domain probe for tenant context operations."""

    def business_resolved(self, business_id: str, owner_id: str, source: str) -> None:
        """Record which business a request operates against and why."""
        ...

    def stale_pointer_repaired(self, pointer: str, owner_id: str, reason: str) -> None:
        """Record that an unusable current-business pointer was replaced."""
        ...

    def default_business_provisioned(self, business_id: str, owner_id: str) -> None:
        """Record that a default business was created for a new owner."""
        ...

    def provisioning_conflict(self, owner_id: str, attempt: int) -> None:
        """Record that a concurrent request provisioned first."""
        ...

    def business_switched(self, business_id: str, owner_id: str) -> None:
        """Record that the pointer was moved to another business."""
        ...

    def business_created(self, business_id: str, owner_id: str, name: str) -> None:
        """Record that a business was created."""
        ...

    def business_updated(
        self, business_id: str, owner_id: str, fields: list[str]
    ) -> None:
        """Record that a business was updated."""
        ...

    def business_deleted(
        self, business_id: str, owner_id: str, pointer_cleared: bool
    ) -> None:
        """Record that a business was soft-deleted."""
        ...

    def businesses_listed(self, owner_id: str, count: int) -> None:
        """Record that an owner's businesses were listed."""
        ...

    def access_denied(self, business_id: str, owner_id: str, operation: str) -> None:
        """Record that a subject acted on a business it does not own."""
        ...

    def with_context(self, context: ObservationContext) -> TenantContextProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantContextProbe:
    """Default implementation of TenantContextProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultTenantContextProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantContextProbe(logger=self._logger, context=context)

    def business_resolved(self, business_id: str, owner_id: str, source: str) -> None:
        """Record which business a request operates against and why."""
        self._logger.debug(
            "current_business_resolved",
            business_id=business_id,
            owner_id=owner_id,
            source=source,
            **self._get_context_kwargs(),
        )

    def stale_pointer_repaired(self, pointer: str, owner_id: str, reason: str) -> None:
        """Record that an unusable current-business pointer was replaced."""
        self._logger.warning(
            "stale_business_pointer_repaired",
            pointer=pointer,
            owner_id=owner_id,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def default_business_provisioned(self, business_id: str, owner_id: str) -> None:
        """Record that a default business was created for a new owner."""
        self._logger.info(
            "default_business_provisioned",
            business_id=business_id,
            owner_id=owner_id,
            **self._get_context_kwargs(),
        )

    def provisioning_conflict(self, owner_id: str, attempt: int) -> None:
        """Record that a concurrent request provisioned first."""
        self._logger.info(
            "default_business_provisioning_conflict",
            owner_id=owner_id,
            attempt=attempt,
            **self._get_context_kwargs(),
        )

    def business_switched(self, business_id: str, owner_id: str) -> None:
        """Record that the pointer was moved to another business."""
        self._logger.info(
            "current_business_switched",
            business_id=business_id,
            owner_id=owner_id,
            **self._get_context_kwargs(),
        )

    def business_created(self, business_id: str, owner_id: str, name: str) -> None:
        """Record that a business was created."""
        self._logger.info(
            "business_created",
            business_id=business_id,
            owner_id=owner_id,
            name=name,
            **self._get_context_kwargs(),
        )

    def business_updated(
        self, business_id: str, owner_id: str, fields: list[str]
    ) -> None:
        """Record that a business was updated."""
        self._logger.info(
            "business_updated",
            business_id=business_id,
            owner_id=owner_id,
            fields=fields,
            **self._get_context_kwargs(),
        )

    def business_deleted(
        self, business_id: str, owner_id: str, pointer_cleared: bool
    ) -> None:
        """Record that a business was soft-deleted."""
        self._logger.info(
            "business_deleted",
            business_id=business_id,
            owner_id=owner_id,
            pointer_cleared=pointer_cleared,
            **self._get_context_kwargs(),
        )

    def businesses_listed(self, owner_id: str, count: int) -> None:
        """Record that an owner's businesses were listed."""
        self._logger.debug(
            "businesses_listed",
            owner_id=owner_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def access_denied(self, business_id: str, owner_id: str, operation: str) -> None:
        """Record that a subject acted on a business it does not own."""
        self._logger.warning(
            "business_access_denied",
            business_id=business_id,
            owner_id=owner_id,
            operation=operation,
            **self._get_context_kwargs(),
        )
