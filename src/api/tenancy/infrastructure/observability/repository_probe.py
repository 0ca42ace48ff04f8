"""Domain probe for business repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of business persistence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class BusinessRepositoryProbe(Protocol):
    """Domain probe for business repository operations."""

    def business_saved(self, business_id: str, owner_id: str) -> None:
        """Record that a business was successfully saved."""
        ...

    def business_not_found(self, business_id: str) -> None:
        """Record that a business was not found."""
        ...

    def default_business_conflict(self, owner_id: str) -> None:
        """Record that a second active default business was rejected."""
        ...

    def database_unavailable(self, operation: str, error: Exception) -> None:
        """Record that the database could not be reached."""
        ...

    def with_context(self, context: ObservationContext) -> BusinessRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultBusinessRepositoryProbe:
    """Default implementation of BusinessRepositoryProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultBusinessRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultBusinessRepositoryProbe(logger=self._logger, context=context)

    def business_saved(self, business_id: str, owner_id: str) -> None:
        """Record that a business was successfully saved."""
        self._logger.debug(
            "business_saved",
            business_id=business_id,
            owner_id=owner_id,
            **self._get_context_kwargs(),
        )

    def business_not_found(self, business_id: str) -> None:
        """Record that a business was not found."""
        self._logger.debug(
            "business_not_found",
            business_id=business_id,
            **self._get_context_kwargs(),
        )

    def default_business_conflict(self, owner_id: str) -> None:
        """Record that a second active default business was rejected."""
        self._logger.info(
            "default_business_conflict",
            owner_id=owner_id,
            **self._get_context_kwargs(),
        )

    def database_unavailable(self, operation: str, error: Exception) -> None:
        """Record that the database could not be reached."""
        self._logger.error(
            "business_database_unavailable",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
