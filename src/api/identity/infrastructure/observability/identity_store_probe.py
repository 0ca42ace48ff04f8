"""Domain probe for identity store calls.

Following Domain-Oriented Observability patterns, this probe captures
calls to the external identity store and their failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class IdentityStoreProbe(Protocol):
    """Domain probe for identity store operations."""

    def account_resolved(self, subject: str, created: bool) -> None:
        """Record that an account was found or created."""
        ...

    def otp_sent(self, channel: str) -> None:
        """Record that the store accepted a send-code request."""
        ...

    def request_failed(self, operation: str, error: Exception) -> None:
        """Record that a call to the store failed in transport."""
        ...

    def unexpected_response(self, operation: str, status_code: int) -> None:
        """Record that the store answered with an unexpected status."""
        ...

    def with_context(self, context: ObservationContext) -> IdentityStoreProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultIdentityStoreProbe:
    """Default implementation of IdentityStoreProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultIdentityStoreProbe:
        """Create a new probe with observation context bound."""
        return DefaultIdentityStoreProbe(logger=self._logger, context=context)

    def account_resolved(self, subject: str, created: bool) -> None:
        """Record that an account was found or created."""
        self._logger.debug(
            "identity_account_resolved",
            subject=subject,
            created=created,
            **self._get_context_kwargs(),
        )

    def otp_sent(self, channel: str) -> None:
        """Record that the store accepted a send-code request."""
        self._logger.debug(
            "identity_otp_sent",
            channel=channel,
            **self._get_context_kwargs(),
        )

    def request_failed(self, operation: str, error: Exception) -> None:
        """Record that a call to the store failed in transport."""
        self._logger.error(
            "identity_store_request_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def unexpected_response(self, operation: str, status_code: int) -> None:
        """Record that the store answered with an unexpected status."""
        self._logger.warning(
            "identity_store_unexpected_response",
            operation=operation,
            status_code=status_code,
            **self._get_context_kwargs(),
        )
