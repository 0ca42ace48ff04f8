"""Domain probe for the edge authorization gate.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events for every gate decision.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class EdgeGateProbe(Protocol):
    """Domain probe for edge authorization decisions."""

    def request_allowed(self, path: str, route_class: str, subject: str | None) -> None:
        """Record that a request was let through to its route."""
        ...

    def request_rewritten(
        self, path: str, route_class: str, target: str, subject: str | None
    ) -> None:
        """Record that a request was internally rewritten to another path."""
        ...

    def credential_rotated(self, path: str, subject: str) -> None:
        """Record that a rotated credential is being written to the client."""
        ...

    def session_resolution_failed(self, path: str, error: Exception) -> None:
        """Record that resolving the session failed and the request is anonymous."""
        ...

    def with_context(self, context: ObservationContext) -> EdgeGateProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultEdgeGateProbe:
    """Default implementation of EdgeGateProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultEdgeGateProbe:
        """Create a new probe with observation context bound."""
        return DefaultEdgeGateProbe(logger=self._logger, context=context)

    def request_allowed(self, path: str, route_class: str, subject: str | None) -> None:
        """Record that a request was let through to its route."""
        self._logger.debug(
            "edge_request_allowed",
            path=path,
            route_class=route_class,
            subject=subject,
            **self._get_context_kwargs(),
        )

    def request_rewritten(
        self, path: str, route_class: str, target: str, subject: str | None
    ) -> None:
        """Record that a request was internally rewritten to another path."""
        self._logger.info(
            "edge_request_rewritten",
            path=path,
            route_class=route_class,
            target=target,
            subject=subject,
            **self._get_context_kwargs(),
        )

    def credential_rotated(self, path: str, subject: str) -> None:
        """Record that a rotated credential is being written to the client."""
        self._logger.info(
            "edge_credential_rotated",
            path=path,
            subject=subject,
            **self._get_context_kwargs(),
        )

    def session_resolution_failed(self, path: str, error: Exception) -> None:
        """Record that resolving the session failed and the request is anonymous."""
        self._logger.warning(
            "edge_session_resolution_failed",
            path=path,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
