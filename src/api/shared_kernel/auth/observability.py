"""Domain probe for session token decoding.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to session credential resolution.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class SessionCodecProbe(Protocol):
    """Domain probe for session credential resolution."""

    def session_resolved(self, subject: str) -> None:
        """Record that a credential resolved to a valid session."""
        ...

    def session_rejected(self, reason: str) -> None:
        """Record that a credential was rejected."""
        ...

    def session_rotated(self, subject: str, reason: str) -> None:
        """Record that the credential was refreshed."""
        ...

    def session_refresh_failed(self, reason: str, error: Exception) -> None:
        """Record that refreshing the credential failed."""
        ...

    def with_context(self, context: ObservationContext) -> SessionCodecProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultSessionCodecProbe:
    """Default implementation of SessionCodecProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultSessionCodecProbe:
        """Create a new probe with observation context bound."""
        return DefaultSessionCodecProbe(logger=self._logger, context=context)

    def session_resolved(self, subject: str) -> None:
        """Record that a credential resolved to a valid session."""
        self._logger.debug(
            "session_resolved",
            subject=subject,
            **self._get_context_kwargs(),
        )

    def session_rejected(self, reason: str) -> None:
        """Record that a credential was rejected."""
        self._logger.info(
            "session_rejected",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def session_rotated(self, subject: str, reason: str) -> None:
        """Record that the credential was refreshed."""
        self._logger.info(
            "session_rotated",
            subject=subject,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def session_refresh_failed(self, reason: str, error: Exception) -> None:
        """Record that refreshing the credential failed."""
        self._logger.warning(
            "session_refresh_failed",
            reason=reason,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
