"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped metadata that should be included with all
    instrumentation events so that gate decisions, OTP flows and tenant
    resolution for one request can be correlated.

    Attributes:
        request_id: Unique identifier for the current request.
        subject: Identity subject of the session (if authenticated).
        business_id: Current business the request operates against (if resolved).
        path: Request path as seen by the client.
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(request_id="req-123", path="/dashboard")
        probe = DefaultEdgeGateProbe().with_context(context)
    """

    request_id: str | None = None
    subject: str | None = None
    business_id: str | None = None
    path: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.subject is not None:
            result["subject"] = self.subject
        if self.business_id is not None:
            result["business_id"] = self.business_id
        if self.path is not None:
            result["path"] = self.path
        result.update(self.extra)
        return result

    def with_subject(self, subject: str) -> ObservationContext:
        """Create a new context with the session subject set."""
        return ObservationContext(
            request_id=self.request_id,
            subject=subject,
            business_id=self.business_id,
            path=self.path,
            extra=self.extra,
        )

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        new_extra = {**self.extra, **kwargs}
        return ObservationContext(
            request_id=self.request_id,
            subject=self.subject,
            business_id=self.business_id,
            path=self.path,
            extra=new_extra,
        )
