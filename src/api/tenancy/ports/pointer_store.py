"""Port for the current-business pointer."""

from __future__ import annotations

from typing import Protocol

from tenancy.domain.value_objects import BusinessId


class CurrentBusinessPointerStore(Protocol):
    """Holds the id of the business a client is currently working in.

    The stored value is opaque and untrusted: callers must check it still
    names an active business the subject owns.
    """

    def get(self) -> str | None:
        """Return the stored pointer, if any."""
        ...

    def set(self, business_id: BusinessId) -> None:
        """Point at a business. Last writer wins."""
        ...

    def clear(self) -> None:
        """Remove the pointer."""
        ...
