"""Session value objects shared across bounded contexts.

A session is issued by the identity store and only ever read by this
service. It is carried between requests in a pair of cookies (the
session credential).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class Channel(StrEnum):
    """Identity channel a user can prove control of."""

    EMAIL = "email"
    PHONE = "phone"


@dataclass(frozen=True)
class SessionCredential:
    """Access/refresh token pair carried in request-scoped cookies.

    Attributes:
        access_token: Short-lived JWT signed by the identity store.
        refresh_token: Opaque token used to rotate the access token.
    """

    access_token: str
    refresh_token: str | None = None


@dataclass(frozen=True)
class Session:
    """Read-only view of an authenticated session.

    Attributes:
        subject: Identity store subject identifier (the ``sub`` claim).
        verified_channels: Channels the subject has proven control of.
        claims: Raw claims (name, avatar, user metadata) as issued.
        expires_at: When the access token stops being accepted.
    """

    subject: str
    verified_channels: frozenset[Channel]
    expires_at: datetime
    claims: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def email(self) -> str | None:
        """Email address on the session, if any."""
        return self.claims.get("email") or None

    @property
    def phone(self) -> str | None:
        """Phone number on the session, if any."""
        return self.claims.get("phone") or None

    @property
    def user_metadata(self) -> dict[str, Any]:
        """Custom metadata the identity store keeps for the user."""
        return dict(self.claims.get("user_metadata") or {})


@dataclass(frozen=True)
class ResolvedSession:
    """Outcome of resolving a credential for one request.

    ``session`` is None when no valid session could be established.
    ``rotated`` carries a new credential when the access token was
    refreshed and must be written back to the client.
    """

    session: Session | None
    rotated: SessionCredential | None = None

    @classmethod
    def anonymous(cls) -> ResolvedSession:
        """Resolution result for a request without a valid session."""
        return cls(session=None, rotated=None)
