"""Port for persisting the client-side view of OTP challenges."""

from __future__ import annotations

from typing import Protocol

from identity.domain.value_objects import Challenge
from shared_kernel.auth.session import Channel


class IChallengeStore(Protocol):
    """Keeps at most one challenge per channel for the current client."""

    def load(self, channel: Channel) -> Challenge | None:
        """Return the in-flight challenge for a channel, if any."""
        ...

    def save(self, challenge: Challenge) -> None:
        """Store a challenge, replacing any earlier one for its channel."""
        ...

    def clear(self, channel: Channel) -> None:
        """Forget the challenge for a channel."""
        ...
