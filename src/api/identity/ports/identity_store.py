"""Identity store port.

The identity store owns accounts, OTP generation and delivery, and
session issuance. This service only asks it to do those things.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from identity.domain.value_objects import Identifier
from shared_kernel.auth.session import Channel, SessionCredential


@dataclass(frozen=True)
class IdentityAccount:
    """An account as known to the identity store."""

    subject: str
    email: str | None = None
    phone: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict, compare=False)


class IIdentityStore(Protocol):
    """Port for the external identity store.

    Implementations raise ``IdentityLookupError`` when the store cannot
    be reached.
    """

    async def create_or_lookup_account(
        self,
        identifier: Identifier,
        create: bool,
        metadata: dict[str, Any] | None = None,
    ) -> IdentityAccount | None:
        """Find the account for an identifier, creating it if asked to.

        Returns None only when ``create`` is False and no account exists.
        """
        ...

    async def send_otp(
        self, subject: str, channel: Channel, target: str, link: bool = False
    ) -> None:
        """Ask the store to generate and deliver a new code.

        A new code invalidates any earlier code for the same target.
        ``link`` resends the code for an identifier being attached to an
        existing account.
        """
        ...

    async def verify_otp(
        self, subject: str, channel: Channel, target: str, code: str, link: bool = False
    ) -> SessionCredential:
        """Verify a code and return the credential of the new session.

        With ``link`` the code confirms an identifier being attached to
        the subject's account.

        Raises:
            CodeRejectedError: If the code is wrong or expired.
        """
        ...

    async def attach_channel(
        self, access_token: str, channel: Channel, target: str
    ) -> None:
        """Attach an unverified identifier to the signed-in user's account.

        The store sends a code to the new identifier.

        Raises:
            IdentifierTakenError: If another account already uses it.
        """
        ...

    async def refresh_session(self, refresh_token: str) -> SessionCredential:
        """Rotate a session credential.

        Raises:
            SessionRefreshError: If the refresh token is not accepted.
        """
        ...

    async def update_user_metadata(
        self, access_token: str, metadata: dict[str, Any]
    ) -> IdentityAccount:
        """Merge metadata into the signed-in user's account."""
        ...

    def sign_in_federated(
        self, provider: str, redirect_to: str, code_challenge: str
    ) -> str:
        """Return the URL that starts a federated PKCE sign-in."""
        ...

    async def exchange_federated_code(
        self, auth_code: str, code_verifier: str
    ) -> SessionCredential:
        """Exchange a federated authorization code for a session credential."""
        ...

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""
        ...
