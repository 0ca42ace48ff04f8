"""OTP challenge application service for the identity bounded context.

Drives one-time-code verification of an email address or phone number
against the identity store. Each channel has its own state machine so an
email challenge can never validate a phone claim.

States: ``idle -> challenge_sent -> verified``. A challenge returns to
``idle`` when cancelled or when it expires. Starting again or resending
keeps it in ``challenge_sent`` with a new code.

A signed-in user can also link a second identifier to their account.
The link runs through the same machine for that identifier's channel
and is verified only for the user who started it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Callable

from identity.application.observability import (
    DefaultOtpChallengeProbe,
    OtpChallengeProbe,
)
from identity.domain.exceptions import (
    AccountNotFoundError,
    ChallengeExpiredError,
    IdentifierFormatError,
    IdentifierInUseError,
    InvalidCodeError,
    NoActiveChallengeError,
)
from identity.domain.value_objects import (
    Challenge,
    ChallengeMode,
    ChallengeState,
    Identifier,
    validate_code,
)
from identity.ports.challenge_store import IChallengeStore
from identity.ports.exceptions import (
    CodeRejectedError,
    IdentifierTakenError,
    IdentityLookupError,
    IdentityStoreError,
)
from identity.ports.identity_store import IIdentityStore
from shared_kernel.auth.session import Channel, Session, SessionCredential
from shared_kernel.auth.session_codec import InvalidSessionError, SessionTokenCodec


@dataclass(frozen=True)
class VerifiedChallenge:
    """Outcome of a successful verification."""

    session: Session
    credential: SessionCredential


class OtpChallengeStateMachine:
    """OTP challenge state machine for a single channel."""

    def __init__(
        self,
        channel: Channel,
        identity_store: IIdentityStore,
        challenge_store: IChallengeStore,
        codec: SessionTokenCodec,
        challenge_ttl: timedelta = timedelta(hours=1),
        default_country_code: str = "+91",
        probe: OtpChallengeProbe | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the state machine.

        Args:
            channel: Channel this machine verifies.
            identity_store: Port to the external identity store
            challenge_store: Where the in-flight challenge is kept between requests
            codec: Decodes the credential issued on successful verification
            challenge_ttl: Code lifetime configured in the identity store
            default_country_code: Prefix for phone numbers entered without one
            probe: Optional domain probe for observability
            clock: Returns the current UTC time
        """
        self._channel = channel
        self._identity_store = identity_store
        self._challenge_store = challenge_store
        self._codec = codec
        self._challenge_ttl = challenge_ttl
        self._default_country_code = default_country_code
        self._probe = probe or DefaultOtpChallengeProbe()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._verified: VerifiedChallenge | None = None

    @property
    def channel(self) -> Channel:
        return self._channel

    @property
    def state(self) -> ChallengeState:
        """Current state of the machine."""
        if self._verified is not None:
            return ChallengeState.VERIFIED
        if self._challenge_store.load(self._channel) is not None:
            return ChallengeState.CHALLENGE_SENT
        return ChallengeState.IDLE

    @property
    def challenge(self) -> Challenge | None:
        """The in-flight challenge, if any."""
        return self._challenge_store.load(self._channel)

    async def start_challenge(
        self,
        identifier: str,
        mode: ChallengeMode,
        full_name: str | None = None,
    ) -> Challenge:
        """Send a code to the identifier and enter ``challenge_sent``.

        Starting again while a challenge is in flight replaces it, and
        the identity store invalidates the earlier code.

        Args:
            identifier: Raw email address or phone number as entered
            mode: LOGIN requires an existing account, SIGNUP creates one
            full_name: Stored in the account metadata on signup

        Returns:
            The new challenge

        Raises:
            IdentifierFormatError: If the identifier is malformed or
                belongs to another channel
            AccountNotFoundError: If logging in without an account
            IdentityLookupError: If the identity store is unreachable
        """
        if mode is ChallengeMode.LINK:
            raise ValueError("Link challenges are started with start_link_challenge")
        parsed = self._parse(identifier)

        metadata: dict[str, Any] = {}
        if mode is ChallengeMode.SIGNUP and full_name and full_name.strip():
            metadata["full_name"] = full_name.strip()

        account = await self._identity_store.create_or_lookup_account(
            parsed,
            create=mode is ChallengeMode.SIGNUP,
            metadata=metadata or None,
        )
        if account is None:
            self._probe.account_not_found(channel=self._channel)
            raise AccountNotFoundError(f"No account found for this {self._channel}")

        await self._identity_store.send_otp(
            account.subject, self._channel, parsed.value, link=False
        )
        return self._issue(parsed, account.subject, mode)

    async def start_link_challenge(
        self,
        identifier: str,
        session: Session,
        credential: SessionCredential,
    ) -> Challenge:
        """Attach a new identifier to the signed-in account and send it a code.

        The identifier stays unverified on the account until the code is
        verified.

        Args:
            identifier: Raw email address or phone number to link
            session: The signed-in user's session
            credential: Credential behind ``session``

        Raises:
            IdentifierFormatError: If the identifier is malformed or
                belongs to another channel
            IdentifierInUseError: If another account uses the identifier
            IdentityLookupError: If the identity store is unreachable
        """
        parsed = self._parse(identifier)
        try:
            await self._identity_store.attach_channel(
                credential.access_token, self._channel, parsed.value
            )
        except IdentifierTakenError as e:
            self._probe.identifier_in_use(channel=self._channel, subject=session.subject)
            raise IdentifierInUseError(
                f"This {self._channel} is used by another account"
            ) from e
        return self._issue(parsed, session.subject, ChallengeMode.LINK)

    async def verify_challenge(self, code: str) -> VerifiedChallenge:
        """Verify a code for the in-flight challenge.

        Returns:
            The session issued by the identity store, refreshed so its
            claims include the newly verified channel

        Raises:
            NoActiveChallengeError: If no challenge is in flight
            InvalidCodeError: If the code is malformed or does not match
                (the challenge stays in flight)
            ChallengeExpiredError: If the challenge expired (the machine
                returns to idle)
            IdentityLookupError: If the identity store is unreachable, or
                issued a session for another account
        """
        challenge = self._require_challenge()
        candidate = validate_code(self._channel, code)

        if challenge.is_expired(self._clock()):
            self._expire(challenge)

        try:
            credential = await self._identity_store.verify_otp(
                challenge.subject,
                self._channel,
                challenge.target,
                candidate,
                link=challenge.mode is ChallengeMode.LINK,
            )
        except CodeRejectedError as e:
            if e.expired:
                self._expire(challenge)
            self._probe.code_rejected(channel=self._channel, subject=challenge.subject)
            raise InvalidCodeError("Verification code does not match") from e

        session = self._decode(credential)
        if session.subject != challenge.subject:
            raise IdentityLookupError("Identity store verified a different account")

        refreshed = await self._mark_verified(challenge, credential)
        if refreshed is not credential:
            credential, session = refreshed, self._decode(refreshed)

        self._challenge_store.clear(self._channel)
        self._verified = VerifiedChallenge(session=session, credential=credential)
        self._probe.challenge_verified(channel=self._channel, subject=session.subject)
        return self._verified

    async def resend(self) -> Challenge:
        """Send a fresh code for the in-flight challenge.

        Raises:
            NoActiveChallengeError: If no challenge is in flight
            IdentityLookupError: If the identity store is unreachable
        """
        challenge = self._require_challenge()
        await self._identity_store.send_otp(
            challenge.subject,
            self._channel,
            challenge.target,
            link=challenge.mode is ChallengeMode.LINK,
        )
        renewed = challenge.renewed(now=self._clock(), ttl=self._challenge_ttl)
        self._challenge_store.save(renewed)
        self._probe.challenge_resent(channel=self._channel, subject=renewed.subject)
        return renewed

    def cancel(self) -> None:
        """Abandon any in-flight challenge and return to idle."""
        self._challenge_store.clear(self._channel)
        self._verified = None
        self._probe.challenge_cancelled(channel=self._channel)

    def _parse(self, identifier: str) -> Identifier:
        parsed = Identifier.parse(identifier, self._default_country_code)
        if parsed.channel is not self._channel:
            raise IdentifierFormatError(
                f"Expected a {self._channel} identifier, got a {parsed.channel}"
            )
        return parsed

    def _issue(self, parsed: Identifier, subject: str, mode: ChallengeMode) -> Challenge:
        challenge = Challenge.issue(
            parsed, subject=subject, mode=mode, now=self._clock(), ttl=self._challenge_ttl
        )
        self._challenge_store.save(challenge)
        self._verified = None
        self._probe.challenge_started(channel=self._channel, mode=mode, subject=subject)
        return challenge

    def _decode(self, credential: SessionCredential) -> Session:
        try:
            return self._codec.decode(credential.access_token)
        except InvalidSessionError as e:
            raise IdentityLookupError(
                "Identity store issued an unusable session"
            ) from e

    def _require_challenge(self) -> Challenge:
        challenge = self._challenge_store.load(self._channel)
        if challenge is None:
            raise NoActiveChallengeError(f"No {self._channel} challenge in progress")
        return challenge

    def _expire(self, challenge: Challenge) -> None:
        self._challenge_store.clear(self._channel)
        self._probe.challenge_expired(channel=self._channel, subject=challenge.subject)
        raise ChallengeExpiredError("Verification code has expired")

    async def _mark_verified(
        self, challenge: Challenge, credential: SessionCredential
    ) -> SessionCredential:
        """Flag the channel as verified and refresh the session claims.

        Failures here leave the caller with the session the store issued
        on verification.
        """
        try:
            await self._identity_store.update_user_metadata(
                credential.access_token, {f"{self._channel}_verified": True}
            )
            if credential.refresh_token:
                return await self._identity_store.refresh_session(
                    credential.refresh_token
                )
        except IdentityStoreError as e:
            self._probe.verified_session_refresh_failed(
                channel=self._channel, subject=challenge.subject, error=e
            )
        return credential


class OtpChallengeService:
    """Holds one state machine per channel for the current client."""

    def __init__(
        self,
        machines: dict[Channel, OtpChallengeStateMachine],
        default_country_code: str = "+91",
    ):
        self._machines = machines
        self._default_country_code = default_country_code

    def machine(self, channel: Channel) -> OtpChallengeStateMachine:
        """Return the state machine for a channel."""
        return self._machines[channel]

    def channel_for(self, identifier: str) -> Channel:
        """Classify a raw identifier.

        Raises:
            IdentifierFormatError: If the identifier is malformed
        """
        return Identifier.parse(identifier, self._default_country_code).channel

    async def start_challenge(
        self,
        identifier: str,
        mode: ChallengeMode,
        full_name: str | None = None,
    ) -> Challenge:
        """Start a challenge on the channel the identifier belongs to."""
        machine = self.machine(self.channel_for(identifier))
        return await machine.start_challenge(identifier, mode, full_name=full_name)

    async def verify_challenge(self, channel: Channel, code: str) -> VerifiedChallenge:
        """Verify a code on one channel."""
        return await self.machine(channel).verify_challenge(code)

    async def start_link_challenge(
        self, identifier: str, session: Session, credential: SessionCredential
    ) -> Challenge:
        """Start linking an identifier to the signed-in account."""
        machine = self.machine(self.channel_for(identifier))
        return await machine.start_link_challenge(identifier, session, credential)

    async def verify_link_challenge(
        self, channel: Channel, code: str, session: Session
    ) -> VerifiedChallenge:
        """Verify a code for a link the signed-in user started.

        Raises:
            NoActiveChallengeError: If the channel has no link challenge
                in flight for this user
        """
        machine = self.machine(channel)
        challenge = machine.challenge
        if (
            challenge is None
            or challenge.mode is not ChallengeMode.LINK
            or challenge.subject != session.subject
        ):
            raise NoActiveChallengeError(f"No {channel} link in progress")
        return await machine.verify_challenge(code)

    async def resend(self, channel: Channel) -> Challenge:
        """Resend the code on one channel."""
        return await self.machine(channel).resend()

    def cancel(self, channel: Channel | None = None) -> None:
        """Cancel one channel's challenge, or every channel's when None."""
        channels = [channel] if channel is not None else list(self._machines)
        for each in channels:
            self._machines[each].cancel()
