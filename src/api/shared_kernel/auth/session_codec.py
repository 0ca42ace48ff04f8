"""Session token codec.

Validates access tokens issued by the identity store and extracts the
session claims. Tokens are HS256 JWTs signed with the store's shared
secret, so validation is local and needs no network call. Rotation
(refreshing an expired or nearly expired access token) is delegated to a
``SessionRefresher``.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Protocol

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

from shared_kernel.auth.session import (
    Channel,
    ResolvedSession,
    Session,
    SessionCredential,
)

if TYPE_CHECKING:
    from shared_kernel.auth.observability import SessionCodecProbe


class InvalidSessionError(Exception):
    """Raised when an access token cannot be turned into a session."""

    pass


class SessionExpiredError(InvalidSessionError):
    """Raised when an access token is past its expiry."""

    pass


class SessionRefresher(Protocol):
    """Port used by the codec to rotate a session credential."""

    async def refresh_session(self, refresh_token: str) -> SessionCredential:
        """Exchange a refresh token for a new credential."""
        ...


def _verified_channels(claims: dict[str, Any]) -> frozenset[Channel]:
    metadata = claims.get("user_metadata") or {}
    channels: set[Channel] = set()
    if claims.get("email") and metadata.get("email_verified") is True:
        channels.add(Channel.EMAIL)
    if claims.get("phone") and metadata.get("phone_verified") is True:
        channels.add(Channel.PHONE)
    return frozenset(channels)


class SessionTokenCodec:
    """Decodes session credentials into ``Session`` objects.

    ``decode`` is strict and raises on any problem. ``resolve`` is the
    edge-facing entry point: it never raises, refreshes the credential
    when needed and reports "no session" on every failure.
    """

    def __init__(
        self,
        secret: str,
        audience: str,
        probe: SessionCodecProbe,
        refresher: SessionRefresher | None = None,
        refresh_margin: timedelta = timedelta(seconds=60),
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the codec.

        Args:
            secret: Shared HS256 secret of the identity store.
            audience: Expected ``aud`` claim.
            probe: Observability probe.
            refresher: Used to rotate expired or expiring credentials.
            refresh_margin: Rotate when the token expires within this window.
            clock: Returns the current UTC time (injectable for tests).
        """
        self._secret = secret
        self._audience = audience
        self._probe = probe
        self._refresher = refresher
        self._refresh_margin = refresh_margin
        self._clock = clock or (lambda: datetime.now(UTC))

    def decode(self, access_token: str) -> Session:
        """Validate an access token and return the session it carries.

        Raises:
            SessionExpiredError: If the token is expired.
            InvalidSessionError: If the token is malformed, has a bad
                signature or audience, or lacks a subject.
        """
        if not self._secret:
            raise InvalidSessionError("Session secret is not configured")

        try:
            claims = jwt.decode(
                access_token,
                self._secret,
                algorithms=["HS256"],
                audience=self._audience,
                options={"verify_exp": False, "require_aud": True},
            )
        except JWTClaimsError as e:
            raise InvalidSessionError(f"Invalid session claims: {e}") from e
        except JWTError as e:
            raise InvalidSessionError(f"Invalid session token: {e}") from e

        subject = claims.get("sub")
        if not subject:
            raise InvalidSessionError("Missing required claim: sub")

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            raise InvalidSessionError("Missing required claim: exp")
        expires_at = datetime.fromtimestamp(exp, tz=UTC)

        if expires_at <= self._clock():
            raise SessionExpiredError("Session token has expired")

        return Session(
            subject=str(subject),
            verified_channels=_verified_channels(claims),
            expires_at=expires_at,
            claims=claims,
        )

    async def resolve(self, credential: SessionCredential | None) -> ResolvedSession:
        """Resolve a request credential, rotating it when necessary.

        Never raises: decode errors, refresh failures and identity store
        outages all resolve to an anonymous result (fail closed).
        """
        if credential is None or not credential.access_token:
            if credential is not None and credential.refresh_token:
                return await self._rotate(credential.refresh_token, reason="missing")
            return ResolvedSession.anonymous()

        try:
            session = self.decode(credential.access_token)
        except SessionExpiredError:
            if credential.refresh_token:
                return await self._rotate(credential.refresh_token, reason="expired")
            self._probe.session_rejected(reason="expired")
            return ResolvedSession.anonymous()
        except InvalidSessionError as e:
            self._probe.session_rejected(reason=str(e))
            return ResolvedSession.anonymous()

        expiring = session.expires_at - self._clock() <= self._refresh_margin
        if expiring and credential.refresh_token:
            rotated = await self._rotate(credential.refresh_token, reason="expiring")
            # Keep the still-valid session if rotation fails
            if rotated.session is not None:
                return rotated

        self._probe.session_resolved(subject=session.subject)
        return ResolvedSession(session=session)

    async def _rotate(self, refresh_token: str, reason: str) -> ResolvedSession:
        if self._refresher is None:
            self._probe.session_rejected(reason=f"{reason}, no refresher configured")
            return ResolvedSession.anonymous()

        try:
            credential = await self._refresher.refresh_session(refresh_token)
            session = self.decode(credential.access_token)
        except Exception as e:
            self._probe.session_refresh_failed(reason=reason, error=e)
            return ResolvedSession.anonymous()

        self._probe.session_rotated(subject=session.subject, reason=reason)
        return ResolvedSession(session=session, rotated=credential)
