"""Value objects for identity verification."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import StrEnum

from identity.domain.exceptions import IdentifierFormatError, InvalidCodeError
from shared_kernel.auth.session import Channel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")

_PHONE_SEPARATORS = re.compile(r"[\s\-]")
_PHONE_CODE_PATTERN = re.compile(r"^\d{6}$")
_EMAIL_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{6,10}$")


class ChallengeMode(StrEnum):
    """What a verified challenge does.

    LOGIN signs into an existing account, SIGNUP creates one and LINK
    attaches a new identifier to the signed-in account.
    """

    LOGIN = "login"
    SIGNUP = "signup"
    LINK = "link"


class ChallengeState(StrEnum):
    """States of the OTP challenge state machine."""

    IDLE = "idle"
    CHALLENGE_SENT = "challenge_sent"
    VERIFIED = "verified"


@dataclass(frozen=True)
class Identifier:
    """A normalized email address or E.164 phone number.

    Attributes:
        channel: The channel a code for this identifier is sent over.
        value: Normalized identifier (lowercased email or E.164 phone).
    """

    channel: Channel
    value: str

    @classmethod
    def parse(cls, raw: str, default_country_code: str = "+91") -> Identifier:
        """Classify and normalize raw user input.

        Input matching the email pattern is an email. Anything else is
        treated as a phone number: spaces and dashes are removed and the
        default country code is prepended unless the number starts
        with ``+``.

        Raises:
            IdentifierFormatError: If the input is empty or the phone
                number is not valid E.164 after normalization.
        """
        candidate = raw.strip()
        if not candidate:
            raise IdentifierFormatError("Email or phone number is required")

        if EMAIL_PATTERN.match(candidate):
            return cls(channel=Channel.EMAIL, value=candidate.lower())

        phone = _PHONE_SEPARATORS.sub("", candidate)
        if not phone.startswith("+"):
            phone = f"{default_country_code}{phone}"
        if not E164_PATTERN.match(phone):
            raise IdentifierFormatError(f"Invalid phone number format: {raw!r}")
        return cls(channel=Channel.PHONE, value=phone)

    def __str__(self) -> str:
        return self.value


def validate_code(channel: Channel, code: str) -> str:
    """Check the shape of a verification code before it reaches the store.

    Phone codes are exactly six digits. Email codes are 6 to 10
    alphanumerics.

    Raises:
        InvalidCodeError: If the code has the wrong shape.
    """
    candidate = code.strip()
    pattern = _PHONE_CODE_PATTERN if channel is Channel.PHONE else _EMAIL_CODE_PATTERN
    if not pattern.match(candidate):
        raise InvalidCodeError(f"Invalid {channel} verification code format")
    return candidate


@dataclass(frozen=True)
class Challenge:
    """Client-side view of an in-flight OTP challenge.

    The code itself, its digest and the attempt counter stay in the
    identity store.
    """

    channel: Channel
    target: str
    subject: str
    mode: ChallengeMode
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def issue(
        cls,
        identifier: Identifier,
        subject: str,
        mode: ChallengeMode,
        now: datetime,
        ttl: timedelta,
    ) -> Challenge:
        """Create a challenge issued at ``now``."""
        return cls(
            channel=identifier.channel,
            target=identifier.value,
            subject=subject,
            mode=mode,
            issued_at=now,
            expires_at=now + ttl,
        )

    def renewed(self, now: datetime, ttl: timedelta) -> Challenge:
        """Return a copy with fresh issue and expiry timestamps."""
        return replace(self, issued_at=now, expires_at=now + ttl)

    def is_expired(self, now: datetime) -> bool:
        """Return True if the challenge can no longer be verified."""
        return now >= self.expires_at
