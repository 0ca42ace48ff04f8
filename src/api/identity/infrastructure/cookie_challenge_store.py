"""Challenge store backed by signed, httponly cookies.

Each channel gets its own cookie holding a JWT signed with the challenge
signing key. A cookie that fails verification is treated as absent.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Literal

from jose import JWTError, jwt
from starlette.responses import Response

from identity.domain.value_objects import Challenge, ChallengeMode
from shared_kernel.auth.session import Channel

_ALGORITHM = "HS256"


class CookieChallengeStore:
    """Request-scoped challenge store.

    Reads come from the request cookies; writes go to the outgoing
    response. A write is visible to later reads in the same request.
    """

    def __init__(
        self,
        cookies: Mapping[str, str],
        response: Response,
        signing_key: str,
        cookie_prefix: str = "otp_challenge_",
        secure: bool = True,
        samesite: Literal["lax", "strict", "none"] = "lax",
    ):
        if not signing_key:
            raise ValueError("Challenge signing key is not configured")
        self._cookies = cookies
        self._response = response
        self._signing_key = signing_key
        self._cookie_prefix = cookie_prefix
        self._secure = secure
        self._samesite = samesite
        self._pending: dict[Channel, Challenge | None] = {}

    def cookie_name(self, channel: Channel) -> str:
        return f"{self._cookie_prefix}{channel}"

    def load(self, channel: Channel) -> Challenge | None:
        if channel in self._pending:
            return self._pending[channel]

        token = self._cookies.get(self.cookie_name(channel))
        if not token:
            return None
        try:
            claims = jwt.decode(token, self._signing_key, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        if claims.get("channel") != channel.value:
            return None

        return Challenge(
            channel=channel,
            target=claims["target"],
            subject=claims["sub"],
            mode=ChallengeMode(claims["mode"]),
            issued_at=datetime.fromtimestamp(claims["iat"], tz=UTC),
            expires_at=datetime.fromtimestamp(claims["exp_at"], tz=UTC),
        )

    def save(self, challenge: Challenge) -> None:
        # "exp_at" rather than "exp" so expiry is decided by the state
        # machine, not by signature verification
        token = jwt.encode(
            {
                "channel": challenge.channel.value,
                "target": challenge.target,
                "sub": challenge.subject,
                "mode": challenge.mode.value,
                "iat": int(challenge.issued_at.timestamp()),
                "exp_at": int(challenge.expires_at.timestamp()),
            },
            self._signing_key,
            algorithm=_ALGORITHM,
        )
        max_age = max(
            int((challenge.expires_at - challenge.issued_at).total_seconds()), 0
        )
        self._response.set_cookie(
            key=self.cookie_name(challenge.channel),
            value=token,
            max_age=max_age,
            httponly=True,
            secure=self._secure,
            samesite=self._samesite,
        )
        self._pending[challenge.channel] = challenge

    def clear(self, channel: Channel) -> None:
        self._response.delete_cookie(
            key=self.cookie_name(channel),
            httponly=True,
            secure=self._secure,
            samesite=self._samesite,
        )
        self._pending[channel] = None
