"""Authentication shared kernel module."""

from shared_kernel.auth.cookies import SessionCookieJar
from shared_kernel.auth.observability import (
    DefaultSessionCodecProbe,
    SessionCodecProbe,
)
from shared_kernel.auth.session import (
    Channel,
    ResolvedSession,
    Session,
    SessionCredential,
)
from shared_kernel.auth.session_codec import (
    InvalidSessionError,
    SessionExpiredError,
    SessionRefresher,
    SessionTokenCodec,
)

__all__ = [
    "Channel",
    "DefaultSessionCodecProbe",
    "InvalidSessionError",
    "ResolvedSession",
    "Session",
    "SessionCodecProbe",
    "SessionCookieJar",
    "SessionCredential",
    "SessionExpiredError",
    "SessionRefresher",
    "SessionTokenCodec",
]
