"""Pydantic models for identity API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from identity.domain.value_objects import Challenge, ChallengeState
from shared_kernel.auth.session import Channel, Session


class LoginRequest(BaseModel):
    """Request model for starting a login challenge."""

    identifier: str = Field(
        ...,
        description="Email address or phone number",
        min_length=1,
        max_length=320,
    )


class SignupRequest(BaseModel):
    """Request model for starting a signup challenge."""

    identifier: str = Field(
        ...,
        description="Email address or phone number",
        min_length=1,
        max_length=320,
    )
    full_name: str = Field(
        ..., description="Name stored on the new account", min_length=1, max_length=255
    )


class LinkChannelRequest(BaseModel):
    """Request model for linking an email address or phone to the signed-in account."""

    identifier: str = Field(
        ...,
        description="Email address or phone number to link",
        min_length=1,
        max_length=320,
    )


class VerifyChallengeRequest(BaseModel):
    """Request model for verifying a code."""

    channel: Channel = Field(..., description="Channel the code was sent over")
    code: str = Field(..., description="Verification code", min_length=1, max_length=16)


class ChannelRequest(BaseModel):
    """Request model for resending a code."""

    channel: Channel = Field(..., description="Channel of the in-flight challenge")


class CancelChallengeRequest(BaseModel):
    """Request model for cancelling challenges.

    Omitting the channel cancels both.
    """

    channel: Channel | None = Field(default=None)


class UpdateUserRequest(BaseModel):
    """Request model for updating the signed-in user's profile metadata."""

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    image: str | None = Field(default=None, max_length=2048)

    def to_metadata(self) -> dict[str, Any]:
        """Only fields the caller set are sent to the identity store."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class ChallengeResponse(BaseModel):
    """Response model for an in-flight challenge."""

    channel: Channel
    target: str
    state: ChallengeState
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_domain(cls, challenge: Challenge) -> ChallengeResponse:
        """Convert a domain challenge to an API response."""
        return cls(
            channel=challenge.channel,
            target=challenge.target,
            state=ChallengeState.CHALLENGE_SENT,
            issued_at=challenge.issued_at,
            expires_at=challenge.expires_at,
        )


class SessionResponse(BaseModel):
    """Response model for the current session."""

    subject: str
    verified_channels: list[Channel]
    expires_at: datetime
    claims: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, session: Session) -> SessionResponse:
        """Convert a session to an API response."""
        return cls(
            subject=session.subject,
            verified_channels=sorted(session.verified_channels),
            expires_at=session.expires_at,
            claims={
                key: session.claims[key]
                for key in ("email", "phone", "user_metadata", "app_metadata", "role")
                if key in session.claims
            },
        )
