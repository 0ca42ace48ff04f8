"""Application services for the identity bounded context."""

from identity.application.services.otp_challenge_service import (
    OtpChallengeService,
    OtpChallengeStateMachine,
    VerifiedChallenge,
)

__all__ = [
    "OtpChallengeService",
    "OtpChallengeStateMachine",
    "VerifiedChallenge",
]
