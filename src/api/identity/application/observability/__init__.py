"""Domain-Oriented Observability for the identity application layer."""

from identity.application.observability.otp_challenge_probe import (
    DefaultOtpChallengeProbe,
    OtpChallengeProbe,
)

__all__ = [
    "DefaultOtpChallengeProbe",
    "OtpChallengeProbe",
]
