"""Identity domain layer.

Contains identifier classification, the OTP challenge record and the
domain exceptions of the identity bounded context.
"""

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

__all__ = [
    "AccountNotFoundError",
    "Challenge",
    "ChallengeExpiredError",
    "ChallengeMode",
    "ChallengeState",
    "IdentifierFormatError",
    "IdentifierInUseError",
    "Identifier",
    "InvalidCodeError",
    "NoActiveChallengeError",
    "validate_code",
]
