"""Identity ports - interfaces to the identity store and challenge storage."""

from identity.ports.challenge_store import IChallengeStore
from identity.ports.exceptions import (
    CodeRejectedError,
    IdentifierTakenError,
    IdentityLookupError,
    IdentityStoreError,
    SessionRefreshError,
)
from identity.ports.identity_store import IdentityAccount, IIdentityStore

__all__ = [
    "CodeRejectedError",
    "IChallengeStore",
    "IIdentityStore",
    "IdentifierTakenError",
    "IdentityAccount",
    "IdentityLookupError",
    "IdentityStoreError",
    "SessionRefreshError",
]
