"""Identity infrastructure layer."""

from identity.infrastructure.cookie_challenge_store import CookieChallengeStore
from identity.infrastructure.gotrue_identity_store import GoTrueIdentityStore

__all__ = [
    "CookieChallengeStore",
    "GoTrueIdentityStore",
]
