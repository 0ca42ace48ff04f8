"""Exceptions raised by identity port implementations."""


class IdentityStoreError(Exception):
    """Base class for identity store failures."""

    pass


class IdentityLookupError(IdentityStoreError):
    """Raised when the identity store is unreachable or answers unexpectedly."""

    pass


class CodeRejectedError(IdentityStoreError):
    """Raised when the identity store rejects a verification code.

    Attributes:
        expired: True if the store reported the code as expired rather
            than wrong.
    """

    def __init__(self, message: str, expired: bool = False):
        super().__init__(message)
        self.expired = expired


class SessionRefreshError(IdentityStoreError):
    """Raised when a refresh token or federated code cannot be exchanged."""

    pass


class IdentifierTakenError(IdentityStoreError):
    """Raised when the store refuses to attach an identifier already in use."""

    pass
