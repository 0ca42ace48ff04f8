"""Domain exceptions for the identity bounded context."""


class IdentifierFormatError(ValueError):
    """Raised when an identifier is neither a valid email nor phone number."""

    pass


class AccountNotFoundError(Exception):
    """Raised when logging in with an identifier that has no account."""

    pass


class InvalidCodeError(Exception):
    """Raised when a verification code is malformed or does not match."""

    pass


class ChallengeExpiredError(Exception):
    """Raised when verifying against an expired challenge."""

    pass


class NoActiveChallengeError(Exception):
    """Raised when verify or resend is attempted with no challenge in flight."""

    pass


class IdentifierInUseError(Exception):
    """Raised when linking an identifier that belongs to another account."""

    pass
