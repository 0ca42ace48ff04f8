"""Domain exceptions for the tenancy bounded context."""


class BusinessValidationError(ValueError):
    """Raised when business fields violate domain rules (e.g. an empty name)."""

    pass


class NotOwnerError(Exception):
    """Raised when a subject acts on a business it does not own.

    Also raised for unknown or deleted businesses so callers cannot probe
    for the existence of other users' businesses.
    """

    pass


class StaleTenantPointerError(Exception):
    """Raised internally when the current-business pointer is unusable.

    The pointer names a business that no longer exists, was deleted, or
    belongs to another subject. It is repaired during resolution and
    never reaches a caller.
    """

    pass
