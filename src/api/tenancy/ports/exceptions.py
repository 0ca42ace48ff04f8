"""Exceptions raised by tenancy port implementations."""


class DefaultBusinessConflictError(Exception):
    """Raised when saving a second active default business for an owner.

    Signals that a concurrent request auto-provisioned first. The caller
    re-reads and adopts the existing business.
    """

    pass
