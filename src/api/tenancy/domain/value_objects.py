"""Value objects for the tenancy bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from ulid import ULID


@dataclass(frozen=True)
class BusinessId:
    """Identifier for a Business aggregate.

    Uses ULID for sortability and distribution-friendly generation.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> BusinessId:
        """Generate a new BusinessId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> BusinessId:
        """Create BusinessId from string value.

        Args:
            value: ULID string

        Returns:
            BusinessId instance

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid ULID format: {value}") from e
        return cls(value=value)
