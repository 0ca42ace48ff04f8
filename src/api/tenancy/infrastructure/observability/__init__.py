"""Observability for tenancy infrastructure."""

from tenancy.infrastructure.observability.repository_probe import (
    BusinessRepositoryProbe,
    DefaultBusinessRepositoryProbe,
)

__all__ = [
    "BusinessRepositoryProbe",
    "DefaultBusinessRepositoryProbe",
]
