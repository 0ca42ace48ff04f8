"""Observability for identity infrastructure."""

from identity.infrastructure.observability.identity_store_probe import (
    DefaultIdentityStoreProbe,
    IdentityStoreProbe,
)

__all__ = [
    "DefaultIdentityStoreProbe",
    "IdentityStoreProbe",
]
