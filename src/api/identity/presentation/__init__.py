"""Identity presentation layer."""

from identity.presentation.routes import gate_router, router

__all__ = ["gate_router", "router"]
