"""Tenancy presentation layer."""

from tenancy.presentation.routes import init_router, router

__all__ = ["init_router", "router"]
