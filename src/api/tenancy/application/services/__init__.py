"""Application services for the tenancy bounded context."""

from tenancy.application.services.tenant_context_manager import TenantContextManager

__all__ = ["TenantContextManager"]
