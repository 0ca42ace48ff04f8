"""Shared middleware for cross-cutting concerns.

This module contains the route classifier and the edge authorization
gate that runs in front of every bounded context's routes.
"""

from shared_kernel.middleware.edge_gate import (
    EdgeAuthorizationGate,
    EdgeAuthorizationMiddleware,
    GateDecision,
    GateOutcome,
    get_request_session,
)
from shared_kernel.middleware.route_classifier import (
    RouteClass,
    RouteRules,
    classify_route,
    is_static_asset,
)

__all__ = [
    "EdgeAuthorizationGate",
    "EdgeAuthorizationMiddleware",
    "GateDecision",
    "GateOutcome",
    "RouteClass",
    "RouteRules",
    "classify_route",
    "get_request_session",
    "is_static_asset",
]
