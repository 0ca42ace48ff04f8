"""Observability for shared middleware operations."""

from shared_kernel.middleware.observability.edge_gate_probe import (
    DefaultEdgeGateProbe,
    EdgeGateProbe,
)

__all__ = [
    "DefaultEdgeGateProbe",
    "EdgeGateProbe",
]
