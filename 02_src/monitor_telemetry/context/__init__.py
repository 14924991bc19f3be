"""Context propagation module."""

from .propagator import (
    ActivityHandle,
    IOperationPropagator,
    OperationPropagator,
    ticks_to_duration,
    utcnow,
)

__all__ = [
    "ActivityHandle",
    "IOperationPropagator",
    "OperationPropagator",
    "ticks_to_duration",
    "utcnow",
]
