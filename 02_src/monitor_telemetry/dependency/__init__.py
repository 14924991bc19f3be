"""Dependency tracking module."""

from .transport import TelemetryTrackedTransport
from .types import WELL_KNOWN_DOMAINS, DependencyTypes, detect_dependency_type

__all__ = [
    "DependencyTypes",
    "TelemetryTrackedTransport",
    "WELL_KNOWN_DOMAINS",
    "detect_dependency_type",
]
