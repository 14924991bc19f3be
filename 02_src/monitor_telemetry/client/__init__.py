"""Client module."""

from .client import TelemetryClient

__all__ = ["TelemetryClient"]
