"""Buffer module."""

from .buffer import ITelemetryBuffer, TelemetryBuffer

__all__ = ["ITelemetryBuffer", "TelemetryBuffer"]
