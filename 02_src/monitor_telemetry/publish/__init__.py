"""Publish module."""

from .publisher import (
    AUTHORIZATION_SCOPE,
    HttpTelemetryPublisher,
    ITelemetryPublisher,
    TokenProvider,
)
from .tracking import track_publish_result

__all__ = [
    "AUTHORIZATION_SCOPE",
    "HttpTelemetryPublisher",
    "ITelemetryPublisher",
    "TokenProvider",
    "track_publish_result",
]
