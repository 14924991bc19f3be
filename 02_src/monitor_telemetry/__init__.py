"""Telemetry collection and publishing pipeline for Azure Monitor."""

from .bootstrap import create_telemetry_client
from .buffer import TelemetryBuffer
from .client import TelemetryClient
from .config import TelemetrySettings, load_settings
from .context import OperationPropagator
from .dependency import DependencyTypes, TelemetryTrackedTransport, detect_dependency_type
from .models import (
    AvailabilityTelemetry,
    BearerToken,
    DependencyTelemetry,
    EventTelemetry,
    ExceptionTelemetry,
    HttpPublishResult,
    MetricTelemetry,
    PageViewTelemetry,
    PublishResult,
    RequestTelemetry,
    SeverityLevel,
    Telemetry,
    TelemetryOperation,
    TelemetryTagKeys,
    TraceTelemetry,
)
from .publish import HttpTelemetryPublisher, ITelemetryPublisher, track_publish_result
from .serialization import dumps, serialize
from .utils import convert_exception

__all__ = [
    # Client
    "TelemetryClient",
    "TelemetryBuffer",
    "OperationPropagator",
    "create_telemetry_client",
    "TelemetrySettings",
    "load_settings",
    # Records
    "Telemetry",
    "AvailabilityTelemetry",
    "DependencyTelemetry",
    "EventTelemetry",
    "ExceptionTelemetry",
    "MetricTelemetry",
    "PageViewTelemetry",
    "RequestTelemetry",
    "TraceTelemetry",
    "SeverityLevel",
    "TelemetryOperation",
    "TelemetryTagKeys",
    # Publishing
    "ITelemetryPublisher",
    "HttpTelemetryPublisher",
    "PublishResult",
    "HttpPublishResult",
    "BearerToken",
    "track_publish_result",
    "dumps",
    "serialize",
    # Dependencies
    "DependencyTypes",
    "TelemetryTrackedTransport",
    "detect_dependency_type",
    "convert_exception",
]
