"""Core data models for Monitor Telemetry."""

from .operation import EMPTY_OPERATION, ActivityScope, TelemetryOperation
from .publish import (
    BearerToken,
    as_utc,
    HttpPublishResult,
    PublishError,
    PublishResponse,
    PublishResult,
)
from .tags import TelemetryTagKeys
from .telemetry import (
    AvailabilityTelemetry,
    DependencyTelemetry,
    EventTelemetry,
    ExceptionInfo,
    ExceptionTelemetry,
    Measurements,
    MetricTelemetry,
    MetricValueAggregation,
    PageViewTelemetry,
    Pairs,
    RequestTelemetry,
    SeverityLevel,
    StackFrameInfo,
    Telemetry,
    TraceTelemetry,
)

__all__ = [
    # Operation
    "EMPTY_OPERATION",
    "ActivityScope",
    "TelemetryOperation",
    # Telemetry
    "Telemetry",
    "AvailabilityTelemetry",
    "DependencyTelemetry",
    "EventTelemetry",
    "ExceptionTelemetry",
    "MetricTelemetry",
    "PageViewTelemetry",
    "RequestTelemetry",
    "TraceTelemetry",
    "ExceptionInfo",
    "StackFrameInfo",
    "MetricValueAggregation",
    "SeverityLevel",
    "Pairs",
    "Measurements",
    "TelemetryTagKeys",
    # Publish
    "PublishResult",
    "HttpPublishResult",
    "PublishError",
    "PublishResponse",
    "BearerToken",
    "as_utc",
]
