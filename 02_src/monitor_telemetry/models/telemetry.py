"""Telemetry record data models.

Every record is immutable once created: the buffer hands the very same objects
to every publisher, so nothing downstream may change them.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum

from .operation import EMPTY_OPERATION, TelemetryOperation

# Ordered (key, value) pairs; order is preserved on the wire.
Pairs = Sequence[tuple[str, str]]
Measurements = Sequence[tuple[str, float]]


class SeverityLevel(IntEnum):
    """Severity of a trace or exception."""

    VERBOSE = 0
    INFORMATION = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


@dataclass(frozen=True, kw_only=True)
class Telemetry:
    """Fields shared by all telemetry kinds.

    Property keys are limited to 150 characters and values to 8192; longer ones
    are truncated when serialized.
    """

    time: datetime  # UTC
    operation: TelemetryOperation = EMPTY_OPERATION
    properties: Pairs | None = None
    tags: Pairs | None = None


@dataclass(frozen=True, kw_only=True)
class AvailabilityTelemetry(Telemetry):
    """Result of an availability test."""

    duration: timedelta
    id: str
    message: str
    name: str
    success: bool
    run_location: str | None = None
    measurements: Measurements | None = None


@dataclass(frozen=True, kw_only=True)
class DependencyTelemetry(Telemetry):
    """A call from the application to an external component."""

    id: str
    name: str
    success: bool
    duration: timedelta = timedelta(0)
    data: str | None = None  # command initiated by the call, e.g. full URL
    result_code: str | None = None
    target: str | None = None
    type: str | None = None
    measurements: Measurements | None = None


@dataclass(frozen=True, kw_only=True)
class EventTelemetry(Telemetry):
    """A named application event."""

    name: str
    measurements: Measurements | None = None


@dataclass(frozen=True)
class StackFrameInfo:
    """A single frame of a captured stack."""

    assembly: str  # module name
    level: int
    line: int
    method: str
    file_name: str | None = None


@dataclass(frozen=True)
class ExceptionInfo:
    """One exception of a linearized exception chain."""

    id: int
    outer_id: int  # 0 for the outermost exception
    type_name: str
    message: str
    has_full_stack: bool
    parsed_stack: Sequence[StackFrameInfo] | None = None


@dataclass(frozen=True, kw_only=True)
class ExceptionTelemetry(Telemetry):
    """An exception raised in the application."""

    exceptions: Sequence[ExceptionInfo]
    problem_id: str | None = None
    severity_level: SeverityLevel | None = None
    measurements: Measurements | None = None


@dataclass(frozen=True)
class MetricValueAggregation:
    """Aggregation of metric values within a sample set."""

    count: int
    max: float
    min: float


@dataclass(frozen=True, kw_only=True)
class MetricTelemetry(Telemetry):
    """An aggregated metric value."""

    name: str
    namespace: str
    value: float
    value_aggregation: MetricValueAggregation | None = None


@dataclass(frozen=True, kw_only=True)
class PageViewTelemetry(Telemetry):
    """A page displayed to a user."""

    id: str
    name: str
    duration: timedelta = timedelta(0)
    url: str | None = None
    measurements: Measurements | None = None


@dataclass(frozen=True, kw_only=True)
class RequestTelemetry(Telemetry):
    """An external request handled by the application."""

    id: str
    response_code: str
    success: bool
    url: str
    duration: timedelta = timedelta(0)
    name: str | None = None
    source: str | None = None
    measurements: Measurements | None = None


@dataclass(frozen=True, kw_only=True)
class TraceTelemetry(Telemetry):
    """A diagnostic log message."""

    message: str
    severity_level: SeverityLevel = SeverityLevel.INFORMATION
