"""Streaming JSON envelope serializer for the v2 track API.

Writes straight into a text stream; no intermediate document is built. Each
telemetry type is written by an EnvelopeFormat looked up through the type's
MRO, so new kinds are added with register_format. Types without a format, and
items their format does not accept, are skipped and produce no output.
"""

import io
import json
import math
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, TextIO

from ..models import (
    AvailabilityTelemetry,
    DependencyTelemetry,
    EventTelemetry,
    ExceptionInfo,
    ExceptionTelemetry,
    Measurements,
    MetricTelemetry,
    PageViewTelemetry,
    Pairs,
    RequestTelemetry,
    SeverityLevel,
    Telemetry,
    TelemetryOperation,
    TelemetryTagKeys,
    TraceTelemetry,
    as_utc,
)

PROPERTY_KEY_MAX_LENGTH = 150
PROPERTY_VALUE_MAX_LENGTH = 8192

SEVERITY_LEVEL_NAMES = {
    SeverityLevel.VERBOSE: "Verbose",
    SeverityLevel.INFORMATION: "Information",
    SeverityLevel.WARNING: "Warning",
    SeverityLevel.ERROR: "Error",
    SeverityLevel.CRITICAL: "Critical",
}

_quote = json.dumps


def format_time(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with 7 fractional digits."""
    return as_utc(value).strftime("%Y-%m-%dT%H:%M:%S.%f") + "0Z"


def format_duration(value: timedelta) -> str:
    """Render a duration as [-][d.]hh:mm:ss[.fffffff]."""
    microseconds = value // timedelta(microseconds=1)
    sign = "-" if microseconds < 0 else ""
    microseconds = abs(microseconds)

    seconds, fraction = divmod(microseconds, 1_000_000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)

    result = f"{sign}{days}." if days else sign
    result += f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if fraction:
        result += f".{fraction * 10:07d}"
    return result


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _clean_pairs(
    *sources: Pairs | None,
    max_key: int | None = None,
    max_value: int | None = None,
) -> Iterator[tuple[str, str]]:
    """Yield non-blank pairs from all sources, first occurrence of a key wins."""
    seen: set[str] = set()
    for source in sources:
        if not source:
            continue
        for key, value in source:
            if key is not None and max_key is not None:
                key = key[:max_key]
            if value is not None and max_value is not None:
                value = value[:max_value]
            if _is_blank(key) or _is_blank(value):
                continue
            if key in seen:
                continue
            seen.add(key)
            yield key, value


def _operation_tags(operation: TelemetryOperation) -> Pairs:
    return (
        (TelemetryTagKeys.OPERATION_ID, operation.id),
        (TelemetryTagKeys.OPERATION_NAME, operation.name),
        (TelemetryTagKeys.OPERATION_PARENT_ID, operation.parent_id),
    )


class JsonObjectWriter:
    """Writes the members of one JSON object, taking care of separators."""

    __slots__ = ("_writer", "_has_members")

    def __init__(self, writer: TextIO, has_members: bool = False):
        self._writer = writer
        self._has_members = has_members

    def _key(self, key: str) -> None:
        if self._has_members:
            self._writer.write(",")
        self._has_members = True
        self._writer.write('"')
        self._writer.write(key)
        self._writer.write('":')

    def raw(self, key: str, value: str) -> None:
        self._key(key)
        self._writer.write(value)

    def string(self, key: str, value: str) -> None:
        self.raw(key, _quote(value))

    def optional_string(self, key: str, value: str | None) -> None:
        if value:
            self.string(key, value)

    def boolean(self, key: str, value: bool) -> None:
        self.raw(key, "true" if value else "false")

    def number(self, key: str, value: float) -> None:
        self.raw(key, json.dumps(value, allow_nan=False))

    def duration(self, key: str, value: timedelta) -> None:
        self.string(key, format_duration(value))

    def pairs(self, key: str, pairs: Iterable[tuple[str, str]]) -> None:
        """Write a nested string map; nothing at all when it is empty."""
        self.raw_object(key, ((name, _quote(value)) for name, value in pairs))

    def measurements(self, key: str, measurements: Measurements | None) -> None:
        """Write a nested numeric map; blank keys and NaN or infinite values are dropped."""
        if not measurements:
            return
        self.raw_object(
            key,
            (
                (name, _quote(value))
                for name, value in measurements
                if not _is_blank(name) and math.isfinite(value)
            ),
        )

    def raw_object(self, key: str, members: Iterable[tuple[str, str]]) -> None:
        """Write a nested object of already encoded values, opened lazily."""
        opened = False
        for name, value in members:
            if opened:
                self._writer.write(",")
            else:
                self._key(key)
                self._writer.write("{")
                opened = True
            self._writer.write(_quote(name))
            self._writer.write(":")
            self._writer.write(value)
        if opened:
            self._writer.write("}")

    def begin_array(self, key: str) -> None:
        self._key(key)
        self._writer.write("[")

    def end_array(self) -> None:
        self._writer.write("]")


def _write_properties(data: JsonObjectWriter, telemetry: Telemetry) -> None:
    data.pairs(
        "properties",
        _clean_pairs(
            telemetry.properties,
            max_key=PROPERTY_KEY_MAX_LENGTH,
            max_value=PROPERTY_VALUE_MAX_LENGTH,
        ),
    )


# Data writers


def _write_availability(
    writer: TextIO, data: JsonObjectWriter, telemetry: AvailabilityTelemetry
) -> None:
    data.duration("duration", telemetry.duration)
    data.string("id", telemetry.id)
    data.measurements("measurements", telemetry.measurements)
    data.string("message", telemetry.message)
    data.string("name", telemetry.name)
    data.optional_string("runLocation", telemetry.run_location)
    data.boolean("success", telemetry.success)


def _write_dependency(
    writer: TextIO, data: JsonObjectWriter, telemetry: DependencyTelemetry
) -> None:
    data.optional_string("data", telemetry.data)
    data.duration("duration", telemetry.duration)
    data.string("id", telemetry.id)
    data.measurements("measurements", telemetry.measurements)
    data.string("name", telemetry.name)
    data.boolean("success", telemetry.success)
    data.optional_string("resultCode", telemetry.result_code)
    data.optional_string("target", telemetry.target)
    data.optional_string("type", telemetry.type)


def _write_event(
    writer: TextIO, data: JsonObjectWriter, telemetry: EventTelemetry
) -> None:
    data.measurements("measurements", telemetry.measurements)
    data.string("name", telemetry.name)


def _write_exception_info(writer: TextIO, info: ExceptionInfo) -> None:
    writer.write("{")
    entry = JsonObjectWriter(writer)
    entry.boolean("hasFullStack", info.has_full_stack)
    entry.raw("id", str(info.id))
    entry.string("message", info.message)
    entry.raw("outerId", str(info.outer_id))

    if info.parsed_stack is not None:
        entry.begin_array("parsedStack")
        for index, frame in enumerate(info.parsed_stack):
            if index:
                writer.write(",")
            writer.write("{")
            item = JsonObjectWriter(writer)
            item.string("assembly", frame.assembly)
            item.optional_string("fileName", frame.file_name)
            item.raw("level", str(frame.level))
            item.raw("line", str(frame.line))
            item.string("method", frame.method)
            writer.write("}")
        entry.end_array()

    entry.string("typeName", info.type_name)
    writer.write("}")


def _write_exception(
    writer: TextIO, data: JsonObjectWriter, telemetry: ExceptionTelemetry
) -> None:
    data.begin_array("exceptions")
    for index, info in enumerate(telemetry.exceptions):
        if index:
            writer.write(",")
        _write_exception_info(writer, info)
    data.end_array()

    data.measurements("measurements", telemetry.measurements)
    data.optional_string("problemId", telemetry.problem_id)

    if telemetry.severity_level is not None:
        data.string("severityLevel", SEVERITY_LEVEL_NAMES[telemetry.severity_level])


def _write_metric(
    writer: TextIO, data: JsonObjectWriter, telemetry: MetricTelemetry
) -> None:
    data.begin_array("metrics")
    writer.write("{")
    metric = JsonObjectWriter(writer)

    aggregation = telemetry.value_aggregation
    if aggregation is not None:
        metric.raw("count", str(aggregation.count))
        metric.number("max", aggregation.max)
        metric.number("min", aggregation.min)

    metric.string("name", telemetry.name)
    metric.string("ns", telemetry.namespace)
    metric.number("value", telemetry.value)
    writer.write("}")
    data.end_array()


def _is_finite_metric(telemetry: MetricTelemetry) -> bool:
    aggregation = telemetry.value_aggregation
    values = [telemetry.value]
    if aggregation is not None:
        values += [aggregation.max, aggregation.min]
    return all(math.isfinite(value) for value in values)


def _write_page_view(
    writer: TextIO, data: JsonObjectWriter, telemetry: PageViewTelemetry
) -> None:
    data.duration("duration", telemetry.duration)
    data.string("id", telemetry.id)
    data.measurements("measurements", telemetry.measurements)
    data.string("name", telemetry.name)
    data.optional_string("url", telemetry.url)


def _write_request(
    writer: TextIO, data: JsonObjectWriter, telemetry: RequestTelemetry
) -> None:
    data.duration("duration", telemetry.duration)
    data.string("id", telemetry.id)
    data.measurements("measurements", telemetry.measurements)
    data.optional_string("name", telemetry.name)
    data.string("responseCode", telemetry.response_code)
    data.optional_string("source", telemetry.source)
    data.boolean("success", telemetry.success)
    data.string("url", telemetry.url)


def _write_trace(
    writer: TextIO, data: JsonObjectWriter, telemetry: TraceTelemetry
) -> None:
    data.string("message", telemetry.message)
    data.string("severityLevel", SEVERITY_LEVEL_NAMES[telemetry.severity_level])


DataWriter = Callable[[TextIO, JsonObjectWriter, Any], None]


@dataclass(frozen=True)
class EnvelopeFormat:
    """How one telemetry type is written."""

    name: str  # envelope "name"
    base_type: str  # data "baseType"
    write_data: DataWriter
    # The wire protocol places properties inside baseData for some kinds
    # and at the envelope root for others.
    properties_in_base_data: bool = False
    # items it rejects are skipped like unknown kinds
    accepts: Callable[[Any], bool] | None = None


_FORMATS: dict[type, EnvelopeFormat] = {
    AvailabilityTelemetry: EnvelopeFormat(
        "AppAvailabilityResults", "AvailabilityData", _write_availability, True
    ),
    DependencyTelemetry: EnvelopeFormat(
        "AppDependencies", "RemoteDependencyData", _write_dependency
    ),
    EventTelemetry: EnvelopeFormat("AppEvents", "EventData", _write_event),
    ExceptionTelemetry: EnvelopeFormat("AppExceptions", "ExceptionData", _write_exception),
    MetricTelemetry: EnvelopeFormat(
        "AppMetrics", "MetricData", _write_metric, True, _is_finite_metric
    ),
    PageViewTelemetry: EnvelopeFormat("AppPageViews", "PageViewData", _write_page_view),
    RequestTelemetry: EnvelopeFormat("AppRequests", "RequestData", _write_request),
    TraceTelemetry: EnvelopeFormat("AppTraces", "MessageData", _write_trace),
}


def register_format(telemetry_type: type, envelope_format: EnvelopeFormat) -> None:
    """Register (or replace) the format used for telemetry_type and its subclasses."""
    _FORMATS[telemetry_type] = envelope_format


def get_format(telemetry: object) -> EnvelopeFormat | None:
    """Find the format of a telemetry item, None when the kind is unknown."""
    for cls in type(telemetry).__mro__:
        envelope_format = _FORMATS.get(cls)
        if envelope_format is not None:
            return envelope_format
    return None


def _writable_format(telemetry: object) -> EnvelopeFormat | None:
    envelope_format = get_format(telemetry)
    if envelope_format is None:
        return None
    if envelope_format.accepts is not None and not envelope_format.accepts(telemetry):
        return None
    return envelope_format


def serialize(
    writer: TextIO,
    instrumentation_key: str,
    telemetry: Telemetry,
    tags: Pairs | None = None,
) -> bool:
    """Write one envelope.

    Returns False, writing nothing, for unknown kinds and for items their
    format does not accept, such as metrics with NaN or infinite values.
    """
    envelope_format = _writable_format(telemetry)
    if envelope_format is None:
        return False

    writer.write('{"data":{"baseData":{')
    data = JsonObjectWriter(writer)
    envelope_format.write_data(writer, data, telemetry)
    if envelope_format.properties_in_base_data:
        _write_properties(data, telemetry)
    writer.write('},"baseType":')
    writer.write(_quote(envelope_format.base_type))
    writer.write("}")

    # continues the envelope after its "data" member
    root = JsonObjectWriter(writer, has_members=True)
    root.string("iKey", instrumentation_key)
    root.string("name", envelope_format.name)
    if not envelope_format.properties_in_base_data:
        _write_properties(root, telemetry)
    root.pairs("tags", _clean_pairs(_operation_tags(telemetry.operation), telemetry.tags, tags))
    root.string("time", format_time(telemetry.time))
    writer.write("}")
    return True


def serialize_batch(
    writer: TextIO,
    instrumentation_key: str,
    telemetry_items: Sequence[Telemetry],
    tags: Pairs | None = None,
) -> list[int]:
    """Write newline separated envelopes.

    Returns the batch index of every item written, in order, so positions
    reported by the service can be mapped back to the submitted items.
    """
    written: list[int] = []
    for index, telemetry in enumerate(telemetry_items):
        if _writable_format(telemetry) is None:
            continue
        if written:
            writer.write("\n")
        serialize(writer, instrumentation_key, telemetry, tags)
        written.append(index)
    return written


def dumps(
    instrumentation_key: str,
    telemetry: Telemetry,
    tags: Pairs | None = None,
) -> bytes:
    """Serialize one telemetry item to UTF-8 bytes; empty when nothing was written."""
    buffer = io.StringIO()
    serialize(buffer, instrumentation_key, telemetry, tags)
    return buffer.getvalue().encode("utf-8")
