"""TelemetryClient: buffering, ambient operation and publish fan-out."""

import asyncio
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timedelta
from urllib.parse import urlsplit

from ..buffer import ITelemetryBuffer, TelemetryBuffer
from ..context import ActivityHandle, IOperationPropagator, OperationPropagator, utcnow
from ..dependency.types import DependencyTypes, detect_dependency_type
from ..logging_config import get_logger
from ..models import (
    ActivityScope,
    AvailabilityTelemetry,
    DependencyTelemetry,
    EventTelemetry,
    ExceptionTelemetry,
    Measurements,
    MetricTelemetry,
    MetricValueAggregation,
    PageViewTelemetry,
    Pairs,
    PublishResult,
    RequestTelemetry,
    SeverityLevel,
    Telemetry,
    TelemetryOperation,
    TraceTelemetry,
)
from ..publish import ITelemetryPublisher
from ..utils import convert_exception

logger = get_logger(__name__)

_NO_RESULTS: tuple[PublishResult, ...] = ()


class TelemetryClient:
    """Collects telemetry and publishes it through every configured publisher.

    Records are stamped with the operation current in the calling flow.
    Nothing is sent until publish_async is awaited.
    """

    def __init__(
        self,
        publishers: Sequence[ITelemetryPublisher],
        tags: Pairs | None = None,
        propagator: IOperationPropagator | None = None,
        buffer: ITelemetryBuffer | None = None,
    ):
        if publishers is None:
            raise ValueError("publishers is required")
        if len(publishers) == 0:
            raise ValueError("publishers must not be empty")
        for index, publisher in enumerate(publishers):
            if publisher is None:
                raise ValueError(f"publishers[{index}] is None")

        self._publishers = tuple(publishers)
        self._tags: tuple[tuple[str, str], ...] = tuple(tags or ())
        self._propagator = propagator or OperationPropagator()
        self._buffer = buffer or TelemetryBuffer()

        logger.debug("Telemetry client created with %d publisher(s)", len(self._publishers))

    @property
    def operation(self) -> TelemetryOperation:
        """Operation of the current logical flow."""
        return self._propagator.operation

    @operation.setter
    def operation(self, value: TelemetryOperation) -> None:
        self._propagator.operation = value

    @property
    def publishers(self) -> tuple[ITelemetryPublisher, ...]:
        return self._publishers

    def add(self, telemetry: Telemetry) -> None:
        """Queue a telemetry item for the next publish."""
        if telemetry is None:
            raise ValueError("telemetry is required")
        self._buffer.add(telemetry)

    async def publish_async(
        self, cancellation: asyncio.Event | None = None
    ) -> Sequence[PublishResult]:
        """Publish everything queued so far.

        Returns one result per publisher in configured order, or an empty
        sequence without calling any publisher when nothing is queued.
        """
        if self._buffer.is_empty():
            return _NO_RESULTS

        items = self._buffer.drain()
        if not items:
            return _NO_RESULTS

        time = utcnow()
        results = await asyncio.gather(
            *[
                publisher.publish(items, self._tags, cancellation)
                for publisher in self._publishers
            ],
            return_exceptions=True,
        )

        published: list[PublishResult] = []
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error("Error in publisher %s: %s", i, result)
                result = PublishResult(
                    time=time, duration=timedelta(0), success=False, count=len(items)
                )
            elif isinstance(result, BaseException):
                raise result
            published.append(result)

        return published

    # Activity scopes

    def activity_scope_begin(self, activity_id: str) -> TelemetryOperation:
        """Make activity_id the parent operation; returns the operation to restore."""
        return self._propagator.scope_begin(activity_id)

    def activity_scope_begin_timed(self, get_activity_id: Callable[[], str]) -> ActivityScope:
        return self._propagator.scope_begin_timed(get_activity_id)

    def activity_scope_end(self, previous_operation: TelemetryOperation) -> None:
        self._propagator.scope_end(previous_operation)

    def activity_scope_end_timed(
        self, previous_operation: TelemetryOperation, start_tick: int
    ) -> timedelta:
        """Restore the previous operation and return the scope duration."""
        return self._propagator.scope_end_timed(previous_operation, start_tick)

    @contextmanager
    def activity(self, get_activity_id: Callable[[], str]) -> Iterator[ActivityHandle]:
        """Timed activity scope that always ends, even on error."""
        with self._propagator.activity(get_activity_id) as handle:
            yield handle

    # Track helpers

    def track_availability(
        self,
        duration: timedelta,
        id: str,
        name: str,
        message: str,
        success: bool,
        run_location: str | None = None,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        self.add(
            AvailabilityTelemetry(
                time=time or utcnow(),
                operation=self.operation,
                duration=duration,
                id=id,
                message=message,
                name=name,
                success=success,
                run_location=run_location,
                measurements=measurements,
                properties=properties,
                tags=tags,
            )
        )

    def track_dependency(
        self,
        duration: timedelta,
        id: str,
        name: str,
        success: bool,
        result_code: str | None = None,
        data: str | None = None,
        target: str | None = None,
        type: str | None = None,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        self.add(
            DependencyTelemetry(
                time=time or utcnow(),
                operation=self.operation,
                duration=duration,
                id=id,
                name=name,
                success=success,
                result_code=result_code,
                data=data,
                target=target,
                type=type,
                measurements=measurements,
                properties=properties,
                tags=tags,
            )
        )

    def track_dependency_http(
        self,
        duration: timedelta,
        id: str,
        method: str,
        url: str,
        status_code: int,
        success: bool,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        """Track an outbound HTTP call as "METHOD /path" against the URL host."""
        url = str(url)
        parts = urlsplit(url)
        self.track_dependency(
            duration,
            id,
            f"{method.upper()} {parts.path or '/'}",
            success,
            result_code=str(status_code),
            data=url,
            target=parts.hostname,
            type=detect_dependency_type(url),
            measurements=measurements,
            properties=properties,
            tags=tags,
            time=time,
        )

    def track_dependency_in_proc(
        self,
        duration: timedelta,
        id: str,
        name: str,
        success: bool,
        type_name: str | None = None,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        dependency_type = DependencyTypes.IN_PROC
        if type_name and type_name.strip():
            dependency_type = f"{DependencyTypes.IN_PROC} | {type_name}"

        self.track_dependency(
            duration,
            id,
            name,
            success,
            type=dependency_type,
            measurements=measurements,
            properties=properties,
            tags=tags,
            time=time,
        )

    def track_dependency_sql(
        self,
        duration: timedelta,
        id: str,
        data_source: str,
        database: str,
        command_text: str,
        result_code: int,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        """Track a SQL command; negative result codes mean failure, 0 is omitted."""
        full_name = f"{data_source} | {database}"
        self.track_dependency(
            duration,
            id,
            full_name,
            result_code >= 0,
            result_code=str(result_code) if result_code else None,
            data=command_text,
            target=full_name,
            type=DependencyTypes.SQL,
            measurements=measurements,
            properties=properties,
            tags=tags,
            time=time,
        )

    def track_event(
        self,
        name: str,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        self.add(
            EventTelemetry(
                time=time or utcnow(),
                operation=self.operation,
                name=name,
                measurements=measurements,
                properties=properties,
                tags=tags,
            )
        )

    def track_exception(
        self,
        exception: BaseException,
        problem_id: str | None = None,
        severity_level: SeverityLevel | None = None,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        self.add(
            ExceptionTelemetry(
                time=time or utcnow(),
                operation=self.operation,
                exceptions=convert_exception(exception),
                problem_id=problem_id,
                severity_level=severity_level,
                measurements=measurements,
                properties=properties,
                tags=tags,
            )
        )

    def track_metric(
        self,
        namespace: str,
        name: str,
        value: float,
        value_aggregation: MetricValueAggregation | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        self.add(
            MetricTelemetry(
                time=time or utcnow(),
                operation=self.operation,
                namespace=namespace,
                name=name,
                value=value,
                value_aggregation=value_aggregation,
                properties=properties,
                tags=tags,
            )
        )

    def track_page_view(
        self,
        duration: timedelta,
        id: str,
        name: str,
        url: str | None = None,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        self.add(
            PageViewTelemetry(
                time=time or utcnow(),
                operation=self.operation,
                duration=duration,
                id=id,
                name=name,
                url=url,
                measurements=measurements,
                properties=properties,
                tags=tags,
            )
        )

    def track_request(
        self,
        duration: timedelta,
        id: str,
        url: str,
        response_code: str,
        success: bool,
        name: str | None = None,
        source: str | None = None,
        measurements: Measurements | None = None,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        self.add(
            RequestTelemetry(
                time=time or utcnow(),
                operation=self.operation,
                duration=duration,
                id=id,
                url=str(url),
                response_code=response_code,
                success=success,
                name=name,
                source=source,
                measurements=measurements,
                properties=properties,
                tags=tags,
            )
        )

    def track_trace(
        self,
        message: str,
        severity_level: SeverityLevel = SeverityLevel.INFORMATION,
        properties: Pairs | None = None,
        tags: Pairs | None = None,
        time: datetime | None = None,
    ) -> None:
        self.add(
            TraceTelemetry(
                time=time or utcnow(),
                operation=self.operation,
                message=message,
                severity_level=severity_level,
                properties=properties,
                tags=tags,
            )
        )
