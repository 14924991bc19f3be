"""Tests for TelemetryClient."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from conftest import FIXED_TIME, INGESTION_ENDPOINT, INSTRUMENTATION_KEY, CountingPublisher
from monitor_telemetry.client import TelemetryClient
from monitor_telemetry.dependency import DependencyTypes
from monitor_telemetry.models import (
    DependencyTelemetry,
    ExceptionTelemetry,
    HttpPublishResult,
    MetricTelemetry,
    MetricValueAggregation,
    PublishResult,
    SeverityLevel,
    TelemetryOperation,
    TraceTelemetry,
)
from monitor_telemetry.publish import HttpTelemetryPublisher, track_publish_result


class SlowPublisher(CountingPublisher):
    """Publisher that finishes after a delay."""

    def __init__(self, delay: float):
        super().__init__()
        self._delay = delay

    async def publish(self, telemetry_items, tags=None, cancellation=None):
        await asyncio.sleep(self._delay)
        return await super().publish(telemetry_items, tags, cancellation)


class TestConstruction:
    """Tests for constructor validation."""

    def test_publishers_required(self):
        """Test a missing publisher list is rejected."""
        with pytest.raises(ValueError, match="publishers"):
            TelemetryClient(None)

    def test_publishers_not_empty(self):
        """Test an empty publisher list is rejected."""
        with pytest.raises(ValueError, match="publishers"):
            TelemetryClient([])

    def test_publisher_not_none(self, counting_publisher):
        """Test None entries are rejected."""
        with pytest.raises(ValueError, match=r"publishers\[1\]"):
            TelemetryClient([counting_publisher, None])

    def test_add_none(self, counting_publisher):
        """Test adding None is a programming error."""
        client = TelemetryClient([counting_publisher])
        with pytest.raises(ValueError):
            client.add(None)


class TestPublish:
    """Tests for publish_async."""

    @pytest.mark.asyncio
    async def test_empty_publish_is_noop(self, counting_publisher):
        """Test nothing is published when nothing was added."""
        client = TelemetryClient([counting_publisher])

        results = await client.publish_async()

        assert len(results) == 0
        assert counting_publisher.calls == []

    @pytest.mark.asyncio
    async def test_publish_drains_once(self, counting_publisher, trace):
        """Test every publisher gets the same batch and the buffer empties."""
        other = CountingPublisher()
        client = TelemetryClient([counting_publisher, other], tags=[("ai.cloud.role", "api")])
        client.add(trace)
        client.add(trace)

        results = await client.publish_async()

        assert len(results) == 2
        assert counting_publisher.calls[0][0] == [trace, trace]
        assert other.calls[0][0] == [trace, trace]
        assert counting_publisher.calls[0][1] == (("ai.cloud.role", "api"),)
        assert await client.publish_async() == ()

    @pytest.mark.asyncio
    async def test_results_in_publisher_order(self, trace):
        """Test results follow configured order regardless of completion order."""
        slow = SlowPublisher(0.05)
        fast = CountingPublisher(success=False)
        client = TelemetryClient([slow, fast])
        client.add(trace)

        results = await client.publish_async()

        assert [r.success for r in results] == [True, False]

    @pytest.mark.asyncio
    async def test_failing_publisher_does_not_drop_others(self, trace):
        """Test a publisher raising yields a failed result for its slot only."""
        broken = CountingPublisher(error=RuntimeError("boom"))
        healthy = CountingPublisher()
        client = TelemetryClient([broken, healthy])
        client.add(trace)

        results = await client.publish_async()

        assert len(results) == 2
        assert not results[0].success
        assert results[0].count == 1
        assert results[1].success

    @pytest.mark.asyncio
    async def test_mock_publisher(self, trace):
        """Test publishing through a mocked publisher."""
        publisher = Mock()
        publisher.publish = AsyncMock(
            return_value=PublishResult(
                time=FIXED_TIME, duration=timedelta(0), success=True, count=1
            )
        )
        client = TelemetryClient([publisher])
        client.add(trace)

        results = await client.publish_async()

        publisher.publish.assert_awaited_once_with([trace], (), None)
        assert results[0].success

    @pytest.mark.asyncio
    async def test_cancellation_passed_to_publishers(self, counting_publisher, trace):
        """Test the cancellation event reaches every publisher."""
        client = TelemetryClient([counting_publisher])
        client.add(trace)
        cancellation = asyncio.Event()

        await client.publish_async(cancellation)

        assert counting_publisher.calls[0][2] is cancellation

    @pytest.mark.asyncio
    async def test_publish_over_http(self, http_client, ingestion):
        """Test end to end publishing through the HTTP publisher."""
        publisher = HttpTelemetryPublisher(http_client, INGESTION_ENDPOINT, INSTRUMENTATION_KEY)
        client = TelemetryClient([publisher])
        client.track_trace("hello")

        (result,) = await client.publish_async()

        assert result.success
        assert ingestion.envelopes()[0]["data"]["baseData"]["message"] == "hello"


class TestScopes:
    """Tests for operation scopes on the client."""

    def test_records_carry_current_operation(self, counting_publisher):
        """Test tracked records are stamped with the scope's operation."""
        client = TelemetryClient([counting_publisher])
        client.operation = TelemetryOperation(id="trace", name="job")

        previous = client.activity_scope_begin("a1")
        client.track_event("inside")
        client.activity_scope_end(previous)
        client.track_event("outside")

        inside, outside = client._buffer.drain()
        assert inside.operation == TelemetryOperation(id="trace", name="job", parent_id="a1")
        assert outside.operation == TelemetryOperation(id="trace", name="job")

    def test_timed_scope(self, counting_publisher):
        """Test timed scope begin and end."""
        client = TelemetryClient([counting_publisher])

        scope = client.activity_scope_begin_timed(lambda: "t1")
        assert client.operation.parent_id == "t1"
        duration = client.activity_scope_end_timed(scope.previous_operation, scope.start_tick)

        assert duration >= timedelta(0)
        assert client.operation.parent_id is None

    def test_activity(self, counting_publisher):
        """Test the activity context manager."""
        client = TelemetryClient([counting_publisher])

        with client.activity(lambda: "act") as handle:
            client.track_trace("work")

        (record,) = client._buffer.drain()
        assert record.operation.parent_id == "act"
        assert handle.id == "act"
        assert handle.duration is not None


class TestTrack:
    """Tests for track helpers."""

    def test_track_dependency_http(self, counting_publisher):
        """Test HTTP dependency naming."""
        client = TelemetryClient([counting_publisher])

        client.track_dependency_http(
            timedelta(milliseconds=5),
            "d1",
            "get",
            "https://acct.blob.core.windows.net/container/blob?x=1",
            200,
            True,
            time=FIXED_TIME,
        )

        (record,) = client._buffer.drain()
        assert isinstance(record, DependencyTelemetry)
        assert record.name == "GET /container/blob"
        assert record.data == "https://acct.blob.core.windows.net/container/blob?x=1"
        assert record.target == "acct.blob.core.windows.net"
        assert record.result_code == "200"
        assert record.type == DependencyTypes.AZURE_BLOB
        assert record.time == FIXED_TIME

    def test_track_dependency_sql(self, counting_publisher):
        """Test SQL dependencies."""
        client = TelemetryClient([counting_publisher])

        client.track_dependency_sql(timedelta(0), "s1", "srv", "db", "SELECT 1", 0)
        client.track_dependency_sql(timedelta(0), "s2", "srv", "db", "SELECT 1", -2)

        ok, failed = client._buffer.drain()
        assert ok.name == "srv | db"
        assert ok.success and ok.result_code is None
        assert ok.type == DependencyTypes.SQL
        assert not failed.success and failed.result_code == "-2"

    def test_track_dependency_in_proc(self, counting_publisher):
        """Test in-process dependency type names."""
        client = TelemetryClient([counting_publisher])

        client.track_dependency_in_proc(timedelta(0), "p1", "compute", True)
        client.track_dependency_in_proc(timedelta(0), "p2", "compute", True, type_name="Cache")

        plain, typed = client._buffer.drain()
        assert plain.type == "InProc"
        assert typed.type == "InProc | Cache"

    def test_track_exception(self, counting_publisher):
        """Test exceptions are converted with their cause chain."""
        client = TelemetryClient([counting_publisher])
        try:
            try:
                raise KeyError("k")
            except KeyError as e:
                raise ValueError("bad value") from e
        except ValueError as e:
            client.track_exception(e, severity_level=SeverityLevel.ERROR)

        (record,) = client._buffer.drain()
        assert isinstance(record, ExceptionTelemetry)
        assert [info.type_name for info in record.exceptions] == ["ValueError", "KeyError"]
        assert record.severity_level == SeverityLevel.ERROR

    def test_track_metric(self, counting_publisher):
        """Test metrics with aggregation."""
        client = TelemetryClient([counting_publisher])
        aggregation = MetricValueAggregation(count=2, max=3.0, min=1.0)

        client.track_metric("app", "latency", 2.0, value_aggregation=aggregation)

        (record,) = client._buffer.drain()
        assert isinstance(record, MetricTelemetry)
        assert record.value_aggregation == aggregation

    def test_track_trace_default_severity(self, counting_publisher):
        """Test traces default to Information."""
        client = TelemetryClient([counting_publisher])

        client.track_trace("hello")

        (record,) = client._buffer.drain()
        assert isinstance(record, TraceTelemetry)
        assert record.severity_level == SeverityLevel.INFORMATION

    def test_track_other_kinds(self, counting_publisher):
        """Test the remaining helpers queue one record each."""
        client = TelemetryClient([counting_publisher])

        client.track_availability(timedelta(seconds=1), "a1", "ping", "ok", True)
        client.track_page_view(timedelta(seconds=1), "p1", "Home", url="https://e.com/")
        client.track_request(timedelta(seconds=1), "r1", "https://e.com/", "200", True)
        client.track_dependency(timedelta(seconds=1), "d1", "call", True)

        kinds = [type(record).__name__ for record in client._buffer.drain()]
        assert kinds == [
            "AvailabilityTelemetry",
            "PageViewTelemetry",
            "RequestTelemetry",
            "DependencyTelemetry",
        ]


class TestTrackPublishResult:
    """Tests for track_publish_result."""

    def test_publish_result_as_dependency(self, counting_publisher):
        """Test a publish result becomes an Azure Monitor dependency."""
        client = TelemetryClient([counting_publisher])
        result = HttpPublishResult(
            time=FIXED_TIME,
            duration=timedelta(milliseconds=20),
            success=True,
            count=4,
            url="https://dc.in.applicationinsights.azure.com/v2/track",
            status_code=200,
        )

        track_publish_result(client, "pub1", result, measurements=[("Batch", 1.0)])

        (record,) = client._buffer.drain()
        assert record.name == "POST /v2/track"
        assert record.type == DependencyTypes.AZURE_MONITOR
        assert record.target == "dc.in.applicationinsights.azure.com"
        assert record.result_code == "200"
        assert record.duration == timedelta(milliseconds=20)
        assert record.time == FIXED_TIME
        assert record.measurements == (("Batch", 1.0), ("Count", 4.0))
