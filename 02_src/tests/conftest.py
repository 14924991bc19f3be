"""Pytest configuration and fixtures."""

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

INGESTION_ENDPOINT = "https://dc.in.applicationinsights.azure.com/"
INSTRUMENTATION_KEY = "0f3a9c2e-5b1d-4e7f-8a6c-2d4b9e1f7c35"
FIXED_TIME = datetime(2024, 5, 17, 8, 30, 15, 123456, tzinfo=timezone.utc)


class IngestionService:
    """Fake track endpoint for httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: str | None = None

    def respond(self, status_code: int = 200, body: dict | str | None = None) -> None:
        """Set the response returned for the next requests."""
        self.status_code = status_code
        self.body = body if body is None or isinstance(body, str) else json.dumps(body)

    def envelopes(self, index: int = -1) -> list[dict]:
        """Decode the envelopes posted in a request."""
        content = self.requests[index].content.decode("utf-8")
        return [json.loads(line) for line in content.split("\n") if line]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.body
        if body is None:
            count = len(request.content.decode("utf-8").split("\n"))
            body = json.dumps({"itemsReceived": count, "itemsAccepted": count, "errors": []})
        return httpx.Response(self.status_code, text=body)


class CountingPublisher:
    """Publisher double that records every call."""

    def __init__(self, success: bool = True, error: Exception | None = None):
        self.calls: list[tuple] = []
        self._success = success
        self._error = error

    async def publish(self, telemetry_items, tags=None, cancellation=None):
        from monitor_telemetry.models import PublishResult

        self.calls.append((list(telemetry_items), tags, cancellation))
        if self._error is not None:
            raise self._error
        return PublishResult(
            time=FIXED_TIME,
            duration=timedelta(milliseconds=1),
            success=self._success,
            count=len(telemetry_items),
        )


@pytest.fixture
def fixed_time():
    """Fixed UTC timestamp for records."""
    return FIXED_TIME


@pytest.fixture
def ingestion():
    """Fake ingestion service answering with full acceptance."""
    return IngestionService()


@pytest_asyncio.fixture
async def http_client(ingestion):
    """httpx client routed to the fake ingestion service."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(ingestion))
    yield client
    await client.aclose()


@pytest.fixture
def publisher(http_client):
    """Unauthenticated HTTP publisher."""
    from monitor_telemetry.publish import HttpTelemetryPublisher

    return HttpTelemetryPublisher(http_client, INGESTION_ENDPOINT, INSTRUMENTATION_KEY)


@pytest.fixture
def counting_publisher():
    """Create call-counting publisher."""
    return CountingPublisher()


@pytest.fixture
def trace(fixed_time):
    """Minimal trace record."""
    from monitor_telemetry.models import TraceTelemetry

    return TraceTelemetry(time=fixed_time, message="Test")
