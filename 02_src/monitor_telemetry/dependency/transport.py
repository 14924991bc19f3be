"""httpx transport that records every request as dependency telemetry."""

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx

from ..context import ticks_to_duration, utcnow

if TYPE_CHECKING:
    from ..client import TelemetryClient


class TelemetryTrackedTransport(httpx.AsyncBaseTransport):
    """Wraps another transport and tracks each completed request.

    Requests that fail without a response are not tracked; the error
    propagates to the caller unchanged.
    """

    def __init__(
        self,
        client: "TelemetryClient",
        get_activity_id: Callable[[], str],
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = client
        self._get_activity_id = get_activity_id
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        start_tick = time.perf_counter_ns()
        start_time = utcnow()
        activity_id = self._get_activity_id()

        response = await self._transport.handle_async_request(request)

        duration = ticks_to_duration(time.perf_counter_ns() - start_tick, 1_000_000_000)
        self._client.track_dependency_http(
            duration,
            activity_id,
            request.method,
            str(request.url),
            response.status_code,
            response.is_success,
            time=start_time,
        )
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()
