"""HTTP publisher for the v2 track ingestion API."""

import asyncio
import io
import time
import uuid
from collections.abc import Awaitable, Callable, Coroutine, Sequence
from typing import Any, NamedTuple, Protocol
from urllib.parse import urljoin, urlsplit

import httpx
from pydantic import ValidationError

from ..config import DEFAULT_PUBLISH_TIMEOUT
from ..context import ticks_to_duration, utcnow
from ..logging_config import get_logger
from ..models import (
    BearerToken,
    HttpPublishResult,
    Pairs,
    PublishError,
    PublishResponse,
    PublishResult,
    Telemetry,
)
from ..serialization import serialize_batch

logger = get_logger(__name__)

AUTHORIZATION_SCOPE = "https://monitor.azure.com//.default"
TRACK_PATH = "v2/track"
CONTENT_TYPE = "application/x-json-stream"
CANCELLED_RESPONSE = "cancelled"

TokenProvider = Callable[[asyncio.Event | None], Awaitable[BearerToken]]


class ITelemetryPublisher(Protocol):
    """Delivers batches of telemetry to an ingestion service."""

    async def publish(
        self,
        telemetry_items: Sequence[Telemetry],
        tags: Pairs | None = None,
        cancellation: asyncio.Event | None = None,
    ) -> PublishResult:
        """Publish a batch. Remote failures are reported in the result, never raised."""
        ...


class _Outcome(NamedTuple):
    status_code: int | None
    response: str | None
    success: bool
    errors: tuple[PublishError, ...] = ()


def _validate_endpoint(ingestion_endpoint: str) -> str:
    parts = urlsplit(ingestion_endpoint or "")
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(
            f"ingestion_endpoint must be an absolute http(s) URL: {ingestion_endpoint!r}"
        )
    base = ingestion_endpoint if ingestion_endpoint.endswith("/") else ingestion_endpoint + "/"
    return urljoin(base, TRACK_PATH)


def _validate_instrumentation_key(instrumentation_key: str) -> str:
    try:
        key = uuid.UUID(str(instrumentation_key))
    except ValueError as e:
        raise ValueError(
            f"instrumentation_key must be a GUID: {instrumentation_key!r}"
        ) from e
    if key.int == 0:
        raise ValueError("instrumentation_key must not be the empty GUID")
    return str(key)


class HttpTelemetryPublisher:
    """Publishes telemetry with one POST per batch.

    When get_access_token is given, requests carry a bearer token. The token
    is cached and refreshed only once it has expired.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        ingestion_endpoint: str,
        instrumentation_key: str,
        get_access_token: TokenProvider | None = None,
        tags: Pairs | None = None,
        timeout: float = DEFAULT_PUBLISH_TIMEOUT,
        clock: Callable[[], int] = time.perf_counter_ns,
        clock_frequency: int = 1_000_000_000,
        wall_clock=utcnow,
    ):
        if http_client is None:
            raise ValueError("http_client is required")

        self._url = _validate_endpoint(ingestion_endpoint)
        self._instrumentation_key = _validate_instrumentation_key(instrumentation_key)
        self._http_client = http_client
        self._get_access_token = get_access_token
        self._tags: tuple[tuple[str, str], ...] = tuple(tags or ())
        self._timeout = timeout
        self._clock = clock
        self._clock_frequency = clock_frequency
        self._wall_clock = wall_clock

        self._token: BearerToken | None = None
        self._token_lock = asyncio.Lock()

        logger.debug(
            "HTTP publisher created for %s (authenticated: %s)",
            self._url,
            get_access_token is not None,
        )

    @property
    def url(self) -> str:
        """Track URL batches are posted to."""
        return self._url

    async def publish(
        self,
        telemetry_items: Sequence[Telemetry],
        tags: Pairs | None = None,
        cancellation: asyncio.Event | None = None,
    ) -> HttpPublishResult:
        """Serialize and POST a batch, then parse the ingestion response."""
        start_time = self._wall_clock()
        start_tick = self._clock()

        try:
            outcome = await self._until_cancelled(
                self._send(telemetry_items, tags, cancellation), cancellation
            )
        except httpx.HTTPError as e:
            logger.warning("Publish to %s failed: %s", self._url, e)
            outcome = _Outcome(None, str(e) or type(e).__name__, False)

        if outcome is None:
            logger.warning("Publish to %s cancelled", self._url)
            outcome = _Outcome(None, CANCELLED_RESPONSE, False)

        duration = ticks_to_duration(self._clock() - start_tick, self._clock_frequency)

        return HttpPublishResult(
            time=start_time,
            duration=duration,
            success=outcome.success,
            count=len(telemetry_items),
            url=self._url,
            status_code=outcome.status_code,
            response=outcome.response,
            errors=outcome.errors,
        )

    async def _until_cancelled(
        self,
        coro: Coroutine[Any, Any, _Outcome],
        cancellation: asyncio.Event | None,
    ) -> _Outcome | None:
        """Await coro unless cancellation fires first; None means cancelled."""
        if cancellation is None:
            return await coro

        if cancellation.is_set():
            coro.close()
            return None

        send = asyncio.ensure_future(coro)
        cancelled = asyncio.ensure_future(cancellation.wait())
        try:
            await asyncio.wait({send, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (send, cancelled):
                if not task.done():
                    task.cancel()

        if send.done() and not send.cancelled():
            return send.result()

        # let the abandoned request unwind before reporting
        await asyncio.wait({send})
        return None

    async def _send(
        self,
        telemetry_items: Sequence[Telemetry],
        tags: Pairs | None,
        cancellation: asyncio.Event | None,
    ) -> _Outcome:
        body = io.StringIO()
        written = serialize_batch(
            body,
            self._instrumentation_key,
            telemetry_items,
            (*(tags or ()), *self._tags),
        )

        # nothing the service understands, so nothing to send
        if not written:
            return _Outcome(None, None, True)

        headers = {"Content-Type": CONTENT_TYPE}
        if self._get_access_token is not None:
            token = await self._get_token(cancellation)
            headers["Authorization"] = f"Bearer {token.value}"

        response = await self._http_client.post(
            self._url,
            content=body.getvalue().encode("utf-8"),
            headers=headers,
            timeout=self._timeout,
        )

        return self._parse_response(response, written)

    async def _get_token(self, cancellation: asyncio.Event | None) -> BearerToken:
        async with self._token_lock:
            if self._token is None or self._token.is_expired(self._wall_clock()):
                logger.debug("Requesting access token for %s", AUTHORIZATION_SCOPE)
                self._token = await self._get_access_token(cancellation)
            return self._token

    def _parse_response(self, response: httpx.Response, written: list[int]) -> _Outcome:
        status_code = response.status_code
        text = response.text

        # 206 carries the same body as 200 and lists the rejected items
        if status_code not in (200, 206):
            logger.warning("Ingestion at %s returned %s: %s", self._url, status_code, text)
            return _Outcome(status_code, text, False)

        try:
            parsed = PublishResponse.model_validate_json(text)
        except ValidationError as e:
            logger.warning("Unparseable ingestion response from %s: %s", self._url, e)
            return _Outcome(status_code, text, False)

        errors = tuple(self._map_error(error, written) for error in parsed.errors)
        if errors:
            logger.warning(
                "Ingestion at %s rejected %d of %d items",
                self._url,
                len(errors),
                parsed.items_received,
            )

        success = (
            status_code == 200
            and parsed.items_accepted == parsed.items_received
            and not errors
        )
        return _Outcome(status_code, text, success, errors)

    @staticmethod
    def _map_error(error: PublishError, written: list[int]) -> PublishError:
        """Point the error at the submitted item, skipping unserializable ones."""
        if error.index < len(written) and written[error.index] != error.index:
            return error.model_copy(update={"index": written[error.index]})
        return error
