"""Record publish outcomes as dependency telemetry."""

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from ..dependency.types import DependencyTypes
from ..models import DependencyTelemetry, HttpPublishResult, Measurements, Pairs

if TYPE_CHECKING:
    from ..client import TelemetryClient


def track_publish_result(
    client: "TelemetryClient",
    id: str,
    result: HttpPublishResult,
    measurements: Measurements | None = None,
    properties: Pairs | None = None,
    tags: Pairs | None = None,
) -> None:
    """Add a publish result to client as an "Azure Monitor" dependency call.

    The number of published items is attached as the "Count" measurement.
    """
    parts = urlsplit(result.url)
    count = ("Count", float(result.count))

    client.add(
        DependencyTelemetry(
            time=result.time,
            operation=client.operation,
            duration=result.duration,
            id=id,
            name=f"POST {parts.path}",
            success=result.success,
            data=result.url,
            result_code=str(result.status_code) if result.status_code is not None else None,
            target=parts.hostname,
            type=DependencyTypes.AZURE_MONITOR,
            measurements=(*(measurements or ()), count),
            properties=properties,
            tags=tags,
        )
    )
