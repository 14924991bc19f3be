"""Client bootstrap from settings."""

import httpx

from .client import TelemetryClient
from .config import TelemetrySettings
from .logging_config import get_logger, setup_logging
from .models import Pairs, TelemetryTagKeys
from .publish import HttpTelemetryPublisher, TokenProvider

logger = get_logger(__name__)


def client_tags(settings: TelemetrySettings) -> Pairs:
    """Cloud role tags attached to everything the client publishes."""
    tags = []
    if settings.cloud_role:
        tags.append((TelemetryTagKeys.CLOUD_ROLE, settings.cloud_role))
    if settings.cloud_role_instance:
        tags.append((TelemetryTagKeys.CLOUD_ROLE_INSTANCE, settings.cloud_role_instance))
    return tuple(tags)


def create_telemetry_client(
    settings: TelemetrySettings,
    http_client: httpx.AsyncClient,
    get_access_token: TokenProvider | None = None,
    configure_logging: bool = False,
) -> TelemetryClient:
    """Build a client with a single HTTP publisher.

    The caller owns http_client and closes it.
    """
    if configure_logging:
        setup_logging(settings.log_level)

    publisher = HttpTelemetryPublisher(
        http_client,
        settings.ingestion_endpoint,
        settings.instrumentation_key,
        get_access_token=get_access_token,
        timeout=settings.publish_timeout,
    )

    client = TelemetryClient([publisher], tags=client_tags(settings))
    logger.info("Telemetry client ready, publishing to %s", publisher.url)
    return client
