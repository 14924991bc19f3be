"""Dependency type names and detection from outbound URLs."""

from types import MappingProxyType
from urllib.parse import urlsplit


class DependencyTypes:
    """Well-known values of DependencyTelemetry.type."""

    AI = "Http (tracked component)"
    AZURE_BLOB = "Azure blob"
    AZURE_COSMOS_DB = "Azure DocumentDB"
    AZURE_EVENT_HUBS = "Azure Event Hubs"
    AZURE_IOT_HUB = "Azure IoT Hub"
    AZURE_MONITOR = "Azure Monitor"
    AZURE_QUEUE = "Azure queue"
    AZURE_SEARCH = "Azure Search"
    AZURE_SERVICE_BUS = "Azure Service Bus"
    AZURE_TABLE = "Azure table"
    HTTP = "Http"
    IN_PROC = "InProc"
    QUEUE_MESSAGE = "Queue Message"
    SQL = "SQL"
    WCF_SERVICE = "WCF Service"
    WEB_SERVICE = "Web Service"


_CLOUD_SUFFIXES = (
    "core.windows.net",
    "core.chinacloudapi.cn",
    "core.cloudapi.de",
    "core.usgovcloudapi.net",
)


def _storage(service: str, dependency_type: str) -> list[tuple[str, str]]:
    return [(f".{service}.{suffix}", dependency_type) for suffix in _CLOUD_SUFFIXES]


# Host with its first label removed -> dependency type
WELL_KNOWN_DOMAINS = MappingProxyType(
    dict(
        [
            *_storage("blob", DependencyTypes.AZURE_BLOB),
            (".documents.azure.com", DependencyTypes.AZURE_COSMOS_DB),
            (".documents.chinacloudapi.cn", DependencyTypes.AZURE_COSMOS_DB),
            (".documents.cloudapi.de", DependencyTypes.AZURE_COSMOS_DB),
            (".documents.usgovcloudapi.net", DependencyTypes.AZURE_COSMOS_DB),
            (".azure-devices.net", DependencyTypes.AZURE_IOT_HUB),
            (".applicationinsights.azure.com", DependencyTypes.AZURE_MONITOR),
            *_storage("queue", DependencyTypes.AZURE_QUEUE),
            (".search.windows.net", DependencyTypes.AZURE_SEARCH),
            (".servicebus.windows.net", DependencyTypes.AZURE_SERVICE_BUS),
            (".servicebus.chinacloudapi.cn", DependencyTypes.AZURE_SERVICE_BUS),
            (".servicebus.cloudapi.de", DependencyTypes.AZURE_SERVICE_BUS),
            (".servicebus.usgovcloudapi.net", DependencyTypes.AZURE_SERVICE_BUS),
            *_storage("table", DependencyTypes.AZURE_TABLE),
        ]
    )
)


def detect_dependency_type(url: str) -> str | None:
    """Map an http(s) URL to a dependency type; None for other schemes."""
    parts = urlsplit(str(url))
    if parts.scheme not in ("http", "https"):
        return None

    host = (parts.hostname or "").lower()
    _, dot, rest = host.partition(".")
    if dot:
        return WELL_KNOWN_DOMAINS.get("." + rest, DependencyTypes.HTTP)
    return DependencyTypes.HTTP
