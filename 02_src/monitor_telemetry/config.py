"""Project-level configuration helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_ENV_PATH = PROJECT_ROOT / ".env"
DEFAULT_PUBLISH_TIMEOUT = 10.0

CONNECTION_STRING_ENV = "APPLICATIONINSIGHTS_CONNECTION_STRING"

PathLike = Union[str, Path]


def parse_connection_string(value: str | None) -> dict[str, str]:
    """Parse `Key=Value;Key=Value` into a dict with lower-cased keys."""
    result: dict[str, str] = {}
    if not value:
        return result

    for segment in value.split(";"):
        key, sep, item = segment.partition("=")
        if not sep or not key.strip():
            continue
        result[key.strip().lower()] = item.strip()

    return result


@dataclass
class TelemetrySettings:
    """Settings of a telemetry client and its HTTP publisher."""

    ingestion_endpoint: str
    instrumentation_key: str
    publish_timeout: float = DEFAULT_PUBLISH_TIMEOUT
    log_level: str = "INFO"
    cloud_role: str | None = None
    cloud_role_instance: str | None = None

    @classmethod
    def from_env(cls) -> "TelemetrySettings":
        """Build settings from environment variables.

        TELEMETRY_INGESTION_ENDPOINT and TELEMETRY_INSTRUMENTATION_KEY take
        precedence over the matching parts of the connection string.
        """
        connection = parse_connection_string(os.getenv(CONNECTION_STRING_ENV))

        endpoint = os.getenv("TELEMETRY_INGESTION_ENDPOINT") or connection.get(
            "ingestionendpoint"
        )
        key = os.getenv("TELEMETRY_INSTRUMENTATION_KEY") or connection.get(
            "instrumentationkey"
        )

        if not endpoint:
            raise ValueError("TELEMETRY_INGESTION_ENDPOINT environment variable not set")
        if not key:
            raise ValueError("TELEMETRY_INSTRUMENTATION_KEY environment variable not set")

        timeout = os.getenv("TELEMETRY_PUBLISH_TIMEOUT")

        return cls(
            ingestion_endpoint=endpoint,
            instrumentation_key=key,
            publish_timeout=float(timeout) if timeout else DEFAULT_PUBLISH_TIMEOUT,
            log_level=os.getenv("TELEMETRY_LOG_LEVEL", "INFO"),
            cloud_role=os.getenv("TELEMETRY_CLOUD_ROLE"),
            cloud_role_instance=os.getenv("TELEMETRY_CLOUD_ROLE_INSTANCE"),
        )


def load_settings(env_file: PathLike | None = None) -> TelemetrySettings:
    """Load a .env file (if present) and build settings from the environment."""
    load_dotenv(env_file or DEFAULT_ENV_PATH)
    return TelemetrySettings.from_env()
