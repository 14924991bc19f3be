"""Publish result and ingestion response models."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PublishError(BaseModel):
    """A single item rejected by the ingestion service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    index: int = Field(ge=0, le=65535)  # position of the item in the submitted batch
    status_code: int
    message: str = ""


class PublishResponse(BaseModel):
    """Body of a track response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    items_received: int = Field(ge=0, le=65535)
    items_accepted: int = Field(ge=0, le=65535)
    errors: list[PublishError] = Field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class PublishResult:
    """Outcome of one publish call of one publisher."""

    time: datetime  # UTC, when the publish was initiated
    duration: timedelta
    success: bool
    count: int  # number of items transferred


@dataclass(frozen=True, kw_only=True)
class HttpPublishResult(PublishResult):
    """Outcome of an HTTP publish call."""

    url: str
    status_code: int | None = None  # None when no response was received
    response: str | None = None  # raw body or transport error text
    errors: tuple[PublishError, ...] = ()


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class BearerToken:
    """Access token obtained from a token provider."""

    value: str
    expires_on: datetime  # naive values are taken as UTC

    def __post_init__(self):
        object.__setattr__(self, "expires_on", as_utc(self.expires_on))

    def is_expired(self, now: datetime) -> bool:
        """Check whether the token can no longer be used at `now`."""
        return as_utc(now) >= self.expires_on
