"""Distributed operation data models."""

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True)
class TelemetryOperation:
    """Correlation identifiers shared by all telemetry of one logical transaction."""

    id: str | None = None  # top-level trace id
    name: str | None = None
    parent_id: str | None = None  # immediate causal predecessor activity

    def with_parent(self, parent_id: str | None) -> "TelemetryOperation":
        """Return a copy with parent_id replaced."""
        return replace(self, parent_id=parent_id)


EMPTY_OPERATION = TelemetryOperation()


@dataclass(frozen=True)
class ActivityScope:
    """Token returned by a timed scope begin, consumed once by the matching end."""

    id: str
    previous_operation: TelemetryOperation
    time: datetime  # wall-clock start, UTC
    start_tick: int  # monotonic clock reading
