"""Ambient distributed-operation propagation."""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

from ..models import EMPTY_OPERATION, ActivityScope, TelemetryOperation

NANOSECONDS_PER_SECOND = 1_000_000_000
MICROSECONDS_PER_SECOND = 1_000_000

MonotonicClock = Callable[[], int]
WallClock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time."""
    return datetime.now(timezone.utc)


def ticks_to_duration(elapsed_ticks: int, frequency: int) -> timedelta:
    """Convert monotonic clock ticks to a duration.

    Integer arithmetic scaled to microseconds, the resolution of timedelta.
    """
    if elapsed_ticks <= 0:
        return timedelta(0)
    return timedelta(microseconds=elapsed_ticks * MICROSECONDS_PER_SECOND // frequency)


class IOperationPropagator(Protocol):
    """Current distributed operation of the running logical flow."""

    @property
    def operation(self) -> TelemetryOperation:
        """Get the current operation."""
        ...

    @operation.setter
    def operation(self, value: TelemetryOperation) -> None:
        """Replace the current operation."""
        ...

    def scope_begin(self, activity_id: str) -> TelemetryOperation:
        """Make activity_id the parent of everything tracked in the scope."""
        ...

    def scope_end(self, previous_operation: TelemetryOperation) -> None:
        """Restore the operation returned by the matching scope_begin."""
        ...


@dataclass
class ActivityHandle:
    """Yielded by OperationPropagator.activity; duration is set on exit."""

    scope: ActivityScope
    duration: timedelta | None = None

    @property
    def id(self) -> str:
        return self.scope.id

    @property
    def time(self) -> datetime:
        return self.scope.time


class OperationPropagator:
    """Keeps the current TelemetryOperation in a context variable.

    asyncio tasks run in a copy of the context they were created in, so a
    write in one task is invisible to its siblings and to the parent flow.
    Operations are immutable; scopes replace them and never mutate them.
    """

    def __init__(
        self,
        operation: TelemetryOperation = EMPTY_OPERATION,
        clock: MonotonicClock = time.perf_counter_ns,
        clock_frequency: int = NANOSECONDS_PER_SECOND,
        wall_clock: WallClock = utcnow,
    ):
        if clock_frequency <= 0:
            raise ValueError("clock_frequency must be positive")

        self._current: ContextVar[TelemetryOperation] = ContextVar(
            f"telemetry_operation_{id(self):x}", default=operation
        )
        self._clock = clock
        self._clock_frequency = clock_frequency
        self._wall_clock = wall_clock

    @property
    def operation(self) -> TelemetryOperation:
        """Get the current operation."""
        return self._current.get()

    @operation.setter
    def operation(self, value: TelemetryOperation) -> None:
        """Replace the current operation."""
        self._current.set(value)

    def scope_begin(self, activity_id: str) -> TelemetryOperation:
        """Begin an activity scope, returning the operation to restore on end."""
        previous = self._current.get()
        self._current.set(previous.with_parent(activity_id))
        return previous

    def scope_begin_timed(self, get_activity_id: Callable[[], str]) -> ActivityScope:
        """Begin an activity scope, capturing its start time and tick first."""
        start_time = self._wall_clock()
        start_tick = self._clock()
        activity_id = get_activity_id()

        previous = self.scope_begin(activity_id)

        return ActivityScope(
            id=activity_id,
            previous_operation=previous,
            time=start_time,
            start_tick=start_tick,
        )

    def scope_end(self, previous_operation: TelemetryOperation) -> None:
        """End an activity scope."""
        self._current.set(previous_operation)

    def scope_end_timed(
        self, previous_operation: TelemetryOperation, start_tick: int
    ) -> timedelta:
        """End an activity scope and return how long it lasted."""
        self.scope_end(previous_operation)
        return ticks_to_duration(self._clock() - start_tick, self._clock_frequency)

    @contextmanager
    def activity(self, get_activity_id: Callable[[], str]) -> Iterator[ActivityHandle]:
        """Run a block inside a timed activity scope; the scope always ends."""
        handle = ActivityHandle(scope=self.scope_begin_timed(get_activity_id))
        try:
            yield handle
        finally:
            handle.duration = self.scope_end_timed(
                handle.scope.previous_operation, handle.scope.start_tick
            )
