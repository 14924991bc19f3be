"""TelemetryBuffer implementation."""

from collections import deque
from collections.abc import Sequence
from typing import Protocol

from ..models import Telemetry

_EMPTY: tuple[Telemetry, ...] = ()


class ITelemetryBuffer(Protocol):
    """Pending telemetry waiting to be published."""

    def add(self, telemetry: Telemetry) -> None:
        """Add a telemetry item. Never blocks."""
        ...

    def drain(self) -> Sequence[Telemetry]:
        """Remove and return every item present at call time, in insertion order."""
        ...

    def is_empty(self) -> bool:
        """Check whether there is nothing to drain."""
        ...


class TelemetryBuffer:
    """Unbounded FIFO of telemetry items.

    Safe for many concurrent producers and a single drainer without locks:
    `deque.append` and `deque.popleft` are atomic, producers only append to the
    right end, and a drain only pops as many items as were present when it
    started. Items appended while a drain runs stay for the next drain.
    """

    def __init__(self) -> None:
        self._items: deque[Telemetry] = deque()

    def add(self, telemetry: Telemetry) -> None:
        """Add a telemetry item."""
        self._items.append(telemetry)

    def drain(self) -> Sequence[Telemetry]:
        """Remove and return every item present at call time."""
        count = len(self._items)
        if count == 0:
            return _EMPTY

        popleft = self._items.popleft
        return [popleft() for _ in range(count)]

    def is_empty(self) -> bool:
        """Check whether the buffer holds no items."""
        return not self._items

    def __len__(self) -> int:
        return len(self._items)
