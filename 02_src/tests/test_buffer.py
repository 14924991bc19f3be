"""Tests for TelemetryBuffer."""

import threading

from monitor_telemetry.buffer import TelemetryBuffer
from monitor_telemetry.models import TraceTelemetry


def make_trace(fixed_time, n: int) -> TraceTelemetry:
    return TraceTelemetry(time=fixed_time, message=str(n))


class TestTelemetryBuffer:
    """Tests for TelemetryBuffer."""

    def test_empty_buffer(self):
        """Test a new buffer is empty."""
        buffer = TelemetryBuffer()

        assert buffer.is_empty()
        assert len(buffer) == 0

    def test_drain_empty_returns_shared_empty(self):
        """Test draining an empty buffer returns the same empty sequence."""
        buffer = TelemetryBuffer()

        first = buffer.drain()
        second = buffer.drain()

        assert len(first) == 0
        assert first is second

    def test_drain_preserves_order(self, fixed_time):
        """Test items are drained in insertion order."""
        buffer = TelemetryBuffer()
        items = [make_trace(fixed_time, n) for n in range(5)]
        for item in items:
            buffer.add(item)

        drained = buffer.drain()

        assert list(drained) == items
        assert buffer.is_empty()

    def test_items_added_after_drain_stay(self, fixed_time):
        """Test a later add is left for the next drain."""
        buffer = TelemetryBuffer()
        buffer.add(make_trace(fixed_time, 1))
        buffer.drain()

        late = make_trace(fixed_time, 2)
        buffer.add(late)

        assert list(buffer.drain()) == [late]

    def test_concurrent_add_and_drain(self, fixed_time):
        """Test every item appears in exactly one drain under concurrent producers."""
        buffer = TelemetryBuffer()
        producers = 8
        per_producer = 2000
        drained: list = []
        done = threading.Event()

        def produce(offset: int):
            for n in range(per_producer):
                buffer.add(make_trace(fixed_time, offset * per_producer + n))

        def consume():
            while not done.is_set():
                drained.extend(buffer.drain())
            drained.extend(buffer.drain())

        consumer = threading.Thread(target=consume)
        consumer.start()
        threads = [threading.Thread(target=produce, args=(i,)) for i in range(producers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        done.set()
        consumer.join()

        messages = [item.message for item in drained]
        assert len(messages) == producers * per_producer
        assert set(messages) == {str(n) for n in range(producers * per_producer)}
        assert buffer.is_empty()
