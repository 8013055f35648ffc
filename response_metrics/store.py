import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

DEFAULT_CAPACITY = 1000

def _now_ms() -> int:
    return int(time.time() * 1000)

@dataclass(frozen=True)
class Sample:
    latency_ms: float
    status_code: int
    recorded_at: int  # epoch ms

class EndpointBuffer:
    """Fixed-size ring of the most recent `capacity` samples for one endpoint."""
    def __init__(self, endpoint: str, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.endpoint = endpoint
        self.capacity = capacity
        self._slots: list[Sample | None] = [None] * capacity
        self._next = 0
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def append(self, sample: Sample) -> None:
        # once full, _next always points at the oldest slot
        self._slots[self._next] = sample
        self._next = (self._next + 1) % self.capacity
        if self._count < self.capacity:
            self._count += 1

    def samples(self) -> list[Sample]:
        """Copy of the retained samples, oldest first."""
        if self._count < self.capacity:
            return list(self._slots[:self._count])  # type: ignore[arg-type]
        return list(self._slots[self._next:] + self._slots[:self._next])  # type: ignore[arg-type]

class MetricsStore:
    """
    Registry of endpoint -> EndpointBuffer.

    Buffers are created on the first `record` for an endpoint and keep the capacity
    they were created with; later calls passing another capacity do not resize them.
    All mutation and copying happens under one lock, so the store is safe to share
    between an event loop and worker threads.
    """
    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._clock = clock
        self._lock = threading.Lock()
        self._buffers: dict[str, EndpointBuffer] = {}
        self._log = logging.getLogger(__name__)

    def record(self, endpoint: str, latency_ms: float, status_code: int, capacity: int = DEFAULT_CAPACITY) -> None:
        sample = Sample(latency_ms=latency_ms, status_code=int(status_code), recorded_at=self._clock())
        with self._lock:
            buf = self._buffers.get(endpoint)
            if buf is None:
                buf = EndpointBuffer(endpoint, capacity)
                self._buffers[endpoint] = buf
                self._log.debug(
                    "buffer created",
                    extra={"event": "metrics.buffer_created", "extra_fields": {
                        "endpoint": endpoint,
                        "capacity": capacity,
                    }},
                )
            buf.append(sample)

    def samples(self, endpoint: str) -> list[Sample]:
        with self._lock:
            buf = self._buffers.get(endpoint)
            return buf.samples() if buf is not None else []

    def endpoints(self) -> list[str]:
        with self._lock:
            return list(self._buffers)

    def capacity(self, endpoint: str) -> int | None:
        with self._lock:
            buf = self._buffers.get(endpoint)
            return buf.capacity if buf is not None else None

    def size(self) -> int:
        with self._lock:
            return len(self._buffers)

    def total_samples(self) -> int:
        with self._lock:
            return sum(len(b) for b in self._buffers.values())

    def clear(self) -> None:
        with self._lock:
            dropped = len(self._buffers)
            self._buffers.clear()
        self._log.info(
            "store cleared",
            extra={"event": "metrics.cleared", "extra_fields": {"endpoints": dropped}},
        )

# Process-wide instance used when callers don't pass their own store.
default_store = MetricsStore()
