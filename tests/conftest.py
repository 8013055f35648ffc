import pytest

from response_metrics.store import MetricsStore


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeResponse:
    def __init__(self, status_code: int = 200, headers: dict | None = None):
        self.status_code = status_code
        self.headers = dict(headers or {})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """A fresh store per test, so nothing leaks through the process-wide default."""
    return MetricsStore(clock=clock)
