"""Ring buffer and endpoint registry."""

import threading

import pytest

from response_metrics.store import DEFAULT_CAPACITY, EndpointBuffer, MetricsStore, Sample


def _latencies(samples):
    return [s.latency_ms for s in samples]


class TestEndpointBuffer:
    def test_fills_in_insertion_order(self):
        buf = EndpointBuffer("/a", capacity=3)
        for i in range(2):
            buf.append(Sample(latency_ms=i, status_code=200, recorded_at=i))
        assert len(buf) == 2
        assert _latencies(buf.samples()) == [0, 1]

    def test_overwrites_oldest_once_full(self):
        buf = EndpointBuffer("/a", capacity=3)
        for i in range(5):
            buf.append(Sample(latency_ms=i, status_code=200, recorded_at=i))
        assert len(buf) == 3
        # oldest first: 0 and 1 were evicted
        assert _latencies(buf.samples()) == [2, 3, 4]

    def test_samples_returns_copy(self):
        buf = EndpointBuffer("/a", capacity=2)
        buf.append(Sample(latency_ms=1, status_code=200, recorded_at=0))
        snap = buf.samples()
        snap.clear()
        assert len(buf.samples()) == 1

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            EndpointBuffer("/a", capacity=capacity)


class TestMetricsStore:
    def test_default_capacity(self):
        assert DEFAULT_CAPACITY == 1000

    def test_record_creates_buffer_lazily(self, store):
        assert store.size() == 0
        store.record("/api/test", 150, 200)
        assert store.size() == 1
        assert store.endpoints() == ["/api/test"]
        [sample] = store.samples("/api/test")
        assert sample.latency_ms == 150
        assert sample.status_code == 200

    def test_record_stamps_with_clock(self, store, clock):
        store.record("/a", 10, 200)
        clock.advance(250)
        store.record("/a", 20, 200)
        assert [s.recorded_at for s in store.samples("/a")] == [clock.now - 250, clock.now]

    def test_tracks_endpoints_separately(self, store):
        store.record("/a", 100, 200)
        store.record("/b", 200, 200)
        store.record("/b", 300, 200)
        assert _latencies(store.samples("/a")) == [100]
        assert _latencies(store.samples("/b")) == [200, 300]

    def test_unknown_endpoint_has_no_samples(self, store):
        assert store.samples("/missing") == []
        assert store.capacity("/missing") is None

    def test_capacity_pins_sample_count_to_most_recent(self, store):
        for i in range(10):
            store.record("/api/test", i * 10, 200, capacity=5)
        assert len(store.samples("/api/test")) == 5
        assert sorted(_latencies(store.samples("/api/test"))) == [50, 60, 70, 80, 90]

    def test_first_capacity_wins(self, store):
        store.record("/a", 1, 200, capacity=2)
        for i in range(5):
            store.record("/a", i, 200, capacity=100)
        assert store.capacity("/a") == 2
        assert len(store.samples("/a")) == 2

    def test_negative_latency_is_kept(self, store):
        store.record("/a", -5, 200)
        assert _latencies(store.samples("/a")) == [-5]

    def test_size_and_total_samples(self, store):
        assert store.total_samples() == 0
        store.record("/a", 1, 200)
        store.record("/a", 2, 200)
        store.record("/b", 3, 500, capacity=1)
        store.record("/b", 4, 500, capacity=1)
        assert store.size() == 2
        assert store.total_samples() == 3

    def test_clear_drops_everything(self, store):
        store.record("/a", 1, 200)
        store.record("/b", 1, 200)
        store.clear()
        assert store.size() == 0
        assert store.total_samples() == 0
        assert store.samples("/a") == []

    def test_stores_are_independent(self):
        one, two = MetricsStore(), MetricsStore()
        one.record("/a", 1, 200)
        assert two.size() == 0

    def test_concurrent_records_are_not_lost(self):
        store = MetricsStore()
        per_thread = 500

        def worker():
            for i in range(per_thread):
                store.record("/hot", i, 200, capacity=100_000)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.total_samples() == 8 * per_thread
