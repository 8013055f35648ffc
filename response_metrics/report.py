"""Read-only views over a MetricsStore: per-endpoint stats, summaries, text and export."""
import logging
import time
from dataclasses import asdict, dataclass

from .stats import PercentileStats, compute_stats, round_half_up
from .store import MetricsStore, default_store

DEFAULT_WINDOW_MS = 5 * 60 * 1000
NO_DATA = "No data available"

log = logging.getLogger(__name__)

@dataclass(frozen=True, kw_only=True)
class EndpointStats(PercentileStats):
    endpoint: str
    oldest_sample: int | None
    newest_sample: int | None
    time_range_ms: int

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

@dataclass(frozen=True)
class EndpointSummary:
    endpoint: str
    p50: float
    p95: float
    p99: float
    sample_count: int
    error_rate: int

def error_rate(stats: PercentileStats) -> int:
    """Percentage of 4xx+5xx samples, rounded to a whole number."""
    if stats.sample_count == 0:
        return 0
    errors = stats.client_error_count + stats.server_error_count
    return round_half_up(100 * errors / stats.sample_count)

def stats_for(endpoint: str, store: MetricsStore | None = None) -> PercentileStats | None:
    return compute_stats((store or default_store).samples(endpoint))

def stats_for_endpoint(endpoint: str, store: MetricsStore | None = None) -> EndpointStats | None:
    samples = (store or default_store).samples(endpoint)
    pct = compute_stats(samples)
    if pct is None:
        return None
    stamps = [s.recorded_at for s in samples]
    oldest, newest = min(stamps), max(stamps)
    return EndpointStats(
        **asdict(pct),
        endpoint=endpoint,
        oldest_sample=oldest,
        newest_sample=newest,
        time_range_ms=newest - oldest,
    )

def all_endpoint_stats(store: MetricsStore | None = None) -> list[EndpointStats]:
    """Stats for every tracked endpoint, busiest first (ties keep first-seen order)."""
    store = store or default_store
    out: list[EndpointStats] = []
    for endpoint in store.endpoints():
        st = stats_for_endpoint(endpoint, store)
        if st is not None:
            out.append(st)
    out.sort(key=lambda s: s.sample_count, reverse=True)
    return out

def endpoint_summaries(store: MetricsStore | None = None) -> list[EndpointSummary]:
    return [
        EndpointSummary(
            endpoint=s.endpoint,
            p50=s.p50,
            p95=s.p95,
            p99=s.p99,
            sample_count=s.sample_count,
            error_rate=error_rate(s),
        )
        for s in all_endpoint_stats(store)
    ]

def _ms(v: float) -> str:
    if float(v).is_integer():
        return f"{int(v)}ms"
    return f"{v:.2f}".rstrip("0").rstrip(".") + "ms"

def format_stats(stats: PercentileStats | None) -> str:
    if stats is None:
        return NO_DATA
    return (
        f"p50={_ms(stats.p50)} p95={_ms(stats.p95)} p99={_ms(stats.p99)} "
        f"(min={_ms(stats.min)} max={_ms(stats.max)} avg={_ms(stats.avg)}) "
        f"samples={stats.sample_count} "
        f"success={stats.success_count} clientErr={stats.client_error_count} "
        f"serverErr={stats.server_error_count}"
    )

def export_snapshot(store: MetricsStore | None = None, window_ms: int = DEFAULT_WINDOW_MS) -> dict[str, object]:
    """
    JSON-ready snapshot of every endpoint plus totals, for shipping to an external
    monitor. `window_ms` is a label supplied by the caller; it does not filter samples.
    """
    store = store or default_store
    stats = all_endpoint_stats(store)
    return {
        "timestamp": int(time.time() * 1000),
        "window_ms": window_ms,
        "endpoints": [
            {
                "name": s.endpoint,
                "latency": {
                    "p50": s.p50,
                    "p95": s.p95,
                    "p99": s.p99,
                    "min": s.min,
                    "max": s.max,
                    "avg": s.avg,
                },
                "counts": {
                    "total": s.sample_count,
                    "success": s.success_count,
                    "client_error": s.client_error_count,
                    "server_error": s.server_error_count,
                },
                "error_rate": error_rate(s),
            }
            for s in stats
        ],
        "totals": {
            "endpoints": len(stats),
            "samples": sum(s.sample_count for s in stats),
        },
    }

def log_stats(store: MetricsStore | None = None, window_ms: int = DEFAULT_WINDOW_MS) -> None:
    stats = all_endpoint_stats(store)
    if not stats:
        log.info(NO_DATA, extra={"event": "metrics.stats", "extra_fields": {"endpoints": 0}})
        return
    for s in stats:
        log.info(
            f"{s.endpoint}: {format_stats(s)}",
            extra={"event": "metrics.stats", "extra_fields": {
                "endpoint": s.endpoint,
                "window_s": round_half_up(window_ms / 1000),
                "p50": s.p50,
                "p95": s.p95,
                "p99": s.p99,
                "samples": s.sample_count,
                "error_rate": error_rate(s),
            }},
        )
