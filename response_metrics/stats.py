import math
from dataclasses import dataclass
from typing import Sequence

from .store import Sample

@dataclass(frozen=True)
class PercentileStats:
    p50: float
    p95: float
    p99: float
    min: float
    max: float
    avg: float
    sample_count: int
    success_count: int
    client_error_count: int
    server_error_count: int

def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile: value at ceil(p/100 * n) - 1, clamped to the array."""
    n = len(sorted_values)
    if n == 0:
        return 0.0
    idx = max(0, min(n - 1, math.ceil(p * n / 100) - 1))
    return sorted_values[idx]

def compute_stats(samples: Sequence[Sample]) -> PercentileStats | None:
    """Latency percentiles and status-class counts over `samples`; None when empty."""
    if not samples:
        return None
    arr = sorted(s.latency_ms for s in samples)
    n = len(arr)
    lo, hi = arr[0], arr[-1]
    # fsum/n can drift by an ulp; keep the mean inside the observed range
    avg = min(hi, max(lo, math.fsum(arr) / n))

    success = client_err = server_err = 0
    for s in samples:
        code = s.status_code
        if 200 <= code < 300:
            success += 1
        elif 400 <= code < 500:
            client_err += 1
        elif code >= 500:
            server_err += 1

    return PercentileStats(
        p50=percentile(arr, 50),
        p95=percentile(arr, 95),
        p99=percentile(arr, 99),
        min=lo,
        max=hi,
        avg=avg,
        sample_count=n,
        success_count=success,
        client_error_count=client_err,
        server_error_count=server_err,
    )
