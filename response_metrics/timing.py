import functools
import inspect
import logging
import time
from typing import Any, Callable

from .stats import round_half_up
from .store import DEFAULT_CAPACITY, MetricsStore, default_store

RESPONSE_TIME_HEADER = "X-Response-Time"

log = logging.getLogger(__name__)

def _status_of(response: Any) -> int:
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    if status is None:
        raise ValueError(f"response {type(response).__name__} has no status code")
    return int(status)

def add_response_time_header(response: Any, duration_ms: int) -> Any:
    """Set X-Response-Time on `response` in place and hand the same object back."""
    response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms}ms"
    return response

def record_response(
    response: Any,
    endpoint: str,
    elapsed_ms: int,
    *,
    include_headers: bool = True,
    capacity: int = DEFAULT_CAPACITY,
    store: MetricsStore | None = None,
) -> int | None:
    """
    Record one completed response and optionally stamp the header.
    Best-effort: failures are logged and never reach the caller.
    Returns the recorded status code, or None if nothing was recorded.
    """
    store = store or default_store
    status: int | None = None
    try:
        status = _status_of(response)
        store.record(endpoint, elapsed_ms, status, capacity)
    except Exception as e:
        log.warning(
            "failed to record response time",
            extra={"event": "metrics.record_failed", "extra_fields": {
                "endpoint": endpoint,
                "latency_ms": elapsed_ms,
                "error": repr(e),
            }},
        )
        status = None
    if include_headers:
        try:
            add_response_time_header(response, elapsed_ms)
        except Exception as e:
            log.warning(
                "failed to set response time header",
                extra={"event": "metrics.record_failed", "extra_fields": {
                    "endpoint": endpoint,
                    "error": repr(e),
                }},
            )
    return status

def with_response_time_logging(
    handler: Callable,
    endpoint: str,
    include_headers: bool = True,
    capacity: int = DEFAULT_CAPACITY,
    store: MetricsStore | None = None,
) -> Callable:
    """
    Wrap a `(request) -> response` handler so every returned response is timed and
    recorded under `endpoint`.

    Coroutine handlers get a coroutine wrapper; awaiting the handler is the only
    suspension point. If the handler raises, the exception propagates untouched and
    no sample is recorded.
    """
    if inspect.iscoroutinefunction(handler):
        @functools.wraps(handler)
        async def async_wrapper(request, *args, **kwargs):
            t0 = time.perf_counter()
            response = await handler(request, *args, **kwargs)
            elapsed_ms = round_half_up((time.perf_counter() - t0) * 1000)
            record_response(response, endpoint, elapsed_ms,
                            include_headers=include_headers, capacity=capacity, store=store)
            return response
        return async_wrapper

    @functools.wraps(handler)
    def wrapper(request, *args, **kwargs):
        t0 = time.perf_counter()
        response = handler(request, *args, **kwargs)
        elapsed_ms = round_half_up((time.perf_counter() - t0) * 1000)
        record_response(response, endpoint, elapsed_ms,
                        include_headers=include_headers, capacity=capacity, store=store)
        return response
    return wrapper

def response_timed(
    endpoint: str,
    include_headers: bool = True,
    capacity: int = DEFAULT_CAPACITY,
    store: MetricsStore | None = None,
) -> Callable[[Callable], Callable]:
    """Decorator form of `with_response_time_logging`."""
    def decorator(handler: Callable) -> Callable:
        return with_response_time_logging(handler, endpoint, include_headers, capacity, store)
    return decorator

def measure_response_time(
    start_time: float,
    endpoint: str,
    status_code: int,
    capacity: int = DEFAULT_CAPACITY,
    store: MetricsStore | None = None,
) -> int:
    """
    Record the time since `start_time` (a `time.perf_counter()` reading) and return it
    as whole milliseconds.
    """
    duration_ms = round_half_up((time.perf_counter() - start_time) * 1000)
    try:
        (store or default_store).record(endpoint, duration_ms, status_code, capacity)
    except Exception as e:
        log.warning(
            "failed to record response time",
            extra={"event": "metrics.record_failed", "extra_fields": {
                "endpoint": endpoint,
                "latency_ms": duration_ms,
                "error": repr(e),
            }},
        )
    return duration_ms
