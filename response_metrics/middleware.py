import logging
import time
from typing import Iterable

from fastapi import FastAPI, Request
from flask import Flask, g, request as flask_request
from starlette.routing import Match

from .config import METRICS_CAPACITY, METRICS_INCLUDE_HEADERS
from .stats import round_half_up
from .store import MetricsStore
from .timing import record_response

# Shared key for requests that match no route; raw paths would grow the registry without bound.
UNMATCHED_ENDPOINT = "<unmatched>"

log = logging.getLogger(__name__)

def _route_template(request: Request) -> str:
    """Matched route path (e.g. /items/{item_id}) so ids don't explode the key space."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if path:
        return path
    for r in request.app.router.routes:
        match, _ = r.matches(request.scope)
        if match == Match.FULL and getattr(r, "path", None):
            return r.path
    return UNMATCHED_ENDPOINT

def instrument_fastapi(
    app: FastAPI,
    *,
    store: MetricsStore | None = None,
    include_headers: bool = METRICS_INCLUDE_HEADERS,
    capacity: int = METRICS_CAPACITY,
    exclude: Iterable[str] = (),
) -> FastAPI:
    """
    Time every request handled by `app` and record it under its route template.
    Route templates listed in `exclude` are access-logged but never recorded.
    """
    skip = frozenset(exclude)

    @app.middleware("http")
    async def response_timer(request: Request, call_next):
        t0 = time.perf_counter()
        response = None
        latency_ms: int | None = None
        try:
            response = await call_next(request)
            latency_ms = round_half_up((time.perf_counter() - t0) * 1000)
            endpoint = _route_template(request)
            if endpoint not in skip:
                record_response(response, endpoint, latency_ms,
                                include_headers=include_headers, capacity=capacity, store=store)
            return response
        finally:
            if latency_ms is None:
                latency_ms = round_half_up((time.perf_counter() - t0) * 1000)
            log.info(
                "access",
                extra={"event": "http.access", "extra_fields": {
                    "path": request.url.path,
                    "endpoint": _route_template(request),
                    "method": request.method,
                    "status": getattr(response, "status_code", None),
                    "latency_ms": latency_ms,
                }},
            )

    return app

def instrument_flask(
    app: Flask,
    *,
    store: MetricsStore | None = None,
    include_headers: bool = METRICS_INCLUDE_HEADERS,
    capacity: int = METRICS_CAPACITY,
    exclude: Iterable[str] = (),
) -> Flask:
    """Same as `instrument_fastapi`, for a (threaded) Flask app."""
    skip = frozenset(exclude)

    @app.before_request
    def _start_response_timer():
        g.response_timer_t0 = time.perf_counter()

    @app.after_request
    def _record_response_time(response):
        t0 = g.pop("response_timer_t0", None)
        if t0 is None:
            return response
        latency_ms = round_half_up((time.perf_counter() - t0) * 1000)
        rule = flask_request.url_rule
        endpoint = rule.rule if rule is not None else UNMATCHED_ENDPOINT
        if endpoint not in skip:
            record_response(response, endpoint, latency_ms,
                            include_headers=include_headers, capacity=capacity, store=store)
        log.info(
            "access",
            extra={"event": "http.access", "extra_fields": {
                "path": flask_request.path,
                "endpoint": endpoint,
                "method": flask_request.method,
                "status": response.status_code,
                "latency_ms": latency_ms,
            }},
        )
        return response

    return app
