import logging
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Query

from .config import LOG_LEVEL, METRICS_CAPACITY, METRICS_WINDOW_MS
from .logging import setup_logging
from .middleware import instrument_fastapi
from .report import endpoint_summaries, export_snapshot, stats_for_endpoint
from .store import MetricsStore, default_store

REPORTING_ROUTES = ("/metrics", "/metrics/summary", "/metrics/endpoint")

def create_app(store: MetricsStore | None = None) -> FastAPI:
    setup_logging("response-metrics", LOG_LEVEL)
    log = logging.getLogger(__name__)
    store = store or default_store
    app = FastAPI(title="Response time metrics")
    # reporting routes stay out of the numbers they report
    instrument_fastapi(app, store=store, capacity=METRICS_CAPACITY, exclude=REPORTING_ROUTES)

    @app.get("/metrics")
    async def metrics():
        return export_snapshot(store, window_ms=METRICS_WINDOW_MS)

    @app.get("/metrics/summary")
    async def summary():
        return [asdict(s) for s in endpoint_summaries(store)]

    @app.get("/metrics/endpoint")
    async def endpoint_metrics(
        name: str = Query(..., description="Endpoint key, e.g. /api/items/{item_id}"),
    ):
        st = stats_for_endpoint(name, store)
        if st is None:
            raise HTTPException(status_code=404, detail=f"No data for endpoint '{name}'.")
        return st.to_dict()

    @app.get("/health")
    async def health():
        return {"ok": True}

    log.info(
        "metrics app ready",
        extra={"event": "startup", "extra_fields": {
            "capacity": METRICS_CAPACITY,
            "window_ms": METRICS_WINDOW_MS,
        }},
    )
    return app

app = create_app()
