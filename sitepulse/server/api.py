# ==============================================================================
# Ingestion API
# ==============================================================================
"""
FastAPI application exposing the aggregation store over HTTP.

Endpoints:
    POST /api/track   Record one event object or an array of event objects
    GET  /api/stats   Statistics report computed from the store
    GET  /health      Liveness probe with the current master log size
    GET  /            Plain-text banner listing the endpoints

Every response carries permissive CORS headers and any OPTIONS request is
answered with 204 and an empty body.

Usage:
    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=3000)
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from sitepulse.core.models import EventParseError, parse_events
from sitepulse.core.stats import StatisticsReporter
from sitepulse.core.store import AggregationStore
from sitepulse.utils.config import Settings, get_settings
from sitepulse.utils.versions import get_sitepulse_version

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

BANNER = (
    "SitePulse Analytics Server Running\n"
    "\n"
    "Endpoints:\n"
    "- POST /api/track - Track events\n"
    "- GET /api/stats - Get statistics\n"
    "- GET /health - Health check\n"
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _reject_constant(name: str):
    """NaN, Infinity and -Infinity are not JSON."""
    raise ValueError(f"Invalid JSON constant: {name}")


def create_app(
    store: Optional[AggregationStore] = None,
    reporter: Optional[StatisticsReporter] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the ingestion application around a store.

    Args:
        store: Aggregation store to record into (default: new store sized
               from StoreSettings)
        reporter: Statistics reporter (default: reporter over ``store``)
        settings: Application settings (default: get_settings())

    Returns:
        FastAPI application; the store and reporter are on ``app.state``
    """
    settings = settings or get_settings()
    store_settings = settings.store

    if store is None:
        store = AggregationStore(max_log_entries=store_settings.max_log_entries)
    if reporter is None:
        reporter = StatisticsReporter(
            store,
            recent_events=store_settings.recent_events,
            top_pages=store_settings.top_pages,
            recent_sessions=store_settings.recent_sessions,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "SitePulse API started (log cap %d entries per log)", store.max_log_entries
        )
        yield
        logger.info("SitePulse API shutting down with %d events retained", len(store))

    app = FastAPI(title="SitePulse API", version=get_sitepulse_version(), lifespan=lifespan)
    app.state.store = store
    app.state.reporter = reporter

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        """Apply CORS headers, answer preflights and log each request."""
        start_time = time.perf_counter()

        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception("Error handling %s %s", request.method, request.url.path)
                response = _error(500, str(e))

        response.headers.update(CORS_HEADERS)
        logger.debug(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start_time) * 1000,
        )
        return response

    @app.post("/api/track")
    async def track(request: Request):
        """Record a single event or an array of events."""
        body = await request.body()
        try:
            payload = json.loads(body, parse_constant=_reject_constant)
        except ValueError as e:
            return _error(400, f"Malformed JSON body: {e}")
        try:
            events = parse_events(payload)
        except EventParseError as e:
            return _error(400, str(e))

        count = await run_in_threadpool(store.record_batch, events)
        logger.info("Received %d events", count)
        return {"success": True, "message": "Events tracked", "count": count}

    @app.get("/api/stats")
    def stats():
        """Statistics report over the current store contents."""
        return reporter.compute().to_wire()

    @app.get("/health")
    def health():
        return {"ok": True, "service": "sitepulse", "events": len(store)}

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return BANNER

    return app
