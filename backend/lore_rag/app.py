"""FastAPI application setup for Lore RAG."""

from __future__ import annotations

import time

from fastapi import FastAPI, Request, Response

from lore_rag.api.dependencies import get_runtime, shutdown_runtime
from lore_rag.api.routes_admin import router as admin_router
from lore_rag.api.routes_ingest import router as ingest_router
from lore_rag.api.routes_query import router as query_router
from lore_rag.core.logging import configure_logging
from lore_rag.core.metrics import REQUEST_COUNT, REQUEST_LATENCY, metrics_response

configure_logging()

app = FastAPI(
    title="Lore RAG",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(ingest_router, prefix="/rag", tags=["ingest"])
app.include_router(query_router, prefix="/rag", tags=["query"])
app.include_router(admin_router, prefix="/rag", tags=["admin"])


@app.middleware("http")
async def record_metrics(request: Request, call_next) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_LATENCY.labels(endpoint=endpoint, method=request.method).observe(time.perf_counter() - start)
    REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=str(response.status_code)).inc()
    return response


@app.on_event("startup")
async def startup() -> None:
    """Build the runtime and start the cache sweep and job worker."""
    get_runtime().start()


@app.on_event("shutdown")
async def shutdown() -> None:
    shutdown_runtime()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}


@app.get("/metrics", tags=["admin"])
def metrics() -> Response:
    return metrics_response()
