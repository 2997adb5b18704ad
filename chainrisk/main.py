"""
chainrisk — Composite Risk Aggregation Service
Sanctions + scam reports + AI behavioral analysis + cross-chain activity,
combined into one bounded, explainable score per address.

Run:
    chainrisk
    uvicorn chainrisk.main:app --host 0.0.0.0 --port 8000
"""
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from chainrisk.alerts.dispatcher import drain_pending
from chainrisk.api.risk import risk_router
from chainrisk.compute.pipeline import close_http_client
from chainrisk.config import get_settings
from chainrisk.errors import InvalidRequest

VERSION = "1.0.0"

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
)
logger = structlog.get_logger()

# Health checks are polled constantly; keep them out of the request log
_QUIET_PATHS = frozenset({"/health", "/v1/risk/health"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("chainrisk_starting",
                version=VERSION,
                environment=settings.ENVIRONMENT,
                sanctions=settings.sanctions_enabled,
                behavioral=settings.behavioral_enabled,
                cross_chain=settings.cross_chain_enabled,
                transactions=settings.history_enabled,
                alerts=settings.alerts_enabled)
    yield
    # In-flight alerts share the outbound client, so they finish first
    await drain_pending()
    await close_http_client()
    logger.info("chainrisk_stopped")


app = FastAPI(
    title="chainrisk",
    description=(
        "Assesses the illicit-activity risk of a blockchain address from sanctions "
        "screening, scam reports, AI behavioral analysis and cross-chain activity."
    ),
    version=VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

    response.headers["X-Request-Id"] = request_id
    response.headers["X-Response-Time"] = f"{elapsed_ms}ms"
    if request.url.path not in _QUIET_PATHS:
        logger.info("http_request",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    elapsed_ms=elapsed_ms)
    return response


@app.exception_handler(InvalidRequest)
async def on_invalid_request(request: Request, exc: InvalidRequest):
    logger.info("request_rejected", path=request.url.path, reason=exc.message)
    return JSONResponse(status_code=400, content={"error": "invalid_request", "message": exc.message})


@app.exception_handler(Exception)
async def on_internal_fault(request: Request, exc: Exception):
    # Detail goes to the log only; callers get a fixed message
    logger.error("analysis_fault",
                 path=request.url.path,
                 fault=type(exc).__name__,
                 error=str(exc))
    request_id = getattr(request.state, "request_id", None) or "unknown"
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "Failed to analyze address.",
            "request_id": request_id,
        },
    )


app.include_router(risk_router)


@app.get("/health")
async def service_health():
    return {
        "status": "ok",
        "service": "chainrisk",
        "version": VERSION,
        "checked_at": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/")
async def index():
    return {
        "service": "chainrisk",
        "version": VERSION,
        "routes": [
            "GET /v1/risk/analyze?address={address}&chain={chain}",
            "POST /v1/risk/analyze",
            "GET /v1/risk/health",
            "GET /health",
            "GET /docs",
        ],
    }


def run():
    import uvicorn

    settings = get_settings()
    uvicorn.run("chainrisk.main:app", host=settings.CHAINRISK_HOST, port=settings.CHAINRISK_PORT)
