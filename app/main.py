# app/main.py
import time
import uuid

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from sentry_sdk.integrations.fastapi import FastApiIntegration

from app.core.settings import settings
from app.core.logging_config import setup_logging, logger
from app.observability.metrics import router as metrics_router
from app.routers import uploads
from app.services.object_store import ObjectStore


# ----------------------------------------------------
# App init
# ----------------------------------------------------
setup_logging(settings.LOG_LEVEL)

if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN, integrations=[FastApiIntegration()])

app = FastAPI(title=settings.APP_NAME, version="0.1.0")


@app.on_event("startup")
def on_startup():
    # one store per process, handed to routes through app.state
    app.state.object_store = ObjectStore.from_settings(settings)
    logger.info("startup", service=settings.APP_NAME, store_configured=app.state.object_store.configured)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        endpoint=str(request.url.path),
        method=request.method,
    )

    logger.info("request_started")
    response = await call_next(request)
    latency_ms = round((time.time() - start) * 1000, 2)

    logger.info("request_finished", status_code=response.status_code, latency_ms=latency_ms)
    response.headers["X-Request-ID"] = request_id
    return response


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(uploads.router)
app.include_router(metrics_router)  # /metrics
