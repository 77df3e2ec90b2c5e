"""
FastAPI application — the entrypoint for the book review API.

Features:
- CORS restrictions
- Redis rate limiting middleware
- Prometheus metrics endpoint
- Structured JSON logging
- Uniform success/error response envelope
- Health / readiness probes
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from bookreview.config import get_settings
from bookreview.logging_config import setup_logging
from bookreview.middleware.rate_limiter import RateLimiterMiddleware
from bookreview.routers import auth, books, reviews
from bookreview.schemas.common import ErrorResponse, FieldError

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)
logger = structlog.get_logger()

# ── Prometheus metrics ──
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and graceful shutdown."""
    logger.info("api_starting", environment=settings.environment)

    # Dev convenience; other environments run the Alembic migrations
    if settings.environment == "development":
        from bookreview.database import Base, engine
        from bookreview.models import book, review, user  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_created")

    yield

    logger.info("api_shutting_down")
    from bookreview.database import engine

    await engine.dispose()


app = FastAPI(
    title="Book Review Platform",
    description="Browse, search, and review books",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# ── CORS ──
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# ── Rate Limiting ──
app.add_middleware(RateLimiterMiddleware)


# ── Request metrics middleware ──
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    if not settings.enable_metrics:
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration = time.time() - start

    # Route template keeps label cardinality bounded
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code,
    ).inc()
    REQUEST_LATENCY.labels(
        method=request.method,
        endpoint=endpoint,
    ).observe(duration)

    return response


# ── Error envelope ──
def _error_body(message, errors=None) -> dict:
    body = ErrorResponse(message=str(message), errors=errors)
    return body.model_dump(by_alias=True, exclude_none=True)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        FieldError(
            field=".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path")),
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation failed", errors),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error"),
    )


# ── Routers ──
app.include_router(auth.router, prefix="/api")
app.include_router(books.router, prefix="/api")
app.include_router(reviews.router, prefix="/api")


# ── Health / Readiness ──
@app.get("/api/health", tags=["Health"])
async def health():
    return {
        "status": "success",
        "message": "Book Review API is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@app.get("/api/ready", tags=["Health"])
async def readiness():
    """Readiness probe — checks database connectivity."""
    try:
        from bookreview.database import engine

        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.warning("readiness_database_error", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "error", "message": "Database unavailable"},
        )
    return {"status": "success", "message": "ready"}


# ── Prometheus metrics endpoint ──
@app.get("/metrics", tags=["Monitoring"], include_in_schema=False)
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
