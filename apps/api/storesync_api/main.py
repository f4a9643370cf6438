"""StoreSync API - FastAPI Application Entry Point."""

import logging
import os
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storesync_api.config.env import get_cors_allowed_origins
from storesync_api.context import request_id_var, shop_domain_var, tenant_id_var
from storesync_api.errors import StoreSyncError
from storesync_api.problem_details import PROBLEM_BASE_URI, problem_response
from storesync_api.routers import health, ingest, metrics, oauth, stores, webhooks
from storesync_api.utils import configure_json_logging

app = FastAPI(
    title="StoreSync API",
    description=(
        "Multi-tenant Shopify data sync: OAuth install, bulk ingestion, "
        "signed webhook reconciliation and dashboard metrics."
    ),
    version="1.0.0",
    docs_url="/api-docs",
    redoc_url="/redoc",
)

# Structured JSON logging
# Set STORESYNC_JSON_LOGS=false to disable (defaults to true for production)
if os.getenv("STORESYNC_JSON_LOGS", "true").lower() != "false":
    configure_json_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))
    logger = logging.getLogger(__name__)
    logger.info("Structured JSON logging enabled")

# MDN: credentials mode CANNOT use wildcard origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


# ============================================================================
# HTTP Request Completion Logging Middleware
# ============================================================================


@app.middleware("http")
async def http_completion_logging_middleware(request: Request, call_next):
    """Log every HTTP request completion.

    - Every HTTP request emits "http.request.completed" log
    - Fields: method, path, status_code, duration_ms (+ request/tenant/shop context)
    - Logs even on exceptions (status_code=500)
    - Clears per-request contextvars at start and end
    """
    tenant_id_var.set("")
    shop_domain_var.set("")

    start_time = time.perf_counter()
    status_code = 500  # Default to 500 in case of unhandled exception

    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000

        logging.getLogger(__name__).info(
            "http.request.completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        tenant_id_var.set("")
        shop_domain_var.set("")


# ============================================================================
# Request ID Middleware (MUST BE OUTERMOST)
# ============================================================================


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Generate and propagate request_id for observability.

    - Accepts X-Request-ID header from client (optional)
    - Generates new UUID if not provided
    - Returns X-Request-ID in response headers

    IMPORTANT: Registered last (outermost middleware) so request_id is set in
    the parent async context before other middlewares execute.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request_id_var.set(request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# ============================================================================
# RFC 9457 Global Exception Handlers
# ============================================================================


@app.exception_handler(StoreSyncError)
async def storesync_error_handler(request: Request, exc: StoreSyncError) -> JSONResponse:
    """Render domain errors that escape a route as Problem Details."""
    return problem_response(
        status=exc.status_code,
        type_uri=exc.error_type,
        title=exc.title,
        detail=exc.detail,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with RFC 9457 Problem Details format.

    Returns application/problem+json with top-level RFC 9457 fields.
    No {"detail": ...} wrapper; dict details are preserved.
    """
    detail_value = exc.detail if exc.detail is not None else _get_title_for_status(exc.status_code)

    return problem_response(
        status=exc.status_code,
        type_uri=f"{PROBLEM_BASE_URI}/http-{exc.status_code}",
        title=_get_title_for_status(exc.status_code),
        detail=detail_value,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors with RFC 9457 Problem Details format.

    Returns 422 Unprocessable Entity with application/problem+json.
    """
    first_error = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(loc) for loc in first_error.get("loc", []))
    msg = first_error.get("msg", "Validation error")

    return problem_response(
        status=422,
        type_uri=f"{PROBLEM_BASE_URI}/validation-error",
        title="Request Validation Failed",
        detail=f"Invalid field '{field}': {msg}",
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with RFC 9457 Problem Details format."""
    logging.getLogger(__name__).error(f"Unhandled exception: {type(exc).__name__}", exc_info=True)

    return problem_response(
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        type_uri=f"{PROBLEM_BASE_URI}/internal-error",
        title="Internal Server Error",
        detail="An unexpected error occurred. Please try again later.",
    )


def _get_title_for_status(status_code: int) -> str:
    """Get human-readable title for HTTP status code."""
    titles = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        409: "Conflict",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
        502: "Bad Gateway",
        503: "Service Unavailable",
    }
    return titles.get(status_code, f"HTTP {status_code}")


# Include routers
app.include_router(health.router)
app.include_router(webhooks.router)
app.include_router(ingest.router)
app.include_router(oauth.router)
app.include_router(stores.router)
app.include_router(metrics.router)
