"""
DashRx Backend API
FastAPI application for the pharmacy delivery "request a quote" form.
"""

import logging
import os
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import config
from app.errors import (
    QuoteValidationError,
    RateLimitExceeded,
    SpamRejection,
    TransportFailure,
)
from app.limits import api_rate_limit_middleware
from app.models.quote import HealthResponse, QuoteErrorResponse
from app.routers import quote
from app.services.rate_limiter import FixedWindowRateLimiter, create_storage

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, body: QuoteErrorResponse, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def _contact_info() -> dict:
    return config.get_contact_info()


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the app.errors taxonomy onto HTTP responses.

    No handler includes exception text from below the validation layer, so
    stack traces, paths and SMTP errors never reach the client.
    """

    @app.exception_handler(QuoteValidationError)
    async def handle_validation_error(request: Request, exc: QuoteValidationError):
        body = QuoteErrorResponse(error=exc.error, details=exc.errors or None)
        return _error_response(400, body)

    @app.exception_handler(SpamRejection)
    async def handle_spam_rejection(request: Request, exc: SpamRejection):
        body = QuoteErrorResponse(error=exc.error, details=exc.public_details)
        return _error_response(400, body)

    @app.exception_handler(RateLimitExceeded)
    async def handle_rate_limit(request: Request, exc: RateLimitExceeded):
        body = QuoteErrorResponse(error=exc.message, retryAfter=exc.retry_after)
        headers = {"Retry-After": str(exc.retry_after), **exc.headers}
        return _error_response(429, body, headers=headers)

    @app.exception_handler(TransportFailure)
    async def handle_transport_failure(request: Request, exc: TransportFailure):
        body = QuoteErrorResponse(
            error="Internal server error. Please try again or contact us directly.",
            contactInfo=_contact_info(),
        )
        return _error_response(500, body)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and request.url.path.startswith("/api/"):
            return _error_response(404, QuoteErrorResponse(error="API endpoint not found"))
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = QuoteErrorResponse(error="Something went wrong", contactInfo=_contact_info())
        return _error_response(500, body)


async def log_requests(request: Request, call_next):
    """Log each request on entry and its status and duration on exit."""
    started = time.perf_counter()
    client = request.client.host if request.client else "unknown"
    logger.info("--> %s %s from %s", request.method, request.url.path, client)
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "<-- %s %s %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


def _health_payload() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=config.ENVIRONMENT,
    )


def create_app(
    api_limiter: Optional[FixedWindowRateLimiter] = None,
    quote_limiter: Optional[FixedWindowRateLimiter] = None,
    min_dwell_ms: Optional[int] = None,
    trust_proxy: Optional[bool] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Limiters default to one shared storage (RATE_LIMIT_STORAGE_URI) sized
    from the RATE_LIMIT_* / QUOTE_RATE_LIMIT_* env vars.  Tests pass their own
    to get isolated state.
    """
    app = FastAPI(
        title="DashRx API",
        description="Quote request intake for pharmacy prescription delivery",
        version=config.APP_VERSION,
    )

    storage = create_storage(config.RATE_LIMIT_STORAGE_URI)
    app.state.api_limiter = api_limiter or FixedWindowRateLimiter(
        "api",
        max_requests=config.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=config.RATE_LIMIT_WINDOW_MS / 1000,
        storage=storage,
    )
    app.state.quote_limiter = quote_limiter or FixedWindowRateLimiter(
        "quote",
        max_requests=config.QUOTE_RATE_LIMIT_MAX_REQUESTS,
        window_seconds=config.QUOTE_RATE_LIMIT_WINDOW_MS / 1000,
        storage=storage,
    )
    app.state.min_dwell_ms = config.MIN_SUBMISSION_DWELL_MS if min_dwell_ms is None else min_dwell_ms
    app.state.trust_proxy = config.TRUST_PROXY if trust_proxy is None else trust_proxy

    # Middleware added last runs first: request logging wraps rate limiting
    app.middleware("http")(api_rate_limit_middleware)
    app.middleware("http")(log_requests)

    # CORS: permissive in development, explicit origins everywhere else
    if config.ENVIRONMENT == "development":
        cors_origins = ["*"]
    else:
        cors_origins = config.get_cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(quote.router, prefix="/api", tags=["quote"])

    @app.on_event("startup")
    async def log_startup() -> None:
        """Log how the server is configured so misconfigured mail is obvious early."""
        host_port = os.getenv("HOST_PORT", "8000")
        mail = config.get_mail_settings()
        logger.info("DashRx API running on port %s (%s)", host_port, config.ENVIRONMENT)
        logger.info(
            "Mail: %s via %s:%s",
            "configured" if mail.is_configured else "NOT configured",
            mail.server,
            mail.port,
        )
        logger.info(
            "Rate limits: api=%d/%ss quote=%d/%ss",
            app.state.api_limiter.max_requests,
            app.state.api_limiter.window_seconds,
            app.state.quote_limiter.max_requests,
            app.state.quote_limiter.window_seconds,
        )

    @app.get("/")
    async def root():
        return {"message": "DashRx API", "version": config.APP_VERSION}

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return _health_payload()

    @app.get("/api/health", response_model=HealthResponse)
    async def api_health():
        """Liveness probe.  Not rate limited."""
        logger.info("Health check requested")
        return _health_payload()

    return app


app = create_app()
