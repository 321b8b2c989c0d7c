"""
Rate limiting glue for FastAPI.

Two limiters live on ``app.state`` (built in app.main.create_app):

  api_limiter    loose, applied by middleware to every /api/ path except
                 the health check and static assets
  quote_limiter  strict, applied as a dependency on POST /api/quote

Both key on the client identity returned by get_client_identity().
"""

import logging
from typing import Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from app.errors import RateLimitExceeded
from app.services.rate_limiter import FixedWindowRateLimiter, RateLimitDecision

logger = logging.getLogger(__name__)

API_LIMIT_MESSAGE = "Too many requests from this IP. Please try again in a minute."
QUOTE_LIMIT_MESSAGE = "Too many quote requests. Please wait a minute before submitting again."

# Never counted against the general limiter
EXEMPT_PATH_PREFIXES = ("/favicon", "/robots", "/sitemap", "/static/", "/api/health")


def get_client_identity(request: Request) -> str:
    """
    Identify the client for rate limiting.

    Uses the socket peer address.  When ``app.state.trust_proxy`` is set the
    first X-Forwarded-For hop is used instead, since the peer is then the
    reverse proxy.
    """
    if getattr(request.app.state, "trust_proxy", False):
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def is_rate_limit_exempt(path: str) -> bool:
    return path.startswith(EXEMPT_PATH_PREFIXES)


async def enforce_quote_rate_limit(request: Request) -> RateLimitDecision:
    """
    FastAPI dependency: count this quote attempt and reject if over quota.

    Runs before the body is read, so over-quota clients cost no validation
    work.  Every attempt counts, including ones that later fail validation.
    """
    limiter: FixedWindowRateLimiter = request.app.state.quote_limiter
    decision = limiter.hit(get_client_identity(request))
    if not decision.allowed:
        raise RateLimitExceeded(QUOTE_LIMIT_MESSAGE, decision.retry_after, decision.headers())
    return decision


async def api_rate_limit_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """
    HTTP middleware applying the general API limiter.

    Middleware sits outside FastAPI's exception handlers, so the 429 body is
    built here instead of raising RateLimitExceeded.
    """
    path = request.url.path
    if not path.startswith("/api/") or is_rate_limit_exempt(path):
        return await call_next(request)

    limiter: FixedWindowRateLimiter = request.app.state.api_limiter
    decision = limiter.hit(get_client_identity(request))
    if not decision.allowed:
        return JSONResponse(
            status_code=429,
            content={
                "success": False,
                "error": API_LIMIT_MESSAGE,
                "retryAfter": decision.retry_after,
            },
            headers=decision.headers(),
        )

    response = await call_next(request)
    for name, value in decision.headers().items():
        response.headers.setdefault(name, value)
    return response
