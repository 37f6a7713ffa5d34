"""HTTP middleware: request metrics logging and the general rate limit."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from expense_api.api.dependencies import client_address
from expense_api.errors import RateLimitedError
from expense_api.services.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger("expense_api.requests")

CallNext = Callable[[Request], Awaitable[Response]]

# Never throttled
EXEMPT_PATHS = frozenset({"/health"})


async def log_requests(request: Request, call_next: CallNext) -> Response:
    """Log method, path, status, duration and client for every request."""
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        _log_request(request, 500, start, logging.ERROR)
        raise
    _log_request(request, response.status_code, start)
    return response


def _log_request(request: Request, status_code: int, start: float, level: int = logging.INFO) -> None:
    duration_ms = (time.perf_counter() - start) * 1000
    logger.log(
        level,
        f"{request.method} {request.url.path} - {status_code} - {duration_ms:.1f}ms",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 3),
            "client": client_address(request),
        },
    )


async def rate_limit(request: Request, call_next: CallNext) -> Response:
    """Apply the general per-address budget before routing."""
    if request.url.path in EXEMPT_PATHS:
        return await call_next(request)

    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    decision = await limiter.hit(client_address(request))
    if not decision.allowed:
        error = RateLimitedError(decision.retry_after)
        return JSONResponse(
            status_code=error.http_status,
            content=error.to_response(),
            headers={**decision.headers(), **error.headers()},
        )

    response = await call_next(request)
    response.headers.update(decision.headers())
    return response
