"""
Request Logging Middleware

One log line per HTTP request on the "linkhub" logger:

    GET /abc1234 302 1.84ms ip=203.0.113.7 -> https://example.com/landing

Redirect lines end with where the visitor was sent, so a refused visit (the
dashboard's expired or password page) reads differently from a granted one.
Server errors are logged at ERROR, everything else at INFO. Click analytics
are recorded separately and never appear here.

The processing time in seconds is returned in the X-Process-Time header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from linkhub.core.client import get_client_ip

logger = logging.getLogger("linkhub")

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


def describe_request(request: Request, response: Response, elapsed_ms: float) -> str:
    """Build the log line for one request/response pair."""
    line = (
        f"{request.method} {request.url.path} {response.status_code} "
        f"{elapsed_ms:.2f}ms ip={get_client_ip(request)}"
    )
    location = response.headers.get("location")
    if response.status_code in REDIRECT_STATUSES and location:
        line += f" -> {location}"
    return line


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request and sets X-Process-Time."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(level, describe_request(request, response, elapsed * 1000))

        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        return response


def add_logging_middleware(app) -> None:
    app.add_middleware(LoggingMiddleware)
