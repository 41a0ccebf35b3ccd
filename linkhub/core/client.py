"""
Request Context Helpers

Small helpers for reading client information off an incoming request.
Shared by the logging middleware and the redirect endpoint.
"""

from typing import Optional

from starlette.requests import Request


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers: the first entry of X-Forwarded-For
    wins, then X-Real-IP, then the socket address.

    Args:
        request: Starlette/FastAPI Request object

    Returns:
        IP address as string ("unknown" when nothing is available)
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def get_referrer(request: Request) -> Optional[str]:
    """Return the Referer (or misspelt-but-seen Referrer) header, if any."""
    return request.headers.get("Referer") or request.headers.get("Referrer")
