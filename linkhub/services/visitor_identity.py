"""
Visitor Identity

Unique visitors are counted per browser: the first redirect issues a
long-lived `visitor_id` cookie and later redirects read it back.

The token is an analytics heuristic, not a security boundary. Shared or
cleared cookies undercount or overcount real people, which is accepted.
"""

import random
import string
import time
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from linkhub.core.setting import settings

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def generate_visitor_id(now_ms: Optional[int] = None) -> str:
    """
    Create a new visitor token: "v_<epoch milliseconds>_<9 base36 chars>".
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(_TOKEN_ALPHABET, k=9))
    return f"v_{now_ms}_{suffix}"


def resolve_visitor_id(
    request: Request,
    response: Response,
    cookie_name: Optional[str] = None,
    max_age: Optional[int] = None,
) -> str:
    """
    Return the visitor token for this request, issuing one when absent.

    A newly issued token is set on `response` as an httpOnly, SameSite=Lax
    cookie that lives for a year (VISITOR_COOKIE_MAX_AGE).

    Args:
        request: Incoming request carrying the cookie jar
        response: Response the cookie is written to when needed
        cookie_name: Override for settings.VISITOR_COOKIE_NAME
        max_age: Override for settings.VISITOR_COOKIE_MAX_AGE

    Returns:
        The existing or newly created visitor token
    """
    cookie_name = cookie_name or settings.VISITOR_COOKIE_NAME
    visitor_id = request.cookies.get(cookie_name)
    if visitor_id:
        return visitor_id

    visitor_id = generate_visitor_id()
    response.set_cookie(
        key=cookie_name,
        value=visitor_id,
        max_age=max_age if max_age is not None else settings.VISITOR_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
    )
    return visitor_id
