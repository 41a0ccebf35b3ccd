"""
Request identity.

Authentication happens upstream; the authenticated user's id arrives in the
X-User-Id header.
"""

from typing import Optional

from fastapi import Header, HTTPException, status


async def get_owner_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """Return the caller's user id, 401 if the header is missing."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header"
        )
    return x_user_id.strip()
