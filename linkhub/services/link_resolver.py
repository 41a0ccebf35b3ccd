"""
Link Resolver

This service handles the lookup half of a redirect: short code (or custom
alias) -> link, plus the access checks that decide whether the visitor is
sent to the target.

Design Decisions:
- Lookup matches the short code exactly or the custom alias case-insensitively
  (aliases are stored lowercase); an exact short-code match wins
- Gating order: expired, inactive, password (expired and inactive links both
  go to the "expired" page)
- Expired links are switched to inactive the first time they are hit
- No analytics here; the caller records the click once access is granted
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.core.clock import as_utc, utcnow
from linkhub.core.security import verify_password
from linkhub.db.models import ShortLink

logger = logging.getLogger(__name__)


class AccessDenial(str, Enum):
    """Why a redirect was refused."""
    inactive = "inactive"
    expired = "expired"
    password_required = "password_required"
    password_invalid = "password_invalid"


@dataclass
class LinkResolution:
    """Outcome of resolving a short code."""
    link_id: int
    owner_id: str
    target_url: str
    short_code: str
    access_granted: bool
    denial: Optional[AccessDenial] = None


class LinkResolver:
    """
    Service for resolving short codes into redirect decisions.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def find_link(self, code: str) -> Optional[ShortLink]:
        """
        Look a link up by short code or custom alias.

        Returns:
            ShortLink if found, None otherwise
        """
        statement = select(ShortLink).where(
            or_(ShortLink.short_code == code, ShortLink.custom_alias == code.lower())
        )
        result = await self.session.execute(statement)
        links = result.scalars().all()
        if not links:
            return None
        for link in links:
            if link.short_code == code:
                return link
        return links[0]

    async def _expire(self, link: ShortLink) -> None:
        link.is_active = False
        self.session.add(link)
        await self.session.commit()
        logger.info("Link %s expired and was deactivated", link.id)

    async def resolve(self, code: str, password: Optional[str] = None) -> Optional[LinkResolution]:
        """
        Resolve a short code and apply the access checks.

        Args:
            code: Short code or custom alias from the request path
            password: Value of the `?password=` query parameter, if any

        Returns:
            LinkResolution, or None if no link matches the code
        """
        link = await self.find_link(code)
        if link is None:
            return None

        denial = None
        expires_at = as_utc(link.expires_at)
        if expires_at is not None and expires_at < utcnow():
            if link.is_active:
                await self._expire(link)
            denial = AccessDenial.expired
        elif not link.is_active:
            denial = AccessDenial.inactive
        elif link.password_hash:
            if not password:
                denial = AccessDenial.password_required
            elif not verify_password(password, link.password_hash):
                denial = AccessDenial.password_invalid

        return LinkResolution(
            link_id=link.id,
            owner_id=link.owner_id,
            target_url=link.target_url,
            short_code=link.short_code,
            access_granted=denial is None,
            denial=denial,
        )
