"""
Click Recorder

The tracking half of a redirect: once access to a link has been granted,
classify the visitor and fold the click into the link's analytics record.

Steps per click:
1. Classify the visitor (device, browser, OS, geo) and reduce the referrer
   to its hostname
2. Under the link's lock: skip the click if the link was deleted meanwhile,
   otherwise get-or-create the record, apply the click, save,
   commit (one unit of work, so the record's invariants always hold)
3. Bump the link's lightweight counters in a separate transaction

The recorder raises on failure; keeping failures away from the redirect is
the job of record_click_background (linkhub.services.background_tasks).
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.core.clock import utcnow
from linkhub.db.models import ShortLink
from linkhub.services.analytics_record import AnalyticsRecord, ClickEvent
from linkhub.services.analytics_store import AnalyticsStore, link_lock
from linkhub.services.link_counters import LinkCounterService
from linkhub.services.visitor_classifier import VisitorClassifier, referrer_domain

logger = logging.getLogger(__name__)


class ClickRecorder:
    """
    Records clicks on short links into their analytics records.
    """

    def __init__(
        self,
        session: AsyncSession,
        classifier: VisitorClassifier,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            session: Async database session (the recorder commits on it)
            classifier: Visitor classifier used for every click
            clock: Returns the current UTC time; injectable for tests
        """
        self.session = session
        self.classifier = classifier
        self.clock = clock
        self.store = AnalyticsStore(session)
        self.counters = LinkCounterService(session)

    def build_click(
        self,
        visitor_id: str,
        user_agent: Optional[str],
        ip_address: Optional[str],
        referrer: Optional[str],
    ) -> ClickEvent:
        """Classify the request data of one redirect into a ClickEvent."""
        return ClickEvent(
            visitor_id=visitor_id,
            profile=self.classifier.classify(user_agent, ip_address),
            referrer=referrer_domain(referrer),
            occurred_at=self.clock(),
        )

    async def _link_exists(self, link_id: int, owner_id: str) -> bool:
        """True while the resolved link is still stored under the same owner."""
        result = await self.session.execute(
            select(ShortLink.id).where(ShortLink.id == link_id, ShortLink.owner_id == owner_id)
        )
        return result.scalar_one_or_none() is not None

    async def record_click(
        self,
        link_id: int,
        owner_id: str,
        visitor_id: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
        referrer: Optional[str] = None,
    ) -> Optional[AnalyticsRecord]:
        """
        Record one click on a link.

        Clicks on a link deleted since the redirect are dropped; delete_link
        takes the same link lock, so no record is written after the delete.

        Args:
            link_id: Id of the clicked link
            owner_id: Owner of the link when it was resolved
            visitor_id: Visitor token from the visitor_id cookie
            user_agent: Raw User-Agent header
            ip_address: Client IP address
            referrer: Raw Referer header

        Returns:
            The updated analytics record, or None if the link no longer exists
        """
        click = self.build_click(visitor_id, user_agent, ip_address, referrer)

        async with link_lock(link_id):
            if not await self._link_exists(link_id, owner_id):
                logger.info("Dropped click on deleted link %s", link_id)
                return None

            record = await self.store.get_or_create(link_id, owner_id)
            is_unique = record.apply_click(click)
            await self.store.save(record)
            await self.session.commit()

        await self.counters.record_click(link_id, click.occurred_at, record.unique_visitors)
        await self.session.commit()

        logger.debug(
            "Recorded click on link %s (unique=%s, device=%s, country=%s)",
            link_id, is_unique, click.profile.device, click.profile.country
        )
        return record
