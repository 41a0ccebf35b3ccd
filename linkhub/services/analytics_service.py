"""
Analytics Report Service

This service builds the analytics read views:
- Per link: the link's own record
- Per collection: roll-up of the records of every link in the collection
- Per user: roll-up of every record the user owns
- User quick stats: totals straight from the denormalized link counters

Design Decisions:
- Records are loaded through the AnalyticsStore and merged by the roll-up
  engine; this service only adds ownership checks and link details
- A link without a stored record counts as a zeroed record
- Ownership failures look exactly like missing resources (404 upstream)

Returned dictionaries use snake_case keys; the API schemas expose them in
camelCase.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.core.clock import as_utc, utcnow
from linkhub.core.exceptions import CollectionNotFoundError, LinkNotFoundError
from linkhub.core.setting import settings
from linkhub.db.models import Collection, ShortLink
from linkhub.services.analytics_record import AnalyticsRecord
from linkhub.services.analytics_store import AnalyticsStore
from linkhub.services.rollup import roll_up, summarize


def short_url_for(link: ShortLink) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/{link.short_code}"


def link_details(link: ShortLink) -> Dict[str, Any]:
    """Compact description of a link, used in topLinks / topLink."""
    return {
        "id": link.id,
        "title": link.title,
        "short_code": link.short_code,
        "custom_alias": link.custom_alias,
        "short_url": short_url_for(link),
        "target_url": link.target_url,
        "click_count": link.click_count,
    }


class AnalyticsReportService:
    """
    Service for retrieving link, collection and user analytics.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        """
        Args:
            session: Async database session for database operations
            clock: Returns the current UTC time (period filters are relative to it)
        """
        self.session = session
        self.clock = clock
        self.store = AnalyticsStore(session)

    def _summarize(self, records: List[AnalyticsRecord], period: Optional[str], include_link_average: bool) -> Dict[str, Any]:
        return summarize(
            roll_up(records),
            period if period is not None else settings.DEFAULT_ANALYTICS_PERIOD,
            self.clock().date(),
            top_browsers=settings.TOP_BROWSERS_LIMIT,
            top_breakdown=settings.TOP_BREAKDOWN_LIMIT,
            include_link_average=include_link_average,
        )

    async def _owned_link(self, link_id: int, owner_id: str) -> ShortLink:
        link = await self.session.get(ShortLink, link_id)
        if link is None or link.owner_id != owner_id:
            raise LinkNotFoundError(link_id)
        return link

    async def _top_link(self, owner_id: str) -> Optional[Dict[str, Any]]:
        result = await self.session.execute(
            select(ShortLink)
            .where(ShortLink.owner_id == owner_id)
            .order_by(ShortLink.click_count.desc(), ShortLink.id)
            .limit(1)
        )
        link = result.scalars().first()
        return link_details(link) if link else None

    async def link_report(self, link_id: int, owner_id: str, period: Optional[str] = None) -> Dict[str, Any]:
        """
        Analytics of one link.

        Raises:
            LinkNotFoundError: If the link is missing or not owned by owner_id
        """
        link = await self._owned_link(link_id, owner_id)
        record = await self.store.get(link.id) or AnalyticsRecord.empty(link.id, owner_id)

        report = self._summarize([record], period, include_link_average=False)
        report["summary"]["click_to_visitor_ratio"] = record.click_to_visitor_ratio
        report["url_info"] = {
            "title": link.title,
            "short_code": link.short_code,
            "short_url": short_url_for(link),
            "target_url": link.target_url,
            "created_at": as_utc(link.created_at),
        }
        return report

    async def collection_report(
        self, collection_id: int, owner_id: str, period: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Roll-up of every link in a collection, plus its top links.

        Raises:
            CollectionNotFoundError: If the collection is missing or not owned by owner_id
        """
        collection = await self.session.get(Collection, collection_id)
        if collection is None or collection.owner_id != owner_id:
            raise CollectionNotFoundError(collection_id)

        result = await self.session.execute(
            select(ShortLink).where(
                ShortLink.collection_id == collection_id,
                ShortLink.owner_id == owner_id,
            )
        )
        links = list(result.scalars().all())

        stored = {record.link_id: record for record in await self.store.list_for_links(link.id for link in links)}
        records = [stored.get(link.id) or AnalyticsRecord.empty(link.id, owner_id) for link in links]

        report = self._summarize(records, period, include_link_average=True)

        links_by_id = {link.id: link for link in links}
        ranked = sorted(records, key=lambda record: (-record.total_clicks, record.link_id))
        report["top_links"] = [
            {
                "link_id": record.link_id,
                "clicks": record.total_clicks,
                "unique_visitors": record.unique_visitors,
                "last_clicked_at": record.last_clicked_at,
                "url_details": link_details(links_by_id[record.link_id]),
            }
            for record in ranked[:settings.TOP_LINKS_LIMIT]
        ]
        report["collection_info"] = {
            "name": collection.name,
            "slug": collection.slug,
            "link_count": len(links),
            "created_at": as_utc(collection.created_at),
        }
        return report

    async def user_report(self, owner_id: str, period: Optional[str] = None) -> Dict[str, Any]:
        """Roll-up of every analytics record the user owns, plus their top link."""
        records = await self.store.list_for_owner(owner_id)
        report = self._summarize(records, period, include_link_average=True)
        report["top_link"] = await self._top_link(owner_id)
        return report

    async def user_stats(self, owner_id: str) -> Dict[str, Any]:
        """
        Quick stats from the link counters (no analytics records are read).

        Returns:
            Dictionary with total_links, total_clicks, avg_clicks (rounded to
            a whole number) and top_link
        """
        result = await self.session.execute(
            select(
                func.count(ShortLink.id),
                func.coalesce(func.sum(ShortLink.click_count), 0),
            ).where(ShortLink.owner_id == owner_id)
        )
        total_links, total_clicks = result.one()
        avg_clicks = int(total_clicks / total_links + 0.5) if total_links else 0

        return {
            "total_links": total_links,
            "total_clicks": total_clicks,
            "avg_clicks": avg_clicks,
            "top_link": await self._top_link(owner_id),
        }
