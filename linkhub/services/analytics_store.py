"""
Analytics Record Store

Persistence for per-link analytics documents (the `link_analytics` table).

Design Decisions:
- Whole-record read-modify-write: traffic per link is modest, so records are
  loaded, mutated in memory and written back in one UPDATE
- The store flushes; committing is the caller's job (click recorder, link
  service), the same split the session dependency uses
- link_lock() serializes read-modify-write of one link inside a process so
  concurrent redirects on a hot link do not lose updates
- JSON columns hold explicit key -> value pairs; conversion to the in-memory
  AnalyticsRecord happens only here
"""

import asyncio
import logging
import weakref
from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.core.clock import as_utc, utcnow
from linkhub.db.models import LinkAnalytics
from linkhub.services.analytics_record import (
    AnalyticsRecord,
    DateClicks,
    empty_device_breakdown,
)

logger = logging.getLogger(__name__)

# One lock per link id; entries disappear once no coroutine holds the lock
_link_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()


def link_lock(link_id: int) -> asyncio.Lock:
    """Return the process-wide lock guarding one link's analytics record."""
    lock = _link_locks.get(link_id)
    if lock is None:
        lock = asyncio.Lock()
        _link_locks[link_id] = lock
    return lock


def record_from_row(row: LinkAnalytics) -> AnalyticsRecord:
    """Build an AnalyticsRecord from a stored row."""
    device_breakdown = empty_device_breakdown()
    device_breakdown.update({k: int(v) for k, v in (row.device_breakdown or {}).items()})

    return AnalyticsRecord(
        link_id=row.link_id,
        owner_id=row.owner_id,
        total_clicks=row.total_clicks or 0,
        unique_visitors=row.unique_visitors or 0,
        clicks_by_date=[
            DateClicks(
                date=str(entry["date"]),
                clicks=int(entry.get("clicks", 0)),
                unique_visitors=int(entry.get("unique_visitors", 0)),
            )
            for entry in (row.clicks_by_date or [])
            if entry.get("date")
        ],
        clicks_by_hour=list(row.clicks_by_hour or [0] * 24),
        clicks_by_day=list(row.clicks_by_day or [0] * 7),
        device_breakdown=device_breakdown,
        browser_breakdown=dict(row.browser_breakdown or {}),
        os_breakdown=dict(row.os_breakdown or {}),
        country_breakdown=dict(row.country_breakdown or {}),
        city_breakdown=dict(row.city_breakdown or {}),
        referrer_breakdown=dict(row.referrer_breakdown or {}),
        unique_visitor_ids=set(row.unique_visitor_ids or []),
        last_clicked_at=as_utc(row.last_clicked_at),
    )


def copy_record_to_row(record: AnalyticsRecord, row: LinkAnalytics) -> None:
    """
    Write every field of `record` onto `row`.

    Fresh containers are assigned so SQLAlchemy sees the JSON columns as changed.
    """
    row.owner_id = record.owner_id
    row.total_clicks = record.total_clicks
    row.unique_visitors = record.unique_visitors
    row.clicks_by_date = [
        {"date": entry.date, "clicks": entry.clicks, "unique_visitors": entry.unique_visitors}
        for entry in record.clicks_by_date
    ]
    row.clicks_by_hour = list(record.clicks_by_hour)
    row.clicks_by_day = list(record.clicks_by_day)
    row.device_breakdown = dict(record.device_breakdown)
    row.browser_breakdown = dict(record.browser_breakdown)
    row.os_breakdown = dict(record.os_breakdown)
    row.country_breakdown = dict(record.country_breakdown)
    row.city_breakdown = dict(record.city_breakdown)
    row.referrer_breakdown = dict(record.referrer_breakdown)
    row.unique_visitor_ids = sorted(record.unique_visitor_ids)
    row.last_clicked_at = record.last_clicked_at
    row.updated_at = utcnow()


class AnalyticsStore:
    """
    Keyed storage of AnalyticsRecords (one per link id).
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def _get_row(self, link_id: int) -> Optional[LinkAnalytics]:
        return await self.session.get(LinkAnalytics, link_id)

    async def get(self, link_id: int) -> Optional[AnalyticsRecord]:
        """Return the record for a link, or None if it has none yet."""
        row = await self._get_row(link_id)
        return record_from_row(row) if row else None

    async def get_or_create(self, link_id: int, owner_id: str) -> AnalyticsRecord:
        """
        Fetch the record for a link, persisting a zeroed one if missing.

        Args:
            link_id: Id of the ShortLink the record belongs to
            owner_id: Owner of the link (stored for per-user roll-ups)

        Returns:
            The existing or newly created record
        """
        row = await self._get_row(link_id)
        if row is not None:
            return record_from_row(row)

        record = AnalyticsRecord.empty(link_id, owner_id)
        row = LinkAnalytics(link_id=link_id, owner_id=owner_id)
        copy_record_to_row(record, row)
        self.session.add(row)
        await self.session.flush()
        logger.debug("Created analytics record for link %s", link_id)
        return record

    async def save(self, record: AnalyticsRecord) -> None:
        """Persist the full state of a record (insert or update)."""
        row = await self._get_row(record.link_id)
        if row is None:
            row = LinkAnalytics(link_id=record.link_id, owner_id=record.owner_id)
            self.session.add(row)
        copy_record_to_row(record, row)
        await self.session.flush()

    async def delete_for_link(self, link_id: int) -> bool:
        """
        Remove a link's record.

        Returns:
            True if a record was deleted
        """
        result = await self.session.execute(
            delete(LinkAnalytics).where(LinkAnalytics.link_id == link_id)
        )
        return (result.rowcount or 0) > 0

    async def list_for_links(self, link_ids: Iterable[int]) -> List[AnalyticsRecord]:
        """Records for the given links; links without a record are skipped."""
        ids = list(link_ids)
        if not ids:
            return []
        result = await self.session.execute(
            select(LinkAnalytics).where(LinkAnalytics.link_id.in_(ids))
        )
        return [record_from_row(row) for row in result.scalars().all()]

    async def list_for_owner(self, owner_id: str) -> List[AnalyticsRecord]:
        """All records belonging to one owner."""
        result = await self.session.execute(
            select(LinkAnalytics).where(LinkAnalytics.owner_id == owner_id)
        )
        return [record_from_row(row) for row in result.scalars().all()]
