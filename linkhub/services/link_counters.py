"""
Link Counter Service

Maintains the lightweight counters denormalized onto ShortLink
(click_count, unique_visitors, last_clicked_at) so list views never have to
load analytics documents.

Design Decisions:
- Uses database-level atomic increment rather than read-modify-write
- Eventually consistent with the analytics record; the record is the
  source of truth
"""

from datetime import datetime
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.db.models import ShortLink


class LinkCounterService:
    """
    Service for managing a link's lightweight counters.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def record_click(self, link_id: int, clicked_at: datetime, unique_visitors: int) -> None:
        """
        Count one click on a link.

        click_count is incremented in SQL (atomic, no lost updates);
        unique_visitors is copied from the analytics record.

        Args:
            link_id: The link that was clicked
            clicked_at: When the click happened (UTC)
            unique_visitors: Current unique visitor count of the link's record

        Note:
        - Silently does nothing if the link no longer exists
        - Commit is handled by the caller
        """
        statement = (
            update(ShortLink)
            .where(ShortLink.id == link_id)
            .values(
                click_count=ShortLink.click_count + 1,
                last_clicked_at=clicked_at,
                unique_visitors=unique_visitors,
            )
        )
        await self.session.execute(statement)
