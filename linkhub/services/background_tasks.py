"""
Background Task Helpers

Provides helper functions for background tasks that create their own database sessions.
Background tasks cannot use the endpoint's session as it's closed after the endpoint returns.

Click tracking is best-effort: every failure is logged and swallowed so the
visitor's redirect is never affected by analytics.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from linkhub.services.click_recorder import ClickRecorder
from linkhub.services.visitor_classifier import VisitorClassifier

logger = logging.getLogger(__name__)


async def record_click_background(
    session_factory: async_sessionmaker,
    classifier: VisitorClassifier,
    link_id: int,
    owner_id: str,
    visitor_id: str,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
    referrer: Optional[str] = None,
) -> None:
    """
    Background task to record a click.

    Creates its own database session as endpoint session is closed.

    Args:
        session_factory: Factory for the task's own session
        classifier: Visitor classifier
        link_id: The link that was clicked
        owner_id: Owner of the link
        visitor_id: Visitor token from the visitor_id cookie
        user_agent: User agent string (optional)
        ip_address: Client IP address (optional)
        referrer: Referer header (optional)
    """
    try:
        async with session_factory() as session:
            recorder = ClickRecorder(session, classifier)
            await recorder.record_click(
                link_id=link_id,
                owner_id=owner_id,
                visitor_id=visitor_id,
                user_agent=user_agent,
                ip_address=ip_address,
                referrer=referrer,
            )
    except Exception as e:
        logger.error(
            f"Failed to record click for link {link_id}: {str(e)}",
            exc_info=True
        )
