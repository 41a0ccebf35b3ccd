"""
FastAPI Endpoints for Click Analytics

Read-only views over the per-link analytics records:
- /analytics/links/{link_id}: one link
- /analytics/collections/{collection_id}: every link of a collection, rolled up
- /analytics/user: every link of the caller, rolled up
- /analytics/user/stats: quick totals from the link counters

`period` narrows the date series ("7d", "30d", "90d", "all" or a number of
days); anything unparsable means "all". Resources not owned by the caller
answer 404.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.api.dependencies import get_owner_id
from linkhub.api.schemas import (
    CollectionAnalyticsResponse,
    LinkAnalyticsResponse,
    UserAnalyticsResponse,
    UserStatsResponse,
)
from linkhub.core.exceptions import CollectionNotFoundError, LinkNotFoundError
from linkhub.db.session import get_session
from linkhub.services.analytics_service import AnalyticsReportService

router = APIRouter(prefix="/analytics")

PERIOD_DESCRIPTION = "7d, 30d, 90d, all or a number of days (default 30d)"


@router.get(
    "/links/{link_id}",
    response_model=LinkAnalyticsResponse,
    summary="Get link analytics"
)
async def get_link_analytics(
    link_id: int,
    period: Optional[str] = Query(default=None, description=PERIOD_DESCRIPTION),
    owner_id: str = Depends(get_owner_id),
    session: AsyncSession = Depends(get_session)
) -> LinkAnalyticsResponse:
    """
    Raises:
        HTTPException 404: If the link is not found or not owned by the caller
    """
    try:
        report = await AnalyticsReportService(session).link_report(link_id, owner_id, period)
    except LinkNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return LinkAnalyticsResponse.model_validate(report)


@router.get(
    "/collections/{collection_id}",
    response_model=CollectionAnalyticsResponse,
    summary="Get collection analytics"
)
async def get_collection_analytics(
    collection_id: int,
    period: Optional[str] = Query(default=None, description=PERIOD_DESCRIPTION),
    owner_id: str = Depends(get_owner_id),
    session: AsyncSession = Depends(get_session)
) -> CollectionAnalyticsResponse:
    """
    Raises:
        HTTPException 404: If the collection is not found or not owned by the caller
    """
    try:
        report = await AnalyticsReportService(session).collection_report(collection_id, owner_id, period)
    except CollectionNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return CollectionAnalyticsResponse.model_validate(report)


@router.get(
    "/user",
    response_model=UserAnalyticsResponse,
    summary="Get analytics across all of the caller's links"
)
async def get_user_analytics(
    period: Optional[str] = Query(default=None, description=PERIOD_DESCRIPTION),
    owner_id: str = Depends(get_owner_id),
    session: AsyncSession = Depends(get_session)
) -> UserAnalyticsResponse:
    report = await AnalyticsReportService(session).user_report(owner_id, period)
    return UserAnalyticsResponse.model_validate(report)


@router.get(
    "/user/stats",
    response_model=UserStatsResponse,
    summary="Get quick stats for the caller's links"
)
async def get_user_stats(
    owner_id: str = Depends(get_owner_id),
    session: AsyncSession = Depends(get_session)
) -> UserStatsResponse:
    stats = await AnalyticsReportService(session).user_stats(owner_id)
    return UserStatsResponse.model_validate(stats)
