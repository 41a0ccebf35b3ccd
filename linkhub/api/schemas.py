"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Design Principles:
- Request models: Define input validation
- Response models: Define output structure (JSON keys are camelCase)
- Field names stay snake_case in Python; either spelling is accepted on input
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from linkhub.core.validators import MAX_CODE_LENGTH, MAX_URL_LENGTH


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Links and collections

class CreateLinkRequest(CamelModel):
    """Request model for link creation."""
    url: str = Field(..., max_length=MAX_URL_LENGTH, description="The long URL to shorten")
    title: Optional[str] = Field(default=None, max_length=200)
    custom_alias: Optional[str] = Field(
        default=None,
        max_length=MAX_CODE_LENGTH,
        description="Alias used instead of a generated code (letters, digits, '-' and '_')"
    )
    password: Optional[str] = Field(default=None, min_length=1, max_length=72)
    expires_at: Optional[datetime] = Field(default=None, description="Expiry (UTC when no offset is given)")
    collection_id: Optional[int] = None


class LinkResponse(CamelModel):
    """Response model for a link."""
    id: int
    title: str
    short_code: str
    short_url: str = Field(..., description="The complete short URL")
    target_url: str
    custom_alias: Optional[str] = None
    collection_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    is_active: bool
    password_protected: bool
    created_at: datetime


class AssignCollectionRequest(CamelModel):
    """Move a link into a collection; null removes it from any collection."""
    collection_id: Optional[int] = None


class CreateCollectionRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)


class CollectionResponse(CamelModel):
    id: int
    name: str
    slug: str
    created_at: datetime


# Analytics

class DateClicksResponse(CamelModel):
    date: str
    clicks: int
    unique_visitors: int


class AnalyticsSummary(CamelModel):
    total_clicks: int
    unique_visitors: int
    click_growth: float = Field(..., description="Percent change of the last 7 dates vs the 7 before")
    average_clicks_per_day: float


class LinkAnalyticsSummary(AnalyticsSummary):
    click_to_visitor_ratio: float


class AggregateAnalyticsSummary(AnalyticsSummary):
    total_links: int
    average_clicks_per_link: float


class AnalyticsBreakdowns(CamelModel):
    """Fields shared by every analytics view."""
    clicks_by_date: List[DateClicksResponse]
    clicks_by_hour: List[int] = Field(..., description="24 entries, index = UTC hour")
    clicks_by_day: List[int] = Field(..., description="7 entries, index 0 = Sunday")
    device_breakdown: Dict[str, int]
    top_browsers: Dict[str, int]
    os_breakdown: Dict[str, int]
    top_countries: Dict[str, int]
    top_cities: Dict[str, int]
    top_referrers: Dict[str, int]


class LinkDetails(CamelModel):
    id: int
    title: str
    short_code: str
    custom_alias: Optional[str] = None
    short_url: str
    target_url: str
    click_count: int


class UrlInfo(CamelModel):
    title: str
    short_code: str
    short_url: str
    target_url: str
    created_at: datetime


class TopLinkEntry(CamelModel):
    link_id: int
    clicks: int
    unique_visitors: int
    last_clicked_at: Optional[datetime] = None
    url_details: LinkDetails


class CollectionInfo(CamelModel):
    name: str
    slug: str
    link_count: int
    created_at: datetime


class LinkAnalyticsResponse(AnalyticsBreakdowns):
    summary: LinkAnalyticsSummary
    url_info: UrlInfo


class CollectionAnalyticsResponse(AnalyticsBreakdowns):
    summary: AggregateAnalyticsSummary
    top_links: List[TopLinkEntry]
    collection_info: CollectionInfo


class UserAnalyticsResponse(AnalyticsBreakdowns):
    summary: AggregateAnalyticsSummary
    top_link: Optional[LinkDetails] = None


class UserStatsResponse(CamelModel):
    total_links: int
    total_clicks: int
    avg_clicks: int
    top_link: Optional[LinkDetails] = None
