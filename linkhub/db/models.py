"""
Database Models for the LinkHub Service

This module defines the SQLModel database schemas for:
- ShortLink: Mapping between a short code (or custom alias) and a target URL
- Collection: A named group of links owned by a user
- LinkAnalytics: The per-link analytics document (one row per link)

Design Decisions:
- Analytics live in their own table so the hot redirect lookup never loads them
- Breakdown maps and series are JSON columns holding explicit key -> value pairs
- click_count / unique_visitors / last_clicked_at are denormalized on ShortLink
  for cheap list views; the LinkAnalytics row is the source of truth
"""

from sqlmodel import SQLModel, Field, Column
from datetime import datetime
from typing import Optional
from sqlalchemy import JSON, Boolean, String, DateTime, Integer, Text

from linkhub.core.clock import utcnow


def _zeros(size: int):
    return lambda: [0] * size


def _device_totals() -> dict:
    return {"mobile": 0, "desktop": 0, "tablet": 0, "other": 0}


class ShortLink(SQLModel, table=True):
    """
    Main table storing link shortening mappings.

    Indexes:
    - short_code / custom_alias: Unique, used by every redirect
    - owner_id, collection_id: Used by list views and analytics roll-ups

    Ids are never reused (AUTOINCREMENT on SQLite), so a deleted link's id
    cannot be handed to a new link.
    """
    __tablename__ = "short_links"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    title: str = Field(
        default="Untitled Link",
        sa_column=Column(String(200), nullable=False, default="Untitled Link")
    )
    target_url: str = Field(sa_column=Column(Text, nullable=False))
    short_code: str = Field(
        sa_column=Column(String(30), nullable=False, unique=True, index=True)
    )
    custom_alias: Optional[str] = Field(
        default=None,
        sa_column=Column(String(30), nullable=True, unique=True, index=True)
    )
    password_hash: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), nullable=True)
    )
    expires_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True, index=True)
    )
    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True, index=True)
    )
    collection_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True, index=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )

    # Lightweight counters (denormalized from LinkAnalytics)
    click_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    unique_visitors: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    last_clicked_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class Collection(SQLModel, table=True):
    """
    A named group of links. Links point at their collection via
    ShortLink.collection_id.
    """
    __tablename__ = "collections"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    name: str = Field(sa_column=Column(String(200), nullable=False))
    slug: str = Field(sa_column=Column(String(200), nullable=False, index=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )


class LinkAnalytics(SQLModel, table=True):
    """
    Per-link analytics document.

    Exactly one row per ShortLink (primary key is the link id). Mapped to and
    from linkhub.services.analytics_record.AnalyticsRecord by the analytics
    store; nothing else reads these columns directly.

    JSON column shapes:
    - clicks_by_date: [{"date": "YYYY-MM-DD", "clicks": int, "unique_visitors": int}, ...]
    - clicks_by_hour: [int] * 24
    - clicks_by_day: [int] * 7 (0 = Sunday)
    - device_breakdown: {"mobile": int, "desktop": int, "tablet": int, "other": int}
    - *_breakdown: {key: int}
    - unique_visitor_ids: [str] (a set in memory)
    """
    __tablename__ = "link_analytics"

    link_id: int = Field(sa_column=Column(Integer, primary_key=True, autoincrement=False))
    owner_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))

    total_clicks: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    unique_visitors: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))

    clicks_by_date: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    clicks_by_hour: list = Field(default_factory=_zeros(24), sa_column=Column(JSON, nullable=False))
    clicks_by_day: list = Field(default_factory=_zeros(7), sa_column=Column(JSON, nullable=False))

    device_breakdown: dict = Field(default_factory=_device_totals, sa_column=Column(JSON, nullable=False))
    browser_breakdown: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    os_breakdown: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    country_breakdown: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    city_breakdown: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    referrer_breakdown: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    unique_visitor_ids: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    last_clicked_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
