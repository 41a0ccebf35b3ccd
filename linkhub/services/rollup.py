"""
Aggregation Roll-Up Engine

Merges any number of per-link AnalyticsRecords into one summary, as used by
the per-link, per-collection and per-user analytics views.

Design Decisions:
- AnalyticsAggregate is a plain accumulator; merge() is associative and
  commutative, so a summary never depends on record order
- Period filtering only narrows the date series (and averageClicksPerDay);
  hour/day/device/breakdown aggregates always cover all time
- Stateless: records are only read, never mutated
"""

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from linkhub.services.analytics_record import (
    DAYS_PER_WEEK,
    HOURS_PER_DAY,
    AnalyticsRecord,
    DateClicks,
    empty_device_breakdown,
    increment,
)

GROWTH_WINDOW = 7

_PERIOD_PATTERN = re.compile(r"^\s*(\d+)\s*(d|day|days)?\s*$", re.IGNORECASE)

BREAKDOWN_FIELDS = (
    "browser_breakdown",
    "os_breakdown",
    "country_breakdown",
    "city_breakdown",
    "referrer_breakdown",
)


def _merge_counts(target: Dict[str, int], source: Dict[str, int]) -> None:
    for key, count in source.items():
        increment(target, key, count or 0)


@dataclass
class AnalyticsAggregate:
    """
    Accumulated analytics of a set of links.

    clicks_by_date is keyed by the YYYY-MM-DD date string.
    """
    link_count: int = 0
    total_clicks: int = 0
    unique_visitors: int = 0
    clicks_by_date: Dict[str, DateClicks] = field(default_factory=dict)
    clicks_by_hour: List[int] = field(default_factory=lambda: [0] * HOURS_PER_DAY)
    clicks_by_day: List[int] = field(default_factory=lambda: [0] * DAYS_PER_WEEK)
    device_breakdown: Dict[str, int] = field(default_factory=empty_device_breakdown)
    browser_breakdown: Dict[str, int] = field(default_factory=dict)
    os_breakdown: Dict[str, int] = field(default_factory=dict)
    country_breakdown: Dict[str, int] = field(default_factory=dict)
    city_breakdown: Dict[str, int] = field(default_factory=dict)
    referrer_breakdown: Dict[str, int] = field(default_factory=dict)

    def _add_date(self, date_key: str, clicks: int, unique_visitors: int) -> None:
        bucket = self.clicks_by_date.get(date_key)
        if bucket is None:
            bucket = DateClicks(date=date_key)
            self.clicks_by_date[date_key] = bucket
        bucket.clicks += clicks
        bucket.unique_visitors += unique_visitors

    def add_record(self, record: AnalyticsRecord) -> "AnalyticsAggregate":
        """Fold one link's record into the aggregate (in place)."""
        self.link_count += 1
        self.total_clicks += record.total_clicks
        self.unique_visitors += record.unique_visitors

        for entry in record.clicks_by_date:
            self._add_date(entry.date, entry.clicks, entry.unique_visitors)

        for hour, count in enumerate(record.clicks_by_hour[:HOURS_PER_DAY]):
            self.clicks_by_hour[hour] += count or 0
        for day, count in enumerate(record.clicks_by_day[:DAYS_PER_WEEK]):
            self.clicks_by_day[day] += count or 0

        _merge_counts(self.device_breakdown, record.device_breakdown)
        for name in BREAKDOWN_FIELDS:
            _merge_counts(getattr(self, name), getattr(record, name))
        return self

    def merge(self, other: "AnalyticsAggregate") -> "AnalyticsAggregate":
        """Return a new aggregate combining this one and `other`."""
        merged = AnalyticsAggregate()
        for part in (self, other):
            merged.link_count += part.link_count
            merged.total_clicks += part.total_clicks
            merged.unique_visitors += part.unique_visitors
            for entry in part.clicks_by_date.values():
                merged._add_date(entry.date, entry.clicks, entry.unique_visitors)
            merged.clicks_by_hour = [a + b for a, b in zip(merged.clicks_by_hour, part.clicks_by_hour)]
            merged.clicks_by_day = [a + b for a, b in zip(merged.clicks_by_day, part.clicks_by_day)]
            _merge_counts(merged.device_breakdown, part.device_breakdown)
            for name in BREAKDOWN_FIELDS:
                _merge_counts(getattr(merged, name), getattr(part, name))
        return merged

    def date_series(self) -> List[DateClicks]:
        """The merged per-date series, oldest first."""
        return [self.clicks_by_date[key] for key in sorted(self.clicks_by_date)]


def roll_up(records: Iterable[AnalyticsRecord]) -> AnalyticsAggregate:
    """Merge analytics records into one aggregate."""
    aggregate = AnalyticsAggregate()
    for record in records:
        aggregate.add_record(record)
    return aggregate


def parse_period(period: Optional[str]) -> Optional[int]:
    """
    Interpret a period filter.

    Example:
        parse_period("7d") -> 7
        parse_period("90") -> 90
        parse_period("all") -> None

    Returns:
        Number of days, or None for no filtering ("all", empty, zero or
        unparsable values are all treated as "all")
    """
    if period is None:
        return None
    match = _PERIOD_PATTERN.match(str(period))
    if not match:
        return None
    days = int(match.group(1))
    return days if days > 0 else None


def filter_dates(series: List[DateClicks], days: Optional[int], today: date) -> List[DateClicks]:
    """Keep entries dated on or after today - days (all entries when days is None)."""
    if days is None:
        return list(series)
    cutoff = (today - timedelta(days=days)).isoformat()
    return [entry for entry in series if entry.date >= cutoff]


def click_growth(series: List[DateClicks]) -> float:
    """
    Percent change between the last 7 entries and the 7 entries before them.

    Example:
        recent 10, previous 5 -> 100.0
        recent 3, previous 0 -> 100.0
        recent 0, previous 0 -> 0.0
    """
    if len(series) < 2:
        return 0.0
    recent = sum(entry.clicks for entry in series[-GROWTH_WINDOW:])
    previous = sum(entry.clicks for entry in series[-2 * GROWTH_WINDOW:-GROWTH_WINDOW])
    if previous == 0:
        return 100.0 if recent > 0 else 0.0
    return round((recent - previous) / previous * 100, 2)


def average_clicks_per_day(series: List[DateClicks]) -> float:
    if not series:
        return 0.0
    return round(sum(entry.clicks for entry in series) / len(series), 2)


def top_n(counts: Dict[str, int], n: int) -> Dict[str, int]:
    """The n largest entries of a breakdown map, largest first."""
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return dict(ranked[:n])


def summarize(
    aggregate: AnalyticsAggregate,
    period: Optional[str],
    today: date,
    top_browsers: int = 5,
    top_breakdown: int = 10,
    include_link_average: bool = False,
) -> Dict[str, Any]:
    """
    Build the analytics view of an aggregate.

    Args:
        aggregate: Rolled-up records
        period: Period filter ("7d", "30d", "90d", "all" or a day count)
        today: Reference date for the period filter (UTC)
        top_browsers: Size of top_browsers
        top_breakdown: Size of top_countries, top_cities and top_referrers
        include_link_average: Add total_links / average_clicks_per_link
            (collection and user views)

    Returns:
        Dictionary matching the analytics response schemas (snake_case keys)
    """
    series = filter_dates(aggregate.date_series(), parse_period(period), today)

    summary: Dict[str, Any] = {
        "total_clicks": aggregate.total_clicks,
        "unique_visitors": aggregate.unique_visitors,
        "click_growth": click_growth(series),
        "average_clicks_per_day": average_clicks_per_day(series),
    }
    if include_link_average:
        summary["total_links"] = aggregate.link_count
        summary["average_clicks_per_link"] = (
            round(aggregate.total_clicks / aggregate.link_count, 2)
            if aggregate.link_count > 0 else 0.0
        )

    return {
        "summary": summary,
        "clicks_by_date": [
            {"date": entry.date, "clicks": entry.clicks, "unique_visitors": entry.unique_visitors}
            for entry in series
        ],
        "clicks_by_hour": list(aggregate.clicks_by_hour),
        "clicks_by_day": list(aggregate.clicks_by_day),
        "device_breakdown": dict(aggregate.device_breakdown),
        "top_browsers": top_n(aggregate.browser_breakdown, top_browsers),
        "os_breakdown": dict(aggregate.os_breakdown),
        "top_countries": top_n(aggregate.country_breakdown, top_breakdown),
        "top_cities": top_n(aggregate.city_breakdown, top_breakdown),
        "top_referrers": top_n(aggregate.referrer_breakdown, top_breakdown),
    }
