"""
Analytics Record

In-memory form of a link's analytics document and the single mutation it
supports: applying one click.

Invariants (kept by apply_click, checked by the tests):
- total_clicks == sum of clicks_by_date[*].clicks
- total_clicks == sum(clicks_by_hour) == sum(clicks_by_day)
- unique_visitors == len(unique_visitor_ids)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set

from linkhub.services.visitor_classifier import DEVICE_TYPES, VisitorProfile

HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7


def empty_device_breakdown() -> Dict[str, int]:
    return {device: 0 for device in DEVICE_TYPES}


def sunday_based_weekday(moment: datetime) -> int:
    """Weekday index with 0 = Sunday .. 6 = Saturday."""
    return (moment.weekday() + 1) % DAYS_PER_WEEK


def increment(counter: Dict[str, int], key: str, amount: int = 1) -> None:
    counter[key] = counter.get(key, 0) + amount


@dataclass
class DateClicks:
    """Clicks (and first-time visitors) on one calendar day."""
    date: str
    clicks: int = 0
    unique_visitors: int = 0


@dataclass(frozen=True)
class ClickEvent:
    """Everything the record needs to know about one redirect."""
    visitor_id: str
    profile: VisitorProfile
    referrer: str
    occurred_at: datetime


@dataclass
class AnalyticsRecord:
    """
    Running counters and breakdowns for one short link.

    Breakdown maps are plain dicts of key -> count; unique_visitor_ids is a
    set used only for membership tests.
    """
    link_id: int
    owner_id: str
    total_clicks: int = 0
    unique_visitors: int = 0
    clicks_by_date: List[DateClicks] = field(default_factory=list)
    clicks_by_hour: List[int] = field(default_factory=lambda: [0] * HOURS_PER_DAY)
    clicks_by_day: List[int] = field(default_factory=lambda: [0] * DAYS_PER_WEEK)
    device_breakdown: Dict[str, int] = field(default_factory=empty_device_breakdown)
    browser_breakdown: Dict[str, int] = field(default_factory=dict)
    os_breakdown: Dict[str, int] = field(default_factory=dict)
    country_breakdown: Dict[str, int] = field(default_factory=dict)
    city_breakdown: Dict[str, int] = field(default_factory=dict)
    referrer_breakdown: Dict[str, int] = field(default_factory=dict)
    unique_visitor_ids: Set[str] = field(default_factory=set)
    last_clicked_at: Optional[datetime] = None

    @classmethod
    def empty(cls, link_id: int, owner_id: str) -> "AnalyticsRecord":
        """A zeroed record, also used for links that have no stored record yet."""
        return cls(link_id=link_id, owner_id=owner_id)

    @property
    def click_to_visitor_ratio(self) -> float:
        if self.unique_visitors == 0:
            return 0.0
        return round(self.total_clicks / self.unique_visitors, 2)

    def is_known_visitor(self, visitor_id: str) -> bool:
        return visitor_id in self.unique_visitor_ids

    def date_entry(self, date_key: str) -> Optional[DateClicks]:
        for entry in self.clicks_by_date:
            if entry.date == date_key:
                return entry
        return None

    def apply_click(self, click: ClickEvent) -> bool:
        """
        Apply one click to every counter of the record.

        Args:
            click: The classified click (occurred_at must be UTC)

        Returns:
            True if the click came from a visitor not seen before
        """
        is_unique = not self.is_known_visitor(click.visitor_id)
        if is_unique:
            self.unique_visitor_ids.add(click.visitor_id)
            self.unique_visitors += 1

        self.total_clicks += 1

        date_key = click.occurred_at.date().isoformat()
        entry = self.date_entry(date_key)
        if entry is None:
            entry = DateClicks(date=date_key)
            self.clicks_by_date.append(entry)
        entry.clicks += 1
        if is_unique:
            entry.unique_visitors += 1

        self.clicks_by_hour[click.occurred_at.hour] += 1
        self.clicks_by_day[sunday_based_weekday(click.occurred_at)] += 1

        increment(self.device_breakdown, click.profile.device)
        increment(self.browser_breakdown, click.profile.browser)
        increment(self.os_breakdown, click.profile.os)
        increment(self.country_breakdown, click.profile.country)
        increment(self.city_breakdown, click.profile.city)
        increment(self.referrer_breakdown, click.referrer)

        self.last_clicked_at = click.occurred_at
        return is_unique
