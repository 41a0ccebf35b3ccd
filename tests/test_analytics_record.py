"""
Tests for applying clicks to an in-memory analytics record.
"""

from datetime import datetime, timedelta, timezone

from linkhub.services.analytics_record import AnalyticsRecord, ClickEvent, sunday_based_weekday
from linkhub.services.visitor_classifier import VisitorProfile

DESKTOP_US = VisitorProfile(device="desktop", browser="Chrome", os="Windows", country="US", city="Mountain View")
MOBILE_GB = VisitorProfile(device="mobile", browser="Mobile Safari", os="iOS", country="GB", city="London")


def click(visitor_id, occurred_at, profile=DESKTOP_US, referrer="direct"):
    return ClickEvent(visitor_id=visitor_id, profile=profile, referrer=referrer, occurred_at=occurred_at)


def assert_invariants(record):
    assert record.total_clicks == sum(entry.clicks for entry in record.clicks_by_date)
    assert record.total_clicks == sum(record.clicks_by_hour)
    assert record.total_clicks == sum(record.clicks_by_day)
    assert record.unique_visitors == len(record.unique_visitor_ids)
    assert len({entry.date for entry in record.clicks_by_date}) == len(record.clicks_by_date)


class TestSundayBasedWeekday:

    def test_week_starts_on_sunday(self):
        assert sunday_based_weekday(datetime(2024, 1, 7, tzinfo=timezone.utc)) == 0  # Sunday
        assert sunday_based_weekday(datetime(2024, 1, 8, tzinfo=timezone.utc)) == 1  # Monday
        assert sunday_based_weekday(datetime(2024, 1, 10, tzinfo=timezone.utc)) == 3  # Wednesday
        assert sunday_based_weekday(datetime(2024, 1, 13, tzinfo=timezone.utc)) == 6  # Saturday


class TestApplyClick:

    def test_empty_record(self):
        record = AnalyticsRecord.empty(1, "user-1")
        assert record.total_clicks == 0
        assert record.clicks_by_hour == [0] * 24
        assert record.clicks_by_day == [0] * 7
        assert record.device_breakdown == {"mobile": 0, "desktop": 0, "tablet": 0, "other": 0}
        assert record.click_to_visitor_ratio == 0.0
        assert_invariants(record)

    def test_first_click(self, wednesday_afternoon):
        record = AnalyticsRecord.empty(1, "user-1")

        is_unique = record.apply_click(click("v1", wednesday_afternoon, referrer="news.ycombinator.com"))

        assert is_unique
        assert record.total_clicks == 1
        assert record.unique_visitors == 1
        assert [(e.date, e.clicks, e.unique_visitors) for e in record.clicks_by_date] == [("2024-01-10", 1, 1)]
        assert record.clicks_by_hour[14] == 1
        assert record.clicks_by_day[3] == 1
        assert record.device_breakdown["desktop"] == 1
        assert record.browser_breakdown == {"Chrome": 1}
        assert record.os_breakdown == {"Windows": 1}
        assert record.country_breakdown == {"US": 1}
        assert record.city_breakdown == {"Mountain View": 1}
        assert record.referrer_breakdown == {"news.ycombinator.com": 1}
        assert record.last_clicked_at == wednesday_afternoon
        assert_invariants(record)

    def test_repeat_visitor_is_not_unique(self, wednesday_afternoon):
        record = AnalyticsRecord.empty(1, "user-1")
        record.apply_click(click("v1", wednesday_afternoon))

        is_unique = record.apply_click(click("v1", wednesday_afternoon + timedelta(hours=1)))

        assert not is_unique
        assert record.total_clicks == 2
        assert record.unique_visitors == 1
        assert [(e.date, e.clicks, e.unique_visitors) for e in record.clicks_by_date] == [("2024-01-10", 2, 1)]
        assert record.clicks_by_hour[14] == 1
        assert record.clicks_by_hour[15] == 1
        assert record.click_to_visitor_ratio == 2.0
        assert_invariants(record)

    def test_new_day_adds_date_entry(self, wednesday_afternoon):
        record = AnalyticsRecord.empty(1, "user-1")
        record.apply_click(click("v1", wednesday_afternoon))
        record.apply_click(click("v2", wednesday_afternoon + timedelta(days=1), profile=MOBILE_GB))

        assert [e.date for e in record.clicks_by_date] == ["2024-01-10", "2024-01-11"]
        assert record.clicks_by_day[3] == 1
        assert record.clicks_by_day[4] == 1
        assert record.device_breakdown == {"mobile": 1, "desktop": 1, "tablet": 0, "other": 0}
        assert record.country_breakdown == {"US": 1, "GB": 1}
        assert_invariants(record)

    def test_returning_visitor_on_later_day(self, wednesday_afternoon):
        """A visitor already counted does not add to a later date's uniques."""
        record = AnalyticsRecord.empty(1, "user-1")
        record.apply_click(click("v1", wednesday_afternoon))
        record.apply_click(click("v1", wednesday_afternoon + timedelta(days=1)))

        assert [(e.date, e.unique_visitors) for e in record.clicks_by_date] == [
            ("2024-01-10", 1),
            ("2024-01-11", 0),
        ]
        assert_invariants(record)

    def test_invariants_hold_over_many_clicks(self, wednesday_afternoon):
        record = AnalyticsRecord.empty(1, "user-1")
        for i in range(100):
            record.apply_click(click(
                f"v{i % 13}",
                wednesday_afternoon + timedelta(hours=7 * i),
                profile=DESKTOP_US if i % 3 else MOBILE_GB,
                referrer="t.co" if i % 2 else "direct",
            ))

        assert record.total_clicks == 100
        assert record.unique_visitors == 13
        assert sum(record.device_breakdown.values()) == 100
        assert sum(record.referrer_breakdown.values()) == 100
        assert_invariants(record)
