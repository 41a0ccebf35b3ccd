"""
Tests for merging analytics records and the derived metrics.
"""

from datetime import date, timedelta

import pytest

from linkhub.services.analytics_record import AnalyticsRecord, DateClicks
from linkhub.services.rollup import (
    AnalyticsAggregate,
    average_clicks_per_day,
    click_growth,
    filter_dates,
    parse_period,
    roll_up,
    summarize,
    top_n,
)

TODAY = date(2024, 1, 31)


def series(*clicks, start=date(2024, 1, 1)):
    return [
        DateClicks(date=(start + timedelta(days=i)).isoformat(), clicks=count)
        for i, count in enumerate(clicks)
    ]


def record_with(link_id, total, browsers=None, countries=None, dates=None, hour=10, day=2):
    record = AnalyticsRecord.empty(link_id, "user-1")
    record.total_clicks = total
    record.unique_visitors = total // 2
    record.clicks_by_date = dates if dates is not None else [DateClicks("2024-01-30", total, total // 2)]
    record.clicks_by_hour[hour] = total
    record.clicks_by_day[day] = total
    record.device_breakdown["desktop"] = total
    record.browser_breakdown = dict(browsers or {"Chrome": total})
    record.os_breakdown = {"Windows": total}
    record.country_breakdown = dict(countries or {"US": total})
    record.city_breakdown = {"Unknown": total}
    record.referrer_breakdown = {"direct": total}
    return record


def snapshot(aggregate: AnalyticsAggregate):
    return {
        "link_count": aggregate.link_count,
        "total_clicks": aggregate.total_clicks,
        "unique_visitors": aggregate.unique_visitors,
        "dates": [(e.date, e.clicks, e.unique_visitors) for e in aggregate.date_series()],
        "hours": aggregate.clicks_by_hour,
        "days": aggregate.clicks_by_day,
        "devices": aggregate.device_breakdown,
        "browsers": aggregate.browser_breakdown,
        "os": aggregate.os_breakdown,
        "countries": aggregate.country_breakdown,
        "cities": aggregate.city_breakdown,
        "referrers": aggregate.referrer_breakdown,
    }


class TestRollUp:

    def test_two_links(self):
        """Link A with 10 clicks and link B with 5 roll up to 15 (7.5 per link)."""
        aggregate = roll_up([record_with(1, 10), record_with(2, 5)])
        result = summarize(aggregate, "all", TODAY, include_link_average=True)

        assert result["summary"]["total_clicks"] == 15
        assert result["summary"]["total_links"] == 2
        assert result["summary"]["average_clicks_per_link"] == 7.5

    def test_no_records(self):
        result = summarize(roll_up([]), "30d", TODAY, include_link_average=True)

        assert result["summary"] == {
            "total_clicks": 0,
            "unique_visitors": 0,
            "click_growth": 0.0,
            "average_clicks_per_day": 0.0,
            "total_links": 0,
            "average_clicks_per_link": 0.0,
        }
        assert result["clicks_by_date"] == []
        assert result["clicks_by_hour"] == [0] * 24
        assert result["clicks_by_day"] == [0] * 7
        assert result["device_breakdown"] == {"mobile": 0, "desktop": 0, "tablet": 0, "other": 0}

    def test_dates_are_merged_and_sorted(self):
        a = record_with(1, 3, dates=[DateClicks("2024-01-05", 1, 1), DateClicks("2024-01-02", 2, 1)])
        b = record_with(2, 4, dates=[DateClicks("2024-01-05", 4, 2)])

        aggregate = roll_up([a, b])

        assert [(e.date, e.clicks, e.unique_visitors) for e in aggregate.date_series()] == [
            ("2024-01-02", 2, 1),
            ("2024-01-05", 5, 3),
        ]

    def test_breakdowns_are_summed(self):
        a = record_with(1, 3, browsers={"Chrome": 2, "Firefox": 1}, hour=9, day=1)
        b = record_with(2, 2, browsers={"Chrome": 2}, hour=9, day=5)

        aggregate = roll_up([a, b])

        assert aggregate.browser_breakdown == {"Chrome": 4, "Firefox": 1}
        assert aggregate.clicks_by_hour[9] == 5
        assert aggregate.clicks_by_day[1] == 3
        assert aggregate.clicks_by_day[5] == 2
        assert aggregate.device_breakdown["desktop"] == 5

    def test_inputs_are_not_mutated(self):
        a = record_with(1, 3)
        roll_up([a, record_with(2, 3)])
        assert a.clicks_by_date[0].clicks == 3
        assert a.browser_breakdown == {"Chrome": 3}

    def test_order_does_not_matter(self):
        records = [
            record_with(1, 10, browsers={"Chrome": 6, "Safari": 4}),
            record_with(2, 5, countries={"GB": 5}, dates=[DateClicks("2024-01-01", 5, 1)]),
            record_with(3, 7, hour=23, day=0),
        ]
        assert snapshot(roll_up(records)) == snapshot(roll_up(reversed(records)))

    def test_merge_is_associative_and_commutative(self):
        records = [
            record_with(1, 10),
            record_with(2, 5, countries={"GB": 5}),
            record_with(3, 2, dates=[DateClicks("2024-01-03", 2, 2)]),
        ]
        a, b, c = (roll_up([record]) for record in records)

        assert snapshot(a.merge(b)) == snapshot(b.merge(a))
        assert snapshot(a.merge(b).merge(c)) == snapshot(a.merge(b.merge(c)))
        assert snapshot(a.merge(b).merge(c)) == snapshot(roll_up(records))

    def test_merge_leaves_operands_untouched(self):
        a = roll_up([record_with(1, 10)])
        b = roll_up([record_with(2, 5)])
        before = snapshot(a)

        a.merge(b)

        assert snapshot(a) == before


class TestClickGrowth:

    def test_doubling(self):
        """10 clicks in the last 7 entries vs 5 in the 7 before is +100%."""
        assert click_growth(series(1, 1, 1, 1, 1, 0, 0, 2, 2, 2, 1, 1, 1, 1)) == 100.0

    def test_no_previous_clicks(self):
        assert click_growth(series(0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 0, 0, 0, 0)) == 100.0

    def test_no_clicks_at_all(self):
        assert click_growth(series(0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)) == 0.0

    def test_too_few_entries(self):
        assert click_growth([]) == 0.0
        assert click_growth(series(5)) == 0.0

    def test_short_series_has_no_previous_window(self):
        assert click_growth(series(2, 3)) == 100.0

    def test_decline_is_rounded(self):
        # recent 1, previous 3
        assert click_growth(series(1, 1, 1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0)) == -66.67

    def test_only_last_fourteen_entries_count(self):
        assert click_growth(series(100, 100, 1, 1, 1, 1, 1, 0, 0, 2, 2, 2, 1, 1, 1, 1)) == 100.0


class TestPeriod:

    @pytest.mark.parametrize("value,expected", [
        ("7d", 7),
        ("30d", 30),
        ("90d", 90),
        ("14", 14),
        ("7days", 7),
        (" 30D ", 30),
        ("all", None),
        ("", None),
        (None, None),
        ("0d", None),
        ("-5d", None),
        ("week", None),
        ("1.5d", None),
    ])
    def test_parse_period(self, value, expected):
        assert parse_period(value) == expected

    def test_filter_dates(self):
        entries = [DateClicks("2024-01-20", 1), DateClicks("2024-01-24", 2), DateClicks("2024-01-31", 3)]

        assert [e.date for e in filter_dates(entries, 7, TODAY)] == ["2024-01-24", "2024-01-31"]
        assert filter_dates(entries, None, TODAY) == entries

    def test_period_only_narrows_the_date_series(self):
        old = record_with(1, 4, dates=[DateClicks("2023-06-01", 4, 2)], browsers={"Firefox": 4})
        recent = record_with(2, 6, dates=[DateClicks("2024-01-30", 6, 3)])

        result = summarize(roll_up([old, recent]), "7d", TODAY)

        assert [entry["date"] for entry in result["clicks_by_date"]] == ["2024-01-30"]
        assert result["summary"]["total_clicks"] == 10
        assert result["summary"]["average_clicks_per_day"] == 6.0
        assert result["top_browsers"] == {"Chrome": 6, "Firefox": 4}
        assert sum(result["clicks_by_hour"]) == 10

    def test_invalid_period_means_all(self):
        old = record_with(1, 4, dates=[DateClicks("2023-06-01", 4, 2)])
        result = summarize(roll_up([old]), "fortnight", TODAY)
        assert len(result["clicks_by_date"]) == 1


class TestTopN:

    def test_sorted_and_capped(self):
        counts = {"a": 1, "b": 5, "c": 3, "d": 4}
        assert top_n(counts, 2) == {"b": 5, "d": 4}
        assert list(top_n(counts, 10)) == ["b", "d", "c", "a"]

    def test_summary_limits(self):
        browsers = {f"browser-{i}": i for i in range(1, 9)}
        countries = {f"C{i}": i for i in range(1, 15)}
        result = summarize(roll_up([record_with(1, 36, browsers=browsers, countries=countries)]), "all", TODAY)

        assert list(result["top_browsers"]) == ["browser-8", "browser-7", "browser-6", "browser-5", "browser-4"]
        assert len(result["top_countries"]) == 10
        assert result["os_breakdown"] == {"Windows": 36}

    def test_average_clicks_per_day(self):
        assert average_clicks_per_day([]) == 0.0
        assert average_clicks_per_day(series(1, 2, 2)) == 1.67
