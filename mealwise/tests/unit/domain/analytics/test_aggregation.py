"""Unit tests for the aggregation engine."""

from datetime import datetime, timedelta, timezone

from mealwise.domain.analytics.aggregation import (
    HistorySnapshot,
    day_key,
    day_totals,
    entries_since,
    logged_day_count,
    week_totals,
    weekly_average,
)
from mealwise.domain.meal.estimate.models import Nutrient
from mealwise.tests.conftest import NOW, build_entry

PLUS_FIVE = timezone(timedelta(hours=5))


class TestDayTotals:
    def test_empty_history_is_zero(self) -> None:
        totals = day_totals([], "2026-03-10", timezone.utc)

        assert totals.is_empty
        assert totals.midpoint(Nutrient.CALORIES) == 0

    def test_sums_entries_of_the_day(self) -> None:
        entries = [
            build_entry(NOW, calories=(400, 600), protein=(20, 30)),
            build_entry(NOW - timedelta(hours=6), calories=(100, 200), protein=(5, 10)),
            build_entry(NOW - timedelta(days=1), calories=(900, 900)),
        ]

        totals = day_totals(entries, "2026-03-10", timezone.utc)

        assert totals.calories_min == 500
        assert totals.calories_max == 800
        assert totals.protein_g_min == 25
        assert totals.protein_g_max == 40
        assert totals.midpoint(Nutrient.CALORIES) == 650

    def test_local_calendar_day(self) -> None:
        # 20:00 UTC is already the next day at UTC+5
        assert day_key(NOW, timezone.utc) == "2026-03-10"
        assert day_key(NOW, PLUS_FIVE) == "2026-03-11"


class TestWeekTotals:
    def test_zero_filled_oldest_first(self) -> None:
        entries = [build_entry(NOW - timedelta(days=2))]

        week = week_totals(entries, 7, NOW, timezone.utc)

        assert [day.day_key for day in week] == [
            "2026-03-04",
            "2026-03-05",
            "2026-03-06",
            "2026-03-07",
            "2026-03-08",
            "2026-03-09",
            "2026-03-10",
        ]
        assert not week[4].totals.is_empty
        assert sum(1 for day in week if day.totals.is_empty) == 6

    def test_weekly_average_of_empty_week(self) -> None:
        week = week_totals([], 7, NOW, timezone.utc)

        assert weekly_average(week, Nutrient.CALORIES) == 0
        assert weekly_average([], Nutrient.CALORIES) == 0

    def test_weekly_average_pools_min_and_max(self) -> None:
        entries = [
            build_entry(NOW, calories=(1000, 1400)),
            build_entry(NOW - timedelta(days=1), calories=(2000, 2001)),
        ]

        week = week_totals(entries, 7, NOW, timezone.utc)

        # (1000 + 1400 + 2000 + 2001) / 14 = 457.21
        assert weekly_average(week, Nutrient.CALORIES) == 457


class TestEntriesSince:
    def test_rolling_window_keeps_boundary(self) -> None:
        inside = build_entry(NOW - timedelta(days=30))
        outside = build_entry(NOW - timedelta(days=30, seconds=1))
        recent = build_entry(NOW)

        assert entries_since([recent, inside, outside], NOW, 30) == [recent, inside]


class TestHistorySnapshot:
    def test_counts(self) -> None:
        entries = [
            build_entry(NOW),
            build_entry(NOW - timedelta(hours=2)),
            build_entry(NOW - timedelta(days=3)),
        ]

        snapshot = HistorySnapshot.from_entries(entries, NOW, timezone.utc)

        assert snapshot.meal_count == 3
        assert snapshot.day_count == 2
        assert logged_day_count(entries, timezone.utc) == 2
        assert snapshot.today_calories == 1200
        assert snapshot.has_enough_data is False

    def test_empty_history(self) -> None:
        snapshot = HistorySnapshot.from_entries([], NOW, timezone.utc)

        assert snapshot.today.is_empty
        assert snapshot.avg_week_calories == 0
        assert snapshot.avg_week_protein == 0
        assert len(snapshot.week) == 7

    def test_now_converted_to_zone(self) -> None:
        snapshot = HistorySnapshot.from_entries([], datetime(2026, 3, 10, 20, tzinfo=timezone.utc), PLUS_FIVE)

        assert snapshot.week[-1].day_key == "2026-03-11"
