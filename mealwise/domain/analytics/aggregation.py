"""
Aggregation engine.

Per-day and trailing-week nutrition totals over a meal history. Days are
local calendar dates, not rolling 24h windows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from mealwise.domain.meal.estimate.models import Nutrient
from mealwise.domain.meal.persistence.models import MealLogEntry
from mealwise.domain.shared.numeric import round_half_up

MIN_LOGGED_DAYS = 5
MIN_LOGGED_MEALS = 10
WEEK_DAYS = 7


def resolve_now(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> datetime:
    """Timezone-aware "now" in the given zone (system local when tz is None)."""
    return (now or datetime.now(timezone.utc)).astimezone(tz)


def day_key(ts: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    Local calendar date of a timestamp as ``YYYY-MM-DD``.

    Example:
        >>> day_key(datetime(2026, 3, 1, 23, 30, tzinfo=timezone.utc), timezone.utc)
        '2026-03-01'
    """
    return ts.astimezone(tz).strftime("%Y-%m-%d")


def range_midpoint(low: float, high: float) -> int:
    """Half-up rounded midpoint of a range."""
    return round_half_up((low + high) / 2)


class RangeTotals(BaseModel):
    """Summed min/max macro ranges."""

    model_config = ConfigDict(frozen=True)

    calories_min: float = 0
    calories_max: float = 0
    protein_g_min: float = 0
    protein_g_max: float = 0
    carbs_g_min: float = 0
    carbs_g_max: float = 0
    fat_g_min: float = 0
    fat_g_max: float = 0

    def low(self, nutrient: Nutrient) -> float:
        return getattr(self, f"{nutrient.value}_min")

    def high(self, nutrient: Nutrient) -> float:
        return getattr(self, f"{nutrient.value}_max")

    def midpoint(self, nutrient: Nutrient) -> int:
        return range_midpoint(self.low(nutrient), self.high(nutrient))

    @property
    def is_empty(self) -> bool:
        return all(value == 0 for value in self.model_dump().values())


class DayTotals(BaseModel):
    """Totals for one calendar day."""

    model_config = ConfigDict(frozen=True)

    day_key: str
    totals: RangeTotals


def sum_ranges(entries: Iterable[MealLogEntry]) -> RangeTotals:
    """Add up the macro ranges of every entry."""
    sums = {key: 0.0 for key in RangeTotals.model_fields}
    for entry in entries:
        for key, value in entry.estimate.ranges.to_raw().items():
            sums[key] += value
    return RangeTotals(**sums)


def day_totals(
    entries: Iterable[MealLogEntry],
    key: str,
    tz: Optional[tzinfo] = None,
) -> RangeTotals:
    """Totals of entries whose local day matches ``key``; zeros when none do."""
    return sum_ranges(entry for entry in entries if day_key(entry.timestamp, tz) == key)


def week_totals(
    entries: Sequence[MealLogEntry],
    days: int = WEEK_DAYS,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> List[DayTotals]:
    """
    Totals for the trailing ``days`` calendar days, oldest first.

    Days without entries are included with zero totals.
    """
    today: date = resolve_now(now, tz).date()
    week: List[DayTotals] = []
    for offset in range(days - 1, -1, -1):
        key = (today - timedelta(days=offset)).strftime("%Y-%m-%d")
        week.append(DayTotals(day_key=key, totals=day_totals(entries, key, tz)))
    return week


def weekly_average(week: Sequence[DayTotals], nutrient: Nutrient) -> int:
    """
    Mean of every day's min and max pooled together.

    Equivalent to the mean of daily midpoints. Empty input gives 0.
    """
    if not week:
        return 0
    total = sum(day.totals.low(nutrient) + day.totals.high(nutrient) for day in week)
    return round_half_up(total / (2 * len(week)))


def logged_day_count(entries: Iterable[MealLogEntry], tz: Optional[tzinfo] = None) -> int:
    """Number of distinct local days with at least one entry."""
    return len({day_key(entry.timestamp, tz) for entry in entries})


def entries_since(
    entries: Iterable[MealLogEntry],
    now: datetime,
    days: int,
) -> List[MealLogEntry]:
    """Entries logged within the last ``days`` days (rolling window)."""
    cutoff = now - timedelta(days=days)
    return [entry for entry in entries if entry.timestamp >= cutoff]


@dataclass(frozen=True)
class HistorySnapshot:
    """
    Aggregates every analytics consumer needs, computed once per history.

    Example:
        >>> snapshot = HistorySnapshot.from_entries([])
        >>> snapshot.avg_week_calories, snapshot.has_enough_data
        (0, False)
    """

    today: RangeTotals
    week: List[DayTotals]
    day_count: int
    meal_count: int
    avg_week_calories: int
    avg_week_protein: int
    avg_week_fat: int
    now: datetime = field(compare=False)

    @classmethod
    def from_entries(
        cls,
        entries: Sequence[MealLogEntry],
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> HistorySnapshot:
        current = resolve_now(now, tz)
        week = week_totals(entries, WEEK_DAYS, current, tz)
        return cls(
            today=day_totals(entries, day_key(current, tz), tz),
            week=week,
            day_count=logged_day_count(entries, tz),
            meal_count=len(entries),
            avg_week_calories=weekly_average(week, Nutrient.CALORIES),
            avg_week_protein=weekly_average(week, Nutrient.PROTEIN),
            avg_week_fat=weekly_average(week, Nutrient.FAT),
            now=current,
        )

    @property
    def has_enough_data(self) -> bool:
        """At least five logged days and ten logged meals."""
        return self.day_count >= MIN_LOGGED_DAYS and self.meal_count >= MIN_LOGGED_MEALS

    @property
    def today_calories(self) -> int:
        return self.today.midpoint(Nutrient.CALORIES)
