"""
Shared fixtures for mealwise tests.

Builders for estimates, meal log entries, workouts and profiles so each
test only spells out the numbers it cares about.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from unittest.mock import AsyncMock

import pytest

from mealwise.domain.activity.models import Intensity, WorkoutSession
from mealwise.domain.meal.estimate.models import (
    DetectedItem,
    EstimatedRanges,
    MacroRange,
    MicronutrientSignal,
    NutritionEstimate,
    SignalLevel,
)
from mealwise.domain.meal.persistence.models import MealLogEntry
from mealwise.domain.meal.product.models import ExternalProductRecord, ProductNutriments
from mealwise.domain.profile.models import UserProfile

NOW = datetime(2026, 3, 10, 20, 0, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════
# BUILDERS
# ═══════════════════════════════════════════════════════════


def build_estimate(
    name: str = "Grilled chicken bowl",
    calories: tuple = (500, 700),
    protein: tuple = (20, 30),
    carbs: tuple = (50, 70),
    fat: tuple = (15, 25),
    confidence: float = 0.8,
    low_signals: Optional[List[str]] = None,
    brand: Optional[str] = None,
    product: Optional[str] = None,
    quick_options: Optional[List[str]] = None,
) -> NutritionEstimate:
    """Estimate with the given ranges; each low signal becomes low_appearance."""
    return NutritionEstimate(
        detected_items=[DetectedItem(name=name, confidence=confidence)],
        ranges=EstimatedRanges(
            calories=MacroRange(min=calories[0], max=calories[1]),
            protein_g=MacroRange(min=protein[0], max=protein[1]),
            carbs_g=MacroRange(min=carbs[0], max=carbs[1]),
            fat_g=MacroRange(min=fat[0], max=fat[1]),
        ),
        micronutrient_signals=[
            MicronutrientSignal(
                nutrient=nutrient,
                signal=SignalLevel.LOW_APPEARANCE,
                rationale="Few visible sources",
            )
            for nutrient in (low_signals or [])
        ],
        overall_confidence=confidence,
        detected_brand=brand,
        detected_product=product,
        quick_confirm_options=quick_options,
    )


def build_entry(
    timestamp: datetime,
    user_id: str = "user_1",
    **estimate_kwargs: object,
) -> MealLogEntry:
    return MealLogEntry(
        user_id=user_id,
        timestamp=timestamp,
        estimate=build_estimate(**estimate_kwargs),  # type: ignore[arg-type]
    )


def build_workout(
    end_ts: datetime,
    minutes: int = 45,
    intensity: Optional[Intensity] = Intensity.HIGH,
    user_id: str = "user_1",
) -> WorkoutSession:
    start = WorkoutSession(user_id=user_id, start_ts=end_ts - timedelta(minutes=minutes))
    return start.close(end_ts, ["strength"], intensity)


def spread_history(
    days: int,
    meals_per_day: int,
    now: datetime = NOW,
    **estimate_kwargs: object,
) -> List[MealLogEntry]:
    """Meals at midday-ish on each of the ``days`` days before ``now``, newest first."""
    entries = []
    for day in range(1, days + 1):
        for meal in range(meals_per_day):
            ts = now.replace(hour=8) + timedelta(hours=4 * meal) - timedelta(days=day)
            entries.append(build_entry(ts, **estimate_kwargs))
    return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)


# ═══════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def now() -> datetime:
    """Fixed reference time (Tuesday 2026-03-10 20:00 UTC)."""
    return NOW


@pytest.fixture
def make_entry() -> Callable[..., MealLogEntry]:
    return build_entry


@pytest.fixture
def sample_estimate() -> NutritionEstimate:
    return build_estimate()


@pytest.fixture
def profile() -> UserProfile:
    """80 kg maintain profile."""
    return UserProfile(user_id="user_1", weight=80, goal_direction="maintain")


@pytest.fixture
def acme_record() -> ExternalProductRecord:
    """Protein bar with complete per-serving nutriments."""
    return ExternalProductRecord(
        code="0000000000001",
        product_name="Acme Chocolate Protein Bar",
        brands="Acme Foods",
        serving_size="60 g",
        nutriments=ProductNutriments(
            energy_kcal_serving=210,
            proteins_serving=20,
            carbohydrates_serving=22,
            fat_serving=8,
        ),
    )


@pytest.fixture
def mock_vision() -> AsyncMock:
    """Vision port returning nothing usable by default."""
    vision = AsyncMock()
    vision.estimate = AsyncMock(return_value=None)
    return vision


@pytest.fixture
def mock_product_search() -> AsyncMock:
    search = AsyncMock()
    search.search = AsyncMock(return_value=[])
    return search
