"""
Domain models for meal persistence.

A MealLogEntry is one analyzed meal photo in a user's history. Entries are
replaced as a whole when refined, never patched field by field.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mealwise.domain.meal.estimate.models import Nutrient, NutritionEstimate
from mealwise.domain.shared.numeric import round_half_up
from mealwise.domain.shared.value_objects import MealId


def approx_from_range(low: float, high: float) -> int:
    """
    Single display value for a range.

    Example:
        >>> approx_from_range(400, 601)
        501
        >>> approx_from_range(0, 0)
        0
    """
    if not low and not high:
        return 0
    return round_half_up((low + high) / 2)


class MealLogEntry(BaseModel):
    """
    Persisted meal analysis.

    Attributes:
        id: Entry identifier (generated)
        user_id: Owner
        timestamp: When the meal was logged (timezone-aware)
        estimate: Current nutrition estimate
        user_correction_label: Dish label the user picked or typed
        correction_chips: Clarification chips applied so far
        thumbnail_url: Small preview image

    Example:
        >>> from mealwise.domain.meal.estimate.normalizer import safe_fallback_estimate
        >>> entry = MealLogEntry(
        ...     user_id="user_1",
        ...     timestamp=datetime(2026, 1, 5, 12, tzinfo=timezone.utc),
        ...     estimate=safe_fallback_estimate(),
        ... )
        >>> assert entry.id.startswith("meal_")
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: MealId.generate().value)
    user_id: str = Field(..., min_length=1)
    timestamp: datetime
    estimate: NutritionEstimate
    user_correction_label: Optional[str] = None
    correction_chips: List[str] = Field(default_factory=list)
    thumbnail_url: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def display_name(self) -> str:
        """Correction label when set, otherwise the primary detected item."""
        return self.user_correction_label or self.estimate.primary_name

    def approx_macros(self) -> Dict[str, int]:
        """Midpoint of each macro range, keyed by nutrient wire name."""
        return {
            nutrient.value: approx_from_range(
                self.estimate.ranges.get(nutrient).min,
                self.estimate.ranges.get(nutrient).max,
            )
            for nutrient in Nutrient
        }

    def with_refinement(
        self,
        estimate: NutritionEstimate,
        correction_label: Optional[str] = None,
        chips: Optional[List[str]] = None,
    ) -> MealLogEntry:
        """
        New entry carrying a refined estimate.

        The correction label replaces the previous one only when given;
        chips are appended.
        """
        return self.model_copy(
            update={
                "estimate": estimate,
                "user_correction_label": correction_label or self.user_correction_label,
                "correction_chips": [*self.correction_chips, *(chips or [])],
            }
        )
