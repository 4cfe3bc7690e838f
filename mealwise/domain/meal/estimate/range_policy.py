"""
Range confidence policy.

Low-confidence estimates get wider ranges so the UI never shows a narrow
number the model could not back up.
"""

from __future__ import annotations

from typing import Dict, Mapping

from mealwise.domain.meal.estimate.models import (
    LOW_CONFIDENCE_THRESHOLD,
    EstimatedRanges,
    MacroRange,
    Nutrient,
    NutritionEstimate,
)
from mealwise.domain.shared.numeric import round_half_up

WIDEN_FRACTION = 0.2
MIN_WIDEN_SPAN = 10.0

# Max amount added on each side, per nutrient
WIDEN_CAPS: Dict[Nutrient, float] = {
    Nutrient.CALORIES: 120,
    Nutrient.PROTEIN: 8,
    Nutrient.CARBS: 25,
    Nutrient.FAT: 10,
}


def widen_range(value: MacroRange, cap: float) -> MacroRange:
    """
    Widen one range by 20% of its span (at least 10) on each side.

    Example:
        >>> widen_range(MacroRange(min=400, max=600), cap=120)
        MacroRange(min=360.0, max=640.0)
    """
    span = max(MIN_WIDEN_SPAN, value.max - value.min)
    pad = min(span * WIDEN_FRACTION, cap)
    return MacroRange(
        min=float(max(0, round_half_up(value.min - pad))),
        max=float(round_half_up(value.max + pad)),
    )


class RangeConfidencePolicy:
    """Widens every macro range of a low-confidence estimate."""

    def __init__(
        self,
        threshold: float = LOW_CONFIDENCE_THRESHOLD,
        caps: Mapping[Nutrient, float] = WIDEN_CAPS,
    ) -> None:
        self.threshold = threshold
        self.caps = dict(caps)

    def should_widen(self, estimate: NutritionEstimate) -> bool:
        """Only uncertain estimates that are not exact label reads."""
        if estimate.overall_confidence >= self.threshold:
            return False
        return not estimate.ranges.calories.is_exact

    def widen_if_low_confidence(self, estimate: NutritionEstimate) -> NutritionEstimate:
        """Return a widened copy, or the estimate itself when no widening applies."""
        if not self.should_widen(estimate):
            return estimate

        widened = {
            nutrient.value: widen_range(estimate.ranges.get(nutrient), self.caps[nutrient])
            for nutrient in Nutrient
        }
        return estimate.model_copy(update={"ranges": EstimatedRanges(**widened)})
