"""
Estimate normalizer.

Turns whatever the vision model sent back (valid JSON, half-valid JSON,
wrong types, nothing at all) into a NutritionEstimate that satisfies every
model invariant. The contract is total: normalize() never raises.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from mealwise.domain.meal.estimate.dish_names import (
    FALLBACK_ITEM_NAME,
    DishNameResolver,
    clean_item_name,
)
from mealwise.domain.meal.estimate.models import (
    LOW_CONFIDENCE_THRESHOLD,
    MAX_MICRONUTRIENT_SIGNALS,
    MAX_QUICK_CONFIRM_OPTIONS,
    DetectedItem,
    EstimatedRanges,
    MacroRange,
    MicronutrientSignal,
    Nutrient,
    NutritionEstimate,
    SignalLevel,
    derive_precision_mode,
)
from mealwise.domain.meal.estimate.quick_confirm import GENERIC_QUICK_OPTIONS
from mealwise.domain.shared.numeric import clamp, coerce_clamped, to_finite, to_number

DEFAULT_ITEM_CONFIDENCE = 0.3
DEFAULT_OVERALL_CONFIDENCE = 0.4
FALLBACK_CONFIDENCE = 0.25
MAX_ITEM_WEIGHT_G = 5000.0

# nutrient -> (min default, max default, min ceiling, max ceiling)
RANGE_RULES: Dict[Nutrient, Tuple[float, float, float, float]] = {
    Nutrient.CALORIES: (350, 700, 5000, 6000),
    Nutrient.PROTEIN: (10, 30, 300, 350),
    Nutrient.CARBS: (30, 80, 500, 600),
    Nutrient.FAT: (10, 30, 200, 250),
}


def extract_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Pull the outermost JSON object out of a model reply.

    Models sometimes wrap JSON in prose or code fences.

    Example:
        >>> extract_json('Sure! {"a": 1} Hope that helps.')
        {'a': 1}
        >>> extract_json("no json here") is None
        True
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    try:
        parsed = json.loads(text[start : end + 1])
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def safe_fallback_estimate() -> NutritionEstimate:
    """
    Estimate used when there is nothing usable to normalize.

    Mid-sized meal ranges, low confidence, precision scan offered.
    """
    ranges = EstimatedRanges(
        calories=MacroRange(min=350, max=700),
        protein_g=MacroRange(min=10, max=30),
        carbs_g=MacroRange(min=30, max=80),
        fat_g=MacroRange(min=10, max=30),
    )
    return NutritionEstimate(
        detected_items=[
            DetectedItem(
                name=FALLBACK_ITEM_NAME,
                confidence=FALLBACK_CONFIDENCE,
                notes="Not analyzed yet.",
            )
        ],
        ranges=ranges,
        micronutrient_signals=[
            MicronutrientSignal(
                nutrient="General variety",
                signal=SignalLevel.UNCERTAIN,
                rationale="Limited visual signal from the photo.",
            )
        ],
        overall_confidence=FALLBACK_CONFIDENCE,
        precision_mode_available=True,
        quick_confirm_options=list(GENERIC_QUICK_OPTIONS),
    )


class EstimateNormalizer:
    """
    Validates and repairs raw vision payloads.

    Example:
        >>> normalizer = EstimateNormalizer()
        >>> estimate = normalizer.normalize({"confidence_overall_0_1": "0.8"})
        >>> estimate.overall_confidence
        0.8
        >>> normalizer.normalize(None).overall_confidence
        0.25
    """

    def __init__(self, resolver: Optional[DishNameResolver] = None) -> None:
        self.resolver = resolver or DishNameResolver()

    def normalize(self, raw: Any) -> NutritionEstimate:
        """Normalize a raw payload; falls back instead of raising."""
        if not isinstance(raw, Mapping):
            return safe_fallback_estimate()
        try:
            return self._coerce(raw)
        except (TypeError, ValueError, AttributeError, KeyError, OverflowError):
            return safe_fallback_estimate()

    def _coerce(self, raw: Mapping[str, Any]) -> NutritionEstimate:
        items = self._coerce_items(raw.get("detected_items"))
        ranges = self._coerce_ranges(raw.get("estimated_ranges"))
        signals = self._coerce_signals(raw.get("micronutrient_signals"))

        overall_confidence = coerce_clamped(
            raw.get("confidence_overall_0_1"), DEFAULT_OVERALL_CONFIDENCE, 0.0, 1.0
        )
        detected_brand = self._optional_text(raw.get("detected_brand"))
        detected_product = self._optional_text(raw.get("detected_product"))

        match_confidence = to_number(raw.get("database_match_confidence_0_1"))
        if match_confidence is not None:
            match_confidence = clamp(match_confidence, 0.0, 1.0)

        quick_options: Optional[List[str]] = None
        raw_options = raw.get("optional_quick_confirm_options")
        if isinstance(raw_options, list) and overall_confidence < LOW_CONFIDENCE_THRESHOLD:
            quick_options = [str(option) for option in raw_options][:MAX_QUICK_CONFIRM_OPTIONS]

        return NutritionEstimate(
            detected_items=items,
            ranges=ranges,
            micronutrient_signals=signals,
            overall_confidence=overall_confidence,
            detected_brand=detected_brand,
            detected_product=detected_product,
            database_match_confidence=match_confidence,
            precision_mode_available=derive_precision_mode(
                detected_brand, overall_confidence, ranges
            ),
            quick_confirm_options=quick_options,
        )

    def _coerce_items(self, raw_items: Any) -> List[DetectedItem]:
        if not isinstance(raw_items, list):
            return [DetectedItem(name=FALLBACK_ITEM_NAME, confidence=DEFAULT_ITEM_CONFIDENCE)]

        items: List[DetectedItem] = []
        for entry in raw_items:
            data = entry if isinstance(entry, Mapping) else {}
            name = data.get("name")
            weight = to_finite(data.get("estimated_weight_grams"))
            notes = data.get("notes")
            items.append(
                DetectedItem(
                    name=clean_item_name(name),
                    confidence=coerce_clamped(
                        data.get("confidence_0_1"), DEFAULT_ITEM_CONFIDENCE, 0.0, 1.0
                    ),
                    estimated_weight_g=(
                        None if weight is None else clamp(weight, 0.0, MAX_ITEM_WEIGHT_G)
                    ),
                    notes=str(notes) if notes else None,
                )
            )

        resolved = self.resolver.resolve(items)
        if not resolved:
            return [DetectedItem(name=FALLBACK_ITEM_NAME, confidence=DEFAULT_ITEM_CONFIDENCE)]
        return resolved

    @staticmethod
    def _coerce_ranges(raw_ranges: Any) -> EstimatedRanges:
        data = raw_ranges if isinstance(raw_ranges, Mapping) else {}
        built: Dict[str, MacroRange] = {}
        for nutrient, (min_default, max_default, min_ceiling, max_ceiling) in RANGE_RULES.items():
            low = coerce_clamped(data.get(f"{nutrient.value}_min"), min_default, 0, min_ceiling)
            high = coerce_clamped(data.get(f"{nutrient.value}_max"), max_default, 0, max_ceiling)
            if low > high:
                low, high = high, low
            built[nutrient.value] = MacroRange(min=low, max=high)
        return EstimatedRanges(**built)

    @staticmethod
    def _coerce_signals(raw_signals: Any) -> List[MicronutrientSignal]:
        if not isinstance(raw_signals, list):
            return []

        signals: List[MicronutrientSignal] = []
        for entry in raw_signals[:MAX_MICRONUTRIENT_SIGNALS]:
            data = entry if isinstance(entry, Mapping) else {}
            nutrient = data.get("nutrient")
            nutrient_name = "" if nutrient is None else str(nutrient).strip()
            rationale = data.get("rationale_short")
            try:
                level = SignalLevel(data.get("signal"))
            except ValueError:
                level = SignalLevel.UNCERTAIN
            signals.append(
                MicronutrientSignal(
                    nutrient=nutrient_name or "General",
                    signal=level,
                    rationale="Signal unclear" if rationale is None else str(rationale),
                )
            )
        return signals

    @staticmethod
    def _optional_text(value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


_default_normalizer = EstimateNormalizer()


def normalize(raw: Any) -> NutritionEstimate:
    """Normalize with the default dish rules."""
    return _default_normalizer.normalize(raw)
