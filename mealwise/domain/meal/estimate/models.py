"""
Domain models for nutrition estimates.

A NutritionEstimate is the structured, confidence-scored guess at a meal's
nutrition content. It is immutable: every refinement step (dish naming,
product reconciliation, range widening) builds a new value.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

LOW_CONFIDENCE_THRESHOLD = 0.55
PRECISION_CONFIDENCE_THRESHOLD = 0.65
PRECISION_SPREAD_RATIO = 0.3
MAX_MICRONUTRIENT_SIGNALS = 4
MAX_QUICK_CONFIRM_OPTIONS = 4


class Nutrient(str, Enum):
    """Macronutrients tracked as min/max ranges.

    Values are the wire prefixes used in ``estimated_ranges``.
    """

    CALORIES = "calories"
    PROTEIN = "protein_g"
    CARBS = "carbs_g"
    FAT = "fat_g"


class SignalLevel(str, Enum):
    """How visible a micronutrient source is in the photo."""

    LOW_APPEARANCE = "low_appearance"
    ADEQUATE_APPEARANCE = "adequate_appearance"
    UNCERTAIN = "uncertain"


class DetectedItem(BaseModel):
    """
    Single food item detected in a photo.

    Example:
        >>> item = DetectedItem(name="Grilled chicken", confidence=0.8)
        >>> assert item.estimated_weight_g is None
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Display name")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Detection confidence")
    estimated_weight_g: Optional[float] = Field(None, ge=0, description="Estimated grams")
    notes: Optional[str] = Field(None, description="Short hedged note")


class MacroRange(BaseModel):
    """
    Inclusive min/max estimate for one macronutrient.

    A degenerate range (min == max) marks an exact reading, e.g. a
    nutrition label, and must not be widened.

    Example:
        >>> r = MacroRange(min=400, max=600)
        >>> r.span
        200.0
        >>> r.midpoint
        500.0
    """

    model_config = ConfigDict(frozen=True)

    min: float = Field(..., ge=0, description="Lower bound")
    max: float = Field(..., ge=0, description="Upper bound")

    @model_validator(mode="after")
    def ordered(self) -> MacroRange:
        """Ensure min <= max."""
        if self.min > self.max:
            raise ValueError(f"Range min {self.min} exceeds max {self.max}")
        return self

    @property
    def span(self) -> float:
        """Width of the range."""
        return float(self.max - self.min)

    @property
    def midpoint(self) -> float:
        """Middle of the range."""
        return (self.min + self.max) / 2

    @property
    def is_exact(self) -> bool:
        """True when min == max."""
        return self.min == self.max


class EstimatedRanges(BaseModel):
    """The four macro ranges of an estimate."""

    model_config = ConfigDict(frozen=True)

    calories: MacroRange
    protein_g: MacroRange
    carbs_g: MacroRange
    fat_g: MacroRange

    def get(self, nutrient: Nutrient) -> MacroRange:
        """Range for one nutrient."""
        return getattr(self, nutrient.value)

    @property
    def calorie_spread_ratio(self) -> float:
        """Calorie span relative to calorie max (0 when max is 0)."""
        if self.calories.max <= 0:
            return 0.0
        return self.calories.span / self.calories.max

    def to_raw(self) -> dict[str, float]:
        """Flatten to ``{calories_min, calories_max, ...}``."""
        raw: dict[str, float] = {}
        for nutrient in Nutrient:
            value = self.get(nutrient)
            raw[f"{nutrient.value}_min"] = value.min
            raw[f"{nutrient.value}_max"] = value.max
        return raw


class MicronutrientSignal(BaseModel):
    """Visual hint about a micronutrient's presence."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    nutrient: str = Field(..., min_length=1)
    signal: SignalLevel = Field(SignalLevel.UNCERTAIN)
    rationale: str = Field("", description="Short hedged rationale")


class NutritionEstimate(BaseModel):
    """
    Structured nutrition estimate for one meal photo.

    Attributes:
        detected_items: Non-empty, best item first
        ranges: Macro min/max ranges
        micronutrient_signals: Up to four visual signals
        overall_confidence: Confidence in the whole estimate (0-1)
        detected_brand: Brand read from packaging, if any
        detected_product: Product read from packaging, if any
        database_match_confidence: Set after product matching
        precision_mode_available: UI may offer a refinement scan
        quick_confirm_options: Disambiguation labels (low confidence only)

    Example:
        >>> estimate = NutritionEstimate(
        ...     detected_items=[DetectedItem(name="Oatmeal", confidence=0.9)],
        ...     ranges=EstimatedRanges(
        ...         calories=MacroRange(min=250, max=320),
        ...         protein_g=MacroRange(min=8, max=12),
        ...         carbs_g=MacroRange(min=40, max=55),
        ...         fat_g=MacroRange(min=4, max=8),
        ...     ),
        ...     overall_confidence=0.8,
        ... )
        >>> assert not estimate.is_low_confidence
    """

    model_config = ConfigDict(frozen=True)

    detected_items: List[DetectedItem] = Field(..., min_length=1)
    ranges: EstimatedRanges
    micronutrient_signals: List[MicronutrientSignal] = Field(
        default_factory=list, max_length=MAX_MICRONUTRIENT_SIGNALS
    )
    overall_confidence: float = Field(..., ge=0.0, le=1.0)
    detected_brand: Optional[str] = None
    detected_product: Optional[str] = None
    database_match_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    precision_mode_available: bool = False
    quick_confirm_options: Optional[List[str]] = Field(
        None, max_length=MAX_QUICK_CONFIRM_OPTIONS
    )

    @field_validator("quick_confirm_options")
    @classmethod
    def drop_empty_options(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        """An empty option list means no options."""
        return v or None

    @property
    def primary_name(self) -> str:
        """Name of the best detected item."""
        return self.detected_items[0].name

    @property
    def is_low_confidence(self) -> bool:
        """Below the shared low-confidence threshold."""
        return self.overall_confidence < LOW_CONFIDENCE_THRESHOLD

    @property
    def has_packaging(self) -> bool:
        """Both brand and product were read, so product matching applies."""
        return bool(self.detected_brand) and bool(self.detected_product)

    def to_raw(self) -> dict[str, Any]:
        """
        Serialize to the vision wire shape.

        Feeding the result back through the normalizer yields an equal
        estimate.
        """
        items: List[dict[str, Any]] = []
        for item in self.detected_items:
            raw_item: dict[str, Any] = {
                "name": item.name,
                "confidence_0_1": item.confidence,
            }
            if item.estimated_weight_g is not None:
                raw_item["estimated_weight_grams"] = item.estimated_weight_g
            if item.notes is not None:
                raw_item["notes"] = item.notes
            items.append(raw_item)

        return {
            "detected_items": items,
            "estimated_ranges": self.ranges.to_raw(),
            "micronutrient_signals": [
                {
                    "nutrient": signal.nutrient,
                    "signal": signal.signal.value,
                    "rationale_short": signal.rationale,
                }
                for signal in self.micronutrient_signals
            ],
            "confidence_overall_0_1": self.overall_confidence,
            "detected_brand": self.detected_brand,
            "detected_product": self.detected_product,
            "database_match_confidence_0_1": self.database_match_confidence,
            "precision_mode_available": self.precision_mode_available,
            "optional_quick_confirm_options": (
                list(self.quick_confirm_options) if self.quick_confirm_options else None
            ),
        }


def derive_precision_mode(
    detected_brand: Optional[str],
    overall_confidence: float,
    ranges: EstimatedRanges,
) -> bool:
    """
    Whether a precision (packaging/label) scan should be offered.

    True when a brand was detected, confidence is below 0.65, or the
    calorie range spans more than 30% of its max.
    """
    return (
        bool(detected_brand)
        or overall_confidence < PRECISION_CONFIDENCE_THRESHOLD
        or ranges.calorie_spread_ratio > PRECISION_SPREAD_RATIO
    )
