"""
Product matcher.

Fuzzy-matches a brand/product read from packaging against product
database records and, when the match is strong, replaces the estimate's
ranges with tight ranges around the database values.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from mealwise.domain.meal.estimate.models import (
    EstimatedRanges,
    MacroRange,
    NutritionEstimate,
)
from mealwise.domain.meal.product.models import ExternalProductRecord
from mealwise.domain.shared.numeric import clamp, round_half_up

MIN_TOKEN_LENGTH = 3
MIN_TOKEN_MATCHES = 2
MIN_TOKEN_RATIO = 0.6

OVERRIDE_CONFIDENCE = 0.85
OVERRIDDEN_ESTIMATE_CONFIDENCE = 0.9
TIGHTEN_LOW = 0.9
TIGHTEN_HIGH = 1.1

BEVERAGE_TERMS = ("beverages", "drinks", "meal-replacement", "shakes", "liquid")
BEVERAGE_MIN_SERVING_G = 200.0
BEVERAGE_MAX_SERVING_G = 500.0


def product_tokens(product: str) -> List[str]:
    """
    Lower-cased words of at least three characters.

    Example:
        >>> product_tokens("Greek Yogurt w/ Honey")
        ['greek', 'yogurt', 'honey']
    """
    return [word for word in product.lower().split() if len(word) >= MIN_TOKEN_LENGTH]


def token_overlap(tokens: Sequence[str], name: str) -> int:
    """Number of tokens found as substrings of the lower-cased name."""
    lower = name.lower()
    return sum(1 for token in tokens if token in lower)


def tighten(value: float) -> MacroRange:
    """±10% around a database value, half-up rounded."""
    low = max(0, round_half_up(value * TIGHTEN_LOW))
    high = max(low, round_half_up(value * TIGHTEN_HIGH))
    return MacroRange(min=float(low), max=float(high))


class ProductReconciliation(BaseModel):
    """Outcome of reconciling an estimate with search results."""

    model_config = ConfigDict(frozen=True)

    estimate: NutritionEstimate
    matched_product: Optional[ExternalProductRecord] = None
    match_confidence: Optional[float] = None
    ranges_overridden: bool = False


class ProductMatcher:
    """
    Matches packaged products and overrides ranges from their nutrition.

    Example:
        >>> matcher = ProductMatcher()
        >>> record = ExternalProductRecord(
        ...     product_name="Greek Yogurt Vanilla", brands="Acme"
        ... )
        >>> matcher.match([record], "Acme", "Greek Yogurt") is record
        True
    """

    def __init__(self, override_threshold: float = OVERRIDE_CONFIDENCE) -> None:
        self.override_threshold = override_threshold

    @staticmethod
    def qualifies(candidate: ExternalProductRecord, brand: str, product: str) -> bool:
        """Brand contained in the candidate's brands and enough product words overlap."""
        tokens = product_tokens(product)
        if not tokens:
            return False
        if brand.lower() not in candidate.brands.lower():
            return False
        overlap = token_overlap(tokens, candidate.product_name)
        return overlap >= MIN_TOKEN_MATCHES or overlap / len(tokens) >= MIN_TOKEN_RATIO

    def match(
        self,
        candidates: Sequence[ExternalProductRecord],
        brand: str,
        product: str,
    ) -> Optional[ExternalProductRecord]:
        """First qualifying candidate in input order, or None."""
        for candidate in candidates:
            if self.qualifies(candidate, brand, product):
                return candidate
        return None

    @staticmethod
    def confidence(candidate: ExternalProductRecord, brand: str, product: str) -> float:
        """
        Match confidence in [0, 1].

        0.4 for a brand hit, 0.4 times the token overlap ratio, and 0.2 when
        the product lists all four per-serving values.
        """
        tokens = product_tokens(product)
        brand_hit = 1.0 if brand.lower() in candidate.brands.lower() else 0.0
        ratio = token_overlap(tokens, candidate.product_name) / len(tokens) if tokens else 0.0
        serving = 1.0 if candidate.nutriments.has_serving_values else 0.0
        return clamp(brand_hit * 0.4 + ratio * 0.4 + serving * 0.2, 0.0, 1.0)

    @staticmethod
    def serving_macros(candidate: ExternalProductRecord) -> Optional[List[float]]:
        """
        Calories, protein, carbs and fat for one serving.

        Per-serving values when complete, otherwise per-100g values scaled
        by the serving grams. None when the product cannot be trusted for a
        single serving.
        """
        nutriments = candidate.nutriments
        grams = candidate.serving_grams
        has_serving = nutriments.has_serving_values

        is_beverage = any(term in candidate.categories_text for term in BEVERAGE_TERMS)
        if is_beverage and (
            grams is None or grams < BEVERAGE_MIN_SERVING_G or grams > BEVERAGE_MAX_SERVING_G
        ):
            return None

        if has_serving:
            values = nutriments.serving_values
        elif grams is None:
            return None
        else:
            per_100g = [
                nutriments.calories_per_100g,
                nutriments.protein_per_100g,
                nutriments.carbs_per_100g,
                nutriments.fat_per_100g,
            ]
            values = [None if value is None else value * grams / 100 for value in per_100g]

        if any(value is None or not math.isfinite(value) for value in values):
            return None
        return [float(value) for value in values]  # type: ignore[arg-type]

    def override_ranges(
        self,
        estimate: NutritionEstimate,
        candidate: ExternalProductRecord,
    ) -> NutritionEstimate:
        """
        Replace ranges with ±10% around the product's serving values.

        Returns the estimate unchanged when the product is refused.
        """
        macros = self.serving_macros(candidate)
        if macros is None:
            return estimate

        calories, protein, carbs, fat = macros
        ranges = EstimatedRanges(
            calories=tighten(calories),
            protein_g=tighten(protein),
            carbs_g=tighten(carbs),
            fat_g=tighten(fat),
        )
        return estimate.model_copy(
            update={
                "ranges": ranges,
                "overall_confidence": OVERRIDDEN_ESTIMATE_CONFIDENCE,
                "quick_confirm_options": None,
            }
        )

    def reconcile(
        self,
        estimate: NutritionEstimate,
        candidates: Sequence[ExternalProductRecord],
    ) -> ProductReconciliation:
        """
        Match the estimate's packaging against candidates and apply the result.

        Strong matches override the ranges; weaker ones only flag precision
        mode. The match confidence is recorded either way.
        """
        if not estimate.has_packaging:
            return ProductReconciliation(estimate=estimate)

        brand = estimate.detected_brand or ""
        product = estimate.detected_product or ""
        best = self.match(candidates, brand, product)
        if best is None:
            return ProductReconciliation(estimate=estimate)

        score = self.confidence(best, brand, product)
        scored = estimate.model_copy(update={"database_match_confidence": score})

        if score < self.override_threshold:
            return ProductReconciliation(
                estimate=scored.model_copy(update={"precision_mode_available": True}),
                matched_product=best,
                match_confidence=score,
            )

        overridden = self.override_ranges(scored, best)
        return ProductReconciliation(
            estimate=overridden,
            matched_product=best,
            match_confidence=score,
            ranges_overridden=overridden is not scored,
        )
