"""
Unit tests for the product matcher.

Covers matching, confidence scoring and the range override refusals.
"""

import pytest

from mealwise.domain.meal.estimate.models import MacroRange
from mealwise.domain.meal.product.matcher import ProductMatcher, tighten
from mealwise.domain.meal.product.models import ExternalProductRecord, ProductNutriments
from mealwise.tests.conftest import build_estimate


@pytest.fixture
def matcher() -> ProductMatcher:
    return ProductMatcher()


@pytest.fixture
def packaged_estimate():
    return build_estimate(
        name="Protein bar",
        confidence=0.5,
        brand="Acme",
        product="Protein Bar Chocolate",
        quick_options=["Chocolate", "Vanilla"],
    )


# ═══════════════════════════════════════════════════════════
# MATCHING
# ═══════════════════════════════════════════════════════════


class TestMatch:
    def test_brand_and_tokens_required(self, matcher: ProductMatcher) -> None:
        other_brand = ExternalProductRecord(
            product_name="Chocolate Protein Bar", brands="Zenith"
        )
        weak_name = ExternalProductRecord(product_name="Acme Granola", brands="Acme")

        assert matcher.match([other_brand, weak_name], "Acme", "Protein Bar Chocolate") is None

    def test_first_qualifier_wins(
        self, matcher: ProductMatcher, acme_record: ExternalProductRecord
    ) -> None:
        first = ExternalProductRecord(product_name="Protein Bar Peanut", brands="acme")

        assert matcher.match([first, acme_record], "Acme", "Protein Bar Chocolate") is first

    def test_ratio_qualifies_single_token(self, matcher: ProductMatcher) -> None:
        record = ExternalProductRecord(product_name="Greek Yogurt", brands="Acme")

        assert matcher.qualifies(record, "Acme", "Yogurt")

    def test_short_product_never_matches(
        self, matcher: ProductMatcher, acme_record: ExternalProductRecord
    ) -> None:
        assert matcher.match([acme_record], "Acme", "A to") is None

    def test_confidence_formula(
        self, matcher: ProductMatcher, acme_record: ExternalProductRecord
    ) -> None:
        assert matcher.confidence(acme_record, "Acme", "Protein Bar Chocolate") == 1.0

        no_serving = acme_record.model_copy(update={"nutriments": ProductNutriments()})
        assert matcher.confidence(no_serving, "Acme", "Protein Bar Chocolate") == pytest.approx(0.8)


# ═══════════════════════════════════════════════════════════
# RECONCILIATION
# ═══════════════════════════════════════════════════════════


class TestReconcile:
    def test_strong_match_overrides_ranges(
        self,
        matcher: ProductMatcher,
        acme_record: ExternalProductRecord,
        packaged_estimate,
    ) -> None:
        result = matcher.reconcile(packaged_estimate, [acme_record])

        assert result.ranges_overridden is True
        assert result.matched_product == acme_record
        assert result.estimate.ranges.protein_g == MacroRange(min=18, max=22)
        assert result.estimate.ranges.calories == MacroRange(min=189, max=231)
        assert result.estimate.overall_confidence == 0.9
        assert result.estimate.quick_confirm_options is None
        assert result.estimate.database_match_confidence == 1.0

    def test_weak_match_flags_precision_mode(
        self,
        matcher: ProductMatcher,
        acme_record: ExternalProductRecord,
    ) -> None:
        estimate = build_estimate(confidence=0.9, brand="Acme", product="Protein Bar Chocolate")
        record = acme_record.model_copy(update={"nutriments": ProductNutriments()})

        result = matcher.reconcile(estimate, [record])

        assert result.ranges_overridden is False
        assert result.estimate.ranges == estimate.ranges
        assert result.estimate.precision_mode_available is True
        assert result.match_confidence == pytest.approx(0.8)

    def test_no_packaging_is_noop(self, matcher: ProductMatcher, acme_record) -> None:
        estimate = build_estimate(brand="Acme")

        result = matcher.reconcile(estimate, [acme_record])

        assert result.estimate is estimate
        assert result.matched_product is None

    def test_no_candidates(self, matcher: ProductMatcher, packaged_estimate) -> None:
        result = matcher.reconcile(packaged_estimate, [])

        assert result.estimate is packaged_estimate


# ═══════════════════════════════════════════════════════════
# OVERRIDE REFUSALS
# ═══════════════════════════════════════════════════════════


class TestServingMacros:
    def test_per_100g_scaled_by_serving(self) -> None:
        record = ExternalProductRecord(
            serving_size="50 g",
            nutriments=ProductNutriments(
                energy_kcal_100g=400, proteins_100g=30, carbohydrates_100g=40, fat_100g=10
            ),
        )

        assert ProductMatcher.serving_macros(record) == [200.0, 15.0, 20.0, 5.0]

    def test_missing_serving_refused(self) -> None:
        record = ExternalProductRecord(
            nutriments=ProductNutriments(
                energy_kcal_100g=400, proteins_100g=30, carbohydrates_100g=40, fat_100g=10
            ),
        )

        assert ProductMatcher.serving_macros(record) is None

    def test_non_finite_refused(self, acme_record: ExternalProductRecord) -> None:
        record = acme_record.model_copy(
            update={"nutriments": acme_record.nutriments.model_copy(
                update={"proteins_serving": float("inf")}
            )}
        )

        assert ProductMatcher.serving_macros(record) is None

    @pytest.mark.parametrize("serving, refused", [("100 g", True), ("250 g", False), ("", True)])
    def test_beverage_serving_window(
        self, acme_record: ExternalProductRecord, serving: str, refused: bool
    ) -> None:
        record = acme_record.model_copy(
            update={"categories": "Beverages, Protein shakes", "serving_size": serving}
        )

        assert (ProductMatcher.serving_macros(record) is None) is refused

    def test_refused_override_keeps_estimate(
        self,
        matcher: ProductMatcher,
        acme_record: ExternalProductRecord,
        packaged_estimate,
    ) -> None:
        beverage = acme_record.model_copy(
            update={"categories_tags": ["en:beverages"], "serving_size": "1 bottle"}
        )

        result = matcher.reconcile(packaged_estimate, [beverage])

        assert result.ranges_overridden is False
        assert result.estimate.ranges == packaged_estimate.ranges
        assert result.estimate.database_match_confidence == 1.0


def test_tighten_rounds_half_up() -> None:
    assert tighten(25) == MacroRange(min=23, max=28)
    assert tighten(0) == MacroRange(min=0, max=0)
