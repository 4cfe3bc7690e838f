"""Unit tests for OpenFoodFacts mapper."""

import pytest

from mealwise.domain.meal.product.mapper import OpenFoodFactsMapper


class TestParseNutriments:
    def test_hyphenated_energy_key(self) -> None:
        n = OpenFoodFactsMapper.parse_nutriments(
            {
                "energy-kcal_serving": 210,
                "energy_kcal_serving": 999,
                "proteins_serving": "20",
                "carbohydrates_serving": 22,
                "fat_serving": 8,
            }
        )

        assert n.energy_kcal_serving == 210
        assert n.proteins_serving == 20.0
        assert n.has_serving_values is True

    def test_underscore_energy_key_fallback(self) -> None:
        n = OpenFoodFactsMapper.parse_nutriments({"energy_kcal_100g": 400})

        assert n.calories_per_100g == 400

    @pytest.mark.parametrize(
        "nutriments, expected",
        [
            ({"energy-kcal_100g": 350, "energy-kcal": 380, "energy_kcal_100g": 400}, 350),
            ({"energy-kcal": 380, "energy_kcal_100g": 400}, 380),
            ({"energy_kcal_100g": 400, "energy_kcal": 420}, 400),
        ],
    )
    def test_per_100g_energy_key_order(self, nutriments: dict, expected: float) -> None:
        assert OpenFoodFactsMapper.parse_nutriments(nutriments).calories_per_100g == expected

    def test_bare_fields_back_per_100g(self) -> None:
        n = OpenFoodFactsMapper.parse_nutriments({"proteins": 12, "fat_100g": 3})

        assert n.protein_per_100g == 12
        assert n.fat_per_100g == 3
        assert n.has_serving_values is False

    def test_garbage(self) -> None:
        n = OpenFoodFactsMapper.parse_nutriments("nope")

        assert n.serving_values == [None, None, None, None]


class TestParseSearchResponse:
    def test_products_in_order(self) -> None:
        records = OpenFoodFactsMapper.parse_search_response(
            {
                "count": 3,
                "products": [
                    {
                        "code": "1",
                        "product_name": "Chocolate Protein Bar",
                        "brands": "Acme",
                        "categories_tags": ["en:snacks", "en:bars"],
                        "serving_size": "60 g",
                        "nutriments": {"proteins_serving": 20},
                    },
                    "skip me",
                    {"product_name": "Vanilla Bar", "brands": None},
                ],
            }
        )

        assert [r.product_name for r in records] == ["Chocolate Protein Bar", "Vanilla Bar"]
        assert records[0].serving_grams == 60
        assert records[0].categories_tags == ["en:snacks", "en:bars"]
        assert "en:bars" in records[0].categories_text
        assert records[1].brands == ""

    def test_missing_products(self) -> None:
        assert OpenFoodFactsMapper.parse_search_response({"count": 0}) == []
        assert OpenFoodFactsMapper.parse_search_response(None) == []
        assert OpenFoodFactsMapper.parse_search_response({"products": "x"}) == []
