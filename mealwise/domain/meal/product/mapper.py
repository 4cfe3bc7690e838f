"""
OpenFoodFacts data mapper.

Transforms OpenFoodFacts search responses to product records.
"""

from typing import Any, List, Mapping, Optional

from mealwise.domain.meal.product.models import ExternalProductRecord, ProductNutriments
from mealwise.domain.shared.numeric import to_number


def _first_number(data: Mapping[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = to_number(data.get(key))
        if value is not None:
            return value
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class OpenFoodFactsMapper:
    """Maps OpenFoodFacts API data to domain models."""

    @staticmethod
    def parse_nutriments(data: Any) -> ProductNutriments:
        """Parse a raw nutriments dict.

        OpenFoodFacts spells energy both ``energy-kcal`` and
        ``energy_kcal``; the hyphenated key wins.

        Example:
            >>> n = OpenFoodFactsMapper.parse_nutriments(
            ...     {"energy-kcal_serving": "150", "proteins_serving": 20}
            ... )
            >>> n.energy_kcal_serving
            150.0
        """
        if not isinstance(data, Mapping):
            return ProductNutriments()

        # energy-kcal_100g, then bare energy-kcal, then energy_kcal_100g
        energy_100g = _first_number(data, "energy-kcal_100g")
        if energy_100g is None and _first_number(data, "energy-kcal") is None:
            energy_100g = _first_number(data, "energy_kcal_100g")

        return ProductNutriments(
            energy_kcal_serving=_first_number(data, "energy-kcal_serving", "energy_kcal_serving"),
            proteins_serving=_first_number(data, "proteins_serving"),
            carbohydrates_serving=_first_number(data, "carbohydrates_serving"),
            fat_serving=_first_number(data, "fat_serving"),
            energy_kcal_100g=energy_100g,
            proteins_100g=_first_number(data, "proteins_100g"),
            carbohydrates_100g=_first_number(data, "carbohydrates_100g"),
            fat_100g=_first_number(data, "fat_100g"),
            energy_kcal=_first_number(data, "energy-kcal", "energy_kcal"),
            proteins=_first_number(data, "proteins"),
            carbohydrates=_first_number(data, "carbohydrates"),
            fat=_first_number(data, "fat"),
        )

    @staticmethod
    def parse_product(data: Mapping[str, Any]) -> ExternalProductRecord:
        """Parse one product dict from a search response."""
        tags = data.get("categories_tags")
        return ExternalProductRecord(
            code=data.get("code") or None,
            product_name=_text(data.get("product_name")),
            brands=_text(data.get("brands")),
            categories=_text(data.get("categories")),
            categories_tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
            serving_size=_text(data.get("serving_size")),
            nutriments=OpenFoodFactsMapper.parse_nutriments(data.get("nutriments")),
        )

    @staticmethod
    def parse_search_response(response_data: Any) -> List[ExternalProductRecord]:
        """Parse an OpenFoodFacts ``cgi/search.pl`` JSON response.

        Entries that are not objects are skipped; order is preserved since
        matching is first-qualifier-wins.

        Example:
            >>> records = OpenFoodFactsMapper.parse_search_response(
            ...     {"count": 1, "products": [{"product_name": "Oat Bar", "brands": "Acme"}]}
            ... )
            >>> records[0].brands
            'Acme'
        """
        if not isinstance(response_data, Mapping):
            return []
        products = response_data.get("products")
        if not isinstance(products, list):
            return []
        return [
            OpenFoodFactsMapper.parse_product(product)
            for product in products
            if isinstance(product, Mapping)
        ]
