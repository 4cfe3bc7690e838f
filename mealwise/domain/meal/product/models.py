"""
External product database models.

Records returned by the OpenFoodFacts search endpoint, reduced to the
fields needed to match a packaged product and read its nutrition.
"""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

SERVING_GRAMS_PATTERN = re.compile(r"([\d.]+)\s*g", re.IGNORECASE)


class ProductNutriments(BaseModel):
    """OpenFoodFacts nutriments block.

    Per-serving values, per-100g values and the bare fields some products
    carry instead of the suffixed ones. Values are never validated for
    range here: a product database is untrusted input.

    Example:
        >>> n = ProductNutriments(proteins_100g=20.0, proteins=18.0)
        >>> n.protein_per_100g
        20.0
        >>> ProductNutriments(proteins=18.0).protein_per_100g
        18.0
    """

    model_config = ConfigDict(frozen=True)

    energy_kcal_serving: Optional[float] = None
    proteins_serving: Optional[float] = None
    carbohydrates_serving: Optional[float] = None
    fat_serving: Optional[float] = None

    energy_kcal_100g: Optional[float] = None
    proteins_100g: Optional[float] = None
    carbohydrates_100g: Optional[float] = None
    fat_100g: Optional[float] = None

    energy_kcal: Optional[float] = None
    proteins: Optional[float] = None
    carbohydrates: Optional[float] = None
    fat: Optional[float] = None

    @property
    def serving_values(self) -> List[Optional[float]]:
        """Calories, protein, carbs, fat per serving."""
        return [
            self.energy_kcal_serving,
            self.proteins_serving,
            self.carbohydrates_serving,
            self.fat_serving,
        ]

    @property
    def has_serving_values(self) -> bool:
        """All four per-serving values are present."""
        return all(value is not None for value in self.serving_values)

    @property
    def calories_per_100g(self) -> Optional[float]:
        return self.energy_kcal_100g if self.energy_kcal_100g is not None else self.energy_kcal

    @property
    def protein_per_100g(self) -> Optional[float]:
        return self.proteins_100g if self.proteins_100g is not None else self.proteins

    @property
    def carbs_per_100g(self) -> Optional[float]:
        return (
            self.carbohydrates_100g
            if self.carbohydrates_100g is not None
            else self.carbohydrates
        )

    @property
    def fat_per_100g(self) -> Optional[float]:
        return self.fat_100g if self.fat_100g is not None else self.fat


class ExternalProductRecord(BaseModel):
    """Product returned by a product database search.

    Example:
        >>> record = ExternalProductRecord(
        ...     product_name="Greek Yogurt Vanilla",
        ...     brands="Acme, Acme Dairy",
        ...     serving_size="170 g",
        ... )
        >>> record.serving_grams
        170.0
    """

    model_config = ConfigDict(frozen=True)

    code: Optional[str] = Field(None, description="Product barcode")
    product_name: str = Field("", description="Product name")
    brands: str = Field("", description="Comma separated brand names")
    categories: str = Field("", description="Free text categories")
    categories_tags: List[str] = Field(default_factory=list, description="Category tags")
    serving_size: str = Field("", description="Serving size text, e.g. '30 g'")
    nutriments: ProductNutriments = Field(default_factory=ProductNutriments)

    @property
    def serving_grams(self) -> Optional[float]:
        """Grams parsed from the serving size text, if any."""
        match = SERVING_GRAMS_PATTERN.search(self.serving_size)
        if not match:
            return None
        try:
            return float(match.group(1))
        except ValueError:
            return None

    @property
    def categories_text(self) -> str:
        """Categories and tags lower-cased into one searchable string."""
        return f"{self.categories} {' '.join(self.categories_tags)}".lower()
