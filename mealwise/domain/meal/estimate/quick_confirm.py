"""
Disambiguation helpers for low-confidence estimates.

When the model is unsure it may or may not send its own quick-confirm
options. These helpers derive sensible ones from the primary item name so
the user always gets a one-tap correction path.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from mealwise.domain.meal.estimate.models import NutritionEstimate

GENERIC_QUICK_OPTIONS: Tuple[str, ...] = ("Mixed plate", "Sandwich", "Bowl", "Other")

# (keywords, options); first keyword hit wins
_PROTEIN_OPTIONS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("burger",), ("Beef", "Chicken", "Plant-based", "Turkey")),
    (("pizza",), ("Cheese", "Pepperoni", "Vegetable", "Chicken")),
    (("taco", "burrito"), ("Beef", "Chicken", "Fish", "Vegetarian")),
    (("salad",), ("Chicken", "Fish", "Egg", "Vegetarian")),
    (("sandwich",), ("Turkey", "Chicken", "Beef", "Vegetarian")),
    (("bowl",), ("Chicken", "Beef", "Fish", "Vegetarian")),
    (("pasta",), ("Meat", "Chicken", "Seafood", "Vegetarian")),
    (("sushi",), ("Salmon", "Tuna", "Shrimp", "Vegetarian")),
    (("yogurt",), ("Dairy", "Non-dairy", "Added granola", "Plain")),
    (("egg",), ("Eggs", "Eggs + meat", "Vegetarian", "With toast")),
)

_DISH_CANDIDATES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("fries",), ("Poutine", "Loaded fries", "Side fries")),
    (("sandwich", "steak"), ("Philly cheesesteak", "Steak sandwich")),
    (("burger",), ("Burger with fries", "Cheeseburger", "Burger bowl")),
    (("pizza",), ("Pepperoni pizza", "Cheese pizza", "Veggie pizza")),
    (("taco", "burrito"), ("Burrito bowl", "Taco plate", "Loaded tacos")),
    (("salad",), ("Chicken salad", "Cobb salad", "Greek salad")),
    (("pasta",), ("Pasta with chicken", "Pasta with meat", "Veggie pasta")),
    (("noodle", "ramen"), ("Ramen bowl", "Noodle bowl", "Stir-fry noodles")),
    (("sushi",), ("Salmon roll", "Tuna roll", "Sushi combo")),
    (("bowl",), ("Burrito bowl", "Poke bowl", "Rice bowl")),
)

_CLARIFY_CHIPS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("burger", "sandwich", "taco", "burrito"), ("Beef", "Chicken", "Vegetarian", "Takeout")),
    (("salad", "bowl"), ("Chicken", "Fish", "Vegetarian", "No dairy")),
    (("pizza",), ("Cheese", "Pepperoni", "Vegetable", "Takeout")),
)
_DEFAULT_CLARIFY_CHIPS: Tuple[str, ...] = ("Vegetarian", "No dairy", "Takeout")


def _lookup(
    name: str,
    table: Sequence[Tuple[Tuple[str, ...], Tuple[str, ...]]],
) -> Tuple[str, ...] | None:
    lower = name.lower()
    for keywords, options in table:
        if any(keyword in lower for keyword in keywords):
            return options
    return None


def derive_quick_options(estimate: NutritionEstimate) -> List[str]:
    """Options implied by the primary item name, generic ones otherwise."""
    options = _lookup(estimate.primary_name, _PROTEIN_OPTIONS)
    return list(options or GENERIC_QUICK_OPTIONS)


def quick_confirm_choices(estimate: NutritionEstimate) -> List[str]:
    """
    Options to show for an estimate.

    Empty at or above the low-confidence threshold; the model's own
    options when it sent any, derived ones otherwise.
    """
    if not estimate.is_low_confidence:
        return []
    if estimate.quick_confirm_options:
        return list(estimate.quick_confirm_options)
    return derive_quick_options(estimate)


def dish_candidates(estimate: NutritionEstimate) -> List[str]:
    """Named dishes the user may have meant."""
    return list(_lookup(estimate.primary_name, _DISH_CANDIDATES) or ())


def clarify_chips(estimate: NutritionEstimate) -> List[str]:
    """Short clarification chips, only for low-confidence estimates."""
    if not estimate.is_low_confidence:
        return []
    return list(_lookup(estimate.primary_name, _CLARIFY_CHIPS) or _DEFAULT_CLARIFY_CHIPS)
