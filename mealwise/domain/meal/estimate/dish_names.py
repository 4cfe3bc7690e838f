"""
Dish name resolution.

Photo classifiers tend to return single ingredients ("fries", "rice") or
generic labels ("meal"). This module ranks detected items so the most
descriptive one comes first and, when the combined item text matches a
known composite dish, renames the first item to that dish.
"""

from __future__ import annotations

import re
from typing import Callable, List, Sequence, Tuple

from mealwise.domain.meal.estimate.models import DetectedItem

GENERIC_ITEM_NAMES = frozenset(
    {
        "meal",
        "food",
        "dish",
        "plate",
        "bowl",
        "snack",
        "lunch",
        "dinner",
        "breakfast",
    }
)

FALLBACK_ITEM_NAME = "Meal"

DishPredicate = Callable[[str], bool]
DishRule = Tuple[DishPredicate, str]


def _has(*words: str) -> DishPredicate:
    """All words occur in the text."""
    return lambda text: all(word in text for word in words)


def _has_any(*words: str) -> DishPredicate:
    """At least one word occurs in the text."""
    return lambda text: any(word in text for word in words)


def _either(*predicates: DishPredicate) -> DishPredicate:
    return lambda text: any(predicate(text) for predicate in predicates)


def _both(*predicates: DishPredicate) -> DishPredicate:
    return lambda text: all(predicate(text) for predicate in predicates)


# Evaluated top to bottom, first match wins. The order is the tie-break
# between overlapping triggers ("taco" vs "taco" + "plate") and is part of
# the output contract: do not sort or regroup.
DISH_RULES: Tuple[DishRule, ...] = (
    (_has_any("cookie", "cookies"), "Cookies"),
    (_has("ice cream"), "Ice cream"),
    (_has("granola", "bowl"), "Granola bowl"),
    (_has("cereal"), "Cereal"),
    (_has("gyro", "plate"), "Gyro plate"),
    (_has("shawarma", "plate"), "Shawarma plate"),
    (_has("hummus", "pita"), "Hummus with pita"),
    (_has("falafel"), "Falafel"),
    (_has("rice", "beans"), "Rice and beans"),
    (_has("sushi", "bowl"), "Sushi bowl"),
    (_has("salmon", "salad"), "Salmon salad"),
    (_has("salmon", "rice"), "Salmon with rice"),
    (_has("steak", "potato"), "Steak with potatoes"),
    (_has("fish", "chips"), "Fish and chips"),
    (_has("fries", "sweet potato"), "Sweet potato fries"),
    (_has("hot dog"), "Hot dog"),
    (_has("burger", "veggie"), "Veggie burger"),
    (_has("burger", "chicken"), "Chicken burger"),
    (_has("burger", "cheese"), "Cheeseburger"),
    (_has("chili"), "Chili"),
    (_has("soup", "noodle"), "Noodle soup"),
    (_has("soup", "tomato"), "Tomato soup"),
    (_has("soup", "chicken"), "Chicken soup"),
    (_has("fruit", "salad"), "Fruit salad"),
    (_has("granola", "yogurt"), "Yogurt with granola"),
    (_has("yogurt", "parfait"), "Yogurt parfait"),
    (_has("protein", "shake"), "Protein shake"),
    (_has("smoothie"), "Smoothie"),
    (_has("breakfast", "sandwich"), "Breakfast sandwich"),
    (_has("breakfast", "burrito"), "Breakfast burrito"),
    (_has("scrambled", "egg"), "Scrambled eggs"),
    (_has_any("omelet", "omelette"), "Omelet"),
    (_has_any("waffle", "waffles"), "Waffles"),
    (_has_any("pancake", "pancakes"), "Pancakes"),
    (_has("oatmeal"), "Oatmeal"),
    (_has("avocado", "toast"), "Avocado toast"),
    (_has("bagel", "cream cheese"), "Bagel with cream cheese"),
    (_has("panini"), "Panini"),
    (_has("sandwich", "tuna"), "Tuna sandwich"),
    (_has("sandwich", "club"), "Club sandwich"),
    (_has("sandwich", "grilled cheese"), "Grilled cheese"),
    (_has("wrap", "veggie"), "Veggie wrap"),
    (_has("wrap", "chicken"), "Chicken wrap"),
    (_has("taco"), "Tacos"),
    (_has("burrito"), "Burrito"),
    (_has("nacho"), "Nachos"),
    (_has("quesadilla"), "Quesadilla"),
    (_has("taco", "bowl"), "Taco bowl"),
    (_has("pizza", "veggie"), "Veggie pizza"),
    (_has("pizza", "cheese"), "Cheese pizza"),
    (_has("pizza", "pepperoni"), "Pepperoni pizza"),
    (_has("lasagna"), "Lasagna"),
    (_has("spaghetti", "meatballs"), "Spaghetti and meatballs"),
    (_has("noodle", "stir fry"), "Stir-fry noodles"),
    (_has("ramen", "miso"), "Miso ramen"),
    (_has("ramen", "shoyu"), "Shoyu ramen"),
    (_has("ramen", "tonkotsu"), "Tonkotsu ramen"),
    (_has("poke", "tuna"), "Tuna poke bowl"),
    (_has("poke", "salmon"), "Salmon poke bowl"),
    (_has("sashimi"), "Sashimi"),
    (_has("sushi", "combo"), "Sushi combo"),
    (_has("naan", "curry"), "Curry with naan"),
    (_has("butter", "chicken"), "Butter chicken"),
    (_has("tikka", "masala"), "Chicken tikka masala"),
    (_has("curry", "rice"), "Curry with rice"),
    (_has("pho"), "Pho"),
    (_has("bento"), "Bento box"),
    (_has("teriyaki", "bowl"), "Teriyaki bowl"),
    (_has("rice", "chicken", "beans"), "Chicken rice bowl"),
    (_has("fried rice"), "Fried rice"),
    (_has_any("stir fry", "stir-fry"), "Stir-fry"),
    (_has("pad thai"), "Pad thai"),
    (_has("bibimbap"), "Bibimbap"),
    (_has("salad", "poke"), "Poke salad"),
    (_has("salad", "tuna"), "Tuna salad"),
    (_has("salad", "caesar"), "Caesar salad"),
    (_has("salad", "greek"), "Greek salad"),
    (_has("salad", "cobb"), "Cobb salad"),
    (_has("salad", "chicken"), "Chicken salad"),
    (_has("sushi", "roll"), "Sushi roll"),
    (_either(_has("fried chicken"), _has("chicken", "wings")), "Chicken wings"),
    (_both(_has_any("shawarma", "gyro"), _has("wrap")), "Shawarma wrap"),
    (_has("taco", "plate"), "Taco plate"),
    (_either(_has("burrito", "bowl"), _has("rice bowl", "beans")), "Burrito bowl"),
    (_either(_has("poke", "bowl"), _has("poke bowl")), "Poke bowl"),
    (
        _both(_has_any("ramen", "noodle bowl"), _has_any("broth", "noodle")),
        "Ramen bowl",
    ),
    (_either(_has("cheesesteak"), _has("philly", "steak")), "Philly cheesesteak"),
    (_both(_has("fries"), _has_any("curd", "cheese curds")), "Poutine"),
    (_either(_has("poutine"), _has("fries", "gravy")), "Poutine"),
)


def clean_item_name(value: object) -> str:
    """Trim, collapse inner whitespace and drop trailing periods."""
    text = "" if value is None else str(value)
    cleaned = re.sub(r"\s+", " ", text.strip())
    cleaned = re.sub(r"\.+$", "", cleaned)
    return cleaned or FALLBACK_ITEM_NAME


def score_item(name: str, confidence: float) -> float:
    """
    Rank an item by how useful its name is as a meal title.

    Multi-word and longer names are preferred; generic labels are pushed
    down.

    Example:
        >>> round(score_item("cheese curds and gravy", 0.5), 2)
        0.7
        >>> round(score_item("Meal", 0.5), 2)
        0.25
    """
    lower = name.lower()
    score = confidence
    if len(lower.split()) > 1:
        score += 0.15
    if len(name) >= 8:
        score += 0.05
    if lower in GENERIC_ITEM_NAMES:
        score -= 0.25
    return score


def match_dish(text: str, rules: Sequence[DishRule] = DISH_RULES) -> str | None:
    """Return the label of the first rule matching the lower-cased text."""
    for predicate, label in rules:
        if predicate(text):
            return label
    return None


class DishNameResolver:
    """
    Picks the display name for a meal from its detected items.

    Example:
        >>> resolver = DishNameResolver()
        >>> items = resolver.resolve([
        ...     DetectedItem(name="fries", confidence=0.5),
        ...     DetectedItem(name="cheese curds and gravy", confidence=0.5),
        ... ])
        >>> items[0].name
        'Poutine'
    """

    def __init__(self, rules: Sequence[DishRule] = DISH_RULES) -> None:
        self.rules = tuple(rules)

    def resolve(self, items: Sequence[DetectedItem]) -> List[DetectedItem]:
        """Clean names, rank items and apply the composite-dish override."""
        if not items:
            return []

        cleaned = [
            item.model_copy(update={"name": clean_item_name(item.name)}) for item in items
        ]
        # sorted() is stable, so equal scores keep their input order
        ranked = sorted(cleaned, key=lambda item: -score_item(item.name, item.confidence))

        label = match_dish(self.search_text(ranked), self.rules)
        if label is None:
            return ranked

        return [ranked[0].model_copy(update={"name": label}), *ranked[1:]]

    @staticmethod
    def search_text(items: Sequence[DetectedItem]) -> str:
        """Lower-cased names and notes of all items, space separated."""
        parts = [f"{item.name} {item.notes or ''}".strip() for item in items]
        return " ".join(parts).lower()
