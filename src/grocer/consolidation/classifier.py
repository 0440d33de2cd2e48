"""Keyword-based grocery category classification."""

from __future__ import annotations

from typing import Optional

from grocer.errors import InvalidCategoryError
from grocer.models.shopping import ShoppingCategory

# Ordered by precedence; the first rule with a keyword contained in the name wins.
CATEGORY_RULES: tuple[tuple[ShoppingCategory, tuple[str, ...]], ...] = (
    (
        ShoppingCategory.PRODUCE,
        (
            "apple",
            "banana",
            "berry",
            "berries",
            "avocado",
            "lettuce",
            "spinach",
            "kale",
            "tomato",
            "onion",
            "garlic",
            "pepper",
            "cucumber",
            "carrot",
            "broccoli",
            "lemon",
            "lime",
            "orange",
            "potato",
            "sweet potato",
        ),
    ),
    (
        ShoppingCategory.DAIRY,
        ("milk", "cheese", "yogurt", "butter", "cream", "cottage", "mozzarella", "parmesan"),
    ),
    (
        ShoppingCategory.MEAT,
        ("chicken", "beef", "pork", "turkey", "bacon", "sausage", "ham", "steak"),
    ),
    (
        ShoppingCategory.SEAFOOD,
        ("salmon", "tuna", "shrimp", "prawn", "cod", "tilapia", "fish"),
    ),
    (
        ShoppingCategory.BAKERY,
        ("bread", "bagel", "bun", "tortilla", "wrap", "pita", "croissant"),
    ),
    (
        ShoppingCategory.PANTRY,
        (
            "rice",
            "pasta",
            "oat",
            "oats",
            "flour",
            "sugar",
            "salt",
            "peppercorn",
            "spice",
            "cumin",
            "paprika",
            "oil",
            "olive oil",
            "vinegar",
            "beans",
            "lentil",
            "chickpea",
            "sauce",
            "broth",
            "stock",
        ),
    ),
    (ShoppingCategory.FROZEN, ("ice cream", "frozen", "pizza")),
    (
        ShoppingCategory.BEVERAGES,
        ("water", "sparkling", "soda", "juice", "coffee", "tea"),
    ),
    (
        ShoppingCategory.SNACKS,
        ("chip", "chips", "cracker", "crackers", "snack", "nuts", "protein bar", "bar"),
    ),
    (
        ShoppingCategory.HOUSEHOLD,
        ("detergent", "soap", "dish", "paper towel", "toilet paper", "cleaner", "trash bag"),
    ),
    (
        ShoppingCategory.PERSONAL_CARE,
        ("shampoo", "conditioner", "toothpaste", "deodorant", "lotion"),
    ),
)


def classify(normalized_name: str) -> ShoppingCategory:
    """Return the first matching category for a normalized name, else ``Other``."""

    for category, keywords in CATEGORY_RULES:
        if any(keyword in normalized_name for keyword in keywords):
            return category
    return ShoppingCategory.OTHER


def _label_key(value: str) -> str:
    return " ".join(value.replace("_", " ").replace("-", " ").lower().split())


_CATEGORY_LABELS = {_label_key(category.value): category for category in ShoppingCategory}


def parse_category(value: ShoppingCategory | str | None) -> Optional[ShoppingCategory]:
    """Resolve an explicit category label such as ``"personal care"``.

    ``None`` and blank strings mean "no explicit category".
    """

    if value is None or isinstance(value, ShoppingCategory):
        return value
    key = _label_key(value)
    if not key:
        return None
    try:
        return _CATEGORY_LABELS[key]
    except KeyError as exc:
        raise InvalidCategoryError(value) from exc


__all__ = ["CATEGORY_RULES", "classify", "parse_category"]
