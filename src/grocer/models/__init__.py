"""Pydantic models defining shared data contracts."""

from grocer.models.shopping import (
    CATEGORY_ORDER,
    AddResult,
    ImportSummary,
    Quantity,
    ShoppingCategory,
    ShoppingItem,
    ShoppingSection,
)

__all__ = [
    "CATEGORY_ORDER",
    "AddResult",
    "ImportSummary",
    "Quantity",
    "ShoppingCategory",
    "ShoppingItem",
    "ShoppingSection",
]
