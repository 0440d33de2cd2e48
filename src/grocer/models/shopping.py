"""Shopping list models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Quantity = Union[int, float, str]


class ShoppingCategory(str, Enum):
    """Grocery-aisle groupings, declared in display order."""

    PRODUCE = "Produce"
    DAIRY = "Dairy"
    MEAT = "Meat"
    SEAFOOD = "Seafood"
    BAKERY = "Bakery"
    PANTRY = "Pantry"
    FROZEN = "Frozen"
    BEVERAGES = "Beverages"
    SNACKS = "Snacks"
    HOUSEHOLD = "Household"
    PERSONAL_CARE = "Personal Care"
    OTHER = "Other"


CATEGORY_ORDER: tuple[ShoppingCategory, ...] = tuple(ShoppingCategory)


class ShoppingItem(BaseModel):
    """Single entry on one owner's shopping list."""

    id: int
    owner_id: str
    display_name: str
    normalized_key: str
    quantity: Quantity = Field(default=1)
    category: ShoppingCategory = Field(default=ShoppingCategory.OTHER)
    completed: bool = Field(default=False)
    source_recipe_id: Optional[str] = Field(default=None)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)


class ShoppingSection(BaseModel):
    """Items sharing one category, as rendered by the list view."""

    category: ShoppingCategory
    items: List[ShoppingItem] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class AddResult(BaseModel):
    """Outcome of one add-or-merge call."""

    created: int = 0
    merged: int = 0
    item: Optional[ShoppingItem] = None

    model_config = ConfigDict(frozen=True)


class ImportSummary(BaseModel):
    """Aggregate counts for a recipe bulk import."""

    created: int = 0
    merged: int = 0
    skipped: int = 0

    model_config = ConfigDict(frozen=True)


__all__ = [
    "Quantity",
    "ShoppingCategory",
    "CATEGORY_ORDER",
    "ShoppingItem",
    "ShoppingSection",
    "AddResult",
    "ImportSummary",
]
