"""Exceptions raised by the shopping-list store."""

from __future__ import annotations

EMPTY_NAME_MESSAGE = "Enter an item name first."


class ShoppingListError(ValueError):
    """Base class for shopping-list failures surfaced to callers."""


class EmptyItemNameError(ShoppingListError):
    """Raised when an explicit add or rename carries a blank item name."""

    def __init__(self, message: str = EMPTY_NAME_MESSAGE) -> None:
        super().__init__(message)


class ItemNotFoundError(ShoppingListError):
    """Raised when an item id does not exist."""

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Shopping list item {item_id} not found")
        self.item_id = item_id


class ItemOwnershipError(ShoppingListError):
    """Raised when an owner targets an item that belongs to someone else."""

    def __init__(self, item_id: int, owner_id: str) -> None:
        super().__init__(f"Shopping list item {item_id} is not owned by {owner_id}")
        self.item_id = item_id
        self.owner_id = owner_id


class InvalidQuantityError(ShoppingListError):
    """Raised when a numeric quantity is negative or not finite."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Quantity must be a non-negative number or text, got {value!r}")
        self.value = value


class InvalidCategoryError(ShoppingListError):
    """Raised when an explicit category label is not one of the known categories."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Unknown shopping category '{value}'")
        self.value = value


__all__ = [
    "EMPTY_NAME_MESSAGE",
    "ShoppingListError",
    "EmptyItemNameError",
    "ItemNotFoundError",
    "ItemOwnershipError",
    "InvalidQuantityError",
    "InvalidCategoryError",
]
