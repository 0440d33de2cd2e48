"""Dependency definitions for the Grocer API server."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from grocer.config import Settings, get_settings
from grocer.db.shopping_list import (
    add_item,
    clear_completed,
    delete_item,
    get_item,
    import_recipe_ingredients,
    list_sections,
    reset_list,
    set_completed,
    update_item,
)
from grocer.models.shopping import AddResult, ImportSummary, ShoppingItem, ShoppingSection

SectionsProvider = Callable[[str], List[ShoppingSection]]
ItemFetcher = Callable[[str, int], Optional[ShoppingItem]]
ItemAdder = Callable[[str, dict], AddResult]
RecipeImporter = Callable[[str, Iterable[str], Optional[str]], ImportSummary]
ItemUpdater = Callable[[str, int, dict], ShoppingItem]
CompletionSetter = Callable[[str, int, bool], ShoppingItem]
ItemDeleter = Callable[[str, int], bool]
ListClearer = Callable[[str], int]

OWNER_HEADER = "X-Owner-ID"


def get_sections_provider() -> SectionsProvider:
    return list_sections


def get_item_fetcher() -> ItemFetcher:
    return get_item


def get_item_adder() -> ItemAdder:
    return lambda owner_id, payload: add_item(owner_id, **payload)


def get_recipe_importer() -> RecipeImporter:
    return lambda owner_id, lines, recipe_id=None: import_recipe_ingredients(
        owner_id,
        lines,
        source_recipe_id=recipe_id,
    )


def get_item_updater() -> ItemUpdater:
    return lambda owner_id, item_id, payload: update_item(owner_id, item_id, **payload)


def get_completion_setter() -> CompletionSetter:
    return set_completed


def get_item_deleter() -> ItemDeleter:
    return delete_item


def get_completed_clearer() -> ListClearer:
    return clear_completed


def get_list_resetter() -> ListClearer:
    return reset_list


def require_owner(x_owner_id: Optional[str] = Header(default=None, alias=OWNER_HEADER)) -> str:
    """Return the caller's owner id as asserted by the upstream identity provider."""

    owner_id = (x_owner_id or "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {OWNER_HEADER} header",
        )
    return owner_id


def require_api_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """Ensure requests carry the configured API token when required."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    if request.query_params.get("api_token") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
