"""Per-owner shopping list store with add-or-merge consolidation."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grocer import metrics
from grocer.consolidation.classifier import classify, parse_category
from grocer.consolidation.normalizer import normalize_name
from grocer.consolidation.parser import parse_ingredient_line
from grocer.consolidation.quantities import DEFAULT_QUANTITY, combine_quantities, tidy_number
from grocer.errors import (
    EmptyItemNameError,
    InvalidQuantityError,
    ItemNotFoundError,
    ItemOwnershipError,
)
from grocer.models.shopping import (
    CATEGORY_ORDER,
    AddResult,
    ImportSummary,
    Quantity,
    ShoppingCategory,
    ShoppingItem,
    ShoppingSection,
)

from .models import ShoppingItemORM
from .repository import session_scope

logger = logging.getLogger(__name__)

_UNSET = object()


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _checked_number(value: float | int) -> Quantity:
    # Numbers are persisted as floats; anything beyond float range is rejected.
    try:
        as_float = float(value)
    except OverflowError as exc:
        raise InvalidQuantityError(value) from exc
    if not math.isfinite(as_float) or as_float < 0:
        raise InvalidQuantityError(value)
    return tidy_number(value)


def _clean_quantity(quantity: Quantity | None) -> Quantity:
    if quantity is None:
        return DEFAULT_QUANTITY
    if _is_number(quantity):
        return _checked_number(quantity)  # type: ignore[arg-type]
    return str(quantity).strip()


def _row_quantity(row: ShoppingItemORM) -> Quantity:
    if row.quantity_value is not None:
        return tidy_number(row.quantity_value)
    if row.quantity_text is not None:
        return row.quantity_text
    return DEFAULT_QUANTITY


def _set_row_quantity(row: ShoppingItemORM, quantity: Quantity) -> None:
    if _is_number(quantity):
        row.quantity_value = float(quantity)
        row.quantity_text = None
    else:
        row.quantity_value = None
        row.quantity_text = str(quantity)


def _to_model(row: ShoppingItemORM) -> ShoppingItem:
    return ShoppingItem.model_validate(
        {
            "id": row.id,
            "owner_id": row.owner_id,
            "display_name": row.display_name,
            "normalized_key": row.normalized_key,
            "quantity": _row_quantity(row),
            "category": row.category,
            "completed": row.completed,
            "source_recipe_id": row.source_recipe_id,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
    )


def _find_active(session: Session, owner_id: str, normalized_key: str) -> Optional[ShoppingItemORM]:
    return (
        session.execute(
            select(ShoppingItemORM)
            .where(
                ShoppingItemORM.owner_id == owner_id,
                ShoppingItemORM.normalized_key == normalized_key,
                ShoppingItemORM.completed.is_(False),
            )
            .order_by(ShoppingItemORM.id.asc())
            .limit(1)
        )
        .scalars()
        .first()
    )


def _load_owned(session: Session, owner_id: str, item_id: int) -> ShoppingItemORM:
    row = session.get(ShoppingItemORM, item_id)
    if row is None:
        raise ItemNotFoundError(item_id)
    if row.owner_id != owner_id:
        logger.warning(
            "Rejected access to shopping item %s by owner %s",
            item_id,
            owner_id,
            extra={"owner_id": owner_id, "item_id": item_id},
        )
        raise ItemOwnershipError(item_id, owner_id)
    return row


def _merge_into(
    row: ShoppingItemORM,
    quantity: Quantity,
    category: ShoppingCategory,
    source_recipe_id: Optional[str],
) -> None:
    combined = combine_quantities(_row_quantity(row), quantity)
    if _is_number(combined):
        combined = _checked_number(combined)  # type: ignore[arg-type]
    _set_row_quantity(row, combined)
    # Categories only ever move from Other to something specific.
    if row.category == ShoppingCategory.OTHER.value and category is not ShoppingCategory.OTHER:
        row.category = category.value
    if row.source_recipe_id is None and source_recipe_id:
        row.source_recipe_id = source_recipe_id
    row.updated_at = _now()


def _fold_into_active(session: Session, row: ShoppingItemORM) -> Optional[ShoppingItemORM]:
    """Merge ``row`` into another active row with its key, deleting ``row``.

    Returns the surviving row, or ``None`` when no other active row exists.
    """

    active = _find_active(session, row.owner_id, row.normalized_key)
    if active is None or active.id == row.id:
        return None
    _merge_into(
        active,
        _row_quantity(row),
        ShoppingCategory(row.category),
        row.source_recipe_id,
    )
    session.delete(row)
    session.flush()
    logger.info(
        "Folded shopping item %s into active item %s (key=%s)",
        row.id,
        active.id,
        active.normalized_key,
        extra={"owner_id": row.owner_id, "item_id": active.id},
    )
    return active


def _add_or_merge_once(
    owner_id: str,
    display_name: str,
    quantity: Quantity,
    category: Optional[ShoppingCategory],
    source_recipe_id: Optional[str],
) -> AddResult:
    normalized_key = normalize_name(display_name)
    effective_category = category or classify(normalized_key)

    with session_scope() as session:
        existing = _find_active(session, owner_id, normalized_key)
        if existing is not None:
            _merge_into(existing, quantity, effective_category, source_recipe_id)
            session.flush()
            logger.debug(
                "Merged '%s' into shopping item %s quantity=%s",
                display_name,
                existing.id,
                _row_quantity(existing),
                extra={"owner_id": owner_id, "item_id": existing.id},
            )
            return AddResult(merged=1, item=_to_model(existing))

        now = _now()
        row = ShoppingItemORM(
            owner_id=owner_id,
            display_name=display_name,
            normalized_key=normalized_key,
            category=effective_category.value,
            completed=False,
            source_recipe_id=source_recipe_id,
            created_at=now,
            updated_at=now,
        )
        _set_row_quantity(row, quantity)
        session.add(row)
        session.flush()
        logger.debug(
            "Created shopping item %s '%s' category=%s",
            row.id,
            display_name,
            row.category,
            extra={"owner_id": owner_id, "item_id": row.id},
        )
        return AddResult(created=1, item=_to_model(row))


def add_or_merge_item(
    owner_id: str,
    name: str,
    quantity: Quantity | None = DEFAULT_QUANTITY,
    category: ShoppingCategory | str | None = None,
    source_recipe_id: Optional[str] = None,
) -> AddResult:
    """Add an item to the owner's list, merging into an active item with the same key.

    A blank name is a no-op returning zero counts. When a concurrent insert
    wins the unique (owner, key, active) index, the add is replayed once as a
    merge into the winning row.
    """

    display_name = (name or "").strip()
    if not display_name:
        return AddResult()

    explicit_category = parse_category(category)
    incoming = _clean_quantity(quantity)

    try:
        result = _add_or_merge_once(owner_id, display_name, incoming, explicit_category, source_recipe_id)
    except IntegrityError:
        metrics.MERGE_RACES.inc()
        logger.info(
            "Concurrent add of '%s' for owner %s; retrying as merge",
            display_name,
            owner_id,
            extra={"owner_id": owner_id},
        )
        result = _add_or_merge_once(owner_id, display_name, incoming, explicit_category, source_recipe_id)

    metrics.SHOPPING_ITEMS.labels(result="created" if result.created else "merged").inc()
    return result


def add_item(
    owner_id: str,
    name: str,
    quantity: Quantity | None = DEFAULT_QUANTITY,
    category: ShoppingCategory | str | None = None,
    source_recipe_id: Optional[str] = None,
) -> AddResult:
    """Explicit single-item add; rejects blank names instead of ignoring them."""

    if not (name or "").strip():
        raise EmptyItemNameError()
    return add_or_merge_item(
        owner_id,
        name,
        quantity=quantity,
        category=category,
        source_recipe_id=source_recipe_id,
    )


def import_recipe_ingredients(
    owner_id: str,
    lines: Iterable[str],
    source_recipe_id: Optional[str] = None,
) -> ImportSummary:
    """Parse and add every ingredient line of a recipe, tagging each with the recipe id."""

    created = merged = skipped = 0
    for line in lines:
        parsed = parse_ingredient_line(line)
        if parsed.is_empty:
            skipped += 1
            metrics.SHOPPING_ITEMS.labels(result="skipped").inc()
            logger.debug("Skipping blank ingredient line %r", line, extra={"owner_id": owner_id})
            continue
        try:
            result = add_or_merge_item(
                owner_id,
                parsed.name,
                quantity=parsed.quantity,
                source_recipe_id=source_recipe_id,
            )
        except InvalidQuantityError as exc:
            skipped += 1
            metrics.SHOPPING_ITEMS.labels(result="skipped").inc()
            logger.warning("Skipping ingredient line %r: %s", line, exc, extra={"owner_id": owner_id})
            continue
        created += result.created
        merged += result.merged

    logger.info(
        "Imported recipe %s for owner %s created=%s merged=%s skipped=%s",
        source_recipe_id,
        owner_id,
        created,
        merged,
        skipped,
        extra={"owner_id": owner_id},
    )
    return ImportSummary(created=created, merged=merged, skipped=skipped)


def _section_sort_key(item: ShoppingItem) -> tuple[bool, str, int]:
    return (item.completed, item.display_name.casefold(), item.id)


def list_sections(owner_id: str) -> List[ShoppingSection]:
    """Group the owner's items by category in aisle order.

    Empty categories are omitted. Within a section active items come first,
    then items sort alphabetically by display name (case-insensitive).
    """

    with session_scope() as session:
        rows = (
            session.execute(select(ShoppingItemORM).where(ShoppingItemORM.owner_id == owner_id))
            .scalars()
            .all()
        )
        items = [_to_model(row) for row in rows]

    grouped: dict[ShoppingCategory, List[ShoppingItem]] = defaultdict(list)
    for item in items:
        grouped[item.category].append(item)

    return [
        ShoppingSection(category=category, items=sorted(grouped[category], key=_section_sort_key))
        for category in CATEGORY_ORDER
        if grouped.get(category)
    ]


def list_items(owner_id: str) -> List[ShoppingItem]:
    """Return the owner's items flattened in section order."""

    return [item for section in list_sections(owner_id) for item in section.items]


def get_item(owner_id: str, item_id: int) -> Optional[ShoppingItem]:
    with session_scope() as session:
        row = session.get(ShoppingItemORM, item_id)
        if row is None or row.owner_id != owner_id:
            return None
        return _to_model(row)


def set_completed(owner_id: str, item_id: int, completed: bool) -> ShoppingItem:
    """Mark an item done (or not done).

    Completed items drop out of merge lookups. Re-activating an item while
    another active item holds the same key folds it into that item, and the
    surviving item is returned.
    """

    with session_scope() as session:
        row = _load_owned(session, owner_id, item_id)
        if not completed and row.completed:
            survivor = _fold_into_active(session, row)
            if survivor is not None:
                return _to_model(survivor)
        row.completed = bool(completed)
        row.updated_at = _now()
        session.flush()
        return _to_model(row)


def update_item(
    owner_id: str,
    item_id: int,
    *,
    name: str | object = _UNSET,
    quantity: Quantity | None | object = _UNSET,
    category: ShoppingCategory | str | None | object = _UNSET,
) -> ShoppingItem:
    """Apply a direct edit; quantities are replaced rather than merged."""

    with session_scope() as session:
        row = _load_owned(session, owner_id, item_id)

        if name is not _UNSET:
            display_name = str(name or "").strip()
            if not display_name:
                raise EmptyItemNameError()
            row.display_name = display_name
            row.normalized_key = normalize_name(display_name)
        if quantity is not _UNSET:
            _set_row_quantity(row, _clean_quantity(quantity))  # type: ignore[arg-type]
        if category is not _UNSET:
            explicit = parse_category(category)  # type: ignore[arg-type]
            row.category = (explicit or classify(row.normalized_key)).value
        row.updated_at = _now()

        if name is not _UNSET and not row.completed:
            survivor = _fold_into_active(session, row)
            if survivor is not None:
                return _to_model(survivor)

        session.flush()
        return _to_model(row)


def delete_item(owner_id: str, item_id: int) -> bool:
    """Delete an item. Returns ``False`` when the id does not exist."""

    with session_scope() as session:
        try:
            row = _load_owned(session, owner_id, item_id)
        except ItemNotFoundError:
            return False
        session.delete(row)
        return True


def clear_completed(owner_id: str) -> int:
    """Delete the owner's completed items and return how many were removed."""

    with session_scope() as session:
        result = session.execute(
            delete(ShoppingItemORM).where(
                ShoppingItemORM.owner_id == owner_id,
                ShoppingItemORM.completed.is_(True),
            )
        )
        return int(result.rowcount or 0)


def reset_list(owner_id: str) -> int:
    """Remove every item on the owner's list."""

    with session_scope() as session:
        result = session.execute(delete(ShoppingItemORM).where(ShoppingItemORM.owner_id == owner_id))
        return int(result.rowcount or 0)


__all__ = [
    "add_or_merge_item",
    "add_item",
    "import_recipe_ingredients",
    "list_sections",
    "list_items",
    "get_item",
    "set_completed",
    "update_item",
    "delete_item",
    "clear_completed",
    "reset_list",
]
