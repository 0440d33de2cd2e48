"""Tests for the per-owner shopping list store."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from grocer.db import shopping_list
from grocer.db.shopping_list import (
    add_item,
    add_or_merge_item,
    clear_completed,
    delete_item,
    get_item,
    import_recipe_ingredients,
    list_items,
    list_sections,
    reset_list,
    set_completed,
    update_item,
)
from grocer.errors import (
    EMPTY_NAME_MESSAGE,
    EmptyItemNameError,
    InvalidQuantityError,
    ItemNotFoundError,
    ItemOwnershipError,
)
from grocer.models.shopping import ShoppingCategory


def _active(owner_id):
    return [item for item in list_items(owner_id) if not item.completed]


def test_add_creates_classified_item(owner):
    result = add_or_merge_item(owner, "  Greek Yogurt ", quantity=2)

    assert (result.created, result.merged) == (1, 0)
    item = result.item
    assert item.display_name == "Greek Yogurt"
    assert item.normalized_key == "greek yogurt"
    assert item.quantity == 2
    assert item.category is ShoppingCategory.DAIRY
    assert item.completed is False
    assert item.source_recipe_id is None


def test_same_name_different_case_merges_and_sums_default_quantities(owner):
    add_or_merge_item(owner, "Milk")
    second = add_or_merge_item(owner, "milk")

    assert (second.created, second.merged) == (0, 1)
    items = list_items(owner)
    assert len(items) == 1
    assert items[0].normalized_key == "milk"
    assert items[0].quantity == 2
    assert items[0].category is ShoppingCategory.DAIRY
    assert items[0].display_name == "Milk"


@pytest.mark.parametrize(("first", "second"), [(2, 3), (3, 2)])
def test_numeric_merges_sum_in_either_order(owner, first, second):
    add_or_merge_item(owner, "Eggs", quantity=first)
    result = add_or_merge_item(owner, "egg", quantity=second)

    assert result.item.quantity == 5


def test_identical_text_quantity_merges_once(owner):
    add_or_merge_item(owner, "Rice", quantity="2 cups")
    result = add_or_merge_item(owner, "rice", quantity="2 cups")

    assert result.item.quantity == "2 cups"


def test_default_quantity_adopts_incoming_text(owner):
    add_or_merge_item(owner, "Basil")
    result = add_or_merge_item(owner, "basil", quantity="a handful")

    assert result.item.quantity == "a handful"


def test_distinct_text_quantities_concatenate(owner):
    add_or_merge_item(owner, "Flour", quantity="2 cups")
    result = add_or_merge_item(owner, "flour", quantity="1 tbsp")

    assert result.item.quantity == "2 cups + 1 tbsp"


def test_blank_name_is_a_noop(owner):
    result = add_or_merge_item(owner, "   ")

    assert (result.created, result.merged, result.item) == (0, 0, None)
    assert list_items(owner) == []


def test_explicit_add_rejects_blank_name(owner):
    with pytest.raises(EmptyItemNameError) as excinfo:
        add_item(owner, "  ")
    assert str(excinfo.value) == EMPTY_NAME_MESSAGE


def test_negative_quantity_is_rejected(owner):
    with pytest.raises(InvalidQuantityError):
        add_item(owner, "Eggs", quantity=-2)


@pytest.mark.parametrize("quantity", [float("inf"), float("nan"), 10**400])
def test_unrepresentable_quantity_is_rejected(owner, quantity):
    with pytest.raises(InvalidQuantityError):
        add_item(owner, "Eggs", quantity=quantity)
    assert list_items(owner) == []


def test_merge_overflowing_float_range_is_rejected(owner):
    first = add_or_merge_item(owner, "Rice", quantity=1.7e308).item

    with pytest.raises(InvalidQuantityError):
        add_or_merge_item(owner, "rice", quantity=1.7e308)

    item = get_item(owner, first.id)
    assert item.quantity == first.quantity
    assert len(list_items(owner)) == 1


def test_bulk_import_skips_line_whose_merge_overflows(owner):
    huge = "1" + "0" * 308
    summary = import_recipe_ingredients(owner, [f"{huge} Rice", f"{huge} rice", "Salt"])

    assert (summary.created, summary.merged, summary.skipped) == (2, 0, 1)
    assert {item.display_name for item in list_items(owner)} == {"Rice", "Salt"}


def test_explicit_category_wins_over_classification(owner):
    result = add_item(owner, "Eggs", category="dairy")

    assert result.item.category is ShoppingCategory.DAIRY


def test_other_category_is_upgraded_on_merge(owner):
    add_or_merge_item(owner, "Mystery box")
    result = add_or_merge_item(owner, "mystery box", category=ShoppingCategory.PANTRY)

    assert result.item.category is ShoppingCategory.PANTRY


def test_specific_category_is_never_downgraded(owner):
    add_or_merge_item(owner, "Oat Milk")
    result = add_or_merge_item(owner, "oat milk", category=ShoppingCategory.OTHER)

    assert result.item.category is ShoppingCategory.DAIRY


def test_specific_category_is_not_replaced_by_another(owner):
    add_or_merge_item(owner, "Tomatoes")
    result = add_or_merge_item(owner, "tomatoes", category=ShoppingCategory.PANTRY)

    assert result.item.category is ShoppingCategory.PRODUCE


def test_source_recipe_attached_only_when_missing(owner):
    add_or_merge_item(owner, "Garlic")
    first = add_or_merge_item(owner, "garlic", source_recipe_id="recipe-1")
    second = add_or_merge_item(owner, "garlic", source_recipe_id="recipe-2")

    assert first.item.source_recipe_id == "recipe-1"
    assert second.item.source_recipe_id == "recipe-1"


def test_merge_bumps_updated_at(owner):
    created = add_or_merge_item(owner, "Lemons").item
    merged = add_or_merge_item(owner, "lemons").item

    assert merged.id == created.id
    assert merged.updated_at >= created.updated_at
    assert merged.created_at == created.created_at


def test_owners_never_share_items(owner, other_owner):
    add_or_merge_item(owner, "Bread")
    result = add_or_merge_item(other_owner, "Bread")

    assert result.created == 1
    assert len(list_items(owner)) == 1
    assert len(list_items(other_owner)) == 1


def test_completed_items_never_auto_merge(owner):
    eggs = add_or_merge_item(owner, "Eggs", quantity=6).item
    set_completed(owner, eggs.id, True)

    result = add_or_merge_item(owner, "Eggs", quantity=12)

    assert result.created == 1
    assert result.item.id != eggs.id
    assert result.item.quantity == 12
    finished = get_item(owner, eggs.id)
    assert finished.completed is True
    assert finished.quantity == 6


def test_completing_then_readding_bananas_keeps_two_rows(owner):
    bananas = add_or_merge_item(owner, "Bananas", quantity=3).item
    set_completed(owner, bananas.id, True)
    add_or_merge_item(owner, "Bananas", quantity=5)

    rows = list_items(owner)
    assert len(rows) == 2
    active = [row for row in rows if not row.completed]
    done = [row for row in rows if row.completed]
    assert [row.quantity for row in active] == [5]
    assert [row.quantity for row in done] == [3]


def test_reactivating_folds_into_existing_active_item(owner):
    old = add_or_merge_item(owner, "Bananas", quantity=3).item
    set_completed(owner, old.id, True)
    fresh = add_or_merge_item(owner, "Bananas", quantity=5).item

    survivor = set_completed(owner, old.id, False)

    assert survivor.id == fresh.id
    assert survivor.quantity == 8
    assert get_item(owner, old.id) is None
    assert len(_active(owner)) == 1


def test_reactivating_without_conflict_restores_row(owner):
    item = add_or_merge_item(owner, "Coffee").item
    set_completed(owner, item.id, True)

    restored = set_completed(owner, item.id, False)

    assert restored.id == item.id
    assert restored.completed is False


def test_set_completed_checks_ownership(owner, other_owner):
    item = add_or_merge_item(owner, "Salmon").item

    with pytest.raises(ItemOwnershipError):
        set_completed(other_owner, item.id, True)
    assert get_item(owner, item.id).completed is False

    with pytest.raises(ItemNotFoundError):
        set_completed(owner, 9999, True)


def test_bulk_import_creates_three_items(owner):
    summary = import_recipe_ingredients(owner, ["2 Eggs", "1 cup Flour", "Salt"], source_recipe_id="r-1")

    assert (summary.created, summary.merged, summary.skipped) == (3, 0, 0)
    by_name = {item.display_name: item for item in list_items(owner)}
    assert set(by_name) == {"Eggs", "cup Flour", "Salt"}
    assert by_name["Eggs"].quantity == 2
    assert by_name["cup Flour"].quantity == 1
    assert by_name["Salt"].quantity == 1
    assert all(item.source_recipe_id == "r-1" for item in by_name.values())
    assert all(not item.completed for item in by_name.values())


def test_bulk_import_skips_blank_lines_and_merges_repeats(owner):
    add_or_merge_item(owner, "Onions", quantity=1)

    summary = import_recipe_ingredients(owner, ["2 Onions", "", "   ", "3 onion", "Garlic"])

    assert (summary.created, summary.merged, summary.skipped) == (1, 2, 2)
    onion = next(item for item in list_items(owner) if item.normalized_key == "onion")
    assert onion.quantity == 6


def test_sections_follow_category_order_and_skip_empty(owner):
    for name in ["Toothpaste", "Milk", "bananas", "Apples", "Eggs"]:
        add_or_merge_item(owner, name)

    sections = list_sections(owner)

    assert [section.category for section in sections] == [
        ShoppingCategory.PRODUCE,
        ShoppingCategory.DAIRY,
        ShoppingCategory.PERSONAL_CARE,
        ShoppingCategory.OTHER,
    ]
    assert [item.display_name for item in sections[0].items] == ["Apples", "bananas"]


def test_sections_put_completed_items_last(owner):
    carrots = add_or_merge_item(owner, "Carrots").item
    add_or_merge_item(owner, "Spinach")
    add_or_merge_item(owner, "apples")
    set_completed(owner, carrots.id, True)

    (produce,) = list_sections(owner)

    assert [item.display_name for item in produce.items] == ["apples", "Spinach", "Carrots"]


def test_every_item_appears_in_exactly_one_section(owner):
    import_recipe_ingredients(owner, ["2 Eggs", "Milk", "Bread", "Dish soap", "Widgets", "Kale"])
    kale = next(item for item in list_items(owner) if item.display_name == "Kale")
    set_completed(owner, kale.id, True)

    ids = [item.id for section in list_sections(owner) for item in section.items]

    assert len(ids) == len(set(ids)) == 6


def test_update_item_rename_recomputes_key(owner):
    item = add_or_merge_item(owner, "Parsley").item

    updated = update_item(owner, item.id, name="Flat Leaf Parsley", quantity="1 bunch")

    assert updated.normalized_key == "flat leaf parsley"
    assert updated.quantity == "1 bunch"


def test_update_item_rename_into_existing_key_folds(owner):
    target = add_or_merge_item(owner, "Limes", quantity=2).item
    stray = add_or_merge_item(owner, "Key lime", quantity=3).item

    survivor = update_item(owner, stray.id, name="lime")

    assert survivor.id == target.id
    assert survivor.quantity == 5
    assert get_item(owner, stray.id) is None


def test_update_item_validates(owner, other_owner):
    item = add_or_merge_item(owner, "Tea").item

    with pytest.raises(EmptyItemNameError):
        update_item(owner, item.id, name=" ")
    with pytest.raises(ItemOwnershipError):
        update_item(other_owner, item.id, quantity=2)

    assert update_item(owner, item.id, category="Pantry").category is ShoppingCategory.PANTRY


def test_delete_is_owner_scoped_and_idempotent(owner, other_owner):
    item = add_or_merge_item(owner, "Shampoo").item

    with pytest.raises(ItemOwnershipError):
        delete_item(other_owner, item.id)
    assert get_item(owner, item.id) is not None

    assert delete_item(owner, item.id) is True
    assert delete_item(owner, item.id) is False
    assert delete_item(other_owner, item.id) is False


def test_get_item_hides_foreign_items(owner, other_owner):
    item = add_or_merge_item(owner, "Cheese").item

    assert get_item(other_owner, item.id) is None


def test_clear_completed_and_reset(owner, other_owner):
    a = add_or_merge_item(owner, "Apples").item
    add_or_merge_item(owner, "Bread")
    add_or_merge_item(other_owner, "Bread")
    set_completed(owner, a.id, True)

    assert clear_completed(owner) == 1
    assert [item.display_name for item in list_items(owner)] == ["Bread"]

    assert reset_list(owner) == 1
    assert list_items(owner) == []
    assert len(list_items(other_owner)) == 1


def test_lost_insert_race_is_retried_as_merge(owner, monkeypatch):
    add_or_merge_item(owner, "Coffee", quantity=1)
    real_once = shopping_list._add_or_merge_once
    calls = {"count": 0}

    def flaky_once(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 1:
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        return real_once(*args, **kwargs)

    monkeypatch.setattr(shopping_list, "_add_or_merge_once", flaky_once)

    result = add_or_merge_item(owner, "coffee", quantity=2)

    assert calls["count"] == 2
    assert result.merged == 1
    assert result.item.quantity == 3


def test_storage_rejects_second_active_row_for_key(owner):
    from grocer.db.models import ShoppingItemORM
    from grocer.db.repository import session_scope

    add_or_merge_item(owner, "Butter")

    with pytest.raises(IntegrityError):
        with session_scope() as session:
            session.add(
                ShoppingItemORM(
                    owner_id=owner,
                    display_name="Butter",
                    normalized_key="butter",
                    quantity_value=1.0,
                    category="Dairy",
                    completed=False,
                )
            )
            session.flush()
