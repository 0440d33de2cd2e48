"""Command-line interface for Grocer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from grocer.config import get_settings
from grocer.consolidation.parser import parse_ingredient_line
from grocer.consolidation.quantities import coerce_quantity
from grocer.db.shopping_list import (
    add_item,
    clear_completed,
    delete_item,
    import_recipe_ingredients,
    list_sections,
    set_completed,
)
from grocer.errors import ShoppingListError
from grocer.models.shopping import ShoppingItem

app = typer.Typer(help="Grocer shopping-list commands.")

OwnerOption = typer.Option(None, "--owner", "-o", help="Owner id (defaults to GROCER_DEFAULT_OWNER).")


def _resolve_owner(owner: Optional[str]) -> str:
    resolved = (owner or get_settings().default_owner or "").strip()
    if not resolved:
        typer.secho("An owner is required: pass --owner or set GROCER_DEFAULT_OWNER.", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    return resolved


def _fail(exc: ShoppingListError) -> NoReturn:
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _format_item(item: ShoppingItem) -> str:
    mark = "x" if item.completed else " "
    return f"  [{mark}] #{item.id} {item.display_name} ({item.quantity})"


@app.command()
def parse(line: str) -> None:
    """Show how an ingredient line splits into name and quantity."""

    parsed = parse_ingredient_line(line)
    typer.echo(json.dumps({"name": parsed.name, "quantity": parsed.quantity}))


@app.command()
def add(
    name: str,
    quantity: str = typer.Option("1", "--quantity", "-q", help='Number or free text, e.g. "a pinch".'),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Explicit category label."),
    owner: Optional[str] = OwnerOption,
) -> None:
    """Add one item, merging it into a matching active item."""

    owner_id = _resolve_owner(owner)
    try:
        result = add_item(owner_id, name, quantity=coerce_quantity(quantity), category=category)
    except ShoppingListError as exc:
        _fail(exc)
    item = result.item
    action = "Merged into" if result.merged else "Added"
    typer.echo(f"{action} #{item.id} {item.display_name} ({item.quantity}) [{item.category.value}]")


@app.command("import-recipe")
def import_recipe(
    source: Path = typer.Argument(..., help="File with one ingredient line per row ('-' for stdin).", allow_dash=True),
    recipe_id: Optional[str] = typer.Option(None, "--recipe-id", help="Recipe the lines came from."),
    owner: Optional[str] = OwnerOption,
) -> None:
    """Add every ingredient line of a recipe to the list."""

    owner_id = _resolve_owner(owner)
    if str(source) == "-":
        lines: List[str] = typer.get_text_stream("stdin").read().splitlines()
    else:
        lines = source.read_text(encoding="utf-8").splitlines()

    summary = import_recipe_ingredients(owner_id, lines, source_recipe_id=recipe_id)
    typer.echo(f"Created {summary.created}, merged {summary.merged}, skipped {summary.skipped}.")


@app.command("list")
def list_command(
    owner: Optional[str] = OwnerOption,
    as_json: bool = typer.Option(False, "--json", help="Emit sections as JSON."),
) -> None:
    """Print the list grouped by category."""

    owner_id = _resolve_owner(owner)
    sections = list_sections(owner_id)
    if as_json:
        typer.echo(json.dumps([section.model_dump(mode="json") for section in sections], indent=2))
        return
    if not sections:
        typer.echo("Your list is empty.")
        return
    for section in sections:
        typer.secho(section.category.value, bold=True)
        for item in section.items:
            typer.echo(_format_item(item))


def _toggle(owner: Optional[str], item_id: int, completed: bool) -> None:
    owner_id = _resolve_owner(owner)
    try:
        item = set_completed(owner_id, item_id, completed)
    except ShoppingListError as exc:
        _fail(exc)
    typer.echo(_format_item(item).strip())


@app.command()
def complete(item_id: int, owner: Optional[str] = OwnerOption) -> None:
    """Mark an item as bought."""

    _toggle(owner, item_id, True)


@app.command()
def uncomplete(item_id: int, owner: Optional[str] = OwnerOption) -> None:
    """Put a bought item back on the list."""

    _toggle(owner, item_id, False)


@app.command()
def delete(item_id: int, owner: Optional[str] = OwnerOption) -> None:
    """Delete an item."""

    owner_id = _resolve_owner(owner)
    try:
        deleted = delete_item(owner_id, item_id)
    except ShoppingListError as exc:
        _fail(exc)
    typer.echo(f"Deleted #{item_id}." if deleted else f"No item #{item_id}.")


@app.command("clear-completed")
def clear_completed_command(owner: Optional[str] = OwnerOption) -> None:
    """Remove every bought item."""

    owner_id = _resolve_owner(owner)
    typer.echo(f"Removed {clear_completed(owner_id)} completed item(s).")


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the ``grocer`` script."""
    app(prog_name="grocer", args=argv)


if __name__ == "__main__":
    main()
