"""Heuristic parser for recipe ingredient lines."""

from __future__ import annotations

import dataclasses
import math
import re

from grocer.models.shopping import Quantity

_LEADING_QUANTITY = re.compile(r"^(\d+(?:\.\d+)?)\s+(.+)$")


@dataclasses.dataclass(frozen=True)
class ParsedLine:
    name: str
    quantity: Quantity = 1

    @property
    def is_empty(self) -> bool:
        return not self.name.strip()


def _to_number(token: str) -> Quantity | None:
    value = float(token)
    if not math.isfinite(value):
        return None
    if value.is_integer():
        return int(value)
    return value


def parse_ingredient_line(line: str | None) -> ParsedLine:
    """Split an ingredient line into a name and a leading quantity.

    ``"2 Eggs"`` parses to ``ParsedLine("Eggs", 2)`` and ``"Salt"`` to
    ``ParsedLine("Salt", 1)``. Only a leading integer or decimal followed by
    whitespace and a remainder counts as a quantity, so ``"1 cup Flour"`` keeps
    ``"cup Flour"`` as the name and a bare ``"42"`` is treated as a name.
    Blank input yields an empty name which callers must skip.
    """

    raw = (line or "").strip()
    if not raw:
        return ParsedLine(name="", quantity=1)

    match = _LEADING_QUANTITY.match(raw)
    if match:
        quantity = _to_number(match.group(1))
        name = match.group(2).strip()
        if quantity is not None and name:
            return ParsedLine(name=name, quantity=quantity)

    return ParsedLine(name=raw, quantity=1)


__all__ = ["ParsedLine", "parse_ingredient_line"]
