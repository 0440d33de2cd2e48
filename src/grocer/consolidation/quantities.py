"""Quantity merge and coercion rules."""

from __future__ import annotations

import math
from typing import Optional

from grocer.models.shopping import Quantity

DEFAULT_QUANTITY = 1


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def tidy_number(value: float | int) -> Quantity:
    """Collapse integral floats to ``int`` so ``2.0`` is reported as ``2``."""

    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def quantity_text(value: Quantity | None) -> str:
    if value is None:
        return ""
    if _is_number(value):
        return str(tidy_number(value))
    return str(value)


def combine_quantities(existing: Quantity | None, incoming: Quantity | None) -> Quantity:
    """Merge an incoming quantity into an existing one.

    Two numbers are summed. Otherwise the values are compared as text: a
    blank or default ``"1"`` on either side defers to the other side,
    identical text is kept once, and anything else is joined as
    ``"<existing> + <incoming>"``. Merges never shrink a quantity.
    """

    if _is_number(existing) and _is_number(incoming):
        return tidy_number(existing + incoming)  # type: ignore[operator]

    existing_text = quantity_text(existing)
    incoming_text = quantity_text(incoming)
    if not incoming_text or incoming_text == "1":
        return existing if existing is not None else DEFAULT_QUANTITY
    if not existing_text or existing_text == "1":
        return incoming  # type: ignore[return-value]
    if existing_text == incoming_text:
        return existing  # type: ignore[return-value]
    return f"{existing_text} + {incoming_text}"


def coerce_quantity(value: Quantity | None) -> Quantity:
    """Coerce user input into a stored quantity.

    Missing or blank input becomes ``1``, numeric text becomes a number and
    any other text is kept trimmed (for example ``"a pinch"``). Numbers pass
    through unchanged so the store can reject negative or non-finite values.
    """

    if value is None:
        return DEFAULT_QUANTITY
    if _is_number(value):
        return tidy_number(value)  # type: ignore[arg-type]
    text = str(value).strip()
    if not text:
        return DEFAULT_QUANTITY
    parsed: Optional[float]
    try:
        parsed = float(text)
    except ValueError:
        parsed = None
    if parsed is not None and math.isfinite(parsed):
        return tidy_number(parsed)
    return text


__all__ = [
    "DEFAULT_QUANTITY",
    "combine_quantities",
    "coerce_quantity",
    "quantity_text",
    "tidy_number",
]
