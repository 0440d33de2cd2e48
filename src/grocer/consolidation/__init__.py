"""Pure helpers for turning raw item text into merge-ready shopping entries."""

from grocer.consolidation.classifier import CATEGORY_RULES, classify, parse_category
from grocer.consolidation.normalizer import normalize_name
from grocer.consolidation.parser import ParsedLine, parse_ingredient_line
from grocer.consolidation.quantities import coerce_quantity, combine_quantities

__all__ = [
    "CATEGORY_RULES",
    "classify",
    "parse_category",
    "normalize_name",
    "ParsedLine",
    "parse_ingredient_line",
    "coerce_quantity",
    "combine_quantities",
]
