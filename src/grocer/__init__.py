"""
Grocer shopping-list consolidation service.

The package turns recipe ingredient lines and ad-hoc entries into a deduplicated,
categorized per-user grocery list, and exposes it over HTTP and a CLI.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
