"""Prometheus metrics definitions for Grocer."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "grocer_http_requests_total",
    "Total number of HTTP requests processed by the Grocer API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "grocer_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Grocer API",
    ["method", "path"],
)

SHOPPING_ITEMS = Counter(
    "grocer_shopping_items_total",
    "Shopping list adds by outcome (created, merged, skipped)",
    ["result"],
)

MERGE_RACES = Counter(
    "grocer_shopping_merge_races_total",
    "Inserts that lost a concurrent race and were retried as merges",
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SHOPPING_ITEMS",
    "MERGE_RACES",
]
