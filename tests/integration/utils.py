"""Shared helpers for integration tests."""

from __future__ import annotations

from grocer.config import get_settings
from grocer.server.deps import OWNER_HEADER


def auth_headers(owner_id: str | None = None) -> dict[str, str]:
    headers: dict[str, str] = {}
    token = get_settings().api_token
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if owner_id:
        headers[OWNER_HEADER] = owner_id
    return headers
