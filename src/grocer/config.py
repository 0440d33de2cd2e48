"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/grocer.db"),
        description="SQLite database holding shopping list items.",
    )
    sqlite_busy_timeout_ms: int = Field(
        default=5000,
        ge=0,
        description="How long SQLite waits on a locked database before failing a write.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for mutating endpoints.",
    )
    default_owner: Optional[str] = Field(
        default=None,
        description="Owner id used by the CLI when --owner is not given.",
    )
    max_import_lines: int = Field(
        default=200,
        ge=1,
        description="Upper bound on ingredient lines accepted by one recipe import.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )

    model_config = ConfigDict(frozen=True)


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip().strip('"').strip("'")
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from GROCER_* env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("GROCER_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (busy_timeout := _env("GROCER_SQLITE_BUSY_TIMEOUT_MS")):
        try:
            payload["sqlite_busy_timeout_ms"] = int(busy_timeout)
        except ValueError:
            pass
    if (api_token := _env("GROCER_API_TOKEN")):
        payload["api_token"] = api_token
    if (default_owner := _env("GROCER_DEFAULT_OWNER")):
        payload["default_owner"] = default_owner
    if (max_import_lines := _env("GROCER_MAX_IMPORT_LINES")):
        try:
            payload["max_import_lines"] = int(max_import_lines)
        except ValueError:
            pass
    if (log_level := _env("GROCER_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("GROCER_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("GROCER_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
