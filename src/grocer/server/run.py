"""Helper for running the Grocer ASGI application with uvicorn."""

from __future__ import annotations

import os

import uvicorn

APP_PATH = "grocer.server.app:app"


def _parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid GROCER_SERVER_PORT '{value}': {exc}") from exc
    if not 0 < port < 65536:
        raise SystemExit("GROCER_SERVER_PORT must be between 1 and 65535.")
    return port


def main() -> None:
    """Entry point for the ``grocer-server`` script."""

    host = os.environ.get("GROCER_SERVER_HOST", "127.0.0.1")
    port = _parse_port(os.environ.get("GROCER_SERVER_PORT", "8000"))
    reload_enabled = os.environ.get("RELOAD") == "1"

    # Logging is configured by create_app(); keep uvicorn from installing its own.
    uvicorn.run(APP_PATH, host=host, port=port, reload=reload_enabled, log_config=None)


if __name__ == "__main__":
    main()
