"""ASGI application factory and dependencies for the Grocer server."""

from grocer.server.app import app, create_app

__all__ = ["app", "create_app"]
