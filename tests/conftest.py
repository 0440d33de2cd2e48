"""Shared pytest fixtures for the Grocer test suite."""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from grocer.config import get_settings
from grocer.db.repository import reset_repository_state
from grocer.server.app import create_app

OWNER = "user-alice"
OTHER_OWNER = "user-bob"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "test_grocer.db"
    monkeypatch.setenv("GROCER_DATABASE_PATH", str(db_path))
    monkeypatch.delenv("GROCER_API_TOKEN", raising=False)
    monkeypatch.delenv("GROCER_DEFAULT_OWNER", raising=False)
    get_settings.cache_clear()
    reset_repository_state()
    yield
    reset_repository_state()
    get_settings.cache_clear()


@pytest.fixture()
def app() -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)


@pytest.fixture()
def owner() -> str:
    return OWNER


@pytest.fixture()
def other_owner() -> str:
    return OTHER_OWNER
