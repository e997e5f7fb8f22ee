"""Shared pytest fixtures: settings isolation, executor doubles and an in-memory SQLite database."""

from __future__ import annotations

from typing import Generator

import pytest
import sqlalchemy as sa
from sqlalchemy.pool import StaticPool

from fluent_query.config import get_settings
from tests.fixtures.executors import FakeExecutor


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from the host environment and the settings cache."""
    for name in ("FQ_PARAM_PREFIX", "FQ_LOG_STATEMENTS", "DATABASE_URL", "DB_ECHO"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def engine() -> Generator[sa.Engine, None, None]:
    """In-memory SQLite engine seeded with users and an empty archive table."""
    engine = sa.create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as conn:
        conn.execute(
            sa.text(
                """
                CREATE TABLE users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    age INTEGER,
                    active BOOLEAN NOT NULL DEFAULT 1,
                    created_at TEXT
                )
                """
            )
        )
        conn.execute(
            sa.text(
                """
                CREATE TABLE archive (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER,
                    name TEXT
                )
                """
            )
        )
        conn.execute(
            sa.text(
                "INSERT INTO users (name, age, active, created_at) "
                "VALUES (:name, :age, :active, :created_at)"
            ),
            [
                {"name": "alice", "age": 30, "active": True, "created_at": "2024-01-15 09:00:00"},
                {"name": "bob", "age": 25, "active": False, "created_at": "2024-02-01 12:30:00"},
                {"name": "carol", "age": 41, "active": True, "created_at": "2024-02-20 18:45:00"},
                {"name": "dave", "age": 30, "active": True, "created_at": "2024-03-05 07:15:00"},
            ],
        )
    yield engine
    engine.dispose()
