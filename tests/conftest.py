"""
Shared pytest fixtures and configuration for seekpager tests.

This module provides common fixtures used across unit and integration tests,
including a users table definition, a seeded in-memory SQLite engine and
value extractors for its rows.
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    insert,
)

from seekpager.config import get_settings


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests without a database")
    config.addinivalue_line(
        "markers", "integration: Integration tests against an in-memory SQLite database"
    )


@pytest.fixture(autouse=True)
def fresh_settings():
    """
    Clears the cached settings around every test so environment overrides
    set through monkeypatch are picked up and never leak between tests.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def users_table() -> Table:
    """Returns a users table definition on its own MetaData."""
    metadata = MetaData()
    return Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String(50), nullable=False),
        Column("score", Integer, nullable=False),
        Column("ratio", Float, nullable=False),
        Column("created_at", DateTime, nullable=False),
    )


@pytest.fixture
def seeded_engine(users_table: Table):
    """
    Creates an in-memory SQLite database holding 23 users.

    Scores repeat (id % 5) and creation times repeat (id % 4 minutes) so
    that pages regularly split runs of equal primary sort keys, which is
    where keyset filters usually go wrong. Creation times are naive, as
    timestamp columns without time zone return them.
    """
    engine = create_engine("sqlite://")
    users_table.metadata.create_all(engine)
    epoch = datetime(2024, 1, 15, 10, 30)
    rows = [
        {
            "id": i,
            "name": f"user-{i:02d}",
            "score": i % 5,
            "ratio": round(i / 7, 3),
            "created_at": epoch + timedelta(minutes=i % 4, microseconds=i % 2 * 500),
        }
        for i in range(1, 24)
    ]
    with engine.begin() as conn:
        conn.execute(insert(users_table), rows)
    yield engine
    engine.dispose()


@pytest.fixture
def user_getters() -> dict:
    """Value extractors for rows of the users table."""
    return {
        "id": lambda row: row.id,
        "name": lambda row: row.name,
        "score": lambda row: row.score,
        "ratio": lambda row: row.ratio,
        "created_at": lambda row: row.created_at,
    }


@pytest.fixture
def mock_statement():
    """
    Creates a mocked generative statement.

    Every builder method returns the same mock, so the sequence of calls made
    against it can be inspected through method_calls.
    """
    statement = MagicMock()
    statement.order_by.return_value = statement
    statement.where.return_value = statement
    statement.limit.return_value = statement
    statement.offset.return_value = statement
    return statement
