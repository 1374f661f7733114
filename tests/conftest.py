"""
Shared pytest fixtures and configuration for rowmap tests.

This module provides:
- ``sys.path`` setup for ``src/`` and the shared ``sample_records`` module
- In-memory SQLite databases seeded with the ``person`` table
- Logging / settings isolation between tests

Usage:
    def test_something(person_db):
        rows = select(person_db, PersonRow, "ORDER BY id")
"""

import datetime as dt
import logging
import sqlite3
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

# Ensure rowmap and the shared record module are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent / "_support"))

from rowmap.core.settings import get_settings  # noqa: E402

# Store datetimes as ISO text instead of relying on sqlite3's deprecated default adapter
sqlite3.register_adapter(dt.datetime, lambda value: value.isoformat(" "))


PEOPLE = [
    ("Alberto", "2018-03-05 12:34:56"),
    ("Lamimi", "2018-04-06 01:23:45"),
    ("Naillebert", "2018-05-07 12:34:56"),
    ("Blanhaerz", "2018-06-09 12:34:56"),
    ("J'rhoomale", "2018-06-11 12:34:56"),
]


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def person_db() -> Iterator[sqlite3.Connection]:
    """In-memory SQLite connection with five seeded ``person`` rows (ids 1-5)."""
    conn = sqlite3.connect(":memory:")
    conn.execute(
        """
        CREATE TABLE person (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL
        )
    """
    )
    conn.executemany("INSERT INTO person (name, created_at) VALUES (?, ?)", PEOPLE)
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def account_db() -> Iterator[sqlite3.Connection]:
    """In-memory SQLite connection with an empty ``account`` table."""
    conn = sqlite3.connect(":memory:")
    conn.execute(
        """
        CREATE TABLE account (
            account_id INTEGER PRIMARY KEY AUTOINCREMENT,
            email_address TEXT NOT NULL,
            created_at TIMESTAMP,
            updated_by TEXT,
            owner_name TEXT
        )
    """
    )
    conn.commit()
    yield conn
    conn.close()


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_logging_and_settings() -> Iterator[None]:
    """Undo ``configure_logging`` / cached settings after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    get_settings.cache_clear()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root.handlers[:] = handlers
    root.setLevel(level)
    get_settings.cache_clear()
