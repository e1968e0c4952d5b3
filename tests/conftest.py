"""
Shared pytest fixtures for Health Agent tests.
"""

import sys
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

# Add parent directory to path so we can import health_agent
sys.path.insert(0, str(Path(__file__).parent.parent))

from health_agent.storage.database import Database


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database in a temp directory."""
    database = Database(f"sqlite:///{tmp_path / 'health.db'}", timeout=30)
    database.create_schema()
    yield database
    database.dispose()


@pytest.fixture
def fixed_today(monkeypatch):
    """Pin the rollover date label to 2026-01-15."""
    import health_agent.rollover

    monkeypatch.setattr(health_agent.rollover, "today_str", lambda: "2026-01-15")
    return "2026-01-15"


@pytest.fixture
def seeded_db(db):
    """Two users matching the canonical rollover example, plus weight for user 1."""
    from health_agent import counters

    counters.add_water(db, 1, 500)
    counters.set_steps(db, 1, 2000)
    counters.set_weight(db, 1, 80.5)
    counters.ensure_user(db, 2)
    return db


@pytest.fixture
def storage_error():
    """Factory for the error a failed write raises."""

    def _make(message: str = "disk I/O error"):
        return OperationalError("INSERT INTO daily_stats", {}, Exception(message))

    return _make
