"""Shared fixtures: in-memory SQLite store and item factories."""
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from innoflow_core.models import Base, ItemStatus
from innoflow_core.store import RecordStore

# Wednesday of ISO week 3, 2025 (week runs Mon 2025-01-13 .. Sun 2025-01-19)
NOW = datetime(2025, 1, 15, 12, 0, 0)
THIS_MONDAY = datetime(2025, 1, 13, 9, 0, 0)
LAST_WEEK = datetime(2025, 1, 8, 9, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return RecordStore(db)


@pytest.fixture
def make_item():
    """Factory for lightweight item stand-ins used by the pure KPI/report/filter code."""

    def _make_item(**overrides):
        fields = {
            "title": "Idea",
            "status": ItemStatus.NEW,
            "created_at": THIS_MONDAY,
            "f1_locked_at": None,
            "owner_id": "user1",
            "problem": None,
            "user_ctx": None,
            "min_solution": None,
            "kpi_name": None,
            "kpi_baseline": None,
            "kpi_target": None,
            "timebox_to": None,
            "good_enough_demo": False,
            "good_enough_measure": False,
            "good_enough_log": False,
            "stopp_reason": None,
            "ryg_status": None,
            "tags": [],
        }
        fields.update(overrides)
        return SimpleNamespace(**fields)

    return _make_item
