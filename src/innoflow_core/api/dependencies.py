"""Shared FastAPI dependencies."""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..hierarchy import HierarchyWorkspace
from ..store import RecordStore


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_current_user_id() -> str:
    """Return the acting user id (single mock user; no authentication)."""
    return get_settings().mock_user_id


@lru_cache(maxsize=1)
def get_hierarchy_workspace() -> HierarchyWorkspace:
    """Process-wide org-chart workspace, loaded from the bundled demo data."""
    return HierarchyWorkspace.from_yaml()
