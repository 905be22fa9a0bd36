"""Weekly KPI and SITREP API router."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ... import crud
from ...kpi import calculate_weekly_kpis
from ...reporting import generate_sitrep
from ...schemas import SitrepResponse, WeeklyKPIs
from ...store import RecordStore, RecordStoreError
from ..dependencies import get_store

logger = logging.getLogger("innoflow-core.reports")

router = APIRouter(tags=["reports"])


def _load_items(store: RecordStore):
    try:
        return crud.fetch_items(store)
    except RecordStoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/kpis", response_model=WeeklyKPIs)
async def get_weekly_kpis(store: RecordStore = Depends(get_store)):
    """KPIs for the current ISO week."""
    return calculate_weekly_kpis(_load_items(store))


@router.get("/sitrep", response_model=SitrepResponse)
async def get_sitrep(store: RecordStore = Depends(get_store)):
    """Weekly SITREP text plus the KPIs it was built from."""
    items = _load_items(store)
    kpis = calculate_weekly_kpis(items)
    logger.info(f"Generated SITREP over {len(items)} items")
    return SitrepResponse(kpis=kpis, text=generate_sitrep(items, kpis))
