"""Pipeline items API router.

Items move through four fixed stages: New -> Discovery -> Development -> Done.
Every update and stage change is followed by an audit log entry.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ... import crud
from ...filters import available_owners, available_tags, filter_items, group_by_status
from ...item_state_machine import ItemStateTransitionError
from ...kpi import calculate_weekly_kpis
from ...models import RygStatus
from ...reporting import format_item_summary
from ...schemas import (
    AuditLogResponse,
    BoardColumn,
    BoardResponse,
    CommentCreate,
    CommentResponse,
    ItemCreate,
    ItemFilter,
    ItemResponse,
    ItemStatusChange,
    ItemSummaryResponse,
    ItemUpdate,
)
from ...store import RecordStore, RecordStoreError, RecordNotFoundError
from ..dependencies import get_current_user_id, get_store

logger = logging.getLogger("innoflow-core.items")

router = APIRouter(tags=["items"])


def store_error(e: RecordStoreError) -> HTTPException:
    """Translate a store failure into an HTTP error carrying the store's message."""
    if isinstance(e, RecordNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Item not found: {e.record_id}"
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e)
    )


def get_item_or_404(store: RecordStore, item_id: UUID):
    try:
        item = crud.fetch_item(store, item_id)
    except RecordStoreError as e:
        raise store_error(e)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Item not found: {item_id}"
        )
    return item


@router.get("/", response_model=list[ItemResponse])
async def list_items(store: RecordStore = Depends(get_store)):
    """List all items, newest first."""
    try:
        return crud.fetch_items(store)
    except RecordStoreError as e:
        raise store_error(e)


@router.post("/", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: ItemCreate,
    store: RecordStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id),
):
    """Create a new item (title and problem are required)."""
    try:
        return crud.create_item(store, data, default_owner_id=user_id)
    except ItemStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RecordStoreError as e:
        raise store_error(e)


@router.get("/board", response_model=BoardResponse)
async def get_board(
    this_week_only: bool = Query(True, description="Hide New items created before this ISO week"),
    owner: Optional[str] = None,
    ryg_status: Optional[RygStatus] = None,
    tag: Optional[str] = None,
    has_demo: Optional[bool] = None,
    has_measure: Optional[bool] = None,
    has_log: Optional[bool] = None,
    search: Optional[str] = Query(None, description="Case-insensitive match on title and problem"),
    store: RecordStore = Depends(get_store),
):
    """Kanban board: filtered and sorted stage columns, with KPIs over all items."""
    try:
        items = crud.fetch_items(store)
    except RecordStoreError as e:
        raise store_error(e)

    item_filter = ItemFilter(
        this_week_only=this_week_only,
        owner=owner,
        ryg_status=ryg_status,
        tag=tag,
        has_demo=has_demo,
        has_measure=has_measure,
        has_log=has_log,
        search_text=search,
    )
    columns = group_by_status(filter_items(items, item_filter))

    return BoardResponse(
        columns=[
            BoardColumn(
                status=stage,
                label=stage.label,
                items=[ItemResponse.model_validate(item) for item in column],
                count=len(column),
            )
            for stage, column in columns.items()
        ],
        kpis=calculate_weekly_kpis(items),
        owners=available_owners(items),
        tags=available_tags(items),
    )


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: UUID, store: RecordStore = Depends(get_store)):
    """Get an item by id."""
    return get_item_or_404(store, item_id)


@router.patch("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: UUID,
    data: ItemUpdate,
    store: RecordStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id),
):
    """Update item fields. Writes an ``item_update`` audit entry."""
    try:
        return crud.update_item(store, item_id, data, user_id)
    except ItemStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RecordStoreError as e:
        raise store_error(e)


@router.post("/{item_id}/transition", response_model=ItemResponse)
async def transition_item(
    item_id: UUID,
    data: ItemStatusChange,
    store: RecordStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id),
):
    """Move an item to another stage. Writes a ``status_change`` audit entry."""
    try:
        return crud.update_item_status(store, item_id, data.new_status, user_id)
    except ItemStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RecordStoreError as e:
        raise store_error(e)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: UUID,
    store: RecordStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id),
):
    """Delete an item."""
    try:
        crud.delete_item(store, item_id, user_id)
    except RecordStoreError as e:
        raise store_error(e)


@router.get("/{item_id}/summary", response_model=ItemSummaryResponse)
async def get_item_summary(item_id: UUID, store: RecordStore = Depends(get_store)):
    """Short plain-text status snippet for one item."""
    item = get_item_or_404(store, item_id)
    return ItemSummaryResponse(item_id=item.id, text=format_item_summary(item))


@router.get("/{item_id}/comments", response_model=list[CommentResponse])
async def list_comments(item_id: UUID, store: RecordStore = Depends(get_store)):
    """List an item's comments, oldest first."""
    try:
        return crud.fetch_comments(store, item_id)
    except RecordStoreError as e:
        raise store_error(e)


@router.post("/{item_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    item_id: UUID,
    data: CommentCreate,
    store: RecordStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id),
):
    """Add a comment to an item."""
    try:
        return crud.create_comment(store, item_id, data, default_user_id=user_id)
    except RecordStoreError as e:
        raise store_error(e)


@router.get("/{item_id}/audit-logs", response_model=list[AuditLogResponse])
async def list_audit_logs(item_id: UUID, store: RecordStore = Depends(get_store)):
    """List an item's audit trail, newest first."""
    try:
        return crud.fetch_audit_logs(store, item_id)
    except RecordStoreError as e:
        raise store_error(e)
