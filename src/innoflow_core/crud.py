"""CRUD operations for pipeline items, comments and audit logs."""
import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from . import models, schemas
from .item_state_machine import (
    can_mark_done,
    leaves_new_stage,
    validate_item_transition,
    ItemStateTransitionError,
    GOOD_ENOUGH_FLAGS,
)
from .store import RecordStore, RecordNotFoundError

logger = logging.getLogger("innoflow-core.crud")

# Explicit nulls for these are ignored on update
NON_NULLABLE_ITEM_FIELDS = frozenset({
    "status",
    "owner_id",
    "pii_flag",
    "good_enough_demo",
    "good_enough_measure",
    "good_enough_log",
    "tags",
})


def item_snapshot(item: models.Item) -> dict[str, Any]:
    """Serialize an item into a JSON-safe dict for the audit log."""
    return schemas.ItemResponse.model_validate(item).model_dump(mode="json")


# =============================================================================
# Items
# =============================================================================


def fetch_items(store: RecordStore) -> list[models.Item]:
    """Get all items, newest first."""
    return store.fetch_all("items", order_by="created_at", ascending=False)


def fetch_item(store: RecordStore, item_id: UUID) -> Optional[models.Item]:
    """Get an item by id."""
    return store.fetch_by_id("items", item_id)


def create_item(
    store: RecordStore,
    data: schemas.ItemCreate,
    default_owner_id: str,
) -> models.Item:
    """
    Create a new item.

    Args:
        store: Record store
        data: Validated item fields (title and problem already checked)
        default_owner_id: Owner used when ``data.owner_id`` is not given

    Returns:
        The created item

    Raises:
        ItemStateTransitionError: If the item is created as Done without meeting the Done gate
    """
    record = data.model_dump()
    record["owner_id"] = data.owner_id or default_owner_id

    if data.status == models.ItemStatus.DONE and not can_mark_done(
        data.good_enough_demo, data.good_enough_measure, data.good_enough_log, data.stopp_reason
    ):
        raise ItemStateTransitionError(
            message="Cannot create an item as Done without meeting the good-enough criteria or giving a stop reason.",
            current_status=models.ItemStatus.NEW,
            requested_status=models.ItemStatus.DONE,
            good_enough_count=sum(1 for name in GOOD_ENOUGH_FLAGS if record[name]),
        )

    now = datetime.utcnow()
    record["created_at"] = now
    if leaves_new_stage(models.ItemStatus.NEW, data.status):
        record["f1_locked_at"] = now

    item = store.insert("items", record)
    logger.info(f"Created item {item.id}: {item.title}")
    return item


def update_item(
    store: RecordStore,
    item_id: UUID,
    changes: schemas.ItemUpdate,
    user_id: str,
) -> models.Item:
    """
    Apply a partial update to an item and record it in the audit log.

    The audit entry is written as a separate operation after the update has
    been committed; if it fails the update stays in place and the error is
    raised to the caller. An update with no fields writes nothing.

    Raises:
        RecordNotFoundError: If the item does not exist
        ItemStateTransitionError: If the item would end up Done without meeting the Done gate
    """
    old_item = store.fetch_by_id("items", item_id)
    if old_item is None:
        raise RecordNotFoundError("items", item_id)

    updates = {
        name: value
        for name, value in changes.model_dump(exclude_unset=True).items()
        if value is not None or name not in NON_NULLABLE_ITEM_FIELDS
    }
    if not updates:
        logger.debug(f"No changes for item {item_id}")
        return old_item

    # Gate applies to the resulting stage, Done items included
    new_status = updates.get("status", old_item.status)
    validate_item_transition(old_item, new_status, changes=updates)
    if leaves_new_stage(old_item.status, new_status) and old_item.f1_locked_at is None:
        updates["f1_locked_at"] = datetime.utcnow()

    old_value = item_snapshot(old_item)
    item = store.update("items", item_id, updates)

    log_audit(
        store,
        item_id=item_id,
        user_id=user_id,
        action=models.AuditAction.ITEM_UPDATE,
        old_value=old_value,
        new_value=item_snapshot(item),
    )
    logger.info(f"Updated item {item_id}: {', '.join(sorted(updates))}")
    return item


def update_item_status(
    store: RecordStore,
    item_id: UUID,
    new_status: models.ItemStatus,
    user_id: str,
) -> models.Item:
    """
    Move an item to another stage.

    Stamps ``f1_locked_at`` the first time the item leaves New.

    Raises:
        RecordNotFoundError: If the item does not exist
        ItemStateTransitionError: If the Done gate is not satisfied
    """
    old_item = store.fetch_by_id("items", item_id)
    if old_item is None:
        raise RecordNotFoundError("items", item_id)

    new_status = models.ItemStatus(new_status)
    validate_item_transition(old_item, new_status)

    old_status = models.ItemStatus(old_item.status)
    updates: dict[str, Any] = {"status": new_status}
    if leaves_new_stage(old_status, new_status) and old_item.f1_locked_at is None:
        updates["f1_locked_at"] = datetime.utcnow()

    item = store.update("items", item_id, updates)

    log_audit(
        store,
        item_id=item_id,
        user_id=user_id,
        action=models.AuditAction.STATUS_CHANGE,
        old_value={"status": old_status.value},
        new_value={"status": new_status.value},
    )
    logger.info(f"Item {item_id} moved: {old_status.value} -> {new_status.value}")
    return item


def delete_item(store: RecordStore, item_id: UUID, user_id: str) -> None:
    """Delete an item. The audit entry is written before the delete.

    Raises:
        RecordNotFoundError: If the item does not exist
    """
    if store.fetch_by_id("items", item_id) is None:
        raise RecordNotFoundError("items", item_id)

    log_audit(
        store,
        item_id=item_id,
        user_id=user_id,
        action=models.AuditAction.ITEM_DELETE,
    )
    store.delete("items", item_id)
    logger.info(f"Deleted item {item_id}")


# =============================================================================
# Comments
# =============================================================================


def fetch_comments(store: RecordStore, item_id: UUID) -> list[models.Comment]:
    """Get an item's comments, oldest first."""
    return store.fetch_all("comments", filters={"item_id": item_id}, order_by="created_at", ascending=True)


def create_comment(
    store: RecordStore,
    item_id: UUID,
    data: schemas.CommentCreate,
    default_user_id: str,
) -> models.Comment:
    """Append a comment to an item.

    Raises:
        RecordNotFoundError: If the item does not exist
    """
    if store.fetch_by_id("items", item_id) is None:
        raise RecordNotFoundError("items", item_id)

    return store.insert("comments", {
        "item_id": item_id,
        "user_id": data.user_id or default_user_id,
        "content": data.content,
        "created_at": datetime.utcnow(),
    })


# =============================================================================
# Audit log
# =============================================================================


def fetch_audit_logs(store: RecordStore, item_id: UUID) -> list[models.AuditLog]:
    """Get an item's audit trail, newest first."""
    return store.fetch_all("audit_logs", filters={"item_id": item_id}, order_by="created_at", ascending=False)


def log_audit(
    store: RecordStore,
    item_id: UUID,
    user_id: str,
    action: models.AuditAction,
    old_value: Optional[dict[str, Any]] = None,
    new_value: Optional[dict[str, Any]] = None,
) -> models.AuditLog:
    """Write an audit log entry."""
    return store.insert("audit_logs", {
        "item_id": item_id,
        "user_id": user_id,
        "action": models.AuditAction(action).value,
        "old_value": old_value,
        "new_value": new_value,
        "created_at": datetime.utcnow(),
    })
