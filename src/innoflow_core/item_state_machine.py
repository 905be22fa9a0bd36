"""Stage transition rules for pipeline items.

Lifecycle: New (status1) -> Discovery (status2) -> Development (status3) -> Done (status4)

Items may move freely between stages; the one enforced rule is the Done gate:
an item can only be marked Done when at least two of the three "good enough"
criteria (demo, measurement, log) are met, or a stop reason is recorded.
"""
import logging
from typing import Any, Optional

from .models import ItemStatus

logger = logging.getLogger("innoflow-core.item_state_machine")

GOOD_ENOUGH_FLAGS = ("good_enough_demo", "good_enough_measure", "good_enough_log")

# Minimum number of good-enough criteria needed to close an item without a stop reason
MIN_GOOD_ENOUGH_FOR_DONE = 2

# Board column order
ITEM_STAGE_ORDER: list[ItemStatus] = [
    ItemStatus.NEW,
    ItemStatus.DISCOVERY,
    ItemStatus.DEVELOPMENT,
    ItemStatus.DONE,
]


class ItemStateTransitionError(Exception):
    """Raised when an item is moved to a stage it does not qualify for."""

    def __init__(
        self,
        message: str,
        current_status: ItemStatus,
        requested_status: ItemStatus,
        good_enough_count: int,
    ):
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status
        self.good_enough_count = good_enough_count


def count_good_enough(
    good_enough_demo: bool,
    good_enough_measure: bool,
    good_enough_log: bool,
) -> int:
    """Count how many good-enough criteria are met."""
    return sum(1 for flag in (good_enough_demo, good_enough_measure, good_enough_log) if flag)


def can_mark_done(
    good_enough_demo: bool,
    good_enough_measure: bool,
    good_enough_log: bool,
    stopp_reason: Optional[str] = None,
) -> bool:
    """
    Check the Done gate.

    Args:
        good_enough_demo: Demo criterion met
        good_enough_measure: Measurement criterion met
        good_enough_log: Log criterion met
        stopp_reason: Reason the item was stopped, if any

    Returns:
        True if the item may be marked Done
    """
    count = count_good_enough(good_enough_demo, good_enough_measure, good_enough_log)
    return count >= MIN_GOOD_ENOUGH_FOR_DONE or bool(stopp_reason and stopp_reason.strip())


def validate_item_transition(
    item: Any,
    new_status: ItemStatus,
    changes: Optional[dict[str, Any]] = None,
) -> None:
    """
    Validate moving an item to ``new_status`` and raise if it is not allowed.

    The gate is checked whenever the resulting stage is Done, including for an
    item that is already Done and has pending changes to its criteria.

    Args:
        item: Current item (ORM row or response schema)
        new_status: Requested stage
        changes: Pending field changes applied on top of ``item`` before checking

    Raises:
        ItemStateTransitionError: If the Done gate is not satisfied
    """
    current_status = ItemStatus(item.status)
    new_status = ItemStatus(new_status)
    changes = changes or {}

    def value(name: str):
        return changes[name] if name in changes else getattr(item, name)

    if not is_terminal_status(new_status):
        logger.debug(f"Valid item transition: {current_status.value} → {new_status.value}")
        return

    flags = [bool(value(name)) for name in GOOD_ENOUGH_FLAGS]
    stopp_reason = value("stopp_reason")
    if can_mark_done(*flags, stopp_reason=stopp_reason):
        logger.debug(f"Valid item transition: {current_status.value} → {new_status.value}")
        return

    count = count_good_enough(*flags)
    error_msg = (
        f"Cannot mark item as Done: {count} of {len(GOOD_ENOUGH_FLAGS)} good-enough criteria met. "
        f"At least {MIN_GOOD_ENOUGH_FOR_DONE} criteria must be met, or a stop reason must be given."
    )
    logger.warning(f"Blocked item transition: {error_msg}")
    raise ItemStateTransitionError(
        message=error_msg,
        current_status=current_status,
        requested_status=new_status,
        good_enough_count=count,
    )


def leaves_new_stage(old_status: ItemStatus, new_status: ItemStatus) -> bool:
    """Check whether a transition takes an item out of the New stage."""
    return ItemStatus(old_status) == ItemStatus.NEW and ItemStatus(new_status) != ItemStatus.NEW


def is_terminal_status(status: ItemStatus) -> bool:
    """Check if a stage is terminal."""
    return ItemStatus(status) == ItemStatus.DONE
