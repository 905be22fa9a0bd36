"""Board filtering, ordering and grouping for pipeline items."""
from datetime import datetime
from typing import Any, Iterable, Optional

from .item_state_machine import ITEM_STAGE_ORDER
from .kpi import iso_week_window, in_window
from .models import ItemStatus, RygStatus
from .schemas import ItemFilter


def matches_filter(item: Any, item_filter: ItemFilter, now: Optional[datetime] = None) -> bool:
    """Check an item against the board filter.

    The this-week-only toggle only hides New items created outside the
    current ISO week; items in later stages are always shown.
    """
    status = ItemStatus(item.status)

    if item_filter.this_week_only and status == ItemStatus.NEW:
        start, end = iso_week_window(now or datetime.utcnow())
        if not in_window(item.created_at, start, end):
            return False

    if item_filter.owner is not None and item.owner_id != item_filter.owner:
        return False

    if item_filter.ryg_status is not None:
        item_ryg = RygStatus(item.ryg_status) if item.ryg_status else None
        if item_ryg != RygStatus(item_filter.ryg_status):
            return False

    if item_filter.tag is not None and item_filter.tag not in (item.tags or []):
        return False

    if item_filter.has_demo is not None and bool(item.good_enough_demo) != item_filter.has_demo:
        return False
    if item_filter.has_measure is not None and bool(item.good_enough_measure) != item_filter.has_measure:
        return False
    if item_filter.has_log is not None and bool(item.good_enough_log) != item_filter.has_log:
        return False

    if item_filter.search_text:
        needle = item_filter.search_text.lower()
        in_title = needle in item.title.lower()
        in_problem = bool(item.problem) and needle in item.problem.lower()
        if not in_title and not in_problem:
            return False

    return True


def filter_items(
    items: Iterable[Any],
    item_filter: ItemFilter,
    now: Optional[datetime] = None,
) -> list[Any]:
    now = now or datetime.utcnow()
    return [item for item in items if matches_filter(item, item_filter, now)]


def _board_sort_key(item: Any) -> tuple:
    # Time-boxed items first by deadline, then everything else by age
    if item.timebox_to is not None:
        return (0, item.timebox_to)
    return (1, item.created_at)


def sort_board_items(items: Iterable[Any]) -> list[Any]:
    """Order items within a board column."""
    return sorted(items, key=_board_sort_key)


def group_by_status(items: Iterable[Any]) -> dict[ItemStatus, list[Any]]:
    """Split items into the four stage columns, each sorted for display."""
    columns: dict[ItemStatus, list[Any]] = {status: [] for status in ITEM_STAGE_ORDER}
    for item in items:
        columns[ItemStatus(item.status)].append(item)
    return {status: sort_board_items(column) for status, column in columns.items()}


def available_owners(items: Iterable[Any]) -> list[str]:
    """Distinct owner ids in first-seen order."""
    return list(dict.fromkeys(item.owner_id for item in items))


def available_tags(items: Iterable[Any]) -> list[str]:
    """Distinct tags, alphabetically."""
    return sorted({tag for item in items for tag in (item.tags or [])})
