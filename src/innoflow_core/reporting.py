"""Plain-text reports for the pipeline board.

This module produces the weekly SITREP and the per-item summary snippet.
"""
from collections import Counter
from datetime import datetime
from typing import Any, Iterable, Optional

from .kpi import as_naive_utc, created_this_week, iso_week_number
from .models import ItemStatus
from .schemas import WeeklyKPIs

NO_TAGS_PLACEHOLDER = "none"
NOT_SPECIFIED = "Not specified"


def top_tags(items: Iterable[Any], limit: int = 3) -> list[str]:
    """Most frequent tags, ties broken by first appearance."""
    counts: Counter[str] = Counter()
    for item in items:
        for tag in item.tags or []:
            counts[tag] += 1
    # sorted() is stable, so equal counts keep Counter insertion order
    ranked = sorted(counts.items(), key=lambda entry: entry[1], reverse=True)
    return [tag for tag, _ in ranked[:limit]]


def count_by_status(items: Iterable[Any]) -> dict[ItemStatus, int]:
    counts = {status: 0 for status in ItemStatus}
    for item in items:
        counts[ItemStatus(item.status)] += 1
    return counts


def generate_sitrep(items: Iterable[Any], kpis: WeeklyKPIs, now: Optional[datetime] = None) -> str:
    """
    Render the weekly SITREP.

    Stage counts cover every item; top tags only cover items created this week.

    Args:
        items: All items
        kpis: Output of ``calculate_weekly_kpis`` for the same items
        now: Reference time (defaults to the current UTC time)

    Returns:
        Multi-line report text
    """
    items = list(items)
    now = as_naive_utc(now or datetime.utcnow())

    counts = count_by_status(items)
    tags = top_tags(created_this_week(items, now), 3)
    ryg = str(getattr(kpis.ryg_status, "value", kpis.ryg_status)).upper()

    return f"""SITREP WEEK {now.year}-W{iso_week_number(now)}

F1 Volume: {kpis.f1_volume} new ideas this week
F1→F2 Conversion: {kpis.f1_to_f2_conversion}% ({ryg})
F1→F2 Lead time: {kpis.f1_to_f2_lead_time_median} days (median)

Active projects: {counts[ItemStatus.DISCOVERY]} in Discovery, {counts[ItemStatus.DEVELOPMENT]} in Development
Completed this period: {counts[ItemStatus.DONE]} items in Done

Top Tags: {', '.join(tags) or NO_TAGS_PLACEHOLDER}

Next week: Focus on raising the conversion rate and reducing lead time."""


def format_item_summary(item: Any) -> str:
    """Format the short status snippet for a single item."""
    status = ItemStatus(item.status)
    return f"""{item.title}

Problem: {item.problem or NOT_SPECIFIED}
User: {item.user_ctx or NOT_SPECIFIED}
Solution: {item.min_solution or NOT_SPECIFIED}

KPI: {item.kpi_name or 'Not set'}
Baseline: {item.kpi_baseline or '-'} → Target: {item.kpi_target or '-'}

Status: {status.label}
Owner: {item.owner_id}"""
