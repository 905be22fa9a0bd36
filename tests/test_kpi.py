"""Tests for the weekly KPI engine."""
from datetime import date, datetime, timedelta, timezone

import pytest

from innoflow_core.kpi import (
    calculate_weekly_kpis,
    classify_ryg,
    iso_week_number,
    iso_week_window,
    lead_time_days,
    lower_median,
    round_half_up,
)
from innoflow_core.models import ItemStatus, RygStatus

NOW = datetime(2025, 1, 15, 12, 0, 0)  # Wednesday, ISO week 3
THIS_MONDAY = datetime(2025, 1, 13, 9, 0, 0)


class TestIsoWeek:
    """Test the ISO week window and week number."""

    def test_window_spans_monday_to_sunday(self):
        start, end = iso_week_window(NOW)
        assert start == datetime(2025, 1, 13, 0, 0, 0)
        assert end == datetime(2025, 1, 19, 23, 59, 59, 999999)

    def test_window_on_sunday_reaches_back_to_monday(self):
        start, _ = iso_week_window(datetime(2025, 1, 19, 23, 0))
        assert start == datetime(2025, 1, 13)

    def test_window_from_aware_datetime(self):
        start, _ = iso_week_window(datetime(2025, 1, 13, 0, 30, tzinfo=timezone(timedelta(hours=2))))
        # 00:30+02:00 is Sunday 22:30 UTC of the previous week
        assert start == datetime(2025, 1, 6)

    @pytest.mark.parametrize("value,expected", [
        (date(2025, 1, 15), 3),
        (date(2024, 12, 30), 1),   # Monday belonging to 2025-W01
        (date(2021, 1, 3), 53),    # Sunday still in 2020-W53
        (date(2027, 1, 1), 53),    # Friday in 2026-W53
        (date(2026, 1, 1), 1),     # Thursday: week 1 by definition
    ])
    def test_week_number_year_boundaries(self, value, expected):
        assert iso_week_number(value) == expected


class TestHelpers:
    """Test median, rounding and classification helpers."""

    def test_lower_median_even_count_picks_upper_middle(self):
        assert lower_median([1, 2, 3, 4]) == 3

    def test_lower_median_sorts_input(self):
        assert lower_median([4, 1, 3, 2]) == 3

    def test_lower_median_odd_and_empty(self):
        assert lower_median([7, 1, 5]) == 5
        assert lower_median([]) == 0

    def test_round_half_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(66.666) == 67
        assert round_half_up(0.4) == 0

    def test_lead_time_truncates_partial_days(self):
        created = datetime(2025, 1, 1, 10, 0)
        assert lead_time_days(created, created + timedelta(days=1, hours=23)) == 1
        assert lead_time_days(created, created + timedelta(hours=5)) == 0

    @pytest.mark.parametrize("conversion,expected", [
        (0, RygStatus.RED),
        (39, RygStatus.RED),
        (39.9, RygStatus.RED),
        (40, RygStatus.YELLOW),
        (70, RygStatus.YELLOW),
        (70.5, RygStatus.GREEN),
        (71, RygStatus.GREEN),
        (100, RygStatus.GREEN),
    ])
    def test_ryg_boundaries(self, conversion, expected):
        assert classify_ryg(conversion) == expected


class TestWeeklyKpis:
    """Test calculate_weekly_kpis end to end."""

    def test_no_items(self):
        kpis = calculate_weekly_kpis([], now=NOW)
        assert kpis.f1_volume == 0
        assert kpis.f1_to_f2_conversion == 0
        assert kpis.f1_to_f2_lead_time_median == 0
        assert kpis.ryg_status == "red"

    def test_single_new_item_this_monday(self, make_item):
        kpis = calculate_weekly_kpis([make_item(created_at=THIS_MONDAY)], now=NOW)
        assert kpis.f1_volume == 1
        assert kpis.f1_to_f2_conversion == 0
        assert kpis.ryg_status == "red"

    def test_volume_only_counts_new_items_inside_window(self, make_item):
        items = [
            make_item(created_at=datetime(2025, 1, 13, 0, 0, 0)),              # Monday start, inclusive
            make_item(created_at=datetime(2025, 1, 19, 23, 59, 59)),           # Sunday end, inclusive
            make_item(created_at=datetime(2025, 1, 12, 23, 59, 59)),           # previous week
            make_item(created_at=datetime(2025, 1, 20, 0, 0, 0)),              # next week
            make_item(status=ItemStatus.DISCOVERY, created_at=THIS_MONDAY),    # not in New
        ]
        assert calculate_weekly_kpis(items, now=NOW).f1_volume == 2

    def test_conversion_counts_locks_inside_window(self, make_item):
        items = [
            make_item(f1_locked_at=datetime(2025, 1, 14, 8, 0)),
            make_item(f1_locked_at=datetime(2025, 1, 6, 8, 0)),  # locked outside the window
            make_item(),
            make_item(),
        ]
        kpis = calculate_weekly_kpis(items, now=NOW)
        assert kpis.f1_volume == 4
        assert kpis.f1_to_f2_conversion == 25
        assert kpis.ryg_status == "red"

    def test_conversion_rounds_half_up(self, make_item):
        items = [make_item(f1_locked_at=NOW)] + [make_item() for _ in range(7)]
        kpis = calculate_weekly_kpis(items, now=NOW)
        assert kpis.f1_to_f2_conversion == 13  # 12.5%

    def test_two_thirds_is_yellow(self, make_item):
        items = [make_item(f1_locked_at=NOW), make_item(f1_locked_at=NOW), make_item()]
        kpis = calculate_weekly_kpis(items, now=NOW)
        assert kpis.f1_to_f2_conversion == 67
        assert kpis.ryg_status == "yellow"

    def test_all_converted_is_green(self, make_item):
        kpis = calculate_weekly_kpis([make_item(f1_locked_at=NOW)], now=NOW)
        assert kpis.f1_to_f2_conversion == 100
        assert kpis.ryg_status == "green"

    def test_lead_time_uses_all_items_that_left_new(self, make_item):
        created = datetime(2024, 11, 1, 9, 0)
        items = [
            make_item(status=ItemStatus.DISCOVERY, created_at=created, f1_locked_at=created + timedelta(days=days))
            for days in (4, 1, 3, 2)
        ]
        # Still in New: ignored even though it has a lock timestamp
        items.append(make_item(status=ItemStatus.NEW, created_at=created, f1_locked_at=created + timedelta(days=30)))
        # Left New but never stamped: ignored
        items.append(make_item(status=ItemStatus.DONE, created_at=created))

        kpis = calculate_weekly_kpis(items, now=NOW)
        assert kpis.f1_to_f2_lead_time_median == 3
        assert kpis.f1_volume == 0

    def test_accepts_aware_timestamps(self, make_item):
        aware = datetime(2025, 1, 14, 9, 0, tzinfo=timezone.utc)
        kpis = calculate_weekly_kpis([make_item(created_at=aware, f1_locked_at=aware)], now=NOW)
        assert kpis.f1_volume == 1
        assert kpis.f1_to_f2_conversion == 100

    def test_accepts_string_status_values(self, make_item):
        kpis = calculate_weekly_kpis([make_item(status="status1")], now=NOW)
        assert kpis.f1_volume == 1

    def test_recomputation_is_independent_of_previous_calls(self, make_item):
        items = [make_item()]
        first = calculate_weekly_kpis(items, now=NOW)
        items.append(make_item(f1_locked_at=NOW))
        second = calculate_weekly_kpis(items, now=NOW)
        assert first.f1_volume == 1
        assert second.f1_volume == 2
        assert second.f1_to_f2_conversion == 50
