from datetime import date, datetime, timezone

import pytest

from ledger.aggregator import (
    current_status,
    filter_month,
    partition_weeks,
    subject_stats,
    summarize_month,
    week_index,
)
from models.schema import DayAggregate, PunchEvent, PunchKind, WorkStatus

UTC = timezone.utc
HOUR_MS = 3_600_000


def day(day_of_month, hours, month=5, year=2024):
    return DayAggregate(date=date(year, month, day_of_month), total_duration_ms=hours * HOUR_MS)


def punch(event_id, kind, hour, day_of_month=6, location=None, month=5):
    return PunchEvent(
        id=event_id,
        subject_id="u1",
        timestamp=datetime(2024, month, day_of_month, hour, tzinfo=UTC),
        calendar_date=date(2024, month, day_of_month),
        kind=kind,
        location=location,
    )


@pytest.mark.parametrize("day_of_month", range(1, 32))
def test_week_index_law(day_of_month):
    assert week_index(day_of_month) == (day_of_month - 1) // 7


def test_31_day_month_has_five_weeks():
    weeks = partition_weeks([day(d, 1) for d in range(1, 32)], 5, 2024)

    assert [w.label for w in weeks] == ["1-7", "8-14", "15-21", "22-28", "29-31"]
    assert [w.week_index for w in weeks] == [0, 1, 2, 3, 4]
    assert [d.date.day for d in weeks[4].days] == [29, 30, 31]
    assert weeks[4].total_duration_ms == 3 * HOUR_MS


def test_february_buckets():
    assert len(partition_weeks([], 2, 2023)) == 4
    leap = partition_weeks([], 2, 2024)
    assert len(leap) == 5
    assert leap[-1].label == "29-29"


def test_empty_weeks_are_kept():
    weeks = partition_weeks([day(3, 8)], 5, 2024)
    assert len(weeks) == 5
    assert [w.total_duration_ms for w in weeks] == [8 * HOUR_MS, 0, 0, 0, 0]


def test_month_total_law():
    days = [day(1, 8), day(9, 7), day(30, 5), day(31, 1)]
    summary = summarize_month("u1", days, 5, 2024)
    weeks = partition_weeks(summary.days, 5, 2024)

    assert summary.total_duration_ms == 21 * HOUR_MS
    assert summary.total_duration_ms == sum(d.total_duration_ms for d in summary.days)
    assert summary.total_duration_ms == sum(w.total_duration_ms for w in weeks)
    assert summary.hours == 21.0


def test_summary_excludes_other_months():
    summary = summarize_month("u1", [day(30, 4, month=4), day(2, 6)], 5, 2024)
    assert [d.date for d in summary.days] == [date(2024, 5, 2)]
    assert summary.total_duration_ms == 6 * HOUR_MS


def test_filter_month_uses_calendar_date():
    near_midnight = PunchEvent(
        id="late",
        subject_id="u1",
        timestamp=datetime(2024, 6, 1, 0, 30, tzinfo=UTC),
        calendar_date=date(2024, 5, 31),
        kind=PunchKind.CLOCK_OUT,
    )
    assert filter_month([near_midnight], 5, 2024) == [near_midnight]
    assert filter_month([near_midnight], 6, 2024) == []


def test_hours_are_rounded_for_display_only():
    odd = DayAggregate(date=date(2024, 5, 1), total_duration_ms=HOUR_MS + 1)
    assert odd.hours == 1.0
    assert odd.total_duration_ms == HOUR_MS + 1


@pytest.mark.parametrize("kind, status", [
    (PunchKind.CLOCK_IN, WorkStatus.WORKING),
    (PunchKind.BREAK_END, WorkStatus.WORKING),
    (PunchKind.BREAK_START, WorkStatus.ON_BREAK),
    (PunchKind.CLOCK_OUT, WorkStatus.IDLE),
])
def test_current_status_follows_latest_punch(kind, status):
    events = [punch("first", PunchKind.CLOCK_IN, 7), punch("last", kind, 9)]
    assert current_status(events) == (status, events[1])


def test_current_status_without_punches():
    assert current_status([]) == (WorkStatus.IDLE, None)


def test_subject_stats():
    events = [
        punch("in", PunchKind.CLOCK_IN, 8, location="Warehouse"),
        punch("bs", PunchKind.BREAK_START, 12),
        punch("be", PunchKind.BREAK_END, 13),
    ]
    summary = summarize_month("u1", [day(6, 4), day(7, 0)], 5, 2024)
    stats = subject_stats("u1", events, summary)

    assert stats.current_status == WorkStatus.WORKING
    assert stats.current_location == "Warehouse"
    assert stats.last_active == datetime(2024, 5, 6, 13, tzinfo=UTC)
    assert stats.days_worked == 2
    assert stats.total_hours == 4.0


def test_idle_subject_has_no_location():
    events = [punch("in", PunchKind.CLOCK_IN, 8, location="HQ"), punch("out", PunchKind.CLOCK_OUT, 17)]
    stats = subject_stats("u1", events, summarize_month("u1", [], 5, 2024))
    assert stats.current_status == WorkStatus.IDLE
    assert stats.current_location is None
    assert stats.days_worked == 0
