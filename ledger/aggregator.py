from calendar import monthrange
from typing import Iterable, List, Optional, Sequence, Tuple

from ledger.events import OPENING_KINDS
from ledger.segments import sort_events
from models.schema import (
    DayAggregate,
    MonthSummary,
    PunchEvent,
    PunchKind,
    SubjectStats,
    WeekAggregate,
    WorkStatus,
    to_hours,
)

DAYS_PER_WEEK = 7


def in_month(calendar_date, month: int, year: int) -> bool:
    return calendar_date.year == year and calendar_date.month == month


def filter_month(events: Iterable[PunchEvent], month: int, year: int) -> List[PunchEvent]:
    """Punches bucketed under the month, judged by their stored calendar date."""
    return [e for e in events if in_month(e.calendar_date, month, year)]


def week_index(day_of_month: int) -> int:
    return (day_of_month - 1) // DAYS_PER_WEEK


def week_bounds(index: int, month: int, year: int) -> Tuple[int, int]:
    last_of_month = monthrange(year, month)[1]
    first = index * DAYS_PER_WEEK + 1
    return first, min(first + DAYS_PER_WEEK - 1, last_of_month)


def summarize_month(subject_id: str, days: Iterable[DayAggregate], month: int, year: int) -> MonthSummary:
    month_days = sorted((d for d in days if in_month(d.date, month, year)), key=lambda d: d.date)
    return MonthSummary(
        subject_id=subject_id,
        month=month,
        year=year,
        days=month_days,
        total_duration_ms=sum(d.total_duration_ms for d in month_days),
    )


def partition_weeks(days: Iterable[DayAggregate], month: int, year: int) -> List[WeekAggregate]:
    """Split a month's days into 7-day buckets starting on the 1st.

    Every bucket of the month is returned, so a 31-day month always yields
    five weeks, the last one covering the 29th to the 31st.
    """
    last_of_month = monthrange(year, month)[1]
    weeks = []
    for index in range(week_index(last_of_month) + 1):
        first, last = week_bounds(index, month, year)
        weeks.append(WeekAggregate(week_index=index, label=f"{first}-{last}", first_day=first, last_day=last))

    for day in sorted(days, key=lambda d: d.date):
        if not in_month(day.date, month, year):
            continue
        week = weeks[week_index(day.date.day)]
        week.days.append(day)
        week.total_duration_ms += day.total_duration_ms
    return weeks


def current_status(events: Iterable[PunchEvent]) -> Tuple[WorkStatus, Optional[PunchEvent]]:
    """Live status from the subject's most recent punch across all history."""
    ordered = sort_events(events)
    if not ordered:
        return WorkStatus.IDLE, None
    last = ordered[-1]
    if last.kind in OPENING_KINDS:
        return WorkStatus.WORKING, last
    if last.kind == PunchKind.BREAK_START:
        return WorkStatus.ON_BREAK, last
    return WorkStatus.IDLE, last


def _latest_clock_in(ordered: Sequence[PunchEvent]) -> Optional[PunchEvent]:
    for event in reversed(ordered):
        if event.kind == PunchKind.CLOCK_IN:
            return event
    return None


def subject_stats(subject_id: str, events: Sequence[PunchEvent], summary: MonthSummary) -> SubjectStats:
    """Dashboard card for one subject.

    ``events`` is the subject's effective history (any period); the totals
    come from the month summary.
    """
    status, last = current_status(events)
    location = None
    if status == WorkStatus.WORKING:
        clock_in = _latest_clock_in(sort_events(events))
        location = clock_in.location if clock_in else None
    return SubjectStats(
        subject_id=subject_id,
        current_status=status,
        last_active=last.timestamp if last else None,
        current_location=location,
        total_duration_ms=summary.total_duration_ms,
        days_worked=len(summary.days),
        total_hours=to_hours(summary.total_duration_ms),
    )
