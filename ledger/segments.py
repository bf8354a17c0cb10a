from datetime import tzinfo
from typing import Dict, Iterable, Optional

from ledger.events import CLOSING_KINDS, OPENING_KINDS
from ledger.timeutils import duration_ms, end_of_day
from models.schema import DataQualityWarning, DayAggregate, DayBuild, PunchEvent, Segment, WarningCode


def sort_events(events: Iterable[PunchEvent]):
    # sorted() is stable: punches sharing an instant keep their input order
    return sorted(events, key=lambda e: e.timestamp)


def build_day_aggregates(events: Iterable[PunchEvent], tz: Optional[tzinfo] = None) -> DayBuild:
    """Pair opening and closing punches of one subject into per-day segments.

    A segment is credited to the calendar date of the punch that opened it.
    A segment still open after the last punch is closed at the end of its day.
    Every calendar date seen gets a DayAggregate, worked or not.
    """
    ordered = sort_events(events)
    days: Dict = {}
    warnings = []
    for event in ordered:
        days.setdefault(event.calendar_date, DayAggregate(date=event.calendar_date))

    open_event: Optional[PunchEvent] = None

    def close(event_end, closing_id=None):
        start = open_event.timestamp
        day = days[open_event.calendar_date]
        if event_end <= start:
            warnings.append(DataQualityWarning(
                code=WarningCode.SEGMENT_DROPPED,
                subject_id=open_event.subject_id,
                calendar_date=open_event.calendar_date,
                record_id=closing_id or open_event.id,
                detail=f"segment opened by {open_event.id} has no positive duration",
            ))
            return
        day.segments.append(Segment(start=start, end=event_end))
        day.total_duration_ms += duration_ms(start, event_end)

    for event in ordered:
        if event.kind in OPENING_KINDS:
            if open_event is not None:
                warnings.append(DataQualityWarning(
                    code=WarningCode.OPEN_SEGMENT_DISCARDED,
                    subject_id=open_event.subject_id,
                    calendar_date=open_event.calendar_date,
                    record_id=open_event.id,
                    detail=f"{open_event.kind.value} {open_event.id} superseded by {event.kind.value} {event.id} before any close",
                ))
            open_event = event
        elif event.kind in CLOSING_KINDS:
            if open_event is not None:
                close(event.timestamp, event.id)
                open_event = None
        else:
            raise ValueError(f"unhandled punch kind: {event.kind!r}")

    if open_event is not None:
        close(end_of_day(open_event.calendar_date, tz))

    return DayBuild(days=[days[key] for key in sorted(days)], warnings=warnings)
