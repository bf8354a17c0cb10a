"""Substitutes approved corrections for the raw punches of a subject/day.

The raw log is never edited. An accepted correction hides every raw punch of
its (subject, calendar date) scope and contributes synthesized punches in their
place; the result is the effective event list fed to the segment builder.
"""
from datetime import tzinfo
from typing import Iterable, List, Optional

from ledger.timeutils import parse_time_on_date, valid_break_window
from models.schema import (
    AdjustmentRecord,
    AdjustmentStatus,
    DataQualityWarning,
    PunchEvent,
    PunchKind,
    Reconciliation,
    WarningCode,
)


def approved_only(adjustments: Iterable[AdjustmentRecord]) -> List[AdjustmentRecord]:
    return [adj for adj in adjustments if adj.status == AdjustmentStatus.APPROVED]


def synthesize_events(adjustment: AdjustmentRecord, tz: Optional[tzinfo] = None):
    """Replacement punches for one correction, or None when its times are unusable.

    Returns ``(events, break_dropped)``; ``break_dropped`` is True when break
    times were supplied but fell outside the clock-in/clock-out window.
    """
    clock_in = parse_time_on_date(adjustment.calendar_date, adjustment.proposed_clock_in, tz)
    clock_out = parse_time_on_date(adjustment.calendar_date, adjustment.proposed_clock_out, tz)
    if clock_in is None or clock_out is None or clock_out <= clock_in:
        return None

    def punch(suffix, kind, instant):
        return PunchEvent(
            id=f"adj-{adjustment.id}-{suffix}",
            subject_id=adjustment.subject_id,
            timestamp=instant,
            calendar_date=adjustment.calendar_date,
            kind=kind,
        )

    events = [punch("in", PunchKind.CLOCK_IN, clock_in)]
    break_start = parse_time_on_date(adjustment.calendar_date, adjustment.proposed_break_start, tz)
    break_end = parse_time_on_date(adjustment.calendar_date, adjustment.proposed_break_end, tz)
    break_dropped = False
    if valid_break_window(clock_in, clock_out, break_start, break_end):
        events.append(punch("pstart", PunchKind.BREAK_START, break_start))
        events.append(punch("pend", PunchKind.BREAK_END, break_end))
    elif adjustment.proposed_break_start or adjustment.proposed_break_end:
        break_dropped = True
    events.append(punch("out", PunchKind.CLOCK_OUT, clock_out))
    return events, break_dropped


def reconcile(events: Iterable[PunchEvent], adjustments: Iterable[AdjustmentRecord],
              tz: Optional[tzinfo] = None) -> Reconciliation:
    """Build the effective event list.

    Only approved corrections apply. One whose clock-in/clock-out do not parse,
    or do not increase, is skipped and reported; the raw punches for that day
    stay authoritative. When several approved corrections share a scope the
    last one wins.
    """
    effective = list(events)
    synthesized = {}
    warnings = []

    for adjustment in approved_only(adjustments):
        result = synthesize_events(adjustment, tz)
        scope = (adjustment.subject_id, adjustment.calendar_date)
        if result is None:
            warnings.append(DataQualityWarning(
                code=WarningCode.ADJUSTMENT_IGNORED,
                subject_id=adjustment.subject_id,
                calendar_date=adjustment.calendar_date,
                record_id=adjustment.id,
                detail=(f"adjustment {adjustment.id} ignored: invalid times "
                        f"{adjustment.proposed_clock_in!r}-{adjustment.proposed_clock_out!r}"),
            ))
            continue

        replacement, break_dropped = result
        if break_dropped:
            warnings.append(DataQualityWarning(
                code=WarningCode.BREAK_WINDOW_IGNORED,
                subject_id=adjustment.subject_id,
                calendar_date=adjustment.calendar_date,
                record_id=adjustment.id,
                detail=(f"adjustment {adjustment.id}: break "
                        f"{adjustment.proposed_break_start!r}-{adjustment.proposed_break_end!r} "
                        f"outside the worked window, not deducted"),
            ))
        effective = [e for e in effective if (e.subject_id, e.calendar_date) != scope]
        synthesized[scope] = replacement

    for replacement in synthesized.values():
        effective.extend(replacement)
    return Reconciliation(events=effective, warnings=warnings)
