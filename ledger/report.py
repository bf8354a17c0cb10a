from datetime import tzinfo
from typing import Iterable, List, Optional

from config import settings
from ledger.timeutils import format_clock
from models.schema import DayAggregate, DayReportLine, MonthSummary, SubjectReport


def describe_day(day: DayAggregate, tz: Optional[tzinfo] = None, separator: Optional[str] = None) -> str:
    """Human-readable timeline of a day for the export renderers.

    One segment reads as a plain shift, two as a shift with a break, and
    anything longer is listed shift by shift.
    """
    segments = day.segments
    if not segments:
        return ""

    def clock(instant):
        return format_clock(instant, tz)

    if len(segments) == 1:
        only = segments[0]
        return f"start: {clock(only.start)}, end: {clock(only.end)}"
    if len(segments) == 2:
        first, second = segments
        return (f"start: {clock(first.start)}, break: {clock(first.end)}, "
                f"resume: {clock(second.start)}, end: {clock(second.end)}")
    if separator is None:
        separator = settings.REPORT_SHIFT_SEPARATOR
    return separator.join(
        f"shift {number}: {clock(segment.start)} - {clock(segment.end)}"
        for number, segment in enumerate(segments, start=1)
    )


def assemble_report(summaries: Iterable[MonthSummary], tz: Optional[tzinfo] = None) -> List[SubjectReport]:
    reports = []
    for summary in sorted(summaries, key=lambda s: s.subject_id):
        lines = [
            DayReportLine(date=day.date, description=describe_day(day, tz), hours=day.hours)
            for day in summary.days
        ]
        reports.append(SubjectReport(subject_id=summary.subject_id, lines=lines, total_hours=summary.hours))
    return reports
