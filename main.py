import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from config import ledger_timezone
from ledger.engine import RawAdjustment, aggregate
from ledger.events import RawEvent
from ledger.report import assemble_report
from ledger.timeutils import compute_net_ms, format_hours
from models.schema import (
    AdjustmentPreview,
    DataQualityWarning,
    LedgerResult,
    MonthSummary,
    SubjectReport,
    SubjectStats,
    WarningCode,
    WeekAggregate,
    to_hours,
)


def log_data_quality(warnings: Iterable[DataQualityWarning]) -> int:
    count = 0
    for warning in warnings:
        scope = f"subject_id: {warning.subject_id}"
        if warning.calendar_date:
            scope += f", date: {warning.calendar_date.isoformat()}"
        if warning.code == WarningCode.ADJUSTMENT_IGNORED:
            logging.warning(f"Adjustment ignored for {scope}: {warning.detail}")
        elif warning.code == WarningCode.OPEN_SEGMENT_DISCARDED:
            logging.warning(f"Unclosed segment discarded for {scope}: {warning.detail}")
        else:
            logging.warning(f"{warning.code.value} for {scope}: {warning.detail}")
        count += 1
    return count


def compute_ledger(events: Iterable[RawEvent], adjustments: Iterable[RawAdjustment],
                   month: int, year: int, tz_name: Optional[str] = None) -> LedgerResult:
    result = aggregate(events, adjustments, month, year, ledger_timezone(tz_name))
    logged = log_data_quality(result.warnings)
    total_ms = sum(s.total_duration_ms for s in result.summaries)
    logging.info(f"Ledger computed for {month:02d}/{year}: {len(result.summaries)} subjects, "
                 f"{format_hours(total_ms)} hours, {logged} warnings")
    return result


def monthly_summaries(events, adjustments, month: int, year: int, tz_name: Optional[str] = None) -> List[MonthSummary]:
    return compute_ledger(events, adjustments, month, year, tz_name).summaries


def weekly_breakdown(events, adjustments, month: int, year: int, tz_name: Optional[str] = None) -> Dict[str, List[WeekAggregate]]:
    return compute_ledger(events, adjustments, month, year, tz_name).weeks


def employee_stats(events, adjustments, month: int, year: int, tz_name: Optional[str] = None) -> List[SubjectStats]:
    return compute_ledger(events, adjustments, month, year, tz_name).stats


def monthly_report(events, adjustments, month: int, year: int, tz_name: Optional[str] = None) -> List[SubjectReport]:
    summaries = compute_ledger(events, adjustments, month, year, tz_name).summaries
    return assemble_report(summaries, ledger_timezone(tz_name))


def preview_adjustment(calendar_date: date, clock_in: str, clock_out: str,
                       break_start: Optional[str] = None, break_end: Optional[str] = None,
                       tz_name: Optional[str] = None) -> AdjustmentPreview:
    net = compute_net_ms(calendar_date, clock_in, clock_out, break_start, break_end, ledger_timezone(tz_name))
    if net is None:
        logging.warning(f"Invalid correction times on {calendar_date.isoformat()}: {clock_in}-{clock_out}")
        return AdjustmentPreview(calendar_date=calendar_date)
    return AdjustmentPreview(calendar_date=calendar_date, net_duration_ms=net, net_hours=to_hours(net), valid=True)
