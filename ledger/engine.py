"""Pure entry point of the time ledger.

``aggregate`` recomputes everything from the supplied punches and corrections
on every call. It keeps no state between calls and performs no I/O; subjects
are processed independently of one another.
"""
from datetime import tzinfo
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from ledger.aggregator import filter_month, partition_weeks, subject_stats, summarize_month
from ledger.events import RawEvent, coerce_events, group_by_subject
from ledger.reconciler import reconcile
from ledger.segments import build_day_aggregates
from models.schema import (
    AdjustmentRecord,
    DataQualityWarning,
    LedgerResult,
    PunchEvent,
    WarningCode,
)

RawAdjustment = Union[AdjustmentRecord, Mapping[str, Any]]


def coerce_adjustments(raw_adjustments: Iterable[RawAdjustment]) -> Tuple[List[AdjustmentRecord], List[DataQualityWarning]]:
    adjustments = []
    warnings = []
    for raw in raw_adjustments:
        if isinstance(raw, AdjustmentRecord):
            adjustments.append(raw)
            continue
        try:
            adjustments.append(AdjustmentRecord.model_validate(dict(raw)))
        except (ValidationError, TypeError, ValueError) as exc:
            record_id = raw.get("id") if isinstance(raw, Mapping) else None
            warnings.append(DataQualityWarning(
                code=WarningCode.ADJUSTMENT_IGNORED,
                record_id=str(record_id) if record_id is not None else None,
                detail=f"adjustment {record_id} ignored: malformed record ({exc.__class__.__name__})",
            ))
    return adjustments, warnings


def aggregate_subject(subject_id: str, events: List[PunchEvent], adjustments: List[AdjustmentRecord],
                      month: int, year: int, tz: Optional[tzinfo] = None) -> LedgerResult:
    """Ledger of a single subject; ``events`` and ``adjustments`` must all belong to it."""
    reconciliation = reconcile(events, adjustments, tz)
    build = build_day_aggregates(filter_month(reconciliation.events, month, year), tz)
    summary = summarize_month(subject_id, build.days, month, year)
    return LedgerResult(
        month=month,
        year=year,
        summaries=[summary],
        weeks={subject_id: partition_weeks(summary.days, month, year)},
        stats=[subject_stats(subject_id, reconciliation.events, summary)],
        warnings=reconciliation.warnings + build.warnings,
    )


def aggregate(events: Iterable[RawEvent], adjustments: Iterable[RawAdjustment],
              month: int, year: int, tz: Optional[tzinfo] = None) -> LedgerResult:
    """Month ledger for every subject present in the punches or the corrections.

    Malformed punches and corrections are dropped and reported in
    ``LedgerResult.warnings``; nothing here raises on bad data. A
    month outside 1-12 is a rejected period, not bad data, and raises
    ValueError before any punch is read.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")

    punches, warnings = coerce_events(events, tz)
    records, adjustment_warnings = coerce_adjustments(adjustments)
    warnings.extend(adjustment_warnings)

    events_by_subject = group_by_subject(punches)
    adjustments_by_subject = {}
    for record in records:
        adjustments_by_subject.setdefault(record.subject_id, []).append(record)

    result = LedgerResult(month=month, year=year, warnings=warnings)
    for subject_id in sorted(set(events_by_subject) | set(adjustments_by_subject)):
        ledger = aggregate_subject(
            subject_id,
            events_by_subject.get(subject_id, []),
            adjustments_by_subject.get(subject_id, []),
            month,
            year,
            tz,
        )
        result.summaries.extend(ledger.summaries)
        result.weeks.update(ledger.weeks)
        result.stats.extend(ledger.stats)
        result.warnings.extend(ledger.warnings)
    return result
