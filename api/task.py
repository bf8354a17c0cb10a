import logging
from datetime import date
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfoNotFoundError

from fastapi import BackgroundTasks, FastAPI, HTTPException
from pydantic import BaseModel, Field

from config import ledger_timezone, settings
from ledger.engine import aggregate
from ledger.report import assemble_report
from main import log_data_quality, preview_adjustment
from models.schema import AdjustmentPreview, LedgerResult, MonthSummary, SubjectReport, SubjectStats, WeekAggregate

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="Time ledger")


class LedgerRequest(BaseModel):
    # Punches stay loosely typed so a malformed one is dropped, not a 422
    events: List[Dict[str, Any]] = Field(default_factory=list)
    adjustments: List[Dict[str, Any]] = Field(default_factory=list)
    month: int
    year: int
    timezone: Optional[str] = None


class PreviewRequest(BaseModel):
    calendar_date: date
    clock_in: str
    clock_out: str
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    timezone: Optional[str] = None


def _zone(name: Optional[str]):
    try:
        return ledger_timezone(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=422, detail=f"unknown time zone: {name}")


def _run(request: LedgerRequest, background_tasks: BackgroundTasks) -> LedgerResult:
    if not 1 <= request.month <= 12:
        raise HTTPException(status_code=422, detail=f"month must be between 1 and 12, got {request.month}")
    result = aggregate(request.events, request.adjustments, request.month, request.year, _zone(request.timezone))
    background_tasks.add_task(log_data_quality, result.warnings)
    return result


@app.post("/ledger/month", response_model=List[MonthSummary])
def month_summaries(request: LedgerRequest, background_tasks: BackgroundTasks):
    return _run(request, background_tasks).summaries


@app.post("/ledger/weeks", response_model=Dict[str, List[WeekAggregate]])
def week_breakdown(request: LedgerRequest, background_tasks: BackgroundTasks):
    return _run(request, background_tasks).weeks


@app.post("/ledger/stats", response_model=List[SubjectStats])
def subject_stats(request: LedgerRequest, background_tasks: BackgroundTasks):
    return _run(request, background_tasks).stats


@app.post("/ledger/report", response_model=List[SubjectReport])
def month_report(request: LedgerRequest, background_tasks: BackgroundTasks):
    summaries = _run(request, background_tasks).summaries
    return assemble_report(summaries, _zone(request.timezone))


@app.post("/adjustments/preview", response_model=AdjustmentPreview)
def adjustment_preview(request: PreviewRequest):
    _zone(request.timezone)
    return preview_adjustment(
        request.calendar_date,
        request.clock_in,
        request.clock_out,
        request.break_start,
        request.break_end,
        request.timezone,
    )
