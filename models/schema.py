from datetime import datetime, date, timedelta
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from config import ledger_timezone

MS_PER_HOUR = 3_600_000
HOURS_PRECISION = 2
ONE_MS = timedelta(milliseconds=1)


def to_hours(duration_ms: int) -> float:
    return round(duration_ms / MS_PER_HOUR, HOURS_PRECISION)


class PunchKind(str, Enum):
    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"
    BREAK_START = "START_BREAK"
    BREAK_END = "END_BREAK"


class AdjustmentStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class WorkStatus(str, Enum):
    IDLE = "IDLE"
    WORKING = "WORKING"
    ON_BREAK = "ON_BREAK"


class WarningCode(str, Enum):
    EVENT_DROPPED = "EVENT_DROPPED"
    ADJUSTMENT_IGNORED = "ADJUSTMENT_IGNORED"
    BREAK_WINDOW_IGNORED = "BREAK_WINDOW_IGNORED"
    OPEN_SEGMENT_DISCARDED = "OPEN_SEGMENT_DISCARDED"
    SEGMENT_DROPPED = "SEGMENT_DROPPED"


class PunchEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    subject_id: str
    timestamp: datetime
    calendar_date: date
    kind: PunchKind
    location: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def attach_ledger_zone(cls, value: datetime, info: ValidationInfo) -> datetime:
        if value.tzinfo is None:
            # callers pass the zone of the ledger being computed as validation context
            zone = (info.context or {}).get("tz")
            return value.replace(tzinfo=zone or ledger_timezone())
        return value


class AdjustmentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    subject_id: str
    calendar_date: date
    status: AdjustmentStatus = AdjustmentStatus.PENDING
    proposed_clock_in: str
    proposed_clock_out: str
    proposed_break_start: Optional[str] = None
    proposed_break_end: Optional[str] = None
    # Snapshot of the day before the correction, shown to reviewers only
    prior_clock_in: Optional[str] = None
    prior_clock_out: Optional[str] = None
    reason: Optional[str] = None


class Segment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self):
        if self.end <= self.start:
            raise ValueError("segment must end after it starts")
        return self

    @property
    def duration_ms(self) -> int:
        return (self.end - self.start) // ONE_MS


class DayAggregate(BaseModel):
    date: date
    total_duration_ms: int = 0
    segments: List[Segment] = Field(default_factory=list)

    @property
    def hours(self) -> float:
        return to_hours(self.total_duration_ms)


class WeekAggregate(BaseModel):
    week_index: int
    label: str
    first_day: int
    last_day: int
    total_duration_ms: int = 0
    days: List[DayAggregate] = Field(default_factory=list)

    @property
    def hours(self) -> float:
        return to_hours(self.total_duration_ms)


class MonthSummary(BaseModel):
    subject_id: str
    month: int
    year: int
    days: List[DayAggregate] = Field(default_factory=list)
    total_duration_ms: int = 0

    @property
    def hours(self) -> float:
        return to_hours(self.total_duration_ms)


class SubjectStats(BaseModel):
    subject_id: str
    current_status: WorkStatus = WorkStatus.IDLE
    last_active: Optional[datetime] = None
    current_location: Optional[str] = None
    total_duration_ms: int = 0
    days_worked: int = 0
    total_hours: float = 0.0


class DataQualityWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: WarningCode
    subject_id: Optional[str] = None
    calendar_date: Optional[date] = None
    record_id: Optional[str] = None
    detail: str = ""


class Reconciliation(BaseModel):
    events: List[PunchEvent] = Field(default_factory=list)
    warnings: List[DataQualityWarning] = Field(default_factory=list)


class DayBuild(BaseModel):
    days: List[DayAggregate] = Field(default_factory=list)
    warnings: List[DataQualityWarning] = Field(default_factory=list)


class LedgerResult(BaseModel):
    month: int
    year: int
    summaries: List[MonthSummary] = Field(default_factory=list)
    weeks: Dict[str, List[WeekAggregate]] = Field(default_factory=dict)
    stats: List[SubjectStats] = Field(default_factory=list)
    warnings: List[DataQualityWarning] = Field(default_factory=list)


class DayReportLine(BaseModel):
    date: date
    description: str
    hours: float


class SubjectReport(BaseModel):
    subject_id: str
    lines: List[DayReportLine] = Field(default_factory=list)
    total_hours: float = 0.0


class AdjustmentPreview(BaseModel):
    calendar_date: date
    net_duration_ms: Optional[int] = None
    net_hours: Optional[float] = None
    valid: bool = False

