from datetime import date, datetime, tzinfo
from typing import Optional

from config import ledger_timezone, settings
from models.schema import ONE_MS, to_hours


def parse_time_on_date(calendar_date: date, time_str: Optional[str], tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Place an ``HH:mm`` (or ``H:mm``) wall-clock time on a calendar date.

    Seconds are ignored, so ``"09:00:30"`` reads as ``09:00``. Returns None for
    a missing or unparseable value.
    """
    if not time_str:
        return None
    value = time_str.strip()
    if ":" in value:
        value = ":".join(value.split(":")[:2])
    try:
        wall = datetime.strptime(value, "%H:%M").time()
    except ValueError:
        return None
    return datetime.combine(calendar_date, wall, tzinfo=tz or ledger_timezone())


def end_of_day(calendar_date: date, tz: Optional[tzinfo] = None) -> datetime:
    return datetime.combine(calendar_date, settings.END_OF_DAY, tzinfo=tz or ledger_timezone())


def duration_ms(start: datetime, end: datetime) -> int:
    return (end - start) // ONE_MS


def valid_break_window(start: datetime, end: datetime, break_start: Optional[datetime], break_end: Optional[datetime]) -> bool:
    if break_start is None or break_end is None:
        return False
    return start < break_start < break_end < end


def compute_net_ms(calendar_date: date, clock_in: Optional[str], clock_out: Optional[str],
                   break_start: Optional[str] = None, break_end: Optional[str] = None,
                   tz: Optional[tzinfo] = None) -> Optional[int]:
    """Net worked milliseconds for an explicit in/out pair with an optional break.

    Returns None when the pair does not parse or clock-out is not after clock-in.
    A break outside the in/out window is not deducted.
    """
    start = parse_time_on_date(calendar_date, clock_in, tz)
    end = parse_time_on_date(calendar_date, clock_out, tz)
    if start is None or end is None or end <= start:
        return None
    net = duration_ms(start, end)
    pause_start = parse_time_on_date(calendar_date, break_start, tz)
    pause_end = parse_time_on_date(calendar_date, break_end, tz)
    if valid_break_window(start, end, pause_start, pause_end):
        net -= duration_ms(pause_start, pause_end)
    return net


def format_hours(ms: int) -> str:
    return f"{to_hours(ms):.2f}"


def format_clock(instant: datetime, tz: Optional[tzinfo] = None) -> str:
    return instant.astimezone(tz or ledger_timezone()).strftime("%H:%M")

