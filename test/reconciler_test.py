from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from ledger.reconciler import reconcile
from models.schema import AdjustmentRecord, AdjustmentStatus, PunchEvent, PunchKind, WarningCode

DAY = date(2024, 5, 6)
NEXT_DAY = date(2024, 5, 7)
UTC = timezone.utc


def punch(event_id, kind, hour, minute=0, day=DAY, subject_id="u1"):
    return PunchEvent(
        id=event_id,
        subject_id=subject_id,
        timestamp=datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC),
        calendar_date=day,
        kind=kind,
    )


def adjustment(status=AdjustmentStatus.APPROVED, clock_in="09:00", clock_out="18:00",
               break_start="13:00", break_end="14:00", adj_id="a1", day=DAY, **extra):
    return AdjustmentRecord(
        id=adj_id,
        subject_id="u1",
        calendar_date=day,
        status=status,
        proposed_clock_in=clock_in,
        proposed_clock_out=clock_out,
        proposed_break_start=break_start,
        proposed_break_end=break_end,
        **extra,
    )


def raw_day():
    return [
        punch("r1", PunchKind.CLOCK_IN, 7),
        punch("r2", PunchKind.CLOCK_OUT, 11),
        punch("r3", PunchKind.CLOCK_IN, 8, day=NEXT_DAY),
    ]


def test_pending_and_rejected_are_inert():
    events = raw_day()
    for status in (AdjustmentStatus.PENDING, AdjustmentStatus.REJECTED):
        result = reconcile(events, [adjustment(status=status)], UTC)
        assert result.events == events
        assert result.warnings == []


def test_approved_adjustment_replaces_the_day():
    result = reconcile(raw_day(), [adjustment()], UTC)

    assert [e.id for e in result.events] == ["r3", "adj-a1-in", "adj-a1-pstart", "adj-a1-pend", "adj-a1-out"]
    synthesized = result.events[1:]
    assert [e.kind for e in synthesized] == [
        PunchKind.CLOCK_IN, PunchKind.BREAK_START, PunchKind.BREAK_END, PunchKind.CLOCK_OUT,
    ]
    assert [e.timestamp.hour for e in synthesized] == [9, 13, 14, 18]
    assert all(e.calendar_date == DAY for e in synthesized)
    assert result.warnings == []


def test_raw_events_are_not_mutated():
    events = raw_day()
    snapshot = [e.model_dump() for e in events]
    reconcile(events, [adjustment()], UTC)
    assert [e.model_dump() for e in events] == snapshot


def test_adjustment_without_break():
    result = reconcile([], [adjustment(break_start=None, break_end=None)], UTC)
    assert [e.id for e in result.events] == ["adj-a1-in", "adj-a1-out"]
    assert result.warnings == []


def test_non_increasing_times_are_ignored():
    events = raw_day()
    result = reconcile(events, [adjustment(clock_in="18:00", clock_out="09:00")], UTC)

    assert result.events == events
    assert len(result.warnings) == 1
    assert result.warnings[0].code == WarningCode.ADJUSTMENT_IGNORED
    assert result.warnings[0].record_id == "a1"


def test_unparseable_times_are_ignored():
    events = raw_day()
    for clock_in, clock_out in [("25:00", "18:00"), ("nine", "18:00"), ("", "18:00")]:
        result = reconcile(events, [adjustment(clock_in=clock_in, clock_out=clock_out)], UTC)
        assert result.events == events
        assert result.warnings[0].code == WarningCode.ADJUSTMENT_IGNORED


def test_break_outside_window_is_not_synthesized():
    result = reconcile([], [adjustment(break_start="08:00", break_end="10:00")], UTC)
    assert [e.kind for e in result.events] == [PunchKind.CLOCK_IN, PunchKind.CLOCK_OUT]
    assert [w.code for w in result.warnings] == [WarningCode.BREAK_WINDOW_IGNORED]


def test_half_break_is_not_synthesized():
    result = reconcile([], [adjustment(break_end=None)], UTC)
    assert [e.kind for e in result.events] == [PunchKind.CLOCK_IN, PunchKind.CLOCK_OUT]
    assert [w.code for w in result.warnings] == [WarningCode.BREAK_WINDOW_IGNORED]


def test_prior_snapshot_is_never_read():
    result = reconcile([], [adjustment(prior_clock_in="garbage", prior_clock_out="25:99")], UTC)
    assert len(result.events) == 4
    assert result.warnings == []


def test_seconds_and_single_digit_hours_are_accepted():
    result = reconcile([], [adjustment(clock_in="9:00", clock_out="18:00:45", break_start=None, break_end=None)], UTC)
    assert [e.timestamp for e in result.events] == [
        datetime(2024, 5, 6, 9, 0, tzinfo=UTC),
        datetime(2024, 5, 6, 18, 0, tzinfo=UTC),
    ]


def test_last_approved_adjustment_wins():
    result = reconcile([], [
        adjustment(adj_id="a1", clock_in="09:00", clock_out="17:00"),
        adjustment(adj_id="a2", clock_in="10:00", clock_out="16:00", break_start=None, break_end=None),
    ], UTC)
    assert [e.id for e in result.events] == ["adj-a2-in", "adj-a2-out"]


def test_other_subjects_are_untouched():
    other = punch("o1", PunchKind.CLOCK_IN, 7, subject_id="u2")
    result = reconcile([other], [adjustment()], UTC)
    assert result.events[0] is other


def test_times_are_local_to_the_ledger_zone():
    rome = ZoneInfo("Europe/Rome")
    result = reconcile([], [adjustment(break_start=None, break_end=None)], rome)
    assert result.events[0].timestamp == datetime(2024, 5, 6, 7, 0, tzinfo=UTC)
