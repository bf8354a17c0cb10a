from collections import defaultdict
from datetime import tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from models.schema import DataQualityWarning, PunchEvent, PunchKind, WarningCode

OPENING_KINDS = frozenset([PunchKind.CLOCK_IN, PunchKind.BREAK_END])
CLOSING_KINDS = frozenset([PunchKind.BREAK_START, PunchKind.CLOCK_OUT])

RawEvent = Union[PunchEvent, Mapping[str, Any]]


def _payload(event: RawEvent) -> Optional[dict]:
    # model_construct() skips validation, so instances are re-checked field by field
    if isinstance(event, PunchEvent):
        return dict(event.__dict__)
    if isinstance(event, Mapping):
        return dict(event)
    return None


def is_well_formed(event: RawEvent) -> bool:
    """True when the event carries a valid instant, a calendar date and a known kind."""
    payload = _payload(event)
    if payload is None:
        return False
    try:
        PunchEvent.model_validate(payload)
    except ValidationError:
        return False
    return True


def coerce_events(raw_events: Iterable[RawEvent], tz: Optional[tzinfo] = None) -> Tuple[List[PunchEvent], List[DataQualityWarning]]:
    """Validate upstream punches, dropping the malformed ones.

    Upstream emitters are not trusted, so a bad item becomes a warning for the
    caller instead of failing the batch. Timestamps without a zone are read
    in ``tz``, falling back to the configured ledger zone.
    """
    events = []
    warnings = []
    for position, raw in enumerate(raw_events):
        payload = _payload(raw)
        if payload is None:
            warnings.append(DataQualityWarning(
                code=WarningCode.EVENT_DROPPED,
                detail=f"event #{position} dropped: not a punch record",
            ))
            continue
        try:
            events.append(PunchEvent.model_validate(payload, context={"tz": tz}))
        except ValidationError as exc:
            warnings.append(DataQualityWarning(
                code=WarningCode.EVENT_DROPPED,
                subject_id=_text(payload.get("subject_id")),
                record_id=_text(payload.get("id")),
                detail=f"event #{position} dropped: {_first_error(exc)}",
            ))
    return events, warnings


def group_by_subject(events: Iterable[PunchEvent]) -> Dict[str, List[PunchEvent]]:
    by_subject = defaultdict(list)
    for event in events:
        by_subject[event.subject_id].append(event)
    return dict(by_subject)


def _text(value) -> Optional[str]:
    return str(value) if value is not None else None


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"]) or "event"
    return f"{location}: {error['msg']}"
