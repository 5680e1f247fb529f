from __future__ import annotations

import json
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List

from pydantic import ValidationError

from login_insights.schemas.event_models import (
    LOGON_FAILURE,
    LOGON_SUCCESS,
    RAW_FIELDS,
    NormalizedEvent,
    RawEvent,
)
from login_insights.services.config_loader import get_field_aliases

_USERNAME_MARKER = "username is:"


class MalformedEventError(ValueError):
    """Raised when a raw /get-events record cannot be decoded."""


def map_login_state(state: str) -> str:
    if "success" in state.lower():
        return LOGON_SUCCESS
    return LOGON_FAILURE


def map_epoch_to_readable_time(epoch: float) -> str:
    """Render epoch seconds as an RFC 1123 UTC string, e.g. 'Thu, 01 Jan 1970 00:00:00 GMT'."""
    dt = datetime.fromtimestamp(float(epoch), tz=timezone.utc)
    return format_datetime(dt, usegmt=True)


def map_identity(identity: str) -> str:
    # ':' is never part of a valid address, so cut at the first one.
    if _USERNAME_MARKER in identity.lower():
        return identity[identity.index(":") + 1:].lower().strip()
    return identity.lower()


def _resolve_raw_fields(raw: Dict[str, Any]) -> Dict[str, Any]:
    candidate: Dict[str, Any] = {}
    for field in RAW_FIELDS:
        for alias in get_field_aliases(field):
            if alias in raw:
                candidate[field] = raw[alias]
                break
    return candidate


def decode_raw_event(raw: Any) -> RawEvent:
    if not isinstance(raw, dict):
        raise MalformedEventError(f"Event must be a JSON object, got {type(raw).__name__}")

    candidate = _resolve_raw_fields(raw)
    missing = [field for field in RAW_FIELDS if field not in candidate]
    if missing:
        raise MalformedEventError(
            f"Event {raw.get('id', '<no id>')!r} is missing fields: {', '.join(missing)}"
        )

    try:
        return RawEvent.model_validate(candidate)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise MalformedEventError(
            f"Event {candidate.get('id')!r} failed validation: {problems}"
        ) from exc


def normalize_event(raw: Any) -> NormalizedEvent:
    event = decode_raw_event(raw)
    try:
        event_time = map_epoch_to_readable_time(event.timestamp)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedEventError(
            f"Event {event.id!r} has an out-of-range timestamp {event.timestamp!r}"
        ) from exc
    return NormalizedEvent(
        id=event.id,
        user_name=map_identity(event.user_name),
        source_ip=event.ips[0],
        target=event.target,
        action=map_login_state(event.action),
        event_time=event_time,
    )


def normalize_events(raw_events: Iterable[Any]) -> List[NormalizedEvent]:
    """Normalize a whole batch; the first malformed record fails all of it."""
    normalized: List[NormalizedEvent] = []
    for index, raw in enumerate(raw_events):
        try:
            normalized.append(normalize_event(raw))
        except MalformedEventError as exc:
            raise MalformedEventError(f"Record {index}: {exc}") from exc
    return normalized


def normalize_file(input_path: Path) -> List[NormalizedEvent]:
    """Normalize a local JSON array of raw /get-events records."""
    raw_obj = json.loads(input_path.read_text(encoding="utf-8"))
    if not isinstance(raw_obj, list):
        raise ValueError(f"{input_path} must contain a JSON array of events")
    return normalize_events(raw_obj)
