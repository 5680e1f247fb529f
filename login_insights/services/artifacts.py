from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

from login_insights.schemas.event_models import NormalizedEvent


def artifact_filename(at: datetime) -> str:
    """logs-<ISO-8601 UTC with milliseconds>.json, e.g. logs-2026-01-01T00:00:00.000Z.json"""
    stamp = at.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return f"logs-{stamp.replace('+00:00', 'Z')}.json"


def events_to_payload(events: Sequence[NormalizedEvent]) -> List[Dict[str, Any]]:
    return [event.model_dump(mode="json", by_alias=True) for event in events]


def serialize_events(events: Sequence[NormalizedEvent]) -> str:
    return json.dumps(events_to_payload(events))


def write_artifact(events: Sequence[NormalizedEvent], output_dir: Path, at: datetime) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / artifact_filename(at)
    path.write_text(serialize_events(events), encoding="utf-8")
    return path
