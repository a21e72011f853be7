"""Conversions between Python values and their SQLite column representation."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict


def to_db_timestamp(value: datetime | None) -> str | None:
    """Store datetimes as ISO-8601 UTC strings so they sort lexically."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_db_json(payload: Dict[str, Any] | None) -> str:
    return json.dumps(payload or {}, default=str)


def from_db_json(value: str | None) -> Dict[str, Any]:
    if not value:
        return {}
    try:
        data = json.loads(value)
    except json.JSONDecodeError:
        return {"unparsed": value}
    return data if isinstance(data, dict) else {"value": data}
