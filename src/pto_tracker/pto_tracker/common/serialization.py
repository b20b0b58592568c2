from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Mapping


def json_ready(data: Mapping[str, Any]) -> dict[str, Any]:
    """Render a document/row for a JSON response (ISO dates, enum values)."""
    out: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, (datetime, date, time)):
            out[key] = value.isoformat()
        elif isinstance(value, Enum):
            out[key] = value.value
        else:
            out[key] = value
    return out
