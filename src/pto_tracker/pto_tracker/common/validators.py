from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_text(value, field_name: str) -> None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    require_text(value, field_name)
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Optional[str], field_name: str = "Text") -> Optional[str]:
    require_text(value, field_name)
    return (value or "").strip() or None


def count_words(value: Optional[str]) -> int:
    """Whitespace-delimited token count; empty tokens are discarded."""
    return len((value or "").split())


def require_max_words(value: str, field_name: str, max_words: int) -> str:
    words = count_words(value)
    if words > max_words:
        raise ValidationError(f"{field_name} is limited to {max_words} words (got {words})")
    return value


def coerce_enum(enum_cls: Type[E], value, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def parse_hours(value, field_name: str = "Hours") -> float:
    """Accept a non-negative number or numeric string."""

    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number")
    try:
        hours = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if math.isnan(hours) or math.isinf(hours):
        raise ValidationError(f"{field_name} must be a finite number")
    if hours < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return hours


def parse_flag(value, field_name: str) -> bool:
    """Accept a real boolean or the strings "true"/"false"."""

    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{field_name} must be true or false")
