"""util.py

Small, shared helpers used across the project.

This project intentionally uses the Python standard library only.
"""

from __future__ import annotations

import re
from typing import Any, Union

from errors import ValidationError
from models import ParcelSize, ParcelStatus


def is_blank(s: Any) -> bool:
    """True for None, non-strings and strings that are empty after stripping."""
    return not isinstance(s, str) or not s.strip()


def require_text(value: Any, field: str, label: str) -> str:
    """Return `value` unchanged, or raise ValidationError if it is blank."""
    if is_blank(value):
        raise ValidationError(f"Invalid {label}", field=field, value=value)
    return value


def city_key(city: str) -> str:
    """Case-insensitive ordering key for a destination city."""
    return city.lower()


def compare_cities(a: str, b: str) -> int:
    """Three-way case-insensitive comparison: <0, 0 or >0."""
    ka, kb = city_key(a), city_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def parse_size(value: Union[ParcelSize, str]) -> ParcelSize:
    """Accept a ParcelSize or its exact display string ('Small', 'Medium', 'Large')."""
    if isinstance(value, ParcelSize):
        return value
    try:
        return ParcelSize(value)
    except ValueError:
        raise ValidationError("Invalid size value", field='size', value=value) from None


def parse_status(value: Union[ParcelStatus, str]) -> ParcelStatus:
    """Accept a ParcelStatus, its display string ('InQueue') or its name ('IN_QUEUE')."""
    if isinstance(value, ParcelStatus):
        return value
    if isinstance(value, str):
        s = value.strip()
        for status in ParcelStatus:
            if s == status.value or s.upper() == status.name:
                return status
    raise ValidationError("Invalid status value", field='status', value=value)


def parse_priority(value: Any) -> int:
    """Priorities are integers 1..3."""
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 3:
        raise ValidationError("Invalid priority value", field='priority', value=value)
    return value


# -------------------------
# Input normalization helpers
# -------------------------

def normalize_text(s: str) -> str:
    """Collapse whitespace and strip; used for loosely formatted CSV/config input."""
    s = (s or '').replace('\n', ' ').replace('\r', ' ')
    return re.sub(r'\s+', ' ', s).strip()
