"""Wire-format parsing and formatting.

Identifiers travel as decimal strings, timestamps as RFC 3339 date-times with
an explicit offset, enumerations as their lowercase tokens. Anything else is
rejected with a ValidationError before the entity layer is touched.
"""
import enum
import re
from datetime import datetime
from typing import Any, Optional, Type, TypeVar

import pytz

from app.errors import ValidationError

E = TypeVar("E", bound=enum.Enum)

MAX_ID = 2**63 - 1
_ID_RE = re.compile(r"^[0-9]+$")
_TIMESTAMP_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})T(?P<time>\d{2}:\d{2}:\d{2})(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<offset>Z|[+-]\d{2}:\d{2})$",
    re.IGNORECASE,
)


def parse_id(value: Any, field: str = "id") -> int:
    if not isinstance(value, str) or not _ID_RE.match(value):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    parsed = int(value)
    if parsed < 1 or parsed > MAX_ID:
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    return parsed


def parse_optional_id(value: Any, field: str) -> Optional[int]:
    return None if value is None else parse_id(value, field)


def parse_timestamp(value: Any, field: str) -> datetime:
    """Parse an RFC 3339 date-time such as ``2025-01-01T10:00:00Z``."""
    match = _TIMESTAMP_RE.match(value) if isinstance(value, str) else None
    if not match:
        raise ValidationError(f"Invalid {field}: expected RFC 3339 date-time, got {value!r}", field=field)
    fraction = (match.group("fraction") or "").ljust(6, "0")[:6]
    offset = match.group("offset").upper()
    if offset == "Z":
        offset = "+00:00"
    text = f"{match.group('date')}T{match.group('time')}.{fraction}{offset}"
    try:
        # Instants near year 1 or 9999 may not survive the shift to UTC
        return datetime.fromisoformat(text).astimezone(pytz.utc)
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid {field}: {value!r} is not a representable date-time", field=field)


def parse_optional_timestamp(value: Any, field: str) -> Optional[datetime]:
    return None if value is None else parse_timestamp(value, field)


def parse_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    for member in enum_cls:
        if value == member.value:
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(f"Invalid {field} {value!r}; expected one of: {allowed}", field=field)


def format_id(value: int) -> str:
    return str(value)


def format_timestamp(value: datetime) -> str:
    """RFC 3339 in UTC, e.g. ``2025-01-01T10:00:00Z``.

    Sub-second precision is kept with trailing zeros dropped, so the output
    parses back to the stored instant.
    """
    value = value.astimezone(pytz.utc)
    text = value.replace(tzinfo=None, microsecond=0).isoformat()
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    return text + "Z"
