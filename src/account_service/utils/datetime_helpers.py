"""ISO 8601 helpers used by the JSON projections and the query-string parser."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

_DATETIME = TypeAdapter(datetime)


def parse_datetime(value: str) -> Optional[datetime]:
    """
    Parse an ISO 8601 date or datetime string into an aware UTC datetime.

    Parsing is pydantic's; naive inputs are assumed to be UTC. Returns `None` when the value
    is not an ISO 8601 string (bare numbers are not read as Unix timestamps).
    """
    if not isinstance(value, str) or value.strip().lstrip("+-").replace(".", "", 1).isdigit():
        return None
    try:
        parsed = _DATETIME.validate_python(value.strip())
    except PydanticValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso_string(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as `YYYY-MM-DDTHH:MM:SS.mmmZ` (UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
