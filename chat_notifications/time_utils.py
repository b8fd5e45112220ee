import re
from datetime import datetime, timezone

# RFC 3339 timestamps from Firestore carry up to nanosecond precision
_FRACTION_RE = re.compile(r'\.(\d{6})\d+')


def parse_rfc3339(value: str) -> datetime:
    value = value.strip().replace('Z', '+00:00').replace('z', '+00:00')
    return datetime.fromisoformat(_FRACTION_RE.sub(r'.\1', value))


def to_utc_datetime(value) -> datetime:
    """Convert a Firestore timestamp representation to an aware UTC datetime

    Raises ValueError for anything that cannot be read as a point in time.
    """
    if isinstance(value, datetime):
        dt = value
    elif hasattr(value, 'datetime'):
        # Legacy Firestore Timestamp wrappers
        dt = value.datetime
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Epoch timestamp out of range: {value!r}") from e
    elif isinstance(value, str):
        dt = parse_rfc3339(value)
    else:
        raise ValueError(f"Unsupported timestamp type {type(value)}")

    if not isinstance(dt, datetime):
        raise ValueError(f"Unsupported timestamp type {type(dt)}")

    try:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"Timestamp out of range: {value!r}") from e


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
