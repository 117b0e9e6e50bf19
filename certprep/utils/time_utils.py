"""Time utilities."""
import re
from datetime import date, datetime, timedelta, timezone

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):(\d{2})$")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def isoformat(value: datetime | None) -> str | None:
    """Serialize a stored datetime as an ISO string in UTC."""
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_timestamp(value: object) -> datetime | None:
    """Parse ISO timestamp string to an aware datetime (naive means UTC)."""
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return ensure_utc(parsed)


def parse_utc_offset(value: str) -> timezone:
    """Parse a ``+HH:MM`` / ``-HH:MM`` offset into a fixed timezone.

    Raises:
        ValueError: malformed offset or outside -14:00..+14:00.
    """
    match = _OFFSET_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid timezone offset {value!r}, expected +HH:MM or -HH:MM")
    sign, hours, minutes = match.group(1), int(match.group(2)), int(match.group(3))
    if minutes >= 60 or hours * 60 + minutes > 14 * 60:
        raise ValueError(f"Timezone offset out of range: {value!r}")
    delta = timedelta(hours=hours, minutes=minutes)
    return timezone(-delta if sign == "-" else delta)


def local_date(value: datetime, tz: timezone) -> date:
    """Calendar date of ``value`` as seen from ``tz``."""
    return ensure_utc(value).astimezone(tz).date()


def local_today(tz: timezone, now: datetime | None = None) -> date:
    """Today's calendar date in ``tz``."""
    return local_date(now or utc_now(), tz)
