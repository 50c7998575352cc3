"""
Time helpers: reminder duration parsing, due-instant arithmetic and
timezone-aware display formatting.
"""
import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from revisit.config import get_settings
from revisit.errors import InvalidDurationError

logger = logging.getLogger("revisit.time")

_DURATION_RE = re.compile(r"^(\d{1,18}(?:\.\d+)?)\s*([mhd])?$")
_UNIT_MINUTES = {"m": 1, "h": 60, "d": 24 * 60}
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

def parse_duration(value: Any) -> Optional[int]:
    """
    Convert a reminder duration into whole minutes.

    Accepts a number (minutes) or a string such as "30", "30m", "2h", "1d".
    The numeric part is floored before the unit is applied, so "1.5h" is 60.
    Returns None when the value is malformed or not a positive duration.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        minutes = math.floor(value)
        return minutes if minutes > 0 else None

    if not isinstance(value, str):
        return None

    match = _DURATION_RE.match(value.strip().lower())
    if not match:
        return None

    number, unit = match.groups()
    minutes = int(number.split(".", 1)[0]) * _UNIT_MINUTES[unit or "m"]
    return minutes if minutes > 0 else None


# ---------------------------------------------------------------------------
# Timezones
# ---------------------------------------------------------------------------

def is_known_timezone(candidate: Any) -> bool:
    if not isinstance(candidate, str) or not candidate.strip():
        return False
    try:
        ZoneInfo(candidate.strip())
        return True
    except (ZoneInfoNotFoundError, ValueError):
        return False


def resolve_timezone(candidate: Any, default: Optional[str] = None) -> str:
    """Return `candidate` if it names a known zone, else the default zone."""
    fallback = default or get_settings().default_timezone
    if is_known_timezone(candidate):
        return candidate.strip()
    if candidate:
        logger.info("Unknown timezone %r, falling back to %s", candidate, fallback)
    return fallback


def _zone(tz_name: str) -> ZoneInfo:
    return ZoneInfo(resolve_timezone(tz_name))


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops offsets) and normalise aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Due instants & display
# ---------------------------------------------------------------------------

def compute_due_instant(minutes: int, tz_name: str, now: Optional[datetime] = None) -> datetime:
    """
    Absolute instant `minutes` after `now`, returned in UTC.

    The starting point is read on the target zone's clock, but the minutes
    are added as elapsed time (via UTC) so a DST change inside the window
    does not move the result.
    """
    local_now = ensure_utc(now or datetime.now(timezone.utc)).astimezone(_zone(tz_name))
    try:
        return local_now.astimezone(timezone.utc) + timedelta(minutes=minutes)
    except OverflowError as e:
        raise InvalidDurationError() from e


def format_for_display(instant: datetime, tz_name: str) -> str:
    """Render as e.g. 'Oct 18, 2026 9:05 PM IST' in the given zone."""
    local = ensure_utc(instant).astimezone(_zone(tz_name))
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{_MONTHS[local.month - 1]} {local.day}, {local.year:04d} "
        f"{hour}:{local.minute:02d} {meridiem} {local.tzname()}"
    )
