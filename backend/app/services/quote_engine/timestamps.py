from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ValidationError


def to_utc_from_local(date_str: str, time_str: str, time_zone: str) -> datetime:
    """Interpret ``date_str``/``time_str`` in ``time_zone`` and return UTC."""
    try:
        tz = ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown time zone {time_zone!r}", {"time_zone": "unknown"}) from exc
    try:
        local = datetime.strptime(f"{date_str.strip()} {time_str.strip()}", "%Y-%m-%d %H:%M")
    except ValueError as exc:
        raise ValidationError(
            f"Malformed booking date/time {date_str!r} {time_str!r}; expected YYYY-MM-DD and HH:MM",
            {"scheduled_date": "malformed", "scheduled_time": "malformed"},
        ) from exc
    utc = local.replace(tzinfo=tz).astimezone(timezone.utc)
    # Wall-clock times skipped by a daylight-saving jump do not survive the round trip
    if utc.astimezone(tz).replace(tzinfo=None) != local:
        raise ValidationError(
            f"{date_str} {time_str} does not exist in {time_zone} (daylight saving change)",
            {"scheduled_time": "nonexistent_local_time"},
        )
    return utc


def calculate_booking_timestamps(
    date_str: str,
    time_str: str,
    duration_minutes: int,
    time_zone: str,
) -> Tuple[datetime, datetime]:
    """Return the booking's ``(start_at, end_at)`` in UTC."""
    if duration_minutes < 0:
        raise ValidationError("Booking duration cannot be negative", {"duration": "negative"})
    start_at = to_utc_from_local(date_str, time_str, time_zone)
    return start_at, start_at + timedelta(minutes=duration_minutes)
