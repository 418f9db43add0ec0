"""Timezone helpers for bucketing UTC instants into a user's local calendar.

Every conversion between a stored UTC instant and a user's local date or hour goes
through this module so midnight and DST boundaries are handled in one place.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytz

from .errors import ValidationError

DATE_FORMAT = "%Y-%m-%d"


def utcnow() -> datetime:
    """Return the current instant as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are assumed UTC.

    SQLite drops tzinfo on round-trip, so rows read back from it are naive.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_timezone(tz_name: str | None, default: str = "UTC") -> pytz.BaseTzInfo:
    """Return a pytz timezone, falling back to ``default`` for unknown names."""

    try:
        return pytz.timezone(tz_name or default)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(default)


def is_valid_timezone(tz_name: str) -> bool:
    try:
        pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        return False
    return True


def local_datetime(instant: datetime, tz_name: str | None) -> datetime:
    """Convert a UTC instant into the wall-clock time of ``tz_name``."""

    return as_utc(instant).astimezone(resolve_timezone(tz_name))


def local_date(instant: datetime, tz_name: str | None) -> str:
    """Return the ``YYYY-MM-DD`` calendar date of ``instant`` in ``tz_name``."""

    return local_datetime(instant, tz_name).strftime(DATE_FORMAT)


def local_hour(instant: datetime, tz_name: str | None) -> int:
    """Return the local hour (0-23) of ``instant`` in ``tz_name``."""

    return local_datetime(instant, tz_name).hour


def parse_local_date(raw: str) -> date:
    """Parse a ``YYYY-MM-DD`` string, raising ``ValidationError`` when malformed."""

    try:
        return datetime.strptime(raw.strip(), DATE_FORMAT).date()
    except (AttributeError, ValueError) as exc:
        raise ValidationError(
            "date must use the YYYY-MM-DD format", {"date": [str(exc)]}
        ) from exc


def local_day_bounds(day: date | str, tz_name: str | None) -> tuple[datetime, datetime]:
    """Return the half-open UTC range ``[start, end)`` covering a local calendar day.

    Both ends are computed by localizing midnight, so days that are 23 or 25 hours
    long because of a DST shift come out right.
    """

    if isinstance(day, str):
        day = parse_local_date(day)
    tz = resolve_timezone(tz_name)
    start_local = tz.localize(datetime.combine(day, time.min))
    end_local = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def minutes_since_local_midnight(instant: datetime, tz_name: str | None) -> int:
    local = local_datetime(instant, tz_name)
    return local.hour * 60 + local.minute


__all__ = [
    "DATE_FORMAT",
    "as_utc",
    "is_valid_timezone",
    "local_date",
    "local_datetime",
    "local_day_bounds",
    "local_hour",
    "minutes_since_local_midnight",
    "parse_local_date",
    "resolve_timezone",
    "utcnow",
]
