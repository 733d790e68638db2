"""Calendar helpers: local date keys, legacy record parsing, Sunday-based weeks."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Iterable, Optional

DATE_KEY_FORMAT = "%Y-%m-%d"
_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_local_naive(value: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Express ``value`` as a naive wall-clock time in the local zone.

    Naive inputs are taken to already be local. ``tz=None`` means the
    system zone.
    """

    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def local_date_key(instant: datetime | date, tz: Optional[tzinfo] = None) -> str:
    """Return the "YYYY-MM-DD" key of the local calendar day containing ``instant``."""

    if isinstance(instant, datetime):
        return to_local_naive(instant, tz).strftime(DATE_KEY_FORMAT)
    return instant.strftime(DATE_KEY_FORMAT)


def _from_epoch(seconds: float, tz: Optional[tzinfo]) -> Optional[datetime]:
    try:
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return to_local_naive(moment, tz)


def _legacy_seconds(raw: Any) -> Optional[float]:
    """Pull epoch seconds out of a legacy timestamp record, if it is one."""

    if isinstance(raw, Mapping):
        seconds = raw.get("seconds", raw.get("_seconds"))
        nanos = raw.get("nanoseconds", raw.get("_nanoseconds", 0))
    else:
        seconds = getattr(raw, "seconds", None)
        nanos = getattr(raw, "nanoseconds", 0)
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    if isinstance(nanos, bool) or not isinstance(nanos, (int, float)):
        nanos = 0
    return float(seconds) + float(nanos) / 1e9


def parse_completion_record(raw: Any, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Decode one stored completion record into a naive local datetime.

    Accepted encodings: a DateKey string, an ISO-8601 datetime string, a
    legacy ``{"seconds": .., "nanoseconds": ..}`` record (mapping or object),
    a bare epoch number, a ``datetime`` or a ``date``. Anything else yields
    ``None``; this function never raises.
    """

    if raw is None or isinstance(raw, (bool, timedelta)):
        return None
    if isinstance(raw, datetime):
        return to_local_naive(raw, tz)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min)
    if isinstance(raw, (int, float)):
        return _from_epoch(float(raw), tz)
    if isinstance(raw, str):
        text = raw.strip()
        try:
            if _DATE_KEY_RE.match(text):
                return datetime.strptime(text, DATE_KEY_FORMAT)
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return to_local_naive(datetime.fromisoformat(text), tz)
        except ValueError:
            return None
    seconds = _legacy_seconds(raw)
    if seconds is None:
        return None
    return _from_epoch(seconds, tz)


def completion_day(raw: Any, tz: Optional[tzinfo] = None) -> Optional[date]:
    """Calendar day of a completion record, or None when unparseable."""

    parsed = parse_completion_record(raw, tz)
    return parsed.date() if parsed is not None else None


def has_completion_on(
    records: Iterable[Any] | None, date_key: str, tz: Optional[tzinfo] = None
) -> bool:
    """True when any record, whatever its encoding, falls on ``date_key``."""

    for record in records or ():
        if record == date_key:
            return True
        day = completion_day(record, tz)
        if day is not None and day.strftime(DATE_KEY_FORMAT) == date_key:
            return True
    return False


def as_local_day(value: datetime | date, tz: Optional[tzinfo] = None) -> date:
    if isinstance(value, datetime):
        return to_local_naive(value, tz).date()
    return value


def completion_days(
    records: Iterable[Any] | None,
    *,
    since: datetime | date | None = None,
    tz: Optional[tzinfo] = None,
) -> set[date]:
    """Parse ``records`` into a set of calendar days.

    Unparseable records are skipped. With ``since``, days before that
    calendar day are dropped.
    """

    floor = as_local_day(since, tz) if since is not None else None
    days: set[date] = set()
    for record in records or ():
        day = completion_day(record, tz)
        if day is None:
            continue
        if floor is not None and day < floor:
            continue
        days.add(day)
    return days


def week_start(day: datetime | date) -> date:
    """Sunday of the week containing ``day``."""

    if isinstance(day, datetime):
        day = day.date()
    # Monday=0 .. Sunday=6 -> days elapsed since Sunday
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_bounds(instant: datetime | date) -> tuple[datetime, datetime]:
    """Return (Sunday 00:00:00, Saturday 23:59:59) for the week containing ``instant``."""

    start = week_start(instant)
    end = start + timedelta(days=6)
    return datetime.combine(start, time.min), datetime.combine(end, time(23, 59, 59))


__all__ = [
    "DATE_KEY_FORMAT",
    "as_local_day",
    "completion_day",
    "completion_days",
    "has_completion_on",
    "local_date_key",
    "parse_completion_record",
    "to_local_naive",
    "week_bounds",
    "week_start",
]
