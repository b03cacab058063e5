"""
Local-calendar helpers shared by the age, progress and trend engines.

All instants are handled timezone-aware. Naive datetimes coming from a
caller are read as wall-clock time in the subject's timezone.
"""
import math
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pandas as pd

from config.settings import DEFAULT_TIMEZONE
from src.models.errors import InvalidTimezone


def resolve_timezone(tz=None) -> ZoneInfo:
    if tz is None:
        return ZoneInfo(DEFAULT_TIMEZONE)
    if isinstance(tz, ZoneInfo):
        return tz
    try:
        return ZoneInfo(str(tz))
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidTimezone('timezone', str(tz),
                              f"Unknown timezone {tz!r}") from None


def ensure_aware(instant: datetime, tz: ZoneInfo) -> datetime:
    if instant.tzinfo is None or instant.utcoffset() is None:
        return instant.replace(tzinfo=tz)
    return instant


def resolve_reference(reference_instant: datetime = None, tz=None) -> datetime:
    """Return the reference instant in local time, capturing 'now' once."""
    zone = resolve_timezone(tz)
    if reference_instant is None:
        return datetime.now(zone)
    return ensure_aware(reference_instant, zone).astimezone(zone)


def local_date(instant: datetime, tz=None) -> date:
    zone = resolve_timezone(tz)
    return ensure_aware(instant, zone).astimezone(zone).date()


def local_day_range(day: date, tz=None) -> Tuple[datetime, datetime]:
    """Half-open [start, end) bounds of a local calendar day."""
    zone = resolve_timezone(tz)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start, end


def day_keys(end_day: date, days: int) -> List[date]:
    """`days` consecutive calendar dates ending at `end_day`, oldest first."""
    return [end_day - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def bucket_dates(instants: Iterable[datetime], tz=None) -> pd.Series:
    """Map each instant to the local calendar date it falls on.

    A timestamp at exactly local midnight belongs to the day it starts.
    """
    zone = resolve_timezone(tz)
    aware = [ensure_aware(i, zone).astimezone(zone) for i in instants]
    if not aware:
        return pd.Series([], dtype=object)
    stamps = pd.to_datetime(pd.Series(aware), utc=True)
    return stamps.dt.tz_convert(zone.key).dt.date


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, rounded half-up."""
    seconds = (end - start).total_seconds()
    return int(round_half_up(seconds / 60.0))
