"""
Corrected-age engine for preterm infants.

Corrected age subtracts the days a child was born before full term
(40 weeks = 280 days) from the chronological age, and is floored at zero
until the full-term-equivalent date is reached.
"""
import calendar
import logging
import numbers
from datetime import date, datetime, timedelta
from typing import Tuple

from config.settings import (
    FULL_TERM_DAYS, MIN_GESTATIONAL_WEEKS, MAX_GESTATIONAL_WEEKS,
    MAX_GESTATIONAL_EXTRA_DAYS, AGE_CATEGORIES, AGE_CATEGORY_OLDEST,
)
from src.models.data_structures import AgeBreakdown, AgeInfo
from src.models.errors import InvalidDateRange, InvalidGestationalAge
from src.models.local_time import local_date, resolve_reference

logger = logging.getLogger(__name__)

# =============================================================================
# Display vocabulary
# =============================================================================

AGE_UNITS = {
    'en': {
        'year': ('year', 'years'), 'month': ('month', 'months'),
        'week': ('week', 'weeks'), 'day': ('day', 'days'),
        'sep': ' ',
    },
    'zh': {
        'year': ('岁', '岁'), 'month': ('个月', '个月'),
        'week': ('周', '周'), 'day': ('天', '天'),
        'sep': '',
    },
}


def _is_whole(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def validate_gestational_age(weeks, days):
    if not _is_whole(weeks) or not (
            MIN_GESTATIONAL_WEEKS <= weeks <= MAX_GESTATIONAL_WEEKS):
        raise InvalidGestationalAge(
            'gestational_weeks', weeks,
            f"gestational_weeks must be an integer in "
            f"[{MIN_GESTATIONAL_WEEKS}, {MAX_GESTATIONAL_WEEKS}], got {weeks!r}"
        )
    if not _is_whole(days) or not (0 <= days <= MAX_GESTATIONAL_EXTRA_DAYS):
        raise InvalidGestationalAge(
            'gestational_days', days,
            f"gestational_days must be an integer in "
            f"[0, {MAX_GESTATIONAL_EXTRA_DAYS}], got {days!r}"
        )


def gestational_offset(weeks: int, days: int = 0) -> int:
    """Days born before full term; zero for term and post-term births."""
    return max(0, FULL_TERM_DAYS - (weeks * 7 + days))


def _add_months(start: date, months: int) -> date:
    year = start.year + (start.month - 1 + months) // 12
    month = (start.month - 1 + months) % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calendar_breakdown(start: date, end: date) -> AgeBreakdown:
    """Whole calendar years/months between two dates plus remaining days."""
    if end <= start:
        return AgeBreakdown(years=0, months=0, days=0, total_days=0)
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    anchor = _add_months(start, months)
    return AgeBreakdown(
        years=months // 12,
        months=months % 12,
        days=(end - anchor).days,
        total_days=(end - start).days,
    )


def _unit(count: int, unit: str, locale: str) -> str:
    words = AGE_UNITS[locale][unit]
    label = words[0] if count == 1 else words[1]
    if locale == 'en':
        return f"{count} {label}"
    return f"{count}{label}"


def format_age(breakdown: AgeBreakdown, locale: str = 'en') -> str:
    """Human-readable age.

    Under one month reads as weeks + days, under one year as months + days,
    and from one year as years + months.
    """
    if locale not in AGE_UNITS:
        locale = 'en'
    sep = AGE_UNITS[locale]['sep']

    if breakdown.years == 0 and breakdown.months == 0:
        parts = []
        if breakdown.weeks:
            parts.append(_unit(breakdown.weeks, 'week', locale))
        if breakdown.week_days or not parts:
            parts.append(_unit(breakdown.week_days, 'day', locale))
    elif breakdown.years == 0:
        parts = [_unit(breakdown.months, 'month', locale)]
        if breakdown.days:
            parts.append(_unit(breakdown.days, 'day', locale))
    else:
        parts = [_unit(breakdown.years, 'year', locale)]
        if breakdown.months:
            parts.append(_unit(breakdown.months, 'month', locale))
    return sep.join(parts)


def age_category(corrected_age_in_days: int) -> str:
    for upper, label in AGE_CATEGORIES:
        if corrected_age_in_days < upper:
            return label
    return AGE_CATEGORY_OLDEST


class AgeCalculator:
    """Converts birth data and a reference instant into actual and corrected age."""

    def __init__(self, timezone: str = None, locale: str = 'en'):
        self.timezone = timezone
        self.locale = locale

    def _resolve_dates(self, birth_date,
                       reference_instant: datetime) -> Tuple[date, date]:
        reference = resolve_reference(reference_instant, self.timezone)
        if isinstance(birth_date, str):
            birth_date = date.fromisoformat(birth_date)
        elif isinstance(birth_date, datetime):
            birth_date = local_date(birth_date, self.timezone)
        return birth_date, reference.date()

    def compute_age(self, birth_date, gestational_weeks: int,
                    gestational_days: int = 0,
                    reference_instant: datetime = None) -> AgeInfo:
        validate_gestational_age(gestational_weeks, gestational_days)
        birth, today = self._resolve_dates(birth_date, reference_instant)
        if birth > today:
            raise InvalidDateRange(
                'birth_date', birth.isoformat(),
                f"birth_date {birth.isoformat()} is after the reference date "
                f"{today.isoformat()}"
            )

        actual_days = (today - birth).days
        offset = gestational_offset(gestational_weeks, gestational_days)
        corrected_days = max(0, actual_days - offset)

        actual = calendar_breakdown(birth, today)
        corrected = calendar_breakdown(birth + timedelta(days=offset), today)

        logger.debug(
            "Age on %s: actual=%d corrected=%d offset=%d",
            today, actual_days, corrected_days, offset
        )
        return AgeInfo(
            actual_age_in_days=actual_days,
            corrected_age_in_days=corrected_days,
            gestational_offset_days=offset,
            actual_age=actual,
            corrected_age=corrected,
            display_form=format_age(corrected, self.locale),
            actual_display_form=format_age(actual, self.locale),
            age_category=age_category(corrected_days),
            reference_date=today,
        )


def compute_age(birth_date, gestational_weeks: int, gestational_days: int = 0,
                reference_instant: datetime = None, tz=None,
                locale: str = 'en') -> AgeInfo:
    return AgeCalculator(timezone=tz, locale=locale).compute_age(
        birth_date, gestational_weeks, gestational_days, reference_instant
    )
