"""
Period summaries (today / week / month) of feeding, sleep and milestone records.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from config.settings import (
    FEEDING_TYPES, MILESTONE_CATEGORIES, NIGHT_END_HOUR, NIGHT_START_HOUR,
    RECENT_ACHIEVEMENT_LIMIT, SUMMARY_PERIOD_DAYS, VOLUME_FEEDING_TYPES,
    DURATION_FEEDING_TYPES,
)
from src.models.data_structures import (
    AchievementRecord, FeedingRecord, MilestoneDefinition, SleepRecord
)
from src.models.errors import InvalidPeriod
from src.models.local_time import (
    ensure_aware, local_day_range, resolve_reference, resolve_timezone,
    round_half_up,
)
from src.models.trend_analyzer import parse_leading_number

logger = logging.getLogger(__name__)


@dataclass
class PeriodSummary:
    period: str
    start: datetime
    end: datetime
    feeding: dict
    sleep: dict
    milestones: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'period': self.period,
            'date_range': {
                'start': self.start.isoformat(),
                'end': self.end.isoformat(),
            },
            'feeding': self.feeding,
            'sleep': self.sleep,
            'milestones': self.milestones,
        }


def period_bounds(period: str, reference: datetime, tz=None) -> Tuple[datetime, datetime]:
    """Half-open local bounds; multi-day periods run through the end of today."""
    if period not in SUMMARY_PERIOD_DAYS:
        raise InvalidPeriod(
            'period', period,
            f"period must be one of {sorted(SUMMARY_PERIOD_DAYS)}, got {period!r}"
        )
    today_start, today_end = local_day_range(reference.date(), tz)
    if period == 'today':
        return today_start, today_end
    first_day = (reference - timedelta(days=SUMMARY_PERIOD_DAYS[period])).date()
    start, _ = local_day_range(first_day, tz)
    return start, today_end


def is_night_sleep(record: SleepRecord, tz=None) -> bool:
    zone = resolve_timezone(tz)
    start_hour = ensure_aware(record.start_time, zone).astimezone(zone).hour
    end_hour = ensure_aware(record.end_time, zone).astimezone(zone).hour
    return start_hour >= NIGHT_START_HOUR or end_hour <= NIGHT_END_HOUR


def summarize_feeding(records: List[FeedingRecord]) -> dict:
    records = sorted(records, key=lambda r: r.timestamp, reverse=True)
    by_type = {t: sum(1 for r in records if r.type == t) for t in FEEDING_TYPES}

    total_volume = sum(parse_leading_number(r.amount_or_duration)
                       for r in records if r.type in VOLUME_FEEDING_TYPES)
    total_duration = sum(parse_leading_number(r.amount_or_duration)
                         for r in records if r.type in DURATION_FEEDING_TYPES)

    average_interval = 0
    if len(records) > 1:
        stamps = np.array([r.timestamp.timestamp() for r in records])
        gaps = -np.diff(stamps) / 60.0
        average_interval = int(round_half_up(float(gaps.mean())))

    return {
        'total': len(records),
        'by_type': by_type,
        'total_volume': total_volume,
        'total_duration': total_duration,
        'average_interval': average_interval,
        'last_feeding_time': records[0].timestamp.isoformat() if records else None,
    }


def summarize_sleep(records: List[SleepRecord], tz=None) -> dict:
    records = sorted(records, key=lambda r: r.start_time, reverse=True)
    durations = [r.duration_minutes for r in records]
    total_duration = sum(durations)
    night = sum(r.duration_minutes for r in records if is_night_sleep(r, tz))

    return {
        'total': len(records),
        'total_duration': total_duration,
        'average_duration': int(round_half_up(total_duration / len(records)))
        if records else 0,
        'longest_sleep': max(durations) if durations else 0,
        'shortest_sleep': min(durations) if durations else 0,
        'last_sleep_time': records[0].end_time.isoformat() if records else None,
        'night_sleep_duration': night,
        'day_sleep_duration': total_duration - night,
    }


def summarize_milestones(achievements: Iterable[AchievementRecord],
                         catalog: Mapping[str, MilestoneDefinition],
                         start: datetime, end: datetime, tz=None) -> dict:
    zone = resolve_timezone(tz)
    done = [
        a for a in achievements
        if a.is_achieved and start <= ensure_aware(a.achieved_at, zone) < end
    ]
    done.sort(key=lambda a: ensure_aware(a.achieved_at, zone), reverse=True)

    by_category = {c: 0 for c in MILESTONE_CATEGORIES}
    for record in done:
        milestone = catalog.get(record.milestone_id)
        if milestone is not None and milestone.category in by_category:
            by_category[milestone.category] += 1

    recent = []
    for record in done[:RECENT_ACHIEVEMENT_LIMIT]:
        milestone = catalog.get(record.milestone_id)
        recent.append({
            'milestone_id': record.milestone_id,
            'title': milestone.title if milestone else None,
            'category': milestone.category if milestone else None,
            'achieved_at': record.achieved_at.isoformat(),
            'corrected_age_at_achievement': record.corrected_age_in_days,
        })

    return {'completed': len(done), 'by_category': by_category, 'recent': recent}


def summarize_period(feeding_records: Iterable[FeedingRecord] = (),
                     sleep_records: Iterable[SleepRecord] = (),
                     achievements: Iterable[AchievementRecord] = (),
                     milestones: Iterable[MilestoneDefinition] = (),
                     period: str = 'today',
                     reference_instant: datetime = None,
                     tz=None) -> PeriodSummary:
    zone = resolve_timezone(tz)
    reference = resolve_reference(reference_instant, zone)
    start, end = period_bounds(period, reference, zone)

    def in_range(instant: Optional[datetime]) -> bool:
        return instant is not None and start <= ensure_aware(instant, zone) < end

    feeding = [
        replace(r, timestamp=ensure_aware(r.timestamp, zone))
        for r in feeding_records if in_range(r.timestamp)
    ]
    sleep = [
        replace(r, start_time=ensure_aware(r.start_time, zone),
                end_time=ensure_aware(r.end_time, zone))
        for r in sleep_records if in_range(r.start_time)
    ]
    catalog: Dict[str, MilestoneDefinition] = {m.id: m for m in milestones}

    logger.debug("Summarizing %s: %d feedings, %d sleeps",
                 period, len(feeding), len(sleep))
    return PeriodSummary(
        period=period,
        start=start,
        end=end,
        feeding=summarize_feeding(feeding),
        sleep=summarize_sleep(sleep, zone),
        milestones=summarize_milestones(achievements, catalog, start, end, zone),
    )
