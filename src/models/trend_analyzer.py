"""
Feeding and sleep trend analysis over a trailing window of local days.

Records are bucketed by the subject's local calendar day, aggregated into
per-day statistics, and each signal gets a trend verdict by comparing the
mean of the last three days with the mean of the three days before them.
"""
import logging
import re
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd

from config.settings import (
    DEFAULT_WINDOW_DAYS, MIN_WINDOW_DAYS, MAX_WINDOW_DAYS,
    TREND_SUBWINDOW_DAYS, TREND_INCREASING_THRESHOLD_PCT,
    TREND_DECREASING_THRESHOLD_PCT, FEEDING_TYPES, VOLUME_FEEDING_TYPES,
    DURATION_FEEDING_TYPES, FEEDS_PER_DAY_LOW, FEEDS_PER_DAY_HIGH,
    FEEDING_DROP_ALERT_PCT, SLEEP_HOURS_LOW, SLEEP_HOURS_HIGH,
    SHORT_SLEEP_MINUTES, SLEEP_DROP_ALERT_PCT,
)
from src.models.data_structures import (
    DailyBucket, FeedingDayStats, FeedingRecord, Recommendation,
    SleepDayStats, SleepRecord, TrendReport, TrendVerdict,
)
from src.models.errors import InvalidWindow
from src.models.local_time import (
    bucket_dates, day_keys, resolve_reference, resolve_timezone, round_half_up
)

logger = logging.getLogger(__name__)

INCREASING = 'increasing'
DECREASING = 'decreasing'
STABLE = 'stable'

_LEADING_NUMBER = re.compile(r'^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


def parse_leading_number(text) -> float:
    """Numeric prefix of a free-form magnitude ("120ml" -> 120.0).

    Strings without a numeric prefix read as 0. This is lossy by nature.
    """
    if text is None:
        return 0.0
    match = _LEADING_NUMBER.match(str(text))
    if not match:
        return 0.0
    return float(match.group(0))


def validate_window(window_days):
    if isinstance(window_days, bool) or not isinstance(window_days, int) or not (
            MIN_WINDOW_DAYS <= window_days <= MAX_WINDOW_DAYS):
        raise InvalidWindow(
            'window_days', window_days,
            f"window_days must be an integer in "
            f"[{MIN_WINDOW_DAYS}, {MAX_WINDOW_DAYS}], got {window_days!r}"
        )


def trend_verdict(values: Sequence[float],
                  span: int = TREND_SUBWINDOW_DAYS) -> TrendVerdict:
    """Compare the last `span` values with the `span` values before them."""
    if len(values) < 2:
        return TrendVerdict(direction=STABLE, change=0.0)

    recent = list(values[-span:])
    earlier = list(values[-2 * span:-span])
    if not recent or not earlier:
        return TrendVerdict(direction=STABLE, change=0.0)

    recent_avg = float(np.mean(recent))
    earlier_avg = float(np.mean(earlier))
    change = (recent_avg - earlier_avg) / max(earlier_avg, 1.0) * 100

    if change > TREND_INCREASING_THRESHOLD_PCT:
        direction = INCREASING
    elif change < TREND_DECREASING_THRESHOLD_PCT:
        direction = DECREASING
    else:
        direction = STABLE
    return TrendVerdict(direction=direction, change=round_half_up(change, 1))


def most_common_feeding_type(series: List[DailyBucket]) -> str:
    totals = {t: sum(getattr(b.feeding, t) for b in series) for t in FEEDING_TYPES}
    # breast wins ties, then formula
    best = FEEDING_TYPES[0]
    for feeding_type in FEEDING_TYPES[1:]:
        if totals[feeding_type] > totals[best]:
            best = feeding_type
    return best


def build_recommendations(summary: dict,
                          trends: Dict[str, Dict[str, TrendVerdict]]
                          ) -> List[Recommendation]:
    recs = []
    feeding = summary['feeding']
    sleep = summary['sleep']
    feed_freq = trends['feeding']['frequency']
    sleep_total = trends['sleep']['total_duration']

    if feeding['avg_per_day'] < FEEDS_PER_DAY_LOW:
        recs.append(Recommendation(
            'feeding_frequency_low',
            f"Fewer than {FEEDS_PER_DAY_LOW} feeds per day; newborns usually "
            f"feed {FEEDS_PER_DAY_LOW}-8 times a day"))
    elif feeding['avg_per_day'] > FEEDS_PER_DAY_HIGH:
        recs.append(Recommendation(
            'feeding_frequency_high',
            "Feeding frequency is high; consider longer intervals or ask a doctor"))

    if feed_freq.direction == DECREASING and feed_freq.change < FEEDING_DROP_ALERT_PCT:
        recs.append(Recommendation(
            'feeding_frequency_dropping',
            "Feeding frequency dropped noticeably; keep an eye on growth"))

    if sleep['avg_hours_per_day'] < SLEEP_HOURS_LOW:
        recs.append(Recommendation(
            'sleep_hours_low',
            f"Less sleep than usual; infants typically sleep "
            f"{SLEEP_HOURS_LOW}-16 hours a day"))
    elif sleep['avg_hours_per_day'] > SLEEP_HOURS_HIGH:
        recs.append(Recommendation(
            'sleep_hours_high',
            "Long daily sleep; watch alertness and development"))

    if sleep['avg_sleep_duration'] < SHORT_SLEEP_MINUTES:
        recs.append(Recommendation(
            'sleep_sessions_short',
            "Sleep sessions are short; try improving the sleep environment"))

    if sleep_total.direction == DECREASING and sleep_total.change < SLEEP_DROP_ALERT_PCT:
        recs.append(Recommendation(
            'sleep_duration_dropping',
            "Total sleep is trending down; watch for signs of discomfort"))

    if not recs:
        recs.append(Recommendation(
            'on_track', "Records look good; keep the current routine"))
    return recs


class TrendAnalyzer:
    """Daily bucketing and trend verdicts for feeding and sleep records."""

    def __init__(self, timezone: str = None):
        self.timezone = timezone

    def _feeding_stats(self, records: Sequence[FeedingRecord],
                       days) -> Dict:
        if not records:
            return {}
        zone = resolve_timezone(self.timezone)
        df = pd.DataFrame({
            'date': bucket_dates([r.timestamp for r in records], zone),
            'type': [r.type for r in records],
            'value': [parse_leading_number(r.amount_or_duration) for r in records],
        })
        df = df[df['date'].isin(days)]
        if df.empty:
            return {}

        counts = df.groupby(['date', 'type']).size().unstack(fill_value=0)
        volume = df[df['type'].isin(VOLUME_FEEDING_TYPES)].groupby('date')['value'].sum()
        duration = df[df['type'].isin(DURATION_FEEDING_TYPES)].groupby('date')['value'].sum()
        totals = df.groupby('date').size()

        stats = {}
        for day, total in totals.items():
            by_type = counts.loc[day]
            stats[day] = FeedingDayStats(
                total=int(total),
                breast=int(by_type.get('breast', 0)),
                formula=int(by_type.get('formula', 0)),
                solid=int(by_type.get('solid', 0)),
                total_volume=float(volume.get(day, 0.0)),
                total_duration=float(duration.get(day, 0.0)),
            )
        return stats

    def _sleep_stats(self, records: Sequence[SleepRecord], days) -> Dict:
        if not records:
            return {}
        zone = resolve_timezone(self.timezone)
        df = pd.DataFrame({
            'date': bucket_dates([r.start_time for r in records], zone),
            'duration': [int(r.duration_minutes or 0) for r in records],
        })
        df = df[df['date'].isin(days)]
        if df.empty:
            return {}

        grouped = df.groupby('date')['duration'].agg(['count', 'sum', 'max'])
        stats = {}
        for day, row in grouped.iterrows():
            count = int(row['count'])
            total = int(row['sum'])
            stats[day] = SleepDayStats(
                total=count,
                total_duration=total,
                average_duration=int(round_half_up(total / count)),
                longest_sleep=int(row['max']),
            )
        return stats

    def daily_series(self, feeding_records: Sequence[FeedingRecord],
                     sleep_records: Sequence[SleepRecord],
                     window_days: int,
                     reference_instant: datetime = None) -> List[DailyBucket]:
        validate_window(window_days)
        reference = resolve_reference(reference_instant, self.timezone)
        keys = day_keys(reference.date(), window_days)

        feeding = self._feeding_stats(list(feeding_records), keys)
        sleep = self._sleep_stats(list(sleep_records), keys)
        return [
            DailyBucket(
                date=day,
                feeding=feeding.get(day, FeedingDayStats()),
                sleep=sleep.get(day, SleepDayStats()),
            )
            for day in keys
        ]

    @staticmethod
    def summarize(series: List[DailyBucket]) -> dict:
        days = len(series)

        def per_day(values):
            return round_half_up(float(np.sum(values)) / days, 1)

        return {
            'feeding': {
                'avg_per_day': per_day([b.feeding.total for b in series]),
                'avg_volume_per_day': per_day([b.feeding.total_volume for b in series]),
                'avg_duration_per_day': per_day([b.feeding.total_duration for b in series]),
                'most_common_type': most_common_feeding_type(series),
            },
            'sleep': {
                'avg_per_day': per_day([b.sleep.total for b in series]),
                'avg_hours_per_day': round_half_up(
                    float(np.sum([b.sleep.total_duration for b in series])) / days / 60, 1
                ),
                'avg_sleep_duration': per_day([b.sleep.average_duration for b in series]),
                'longest_sleep': int(max(b.sleep.longest_sleep for b in series)),
            },
        }

    def analyze(self, feeding_records: Iterable[FeedingRecord] = (),
                sleep_records: Iterable[SleepRecord] = (),
                window_days: int = DEFAULT_WINDOW_DAYS,
                reference_instant: datetime = None) -> TrendReport:
        validate_window(window_days)
        reference = resolve_reference(reference_instant, self.timezone)
        series = self.daily_series(feeding_records, sleep_records,
                                   window_days, reference)

        trends = {
            'feeding': {
                'frequency': trend_verdict([b.feeding.total for b in series]),
                'volume': trend_verdict([b.feeding.total_volume for b in series]),
                'duration': trend_verdict([b.feeding.total_duration for b in series]),
            },
            'sleep': {
                'frequency': trend_verdict([b.sleep.total for b in series]),
                'total_duration': trend_verdict([b.sleep.total_duration for b in series]),
                'average_duration': trend_verdict([b.sleep.average_duration for b in series]),
            },
        }
        summary = self.summarize(series)

        logger.debug(
            "Trends over %d days ending %s: feeding=%s sleep=%s",
            window_days, series[-1].date,
            trends['feeding']['frequency'].direction,
            trends['sleep']['total_duration'].direction,
        )
        return TrendReport(
            window_days=window_days,
            start_date=series[0].date,
            end_date=series[-1].date,
            daily_series=series,
            trends=trends,
            summary=summary,
            recommendations=build_recommendations(summary, trends),
        )


def analyze(records: Iterable, window_days: int = DEFAULT_WINDOW_DAYS,
            reference_instant: datetime = None, tz=None) -> TrendReport:
    """Analyze a mixed stream of feeding and sleep records."""
    feeding, sleep = [], []
    for record in records:
        if isinstance(record, SleepRecord):
            sleep.append(record)
        else:
            feeding.append(record)
    return TrendAnalyzer(timezone=tz).analyze(
        feeding, sleep, window_days, reference_instant
    )
