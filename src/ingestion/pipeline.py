"""
Record intake pipeline.
Reads feeding / sleep exports and milestone catalogs (CSV) into core records.
"""
import logging
from datetime import datetime
from typing import List, Optional

import pandas as pd

from config.settings import (
    FEEDING_COLUMNS, SLEEP_COLUMNS, FEEDING_TYPES,
)
from src.models.data_structures import (
    FeedingRecord, MilestoneDefinition, SleepRecord
)
from src.models.errors import InvalidMilestoneRange
from src.models.local_time import ensure_aware, resolve_timezone

logger = logging.getLogger(__name__)

MILESTONE_COLUMNS = {
    'ageRangeMin': 'age_range_min',
    'ageRangeMax': 'age_range_max',
}


def read_export(source) -> pd.DataFrame:
    """Read a CSV export with every column kept as text."""
    return pd.read_csv(source, dtype=str, keep_default_na=False)


def _parse_instant(value, zone) -> Optional[datetime]:
    if value is None or str(value).strip() == '':
        return None
    stamp = pd.to_datetime(value, errors='coerce')
    if pd.isna(stamp):
        return None
    return ensure_aware(stamp.to_pydatetime(), zone)


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def transform_feeding(df: pd.DataFrame, tz=None) -> List[FeedingRecord]:
    zone = resolve_timezone(tz)
    df = df.rename(columns=FEEDING_COLUMNS)

    records, dropped = [], 0
    for row in df.to_dict(orient='records'):
        timestamp = _parse_instant(row.get('timestamp'), zone)
        feeding_type = (row.get('type') or '').strip().lower()
        if timestamp is None or feeding_type not in FEEDING_TYPES:
            dropped += 1
            continue
        records.append(FeedingRecord(
            timestamp=timestamp,
            type=feeding_type,
            amount_or_duration=row.get('amount_or_duration') or '',
            subject_id=_clean(row.get('subject_id')),
            id=_clean(row.get('id')),
        ))

    if dropped:
        logger.warning("Dropped %d invalid feeding rows", dropped)
    logger.info("Loaded %d feeding records", len(records))
    return records


def transform_sleep(df: pd.DataFrame, tz=None) -> List[SleepRecord]:
    zone = resolve_timezone(tz)
    df = df.rename(columns=SLEEP_COLUMNS)

    records, dropped = [], 0
    for row in df.to_dict(orient='records'):
        start = _parse_instant(row.get('start_time'), zone)
        end = _parse_instant(row.get('end_time'), zone)
        if start is None or end is None or end < start:
            dropped += 1
            continue
        records.append(SleepRecord.create(
            start, end,
            subject_id=_clean(row.get('subject_id')),
            id=_clean(row.get('id')),
            tz=zone,
        ))

    if dropped:
        logger.warning("Dropped %d invalid sleep rows", dropped)
    logger.info("Loaded %d sleep records", len(records))
    return records


def load_feeding_records(source, tz=None) -> List[FeedingRecord]:
    return transform_feeding(read_export(source), tz)


def load_sleep_records(source, tz=None) -> List[SleepRecord]:
    return transform_sleep(read_export(source), tz)


def _age_bound(row, field: str) -> int:
    raw = row.get(field)
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidMilestoneRange(
            field, raw,
            f"Milestone '{row.get('id')}' has non-integer {field} {raw!r}"
        ) from None


def load_milestone_catalog(source) -> List[MilestoneDefinition]:
    """Load and validate a milestone catalog export.

    Malformed entries raise InvalidMilestoneRange or InvalidMilestoneCategory.
    """
    df = read_export(source).rename(columns=MILESTONE_COLUMNS)
    milestones = []
    for row in df.to_dict(orient='records'):
        milestone = MilestoneDefinition(
            id=row['id'].strip(),
            title=row.get('title', '').strip(),
            description=row.get('description', '').strip(),
            category=row.get('category', '').strip(),
            age_range_min=_age_bound(row, 'age_range_min'),
            age_range_max=_age_bound(row, 'age_range_max'),
        )
        milestone.check_range()
        milestone.check_category()
        milestones.append(milestone)

    logger.info("Loaded %d milestones", len(milestones))
    return milestones
