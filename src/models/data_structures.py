"""
Data structures for the Preterm Development Core.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from config.settings import MILESTONE_CATEGORIES
from src.models.errors import (
    InvalidDateRange, InvalidMilestoneCategory, InvalidMilestoneRange
)
from src.models.local_time import (
    duration_minutes as minutes_between, ensure_aware, resolve_reference,
    resolve_timezone, round_half_up,
)


def _iso(value):
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class AgeBreakdown:
    years: int
    months: int
    days: int  # remainder after whole calendar months
    total_days: int

    @property
    def weeks(self) -> int:
        return self.total_days // 7

    @property
    def week_days(self) -> int:
        return self.total_days % 7

    def to_dict(self) -> dict:
        return {
            'years': self.years, 'months': self.months, 'days': self.days,
            'weeks': self.weeks, 'week_days': self.week_days,
            'total_days': self.total_days,
        }


@dataclass(frozen=True)
class AgeInfo:
    actual_age_in_days: int
    corrected_age_in_days: int
    gestational_offset_days: int
    actual_age: AgeBreakdown
    corrected_age: AgeBreakdown
    display_form: str          # corrected age, human readable
    actual_display_form: str
    age_category: str
    reference_date: date

    @property
    def correction_pending(self) -> bool:
        """True until the subject reaches the full-term-equivalent date."""
        return self.actual_age_in_days < self.gestational_offset_days

    def to_dict(self) -> dict:
        return {
            'actual_age_in_days': self.actual_age_in_days,
            'corrected_age_in_days': self.corrected_age_in_days,
            'gestational_offset_days': self.gestational_offset_days,
            'actual_age': self.actual_age.to_dict(),
            'corrected_age': self.corrected_age.to_dict(),
            'display_form': self.display_form,
            'actual_display_form': self.actual_display_form,
            'age_category': self.age_category,
            'correction_pending': self.correction_pending,
            'reference_date': self.reference_date.isoformat(),
        }


@dataclass(frozen=True)
class MilestoneDefinition:
    id: str
    title: str
    category: str  # motor | cognitive | social | language
    age_range_min: int
    age_range_max: int
    description: str = ""

    @property
    def target_day(self) -> int:
        return (self.age_range_min + self.age_range_max) // 2

    def check_range(self):
        if self.age_range_min > self.age_range_max:
            raise InvalidMilestoneRange(
                'age_range_min', self.age_range_min,
                f"Milestone '{self.id}' has age_range_min {self.age_range_min} "
                f"> age_range_max {self.age_range_max}"
            )

    def check_category(self):
        if self.category not in MILESTONE_CATEGORIES:
            raise InvalidMilestoneCategory(
                'category', self.category,
                f"Milestone '{self.id}' has unknown category '{self.category}'"
            )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'age_range_min': self.age_range_min,
            'age_range_max': self.age_range_max,
        }


@dataclass
class AchievementRecord:
    subject_id: str
    milestone_id: str
    achieved_at: Optional[datetime] = None
    corrected_age_in_days: Optional[int] = None  # snapshot at achievement

    @property
    def is_achieved(self) -> bool:
        return self.achieved_at is not None

    def to_dict(self) -> dict:
        return {
            'subject_id': self.subject_id,
            'milestone_id': self.milestone_id,
            'achieved_at': _iso(self.achieved_at),
            'corrected_age_in_days': self.corrected_age_in_days,
        }


@dataclass(frozen=True)
class Classification:
    status: str  # completed | in_progress | upcoming | overdue
    days_from_target: int


@dataclass
class ClassifiedMilestone:
    milestone: MilestoneDefinition
    classification: Classification
    achievement: Optional[AchievementRecord] = None

    @property
    def status(self) -> str:
        return self.classification.status

    @property
    def days_from_target(self) -> int:
        return self.classification.days_from_target

    def to_dict(self) -> dict:
        data = self.milestone.to_dict()
        data.update({
            'status': self.status,
            'is_completed': self.status == 'completed',
            'days_from_target': self.days_from_target,
            'achieved_at': _iso(self.achievement.achieved_at)
            if self.achievement else None,
            'corrected_age_at_achievement': self.achievement.corrected_age_in_days
            if self.achievement else None,
        })
        return data


@dataclass
class CategoryProgress:
    category: str
    total: int = 0
    completed: int = 0

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 0
        return int(round_half_up(self.completed * 100 / self.total))

    def to_dict(self) -> dict:
        return {
            'category': self.category,
            'total': self.total,
            'completed': self.completed,
            'percentage': self.percentage,
        }


@dataclass
class ProgressReport:
    corrected_age_in_days: int
    overall_percentage: int
    total: int
    completed_count: int
    by_category: List[CategoryProgress]
    milestones_by_status: Dict[str, List[ClassifiedMilestone]]
    next_milestones: List[ClassifiedMilestone]
    strongest_category: Optional[str] = None
    weakest_category: Optional[str] = None
    recently_completed: List[ClassifiedMilestone] = field(default_factory=list)

    def count(self, status: str) -> int:
        return len(self.milestones_by_status.get(status, []))

    def to_dict(self) -> dict:
        return {
            'corrected_age_in_days': self.corrected_age_in_days,
            'overall': {
                'percentage': self.overall_percentage,
                'total': self.total,
                'completed': self.completed_count,
                'in_progress': self.count('in_progress'),
                'upcoming': self.count('upcoming'),
                'overdue': self.count('overdue'),
            },
            'by_category': [c.to_dict() for c in self.by_category],
            'milestones_by_status': {
                status: [m.to_dict() for m in items]
                for status, items in self.milestones_by_status.items()
            },
            'next_milestones': [m.to_dict() for m in self.next_milestones],
            'strongest_category': self.strongest_category,
            'weakest_category': self.weakest_category,
            'recently_completed': [m.to_dict() for m in self.recently_completed],
        }


@dataclass(frozen=True)
class FeedingRecord:
    timestamp: datetime
    type: str  # breast | formula | solid
    amount_or_duration: str
    subject_id: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class SleepRecord:
    start_time: datetime
    end_time: datetime
    duration_minutes: int  # fixed at intake, not recomputed from start/end
    subject_id: Optional[str] = None
    id: Optional[str] = None

    @property
    def timestamp(self) -> datetime:
        return self.start_time

    @classmethod
    def create(cls, start_time: datetime, end_time: datetime,
               subject_id: str = None, id: str = None, tz=None,
               duration_minutes: int = None) -> 'SleepRecord':
        """Build a record; duration_minutes is derived from start/end when not given."""
        zone = resolve_timezone(tz)
        start = ensure_aware(start_time, zone)
        end = ensure_aware(end_time, zone)
        if end < start:
            raise InvalidDateRange(
                'end_time', end.isoformat(),
                f"Sleep end {end.isoformat()} is before start {start.isoformat()}"
            )
        return cls(start_time=start, end_time=end,
                   duration_minutes=(minutes_between(start, end)
                                     if duration_minutes is None
                                     else duration_minutes),
                   subject_id=subject_id, id=id)


@dataclass
class FeedingDayStats:
    total: int = 0
    breast: int = 0
    formula: int = 0
    solid: int = 0
    total_volume: float = 0.0
    total_duration: float = 0.0


@dataclass
class SleepDayStats:
    total: int = 0
    total_duration: int = 0
    average_duration: int = 0
    longest_sleep: int = 0


@dataclass
class DailyBucket:
    date: date
    feeding: FeedingDayStats = field(default_factory=FeedingDayStats)
    sleep: SleepDayStats = field(default_factory=SleepDayStats)

    def to_dict(self) -> dict:
        return {
            'date': self.date.isoformat(),
            'feeding': vars(self.feeding).copy(),
            'sleep': vars(self.sleep).copy(),
        }


@dataclass(frozen=True)
class TrendVerdict:
    direction: str  # increasing | decreasing | stable
    change: float   # percent, one decimal

    def to_dict(self) -> dict:
        return {'direction': self.direction, 'change': self.change}


@dataclass
class Recommendation:
    code: str
    message: str


@dataclass
class TrendReport:
    window_days: int
    start_date: date
    end_date: date
    daily_series: List[DailyBucket]
    trends: Dict[str, Dict[str, TrendVerdict]]
    summary: dict
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'window_days': self.window_days,
            'date_range': {
                'start': self.start_date.isoformat(),
                'end': self.end_date.isoformat(),
            },
            'daily_series': [b.to_dict() for b in self.daily_series],
            'trends': {
                group: {name: v.to_dict() for name, v in signals.items()}
                for group, signals in self.trends.items()
            },
            'summary': self.summary,
            'recommendations': [vars(r).copy() for r in self.recommendations],
        }


class ChildProfile:
    """A subject's birth data and milestone achievement index."""

    def __init__(self, birth_date, gestational_weeks: int,
                 gestational_days: int = 0, name: str = None,
                 child_id: str = None, timezone: str = None):
        if isinstance(birth_date, str):
            birth_date = date.fromisoformat(birth_date)
        self.birth_date = birth_date
        self.gestational_weeks = gestational_weeks
        self.gestational_days = gestational_days
        self.name = name
        self.child_id = child_id or name
        self.timezone = timezone
        self.achievements: Dict[str, AchievementRecord] = {}

    def age_info(self, reference_instant: datetime = None,
                 age_calculator=None) -> AgeInfo:
        if age_calculator is None:
            from src.models.age_calculator import AgeCalculator
            age_calculator = AgeCalculator(timezone=self.timezone)
        return age_calculator.compute_age(
            self.birth_date, self.gestational_weeks, self.gestational_days,
            reference_instant
        )

    def mark_milestone(self, milestone_id: str, achieved: bool = True,
                       at: datetime = None,
                       age_calculator=None) -> AchievementRecord:
        """Upsert the achievement for a milestone.

        Marking snapshots the corrected age at `at`; un-marking clears both
        the timestamp and the snapshot. At most one record per milestone.
        """
        record = self.achievements.get(milestone_id)
        if record is None:
            record = AchievementRecord(subject_id=self.child_id,
                                       milestone_id=milestone_id)
            self.achievements[milestone_id] = record

        if achieved:
            at = resolve_reference(at, self.timezone)
            info = self.age_info(at, age_calculator)
            record.achieved_at = at
            record.corrected_age_in_days = info.corrected_age_in_days
        else:
            record.achieved_at = None
            record.corrected_age_in_days = None
        return record

    def get_achievement(self, milestone_id: str) -> Optional[AchievementRecord]:
        return self.achievements.get(milestone_id)

    def to_dict(self) -> dict:
        return {
            'child_id': self.child_id,
            'name': self.name,
            'birth_date': self.birth_date.isoformat(),
            'gestational_weeks': self.gestational_weeks,
            'gestational_days': self.gestational_days,
            'timezone': self.timezone,
            'achievement_count': sum(
                1 for r in self.achievements.values() if r.is_achieved
            ),
            'achievements': [r.to_dict() for r in self.achievements.values()],
        }
