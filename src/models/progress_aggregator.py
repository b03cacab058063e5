"""
Milestone progress aggregation.

Classifies a batch of milestones for one corrected age and rolls the
result up into overall and per-category completion, a status breakdown,
and a short ranked list of the milestones to work on next.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional

from config.settings import (
    MILESTONE_CATEGORIES, NEXT_MILESTONE_COUNT, NEXT_MILESTONE_LOOKAHEAD_DAYS,
    RECENT_ACHIEVEMENT_DAYS, RECENT_ACHIEVEMENT_LIMIT,
)
from src.models.data_structures import (
    AchievementRecord, CategoryProgress, ClassifiedMilestone,
    MilestoneDefinition, ProgressReport,
)
from src.models.local_time import (
    ensure_aware, resolve_reference, resolve_timezone, round_half_up
)
from src.models.milestone_classifier import (
    COMPLETED, IN_PROGRESS, UPCOMING, STATUSES, classify
)

logger = logging.getLogger(__name__)


def _ordering_key(milestone: MilestoneDefinition):
    return (milestone.age_range_min, milestone.category, str(milestone.id))


def pick_extreme_categories(by_category: List[CategoryProgress]):
    """(strongest, weakest) by completed count; ties go to the earlier category."""
    strongest = weakest = None
    for progress in by_category:
        if strongest is None or progress.completed > strongest.completed:
            strongest = progress
        if weakest is None or progress.completed < weakest.completed:
            weakest = progress
    return (strongest.category if strongest else None,
            weakest.category if weakest else None)


class ProgressAggregator:
    """Rolls classified milestones up into a ProgressReport."""

    def __init__(self, next_count: int = NEXT_MILESTONE_COUNT,
                 lookahead_days: int = NEXT_MILESTONE_LOOKAHEAD_DAYS,
                 recent_days: int = RECENT_ACHIEVEMENT_DAYS,
                 recent_limit: int = RECENT_ACHIEVEMENT_LIMIT,
                 timezone: str = None):
        self.next_count = next_count
        self.lookahead_days = lookahead_days
        self.recent_days = recent_days
        self.recent_limit = recent_limit
        self.timezone = timezone

    def classify_all(self, corrected_age_in_days: int,
                     milestones: Iterable[MilestoneDefinition],
                     achievement_index: Mapping[str, AchievementRecord]
                     ) -> List[ClassifiedMilestone]:
        classified = []
        for milestone in sorted(milestones, key=_ordering_key):
            milestone.check_category()
            achievement = achievement_index.get(milestone.id)
            classified.append(ClassifiedMilestone(
                milestone=milestone,
                classification=classify(corrected_age_in_days, milestone,
                                        achievement),
                achievement=achievement,
            ))
        return classified

    def next_milestones(self, corrected_age_in_days: int,
                        by_status: Dict[str, List[ClassifiedMilestone]]
                        ) -> List[ClassifiedMilestone]:
        soon = [
            m for m in by_status[UPCOMING]
            if m.milestone.age_range_min - corrected_age_in_days
            <= self.lookahead_days
        ]
        # Stable sort keeps in-progress ahead of upcoming on equal distance
        candidates = by_status[IN_PROGRESS] + soon
        candidates.sort(key=lambda m: abs(m.days_from_target))
        return candidates[:self.next_count]

    def recently_completed(self, completed: List[ClassifiedMilestone],
                           reference_instant: Optional[datetime] = None
                           ) -> List[ClassifiedMilestone]:
        zone = resolve_timezone(self.timezone)
        reference = resolve_reference(reference_instant, zone)
        since = reference - timedelta(days=self.recent_days)

        recent = [
            m for m in completed
            if since <= ensure_aware(m.achievement.achieved_at, zone) <= reference
        ]
        recent.sort(key=lambda m: ensure_aware(m.achievement.achieved_at, zone),
                    reverse=True)
        return recent[:self.recent_limit]

    def aggregate(self, corrected_age_in_days: int,
                  milestones: Iterable[MilestoneDefinition],
                  achievement_index: Mapping[str, AchievementRecord] = None,
                  reference_instant: datetime = None) -> ProgressReport:
        reference = resolve_reference(reference_instant, self.timezone)
        classified = self.classify_all(
            corrected_age_in_days, milestones, achievement_index or {}
        )

        by_status = {status: [] for status in STATUSES}
        by_category = {c: CategoryProgress(category=c) for c in MILESTONE_CATEGORIES}
        for item in classified:
            by_status[item.status].append(item)
            progress = by_category[item.milestone.category]
            progress.total += 1
            if item.status == COMPLETED:
                progress.completed += 1

        total = len(classified)
        completed = len(by_status[COMPLETED])
        overall = int(round_half_up(100 * completed / total)) if total else 0

        categories = [by_category[c] for c in MILESTONE_CATEGORIES]
        strongest, weakest = (pick_extreme_categories(categories)
                              if total else (None, None))

        logger.debug(
            "Progress at %d corrected days: %d/%d completed (%d%%)",
            corrected_age_in_days, completed, total, overall
        )
        return ProgressReport(
            corrected_age_in_days=corrected_age_in_days,
            overall_percentage=overall,
            total=total,
            completed_count=completed,
            by_category=categories,
            milestones_by_status=by_status,
            next_milestones=self.next_milestones(corrected_age_in_days, by_status),
            strongest_category=strongest,
            weakest_category=weakest,
            recently_completed=self.recently_completed(
                by_status[COMPLETED], reference
            ),
        )


def aggregate(corrected_age_in_days: int,
              milestones: Iterable[MilestoneDefinition],
              achievement_index: Mapping[str, AchievementRecord] = None,
              reference_instant: datetime = None) -> ProgressReport:
    return ProgressAggregator().aggregate(
        corrected_age_in_days, milestones, achievement_index, reference_instant
    )
