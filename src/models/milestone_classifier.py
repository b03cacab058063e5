"""
Milestone status classification against a child's corrected age.
"""
from typing import Optional

from src.models.data_structures import (
    AchievementRecord, Classification, MilestoneDefinition
)

COMPLETED = 'completed'
IN_PROGRESS = 'in_progress'
UPCOMING = 'upcoming'
OVERDUE = 'overdue'

STATUSES = [COMPLETED, IN_PROGRESS, UPCOMING, OVERDUE]


def days_from_target(corrected_age_in_days: int,
                     milestone: MilestoneDefinition) -> int:
    """Signed distance from the midpoint of the target window."""
    return corrected_age_in_days - milestone.target_day


def classify(corrected_age_in_days: int, milestone: MilestoneDefinition,
             achievement: Optional[AchievementRecord] = None) -> Classification:
    milestone.check_range()
    distance = days_from_target(corrected_age_in_days, milestone)

    # Completion is historical and wins over the current age
    if achievement is not None and achievement.is_achieved:
        status = COMPLETED
    elif corrected_age_in_days > milestone.age_range_max:
        status = OVERDUE
    elif corrected_age_in_days >= milestone.age_range_min:
        status = IN_PROGRESS
    else:
        status = UPCOMING

    return Classification(status=status, days_from_target=distance)
