"""
Tests for milestone classification, catalog selection and progress roll-up.
Run: pytest tests/test_milestones.py -v
"""
import random
from datetime import datetime, timedelta, timezone

import pytest

from src.models.data_structures import AchievementRecord, MilestoneDefinition
from src.models.errors import InvalidMilestoneCategory, InvalidMilestoneRange
from src.models.milestone_catalog import load_default_catalog, select_relevant
from src.models.milestone_classifier import (
    COMPLETED, IN_PROGRESS, OVERDUE, UPCOMING, classify, days_from_target,
)
from src.models.progress_aggregator import ProgressAggregator, aggregate

REF = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def milestone(mid, lo, hi, category="motor"):
    return MilestoneDefinition(id=mid, title=mid.upper(), category=category,
                               age_range_min=lo, age_range_max=hi)


def achieved(mid, at=REF, corrected=None):
    return AchievementRecord(subject_id="c1", milestone_id=mid,
                             achieved_at=at, corrected_age_in_days=corrected)


class TestClassifier:

    def test_overdue_distance(self):
        result = classify(300, milestone("a", 180, 270))
        assert result.status == OVERDUE
        assert result.days_from_target == 75

    @pytest.mark.parametrize("age,status", [
        (179, UPCOMING), (180, IN_PROGRESS), (270, IN_PROGRESS), (271, OVERDUE),
    ])
    def test_window_boundaries(self, age, status):
        assert classify(age, milestone("a", 180, 270)).status == status

    def test_status_never_goes_backwards(self):
        order = [UPCOMING, IN_PROGRESS, OVERDUE]
        m = milestone("a", 60, 120)
        ranks = [order.index(classify(age, m).status) for age in range(0, 400)]
        assert ranks == sorted(ranks)

    def test_completed_wins_over_age(self):
        result = classify(10, milestone("a", 180, 270), achieved("a"))
        assert result.status == COMPLETED
        assert result.days_from_target == -215

    def test_unmarked_achievement_is_not_completed(self):
        record = AchievementRecord(subject_id="c1", milestone_id="a")
        assert classify(200, milestone("a", 180, 270), record).status == IN_PROGRESS

    def test_target_uses_floor_midpoint(self):
        assert days_from_target(30, milestone("a", 0, 61)) == 0

    def test_single_day_window(self):
        m = milestone("a", 90, 90)
        assert classify(90, m).status == IN_PROGRESS
        assert classify(91, m).status == OVERDUE

    def test_invalid_range(self):
        with pytest.raises(InvalidMilestoneRange) as exc:
            classify(100, milestone("bad", 200, 100))
        assert exc.value.field == "age_range_min"


class TestCatalog:

    def test_default_catalog(self):
        catalog = load_default_catalog()
        assert len(catalog) == 32
        assert len({m.id for m in catalog}) == 32
        for m in catalog:
            m.check_range()
            m.check_category()

    def test_select_relevant_window(self):
        relevant = select_relevant(load_default_catalog(), 100)
        ids = {m.id for m in relevant}
        assert len(relevant) == 15
        assert "m001" in ids and "m015" in ids
        assert "m016" not in ids


class TestProgressAggregator:

    @pytest.fixture
    def milestones(self):
        return [
            milestone("a", 0, 60, "motor"),
            milestone("b", 60, 120, "cognitive"),
            milestone("c", 90, 150, "social"),
            milestone("d", 200, 300, "language"),
            milestone("e", 30, 90, "motor"),
        ]

    def test_empty_set(self):
        report = aggregate(100, [])
        assert report.overall_percentage == 0
        assert report.total == 0
        assert all(c.total == 0 and c.percentage == 0 for c in report.by_category)
        assert report.strongest_category is None
        assert report.weakest_category is None
        assert report.next_milestones == []

    def test_statuses_and_percentages(self, milestones):
        report = aggregate(100, milestones, {"a": achieved("a")})
        assert report.total == 5
        assert report.completed_count == 1
        assert report.overall_percentage == 20
        assert report.count(COMPLETED) == 1
        assert report.count(IN_PROGRESS) == 2
        assert report.count(UPCOMING) == 1
        assert report.count(OVERDUE) == 1
        motor = next(c for c in report.by_category if c.category == "motor")
        assert (motor.total, motor.completed, motor.percentage) == (2, 1, 50)
        assert sum(c.total for c in report.by_category) == report.total

    def test_strongest_and_weakest_ties(self, milestones):
        report = aggregate(100, milestones, {"a": achieved("a")})
        assert report.strongest_category == "motor"
        assert report.weakest_category == "cognitive"

    def test_next_milestones_ranking(self, milestones):
        milestones.append(milestone("f", 110, 130, "language"))
        report = aggregate(100, milestones, {"a": achieved("a")})
        assert [m.milestone.id for m in report.next_milestones] == ["b", "c", "f"]
        assert report.overall_percentage == 17

    def test_far_upcoming_excluded_from_next(self, milestones):
        report = aggregate(100, milestones, {"a": achieved("a")})
        assert "d" not in [m.milestone.id for m in report.next_milestones]

    def test_half_up_rounding(self):
        items = [milestone(f"m{i}", 0, 60) for i in range(8)]
        report = aggregate(100, items, {"m0": achieved("m0")})
        assert report.overall_percentage == 13

    def test_input_order_does_not_matter(self, milestones):
        index = {"a": achieved("a")}
        expected = aggregate(100, milestones, index, REF).to_dict()
        shuffled = list(milestones)
        random.Random(7).shuffle(shuffled)
        assert aggregate(100, shuffled, index, REF).to_dict() == expected

    def test_recently_completed(self):
        items = [milestone(m, 0, 60) for m in ("x", "y", "z")]
        index = {
            "x": achieved("x", REF - timedelta(days=1)),
            "y": achieved("y", REF - timedelta(days=14)),
            "z": achieved("z", REF - timedelta(days=5)),
        }
        report = ProgressAggregator(timezone="UTC").aggregate(100, items, index, REF)
        assert [m.milestone.id for m in report.recently_completed] == ["x", "z"]

    def test_recently_completed_defaults_to_now(self):
        just_now = datetime.now(timezone.utc) - timedelta(hours=1)
        items = [milestone("x", 0, 60), milestone("y", 0, 60)]
        index = {
            "x": achieved("x", just_now),
            "y": achieved("y", just_now - timedelta(days=30)),
        }
        report = aggregate(30, items, index)
        assert report.overall_percentage == 100
        assert [m.milestone.id for m in report.recently_completed] == ["x"]

    def test_invalid_range_propagates(self):
        with pytest.raises(InvalidMilestoneRange):
            aggregate(100, [milestone("bad", 90, 30)])

    def test_unknown_category(self):
        with pytest.raises(InvalidMilestoneCategory):
            aggregate(100, [milestone("bad", 0, 30, "emotional")])

    def test_report_serializes(self, milestones):
        data = aggregate(100, milestones, {"a": achieved("a", corrected=40)}).to_dict()
        assert data["overall"]["percentage"] == 20
        done = data["milestones_by_status"]["completed"][0]
        assert done["is_completed"] is True
        assert done["corrected_age_at_achievement"] == 40
