"""
Tests for today / week / month period summaries.
Run: pytest tests/test_record_summary.py -v
"""
from datetime import datetime, timezone

import pytest

from src.models.data_structures import AchievementRecord, FeedingRecord, SleepRecord
from src.models.errors import InvalidPeriod
from src.models.milestone_catalog import load_default_catalog
from src.models.record_summary import period_bounds, summarize_period

REF = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def at(day, hour, minute=0):
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def feeding():
    return [
        FeedingRecord(at(15, 8), "formula", "120ml"),
        FeedingRecord(at(15, 11), "breast", "15"),
        FeedingRecord(at(14, 23), "formula", "90ml"),
    ]


@pytest.fixture
def sleep():
    return [
        SleepRecord.create(at(15, 1), at(15, 4)),
        SleepRecord.create(at(15, 9), at(15, 10, 30)),
    ]


class TestPeriodBounds:

    def test_today(self):
        start, end = period_bounds("today", REF, "UTC")
        assert start == at(15, 0)
        assert end == at(16, 0)

    def test_week_runs_through_end_of_today(self):
        start, end = period_bounds("week", REF, "UTC")
        assert start == at(8, 0)
        assert end == at(16, 0)

    def test_invalid_period(self):
        with pytest.raises(InvalidPeriod) as exc:
            period_bounds("year", REF, "UTC")
        assert exc.value.field == "period"


class TestSummarizePeriod:

    def test_feeding_today(self, feeding):
        summary = summarize_period(feeding_records=feeding, period="today",
                                   reference_instant=REF, tz="UTC")
        data = summary.feeding
        assert data["total"] == 2
        assert data["by_type"] == {"breast": 1, "formula": 1, "solid": 0}
        assert data["total_volume"] == 120.0
        assert data["total_duration"] == 15.0
        assert data["average_interval"] == 180
        assert data["last_feeding_time"] == at(15, 11).isoformat()

    def test_week_includes_previous_days(self, feeding):
        summary = summarize_period(feeding_records=feeding, period="week",
                                   reference_instant=REF, tz="UTC")
        assert summary.feeding["total"] == 3

    def test_sleep_night_and_day_split(self, sleep):
        data = summarize_period(sleep_records=sleep, reference_instant=REF,
                                tz="UTC").sleep
        assert data["total"] == 2
        assert data["total_duration"] == 270
        assert data["average_duration"] == 135
        assert data["longest_sleep"] == 180
        assert data["shortest_sleep"] == 90
        assert data["night_sleep_duration"] == 180
        assert data["day_sleep_duration"] == 90
        assert data["last_sleep_time"] == at(15, 10, 30).isoformat()

    def test_empty_period(self):
        summary = summarize_period(reference_instant=REF, tz="UTC")
        assert summary.feeding["total"] == 0
        assert summary.feeding["last_feeding_time"] is None
        assert summary.sleep["average_duration"] == 0
        assert summary.milestones["completed"] == 0

    def test_milestones_completed_in_period(self):
        achievements = [
            AchievementRecord("c1", "m001", at(15, 9), 36),
            AchievementRecord("c1", "m002", at(1, 9), 22),
            AchievementRecord("c1", "m003"),
        ]
        data = summarize_period(achievements=achievements,
                                milestones=load_default_catalog(),
                                reference_instant=REF, tz="UTC").milestones
        assert data["completed"] == 1
        assert data["by_category"]["motor"] == 1
        assert data["recent"][0]["title"] == "Lifts head briefly"
        assert data["recent"][0]["corrected_age_at_achievement"] == 36

    def test_serializes(self, feeding):
        data = summarize_period(feeding_records=feeding, period="month",
                                reference_instant=REF, tz="UTC").to_dict()
        assert data["period"] == "month"
        assert data["date_range"]["start"].startswith("2023-12-16")
