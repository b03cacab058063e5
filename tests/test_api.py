"""
Tests for the Preterm Development Core API
Run: pytest tests/test_api.py -v
"""
import pytest
from fastapi.testclient import TestClient

from src.api.server import app

client = TestClient(app)

REF = "2024-01-15T10:00:00+00:00"
CHILD = {"birth_date": "2023-10-15", "gestational_weeks": 32, "gestational_days": 3}


class TestHealthAndInfo:

    def test_health(self):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert data["milestones_in_catalog"] == 32
        assert data["version"] == "1.0.0"

    def test_docs_available(self):
        r = client.get("/docs")
        assert r.status_code == 200

    def test_catalog(self):
        r = client.get("/milestones/catalog")
        assert r.status_code == 200
        data = r.json()
        assert data["count"] == 32
        assert data["milestones"][0]["id"] == "m001"


class TestAge:

    def test_corrected_age(self):
        r = client.post("/age", json={
            "child": CHILD, "reference_instant": REF, "timezone": "UTC",
        })
        assert r.status_code == 200
        data = r.json()
        assert data["actual_age_in_days"] == 92
        assert data["corrected_age_in_days"] == 39
        assert data["gestational_offset_days"] == 53
        assert data["reference_date"] == "2024-01-15"

    def test_invalid_gestational_age(self):
        child = dict(CHILD, gestational_weeks=50)
        r = client.post("/age", json={"child": child, "reference_instant": REF})
        assert r.status_code == 422
        data = r.json()
        assert data["error"] == "InvalidGestationalAge"
        assert data["field"] == "gestational_weeks"

    def test_future_birth_date(self):
        child = dict(CHILD, birth_date="2024-02-01")
        r = client.post("/age", json={
            "child": child, "reference_instant": REF, "timezone": "UTC",
        })
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidDateRange"

    def test_unknown_timezone(self):
        r = client.post("/age", json={
            "child": CHILD, "reference_instant": REF, "timezone": "Mars/Base",
        })
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidTimezone"


class TestMilestones:

    def test_classify_overdue(self):
        r = client.post("/milestones/classify", json={
            "corrected_age_in_days": 300,
            "milestone": {
                "id": "sit", "title": "Sits", "category": "motor",
                "age_range_min": 180, "age_range_max": 270,
            },
        })
        assert r.status_code == 200
        assert r.json() == {"status": "overdue", "days_from_target": 75}

    def test_classify_invalid_range(self):
        r = client.post("/milestones/classify", json={
            "corrected_age_in_days": 100,
            "milestone": {
                "id": "bad", "title": "Bad", "category": "motor",
                "age_range_min": 270, "age_range_max": 180,
            },
        })
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidMilestoneRange"

    def test_progress_against_default_catalog(self):
        r = client.post("/milestones/progress", json={
            "child": dict(CHILD, gestational_weeks=40, gestational_days=0),
            "achievements": [
                {"milestone_id": "m001", "achieved_at": "2024-01-10T09:00:00+00:00"},
            ],
            "reference_instant": REF,
            "timezone": "UTC",
        })
        assert r.status_code == 200
        data = r.json()
        assert data["age"]["corrected_age_in_days"] == 92
        progress = data["progress"]
        assert progress["overall"]["total"] == 15
        assert progress["overall"]["completed"] == 1
        assert progress["overall"]["percentage"] == 7
        assert progress["strongest_category"] == "motor"
        assert progress["recently_completed"][0]["id"] == "m001"
        assert len(progress["next_milestones"]) == 3

    def test_progress_with_explicit_milestones(self):
        r = client.post("/milestones/progress", json={
            "child": CHILD,
            "milestones": [],
            "reference_instant": REF,
            "timezone": "UTC",
        })
        assert r.status_code == 200
        progress = r.json()["progress"]
        assert progress["overall"]["percentage"] == 0
        assert progress["strongest_category"] is None


class TestRecords:

    @pytest.fixture
    def records(self):
        return {
            "feeding": [
                {"timestamp": "2024-01-15T08:00:00+00:00", "type": "formula",
                 "amount_or_duration": "120ml"},
                {"timestamp": "2024-01-15T09:30:00+00:00", "type": "breast",
                 "amount_or_duration": "15min"},
            ],
            "sleep": [
                {"start_time": "2024-01-15T01:00:00+00:00",
                 "end_time": "2024-01-15T03:00:00+00:00"},
            ],
            "reference_instant": REF,
            "timezone": "UTC",
        }

    def test_trends(self, records):
        r = client.post("/records/trends", json=records)
        assert r.status_code == 200
        data = r.json()
        assert data["window_days"] == 7
        assert len(data["daily_series"]) == 7
        today = data["daily_series"][-1]
        assert today["feeding"]["total"] == 2
        assert today["sleep"]["total_duration"] == 120
        assert data["recommendations"]

    def test_trends_invalid_window(self, records):
        r = client.post("/records/trends", json=dict(records, window_days=0))
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidWindow"

    def test_unknown_feeding_type(self, records):
        records["feeding"][0]["type"] = "juice"
        r = client.post("/records/trends", json=records)
        assert r.status_code == 422

    def test_sleep_end_before_start(self, records):
        records["sleep"][0]["end_time"] = "2024-01-15T00:00:00+00:00"
        r = client.post("/records/trends", json=records)
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidDateRange"

    def test_stored_duration_with_inverted_range(self, records):
        records["sleep"][0]["end_time"] = "2024-01-15T00:00:00+00:00"
        records["sleep"][0]["duration_minutes"] = 45
        r = client.post("/records/trends", json=records)
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidDateRange"

    def test_stored_duration_is_kept(self, records):
        records["sleep"][0]["duration_minutes"] = 45
        r = client.post("/records/trends", json=records)
        assert r.status_code == 200
        assert r.json()["daily_series"][-1]["sleep"]["total_duration"] == 45

    def test_summary(self, records):
        r = client.post("/records/summary", json=dict(records, period="today"))
        assert r.status_code == 200
        data = r.json()
        assert data["feeding"]["total"] == 2
        assert data["feeding"]["average_interval"] == 90
        assert data["sleep"]["night_sleep_duration"] == 120

    def test_summary_invalid_period(self, records):
        r = client.post("/records/summary", json=dict(records, period="year"))
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidPeriod"
