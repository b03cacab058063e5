"""
Preterm Development Core - FastAPI Backend
==========================================

Stateless HTTP wrapper around the corrected-age, milestone-progress and
trend engines. Callers send the subject and records with each request;
nothing is stored server-side.

REST API endpoints:
    POST   /age                     Actual + corrected age for a subject
    GET    /milestones/catalog      Default milestone catalog
    POST   /milestones/classify     Classify one milestone
    POST   /milestones/progress     Progress report for a subject
    POST   /records/trends          Daily series + trend verdicts
    POST   /records/summary         Today / week / month summary
    GET    /health                  Health check
"""
import sys
import logging
from pathlib import Path
from datetime import date, datetime
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Optional, List

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import PORT, HOST, DEBUG, LOG_LEVEL, DEFAULT_WINDOW_DAYS
from src.models.age_calculator import AgeCalculator
from src.models.data_structures import (
    AchievementRecord, FeedingRecord, MilestoneDefinition, SleepRecord
)
from src.models.errors import DevelopmentError
from src.models.local_time import resolve_reference
from src.models.milestone_catalog import load_default_catalog, select_relevant
from src.models.milestone_classifier import classify
from src.models.progress_aggregator import ProgressAggregator
from src.models.record_summary import summarize_period
from src.models.trend_analyzer import TrendAnalyzer

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# ── Global State ──────────────────────────────────────────────

_catalog: List[MilestoneDefinition] = load_default_catalog()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Development core ready: %d milestones in catalog", len(_catalog))
    yield
    logger.info("Shutting down")


# ── App ──────────────────────────────────────────────────────

app = FastAPI(
    title="Preterm Development Core API",
    description=(
        "Corrected-age computation, developmental milestone progress and "
        "feeding/sleep trend analysis for preterm infants."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DevelopmentError)
async def development_error_handler(request: Request, exc: DevelopmentError):
    logger.info("Rejected %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content=exc.to_dict())


# ── Request Models ────────────────────────────────────────────

class ChildRequest(BaseModel):
    child_id: Optional[str] = None
    birth_date: date
    gestational_weeks: int
    gestational_days: int = 0


class MilestoneModel(BaseModel):
    id: str
    title: str
    description: str = ""
    category: str
    age_range_min: int
    age_range_max: int

    def to_definition(self) -> MilestoneDefinition:
        return MilestoneDefinition(**self.model_dump())


class AchievementModel(BaseModel):
    milestone_id: str
    subject_id: Optional[str] = None
    achieved_at: Optional[datetime] = None
    corrected_age_in_days: Optional[int] = None

    def to_record(self) -> AchievementRecord:
        return AchievementRecord(**self.model_dump())


class FeedingModel(BaseModel):
    timestamp: datetime
    type: str = Field(..., pattern="^(breast|formula|solid)$")
    amount_or_duration: str = ""
    subject_id: Optional[str] = None
    id: Optional[str] = None


class SleepModel(BaseModel):
    start_time: datetime
    end_time: datetime
    duration_minutes: Optional[int] = Field(None, ge=0)
    subject_id: Optional[str] = None
    id: Optional[str] = None


class AgeRequest(BaseModel):
    child: ChildRequest
    reference_instant: Optional[datetime] = None
    timezone: Optional[str] = None
    locale: str = Field("en", pattern="^(en|zh)$")


class ClassifyRequest(BaseModel):
    corrected_age_in_days: int = Field(..., ge=0)
    milestone: MilestoneModel
    achievement: Optional[AchievementModel] = None


class ProgressRequest(BaseModel):
    child: ChildRequest
    milestones: Optional[List[MilestoneModel]] = None
    achievements: List[AchievementModel] = []
    reference_instant: Optional[datetime] = None
    timezone: Optional[str] = None


class RecordsRequest(BaseModel):
    feeding: List[FeedingModel] = []
    sleep: List[SleepModel] = []
    reference_instant: Optional[datetime] = None
    timezone: Optional[str] = None


class TrendRequest(RecordsRequest):
    window_days: int = DEFAULT_WINDOW_DAYS


class SummaryRequest(RecordsRequest):
    period: str = "today"
    achievements: List[AchievementModel] = []


# ── Helpers ───────────────────────────────────────────────────

def _feeding_records(items: List[FeedingModel]) -> List[FeedingRecord]:
    return [FeedingRecord(**f.model_dump()) for f in items]


def _sleep_records(items: List[SleepModel], tz) -> List[SleepRecord]:
    return [
        SleepRecord.create(
            s.start_time, s.end_time, subject_id=s.subject_id, id=s.id, tz=tz,
            duration_minutes=s.duration_minutes,
        )
        for s in items
    ]


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "milestones_in_catalog": len(_catalog),
        "version": VERSION,
    }


@app.post("/age")
async def compute_age(req: AgeRequest):
    calculator = AgeCalculator(timezone=req.timezone, locale=req.locale)
    info = calculator.compute_age(
        req.child.birth_date, req.child.gestational_weeks,
        req.child.gestational_days, req.reference_instant,
    )
    return info.to_dict()


# ── Milestones ────────────────────────────────────────────────

@app.get("/milestones/catalog")
async def milestone_catalog():
    return {
        "count": len(_catalog),
        "milestones": [m.to_dict() for m in _catalog],
    }


@app.post("/milestones/classify")
async def classify_milestone(req: ClassifyRequest):
    result = classify(
        req.corrected_age_in_days,
        req.milestone.to_definition(),
        req.achievement.to_record() if req.achievement else None,
    )
    return {"status": result.status, "days_from_target": result.days_from_target}


@app.post("/milestones/progress")
async def milestone_progress(req: ProgressRequest):
    # One instant for age, classification and recency
    reference = resolve_reference(req.reference_instant, req.timezone)
    info = AgeCalculator(timezone=req.timezone).compute_age(
        req.child.birth_date, req.child.gestational_weeks,
        req.child.gestational_days, reference,
    )
    corrected = info.corrected_age_in_days

    if req.milestones is None:
        milestones = select_relevant(_catalog, corrected)
    else:
        milestones = [m.to_definition() for m in req.milestones]
    index = {a.milestone_id: a.to_record() for a in req.achievements}

    report = ProgressAggregator(timezone=req.timezone).aggregate(
        corrected, milestones, index, reference
    )
    return {"age": info.to_dict(), "progress": report.to_dict()}


# ── Records ───────────────────────────────────────────────────

@app.post("/records/trends")
async def record_trends(req: TrendRequest):
    analyzer = TrendAnalyzer(timezone=req.timezone)
    report = analyzer.analyze(
        _feeding_records(req.feeding),
        _sleep_records(req.sleep, req.timezone),
        req.window_days,
        req.reference_instant,
    )
    return report.to_dict()


@app.post("/records/summary")
async def record_summary(req: SummaryRequest):
    summary = summarize_period(
        feeding_records=_feeding_records(req.feeding),
        sleep_records=_sleep_records(req.sleep, req.timezone),
        achievements=[a.to_record() for a in req.achievements],
        milestones=_catalog,
        period=req.period,
        reference_instant=req.reference_instant,
        tz=req.timezone,
    )
    return summary.to_dict()


# ── Run ───────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("src.api.server:app", host=HOST, port=PORT, reload=DEBUG)
