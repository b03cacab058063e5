"""
Configuration for the Preterm Development Core.
"""
import os

# ── Server ────────────────────────────────────────────────────
PORT = int(os.environ.get("PORT", 8000))
HOST = os.environ.get("HOST", "0.0.0.0")
DEBUG = os.environ.get("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Local calendar used for day boundaries when the caller gives none
DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "Asia/Shanghai")

# ── Gestation ─────────────────────────────────────────────────
FULL_TERM_WEEKS = 40
FULL_TERM_DAYS = FULL_TERM_WEEKS * 7
MIN_GESTATIONAL_WEEKS = 20
MAX_GESTATIONAL_WEEKS = 44
MAX_GESTATIONAL_EXTRA_DAYS = 6

# Corrected-age bands, (upper bound exclusive, label)
AGE_CATEGORIES = [
    (60, '0-2 months'),
    (120, '2-4 months'),
    (180, '4-6 months'),
    (270, '6-9 months'),
    (365, '9-12 months'),
]
AGE_CATEGORY_OLDEST = '12+ months'

# ── Milestones ────────────────────────────────────────────────
MILESTONE_CATEGORIES = ['motor', 'cognitive', 'social', 'language']

MILESTONE_PAST_DAYS = int(os.environ.get("MILESTONE_PAST_DAYS", 90))
MILESTONE_FUTURE_DAYS = int(os.environ.get("MILESTONE_FUTURE_DAYS", 60))
NEXT_MILESTONE_LOOKAHEAD_DAYS = 30
NEXT_MILESTONE_COUNT = 3

RECENT_ACHIEVEMENT_DAYS = 7
RECENT_ACHIEVEMENT_LIMIT = 5

# ── Trends ────────────────────────────────────────────────────
MIN_WINDOW_DAYS = 1
MAX_WINDOW_DAYS = 90
DEFAULT_WINDOW_DAYS = 7

TREND_SUBWINDOW_DAYS = 3
TREND_INCREASING_THRESHOLD_PCT = 10.0
TREND_DECREASING_THRESHOLD_PCT = -10.0

FEEDING_TYPES = ['breast', 'formula', 'solid']
VOLUME_FEEDING_TYPES = ['formula', 'solid']
DURATION_FEEDING_TYPES = ['breast']

# Night sleep: starts at or after NIGHT_START_HOUR or ends by NIGHT_END_HOUR
NIGHT_START_HOUR = 20
NIGHT_END_HOUR = 6

SUMMARY_PERIOD_DAYS = {'today': 1, 'week': 7, 'month': 30}

# ── Recommendation thresholds ─────────────────────────────────
FEEDS_PER_DAY_LOW = 6
FEEDS_PER_DAY_HIGH = 12
FEEDING_DROP_ALERT_PCT = -20.0
SLEEP_HOURS_LOW = 12
SLEEP_HOURS_HIGH = 18
SHORT_SLEEP_MINUTES = 60
SLEEP_DROP_ALERT_PCT = -15.0

# ── Record intake (CSV exports) ───────────────────────────────
FEEDING_COLUMNS = {
    'baby_id': 'subject_id',
    'babyId': 'subject_id',
    'timestamp': 'timestamp',
    'type': 'type',
    'amountOrDuration': 'amount_or_duration',
    'amount_or_duration': 'amount_or_duration',
}

SLEEP_COLUMNS = {
    'baby_id': 'subject_id',
    'babyId': 'subject_id',
    'startTime': 'start_time',
    'start_time': 'start_time',
    'endTime': 'end_time',
    'end_time': 'end_time',
}
