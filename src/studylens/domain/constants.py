"""Centralized constants for the studylens engines.

All magic numbers and default thresholds live here so every layer
imports from a single source of truth.
"""

# ---------- Scoring ----------
CORRECT_ANSWER_POINTS = 10
INCORRECT_ANSWER_POINTS = -5

FAST_ANSWER_SECONDS = 3.0
NORMAL_ANSWER_SECONDS = 5.0
SLOW_ANSWER_SECONDS = 10.0

FAST_TIME_BONUS = 5
NORMAL_TIME_BONUS = 3
SLOW_TIME_BONUS = 1
TIMEOUT_TIME_BONUS = 0

STREAK_BONUS_EVERY = 5
STREAK_BONUS_POINTS = 2

# A session extends the session streak only above this accuracy
STREAK_SESSION_ACCURACY = 0.7

# ---------- Levels (inclusive upper bounds) ----------
LEVEL_BEGINNER_MAX = 100
LEVEL_INTERMEDIATE_MAX = 300
LEVEL_ADVANCED_MAX = 500

# ---------- Insights ----------
LOW_ACCURACY_THRESHOLD = 0.7
STREAK_INSIGHT_DAYS = 7
DIFFICULT_CARD_ACCURACY = 0.5
DIFFICULT_CARD_LIMIT = 5
MAX_RELATED_CARDS = 10
INACTIVITY_WINDOW_DAYS = 7

# ---------- Trends ----------
DAILY_WINDOW_DAYS = 30
WEEKLY_WINDOW_WEEKS = 12
TREND_CHANGE_THRESHOLD = 0.05
MIN_DAILY_POINTS = 7
MIN_WEEKLY_POINTS = 4
TOP_PATTERN_BUCKETS = 3
# Fixed estimates; sessions alone carry no per-hour retention or speed signal
PATTERN_RETENTION_SCORE = 0.8
PATTERN_SPEED_SCORE = 0.75

# ---------- Predictions ----------
MASTERY_THRESHOLD = 0.8
IMPROVEMENT_RATE = 0.1
MAX_MASTERY_CONFIDENCE = 0.9
MASTERY_CONFIDENCE_OFFSET = 0.3
FORGETTING_HORIZON_DAYS = 14
HIGH_RISK_STALE_DAYS = 7
HIGH_RISK_ACCURACY = 0.7
MEDIUM_RISK_STALE_DAYS = 3
MEDIUM_RISK_ACCURACY = 0.8
REVIEW_STALE_DAYS = 2
REVIEW_ACCURACY = 0.7
MAX_SCHEDULED_CARDS = 10
RECOMMENDED_SESSION_MINUTES = 20

# ---------- Recommendations ----------
MIN_WEEKLY_SESSIONS = 3
MAX_PRACTICE_CARDS = 5

# ---------- Comparisons ----------
PEER_AVERAGE_ACCURACY = 0.75
PEER_AVERAGE_SPEED = 3.5  # cards per minute
PERCENTILE_FLOOR = 5
PERCENTILE_CEILING = 95
HISTORY_WINDOW_SESSIONS = 10
MIN_CONSISTENCY_SESSIONS = 5
MILESTONE_STREAK_DAYS = 7
MILESTONE_ACCURACY = 0.9

# ---------- Retention policy ----------
OUTCOME_RETENTION_DAYS = 365
