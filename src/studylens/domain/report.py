"""
Value objects produced by the analytics engines.

Everything here is immutable and built fresh for each report. The shapes are
stable and serializable because they cross into presentation code.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .models import LearningGoal, UserLevel


class InsightType(str, Enum):
    STRENGTH = "strength"
    WEAKNESS = "weakness"
    PATTERN = "pattern"
    RECOMMENDATION = "recommendation"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationType(str, Enum):
    CARD = "card"
    SET = "set"
    SESSION = "session"
    SCHEDULE = "schedule"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class TrendPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReportSummary:
    total_study_time: int  # minutes
    cards_studied: int
    sets_completed: int
    sessions_completed: int
    current_streak: int
    overall_accuracy: float
    total_score: int
    level: UserLevel


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InsightMetadata:
    confidence: float
    data_points: int
    related_sets: list[str] = field(default_factory=list)
    related_cards: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Insight:
    id: str
    type: InsightType
    title: str
    description: str
    severity: Severity
    actionable: bool
    metadata: InsightMetadata
    created_at: datetime


# ---------------------------------------------------------------------------
# Performance metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SetAccuracy:
    set_id: str
    accuracy: float


@dataclass(frozen=True)
class AccuracyMetrics:
    overall: float
    trend: list[float]
    by_set: list[SetAccuracy]
    by_category: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class SpeedMetrics:
    average_response_time: float
    trend: list[float]
    by_question_type: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class RetentionPoint:
    day: int
    retention: float


@dataclass(frozen=True)
class RetentionMetrics:
    short_term: float  # reviewed within 1 day
    medium_term: float  # within 1 week
    long_term: float  # within 30 days
    forgetting_curve: list[RetentionPoint]


@dataclass(frozen=True)
class HourActivity:
    hour: int
    sessions: int


@dataclass(frozen=True)
class EngagementMetrics:
    study_sessions: int
    total_study_time: int  # minutes
    streak_days: int
    active_hours: list[HourActivity]


@dataclass(frozen=True)
class PerformanceMetrics:
    accuracy: AccuracyMetrics
    speed: SpeedMetrics
    retention: RetentionMetrics
    engagement: EngagementMetrics


# ---------------------------------------------------------------------------
# Patterns and trends
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PatternProfile:
    time_of_day: list[int]
    days_of_week: list[int]  # Monday = 0
    session_duration: float  # minutes
    cards_per_session: float


@dataclass(frozen=True)
class PatternEffectiveness:
    accuracy_score: float
    retention_score: float
    speed_score: float


@dataclass(frozen=True)
class StudyPattern:
    id: str
    name: str
    description: str
    frequency: float
    pattern: PatternProfile
    effectiveness: PatternEffectiveness
    suggestions: list[str]


@dataclass(frozen=True)
class TrendPoint:
    date: str  # ISO date of the bucket start
    value: float
    change: float | None = None


@dataclass(frozen=True)
class LearningTrend:
    period: TrendPeriod
    metric: str
    data: list[TrendPoint]
    trend: TrendDirection
    significance: float  # descriptive consistency proxy, not a p-value


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecommendationAction:
    type: str
    params: dict[str, Any]


@dataclass(frozen=True)
class EstimatedBenefit:
    accuracy_improvement: float  # percentage points
    retention_improvement: float
    time_to_complete: int  # minutes


@dataclass(frozen=True)
class StudyRecommendation:
    id: str
    type: RecommendationType
    priority: Priority
    title: str
    description: str
    reasoning: str
    action: RecommendationAction
    estimated_benefit: EstimatedBenefit
    valid_until: datetime
    created_at: datetime


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MasteryPrediction:
    card_id: str
    estimated_mastery_date: datetime
    confidence: float
    required_sessions: int


@dataclass(frozen=True)
class ForgettingRisk:
    card_id: str
    risk_level: RiskLevel
    days_since_review: float
    accuracy: float
    estimated_forgetting_date: datetime
    review_recommended: bool


@dataclass(frozen=True)
class ScheduleRecommendation:
    next_study_session: datetime
    recommended_duration: int  # minutes
    recommended_cards: list[str]
    reasoning: str


@dataclass(frozen=True)
class PredictiveAnalytics:
    mastery_prediction: list[MasteryPrediction]
    forgetting_risk: list[ForgettingRisk]
    optimal_scheduling: ScheduleRecommendation


# ---------------------------------------------------------------------------
# Comparisons
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeerComparison:
    percentile: int
    average_accuracy: float
    average_speed: float
    strength_areas: list[str]
    improvement_areas: list[str]


@dataclass(frozen=True)
class Milestone:
    date: datetime
    achievement: str
    metric: str
    value: float


@dataclass(frozen=True)
class HistoricalComparison:
    accuracy_improvement: float  # percent
    speed_improvement: float  # percent
    consistency_score: float
    milestones: list[Milestone]


@dataclass(frozen=True)
class ComparisonAnalytics:
    peer: PeerComparison
    historical: HistoricalComparison


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalyticsReport:
    """The complete dashboard for one user, assembled by AnalyticsService."""

    user_id: str
    generated_at: datetime
    summary: ReportSummary
    insights: list[Insight]
    metrics: PerformanceMetrics
    patterns: list[StudyPattern]
    goals: list[LearningGoal]
    recommendations: list[StudyRecommendation]
    trends: list[LearningTrend]
    predictions: PredictiveAnalytics
    comparisons: ComparisonAnalytics
