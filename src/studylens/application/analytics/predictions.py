"""
Predictive module: mastery dates, forgetting risk and next-session scheduling.

These are deliberately simple heuristics over per-card accuracy and
staleness, not a spaced-repetition scheduler.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone, tzinfo

from studylens.application.analytics.history import (
    card_accuracy,
    completed_sessions,
    latest_per_card,
)
from studylens.application.utils.numeric import ceil_ratio, mean
from studylens.application.utils.timeutil import (
    days_between,
    ensure_utc,
    local_hour,
    next_occurrence_of_hour,
)
from studylens.domain import constants as c
from studylens.domain.models import CardOutcome, Session
from studylens.domain.report import (
    ForgettingRisk,
    MasteryPrediction,
    PredictiveAnalytics,
    RiskLevel,
    ScheduleRecommendation,
)

logger = logging.getLogger(__name__)


class PredictiveModule:
    """
    Forward-looking estimates from per-card outcome history.

    Args:
        tz: Timezone used to pick the best study hour.
        mastery_threshold: Per-card accuracy at which a card counts as learned.
        improvement_rate: Assumed accuracy gain per study session.
    """

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        mastery_threshold: float = c.MASTERY_THRESHOLD,
        improvement_rate: float = c.IMPROVEMENT_RATE,
    ):
        if improvement_rate <= 0:
            raise ValueError(f"improvement_rate must be positive, got {improvement_rate}")
        self.tz = tz
        self.mastery_threshold = mastery_threshold
        self.improvement_rate = improvement_rate

    def predict(
        self,
        outcomes: Sequence[CardOutcome],
        sessions: Sequence[Session],
        now: datetime,
    ) -> PredictiveAnalytics:
        cards = latest_per_card(outcomes)
        return PredictiveAnalytics(
            mastery_prediction=self.predict_mastery(cards, now),
            forgetting_risk=self.assess_forgetting_risk(cards, now),
            optimal_scheduling=self.optimal_schedule(sessions, cards, now),
        )

    def predict_mastery(
        self, outcomes: Sequence[CardOutcome], now: datetime
    ) -> list[MasteryPrediction]:
        """
        For every card below the mastery bar, estimate the sessions needed to
        reach it at one session per day.
        """
        predictions = []
        for outcome in latest_per_card(outcomes):
            accuracy = card_accuracy(outcome)
            if accuracy >= self.mastery_threshold:
                continue

            sessions_needed = max(
                1, ceil_ratio(self.mastery_threshold - accuracy, self.improvement_rate)
            )
            predictions.append(
                MasteryPrediction(
                    card_id=outcome.card_id,
                    estimated_mastery_date=ensure_utc(now) + timedelta(days=sessions_needed),
                    confidence=min(
                        c.MAX_MASTERY_CONFIDENCE, accuracy + c.MASTERY_CONFIDENCE_OFFSET
                    ),
                    required_sessions=sessions_needed,
                )
            )
        return predictions

    def classify_risk(self, days_since_review: float, accuracy: float) -> RiskLevel:
        if days_since_review > c.HIGH_RISK_STALE_DAYS and accuracy < c.HIGH_RISK_ACCURACY:
            return RiskLevel.HIGH
        if days_since_review > c.MEDIUM_RISK_STALE_DAYS and accuracy < c.MEDIUM_RISK_ACCURACY:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def assess_forgetting_risk(
        self, outcomes: Sequence[CardOutcome], now: datetime
    ) -> list[ForgettingRisk]:
        """
        Classify every card by staleness and accuracy.

        The forgetting date is now + accuracy * 14 days, so better-known
        cards are expected to last longer.
        """
        risks = []
        for outcome in latest_per_card(outcomes):
            days_since = max(0.0, days_between(outcome.last_reviewed, now))
            accuracy = card_accuracy(outcome)
            level = self.classify_risk(days_since, accuracy)
            risks.append(
                ForgettingRisk(
                    card_id=outcome.card_id,
                    risk_level=level,
                    days_since_review=round(days_since, 2),
                    accuracy=accuracy,
                    estimated_forgetting_date=ensure_utc(now)
                    + timedelta(days=accuracy * c.FORGETTING_HORIZON_DAYS),
                    review_recommended=level != RiskLevel.LOW,
                )
            )
        return risks

    def best_study_hour(self, sessions: Sequence[Session]) -> int | None:
        """
        Hour of day with the highest mean accuracy over completed sessions.

        Ties go to the hour with more sessions, then the earlier hour.
        """
        by_hour: dict[int, list[float]] = defaultdict(list)
        for session in completed_sessions(sessions):
            by_hour[local_hour(session.started_at, self.tz)].append(session.accuracy)
        if not by_hour:
            return None
        return min(
            by_hour,
            key=lambda hour: (-mean(by_hour[hour]), -len(by_hour[hour]), hour),
        )

    def cards_needing_review(
        self, outcomes: Sequence[CardOutcome], now: datetime
    ) -> list[str]:
        due = [
            o.card_id
            for o in latest_per_card(outcomes)
            if days_between(o.last_reviewed, now) > c.REVIEW_STALE_DAYS
            or card_accuracy(o) < c.REVIEW_ACCURACY
        ]
        return due[: c.MAX_SCHEDULED_CARDS]

    def optimal_schedule(
        self,
        sessions: Sequence[Session],
        outcomes: Sequence[CardOutcome],
        now: datetime,
    ) -> ScheduleRecommendation:
        best_hour = self.best_study_hour(sessions)
        if best_hour is None:
            next_session = ensure_utc(now)
            reasoning = "Based on your study patterns and card difficulty"
        else:
            next_session = ensure_utc(next_occurrence_of_hour(now, best_hour, self.tz))
            reasoning = f"{best_hour}:00 is your most productive study time"

        return ScheduleRecommendation(
            next_study_session=next_session,
            recommended_duration=c.RECOMMENDED_SESSION_MINUTES,
            recommended_cards=self.cards_needing_review(outcomes, now),
            reasoning=reasoning,
        )
