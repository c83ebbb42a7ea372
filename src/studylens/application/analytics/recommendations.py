"""
Recommendation generator: turns statistics and predictions into actions.

Rules are evaluated independently; the result is ordered by priority with
rule order breaking ties.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from studylens.application.analytics.history import difficult_cards, sessions_since
from studylens.application.analytics.predictions import PredictiveModule
from studylens.application.id_service import generate_id
from studylens.application.utils.numeric import round_half_up
from studylens.application.utils.timeutil import ensure_utc
from studylens.domain import constants as c
from studylens.domain.models import CardOutcome, Session, UserStats
from studylens.domain.report import (
    EstimatedBenefit,
    Priority,
    RecommendationAction,
    RecommendationType,
    RiskLevel,
    StudyRecommendation,
)

logger = logging.getLogger(__name__)

PRIORITY_RANK: dict[Priority, int] = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


@dataclass(frozen=True)
class RecommendationContext:
    stats: UserStats | None
    sessions: Sequence[Session]
    outcomes: Sequence[CardOutcome]
    now: datetime


RecommendationRule = Callable[[RecommendationContext], StudyRecommendation | None]


class RecommendationGenerator:
    def __init__(
        self,
        accuracy_threshold: float = c.LOW_ACCURACY_THRESHOLD,
        difficult_accuracy: float = c.DIFFICULT_CARD_ACCURACY,
        min_weekly_sessions: int = c.MIN_WEEKLY_SESSIONS,
        predictor: PredictiveModule | None = None,
    ):
        self.accuracy_threshold = accuracy_threshold
        self.difficult_accuracy = difficult_accuracy
        self.min_weekly_sessions = min_weekly_sessions
        self.predictor = predictor or PredictiveModule()

    @property
    def rules(self) -> list[RecommendationRule]:
        return [
            self.review_session_rule,
            self.difficult_cards_rule,
            self.forgetting_risk_rule,
            self.study_frequency_rule,
        ]

    def generate(
        self,
        stats: UserStats | None,
        sessions: Sequence[Session],
        outcomes: Sequence[CardOutcome],
        now: datetime,
    ) -> list[StudyRecommendation]:
        ctx = RecommendationContext(
            stats=stats,
            sessions=sessions,
            outcomes=outcomes,
            now=now,
        )
        recommendations = [r for r in (rule(ctx) for rule in self.rules) if r is not None]
        # sorted() is stable, so equal priorities keep rule order
        recommendations = sorted(recommendations, key=lambda r: PRIORITY_RANK[r.priority])
        logger.debug(f"Generated {len(recommendations)} recommendations")
        return recommendations

    def _build(
        self,
        ctx: RecommendationContext,
        *,
        type: RecommendationType,
        priority: Priority,
        title: str,
        description: str,
        reasoning: str,
        action: RecommendationAction,
        benefit: EstimatedBenefit,
        valid_days: int,
    ) -> StudyRecommendation:
        created = ensure_utc(ctx.now)
        return StudyRecommendation(
            id=generate_id("rec"),
            type=type,
            priority=priority,
            title=title,
            description=description,
            reasoning=reasoning,
            action=action,
            estimated_benefit=benefit,
            valid_until=created + timedelta(days=valid_days),
            created_at=created,
        )

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def review_session_rule(self, ctx: RecommendationContext) -> StudyRecommendation | None:
        stats = ctx.stats
        if stats is None or stats.total_sessions == 0:
            return None
        if stats.average_accuracy >= self.accuracy_threshold:
            return None

        return self._build(
            ctx,
            type=RecommendationType.SESSION,
            priority=Priority.HIGH,
            title="Focus on Review Sessions",
            description=(
                "Your accuracy could be improved with more review sessions before testing."
            ),
            reasoning=f"Current accuracy: {round_half_up(stats.average_accuracy * 100)}%",
            action=RecommendationAction(
                type="review_session", params={"duration": 15, "focus": "weak_cards"}
            ),
            benefit=EstimatedBenefit(
                accuracy_improvement=15, retention_improvement=10, time_to_complete=15
            ),
            valid_days=7,
        )

    def difficult_cards_rule(self, ctx: RecommendationContext) -> StudyRecommendation | None:
        difficult = difficult_cards(ctx.outcomes, self.difficult_accuracy)
        if not difficult:
            return None

        focus = [o.card_id for o in difficult[: c.MAX_PRACTICE_CARDS]]
        return self._build(
            ctx,
            type=RecommendationType.CARD,
            priority=Priority.MEDIUM,
            title="Practice Difficult Cards",
            description=f"Focus on {len(focus)} cards that need the most work.",
            reasoning=(
                f"{len(difficult)} cards have accuracy below "
                f"{round_half_up(self.difficult_accuracy * 100)}%"
            ),
            action=RecommendationAction(type="practice_cards", params={"card_ids": focus}),
            benefit=EstimatedBenefit(
                accuracy_improvement=20, retention_improvement=15, time_to_complete=10
            ),
            valid_days=3,
        )

    def forgetting_risk_rule(self, ctx: RecommendationContext) -> StudyRecommendation | None:
        at_risk = [
            r.card_id
            for r in self.predictor.assess_forgetting_risk(ctx.outcomes, ctx.now)
            if r.risk_level == RiskLevel.HIGH
        ]
        if not at_risk:
            return None

        return self._build(
            ctx,
            type=RecommendationType.CARD,
            priority=Priority.HIGH,
            title="Review Cards You Are Forgetting",
            description=(
                f"{len(at_risk)} cards have not been reviewed recently and are likely "
                "to be forgotten soon."
            ),
            reasoning=f"{len(at_risk)} cards at high forgetting risk",
            action=RecommendationAction(
                type="review_cards",
                params={"card_ids": at_risk[: c.MAX_SCHEDULED_CARDS]},
            ),
            benefit=EstimatedBenefit(
                accuracy_improvement=10, retention_improvement=30, time_to_complete=10
            ),
            valid_days=3,
        )

    def study_frequency_rule(self, ctx: RecommendationContext) -> StudyRecommendation | None:
        recent = sessions_since(ctx.sessions, ctx.now, 7)
        if len(recent) >= self.min_weekly_sessions:
            return None

        return self._build(
            ctx,
            type=RecommendationType.SCHEDULE,
            priority=Priority.MEDIUM,
            title="Increase Study Frequency",
            description="Regular practice sessions will improve retention and performance.",
            reasoning=f"Only {len(recent)} sessions this week",
            action=RecommendationAction(
                type="schedule_sessions", params={"frequency": "daily", "duration": 10}
            ),
            benefit=EstimatedBenefit(
                accuracy_improvement=10, retention_improvement=25, time_to_complete=10
            ),
            valid_days=14,
        )
