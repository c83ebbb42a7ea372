"""
Progress Service: records finished study sessions through the EventStore.

The scoring engine is pure; this service is the one place that reads the
current stats, applies a session to them and writes everything back.
Callers must serialize writes for the same user.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timedelta

from studylens.application.analytics.history import latest_per_card
from studylens.application.scoring import ScoringEngine, SessionResult
from studylens.application.utils.timeutil import ensure_utc, utcnow
from studylens.domain import constants as c
from studylens.domain.models import AnswerEvent, CardOutcome, Session
from studylens.domain.ports import EventStore

logger = logging.getLogger(__name__)


class ProgressService:
    def __init__(
        self,
        store: EventStore,
        scoring: ScoringEngine | None = None,
        retention_days: int = c.OUTCOME_RETENTION_DAYS,
    ):
        self._store = store
        self._scoring = scoring or ScoringEngine()
        self.retention_days = retention_days

    def record_session(
        self,
        user_id: str,
        session: Session,
        answers: Sequence[AnswerEvent],
        now: datetime | None = None,
    ) -> SessionResult:
        """
        Complete a session and persist its effects.

        Saves the completed session, the updated lifetime stats and one
        cumulative CardOutcome per answer.

        Returns:
            The SessionResult, including level-before/after for feedback.
        """
        now = ensure_utc(now or utcnow())
        session = replace(session, user_id=user_id)

        stats = self._store.load_user_stats(user_id)
        result = self._scoring.complete_session(session, answers, stats, now=now)
        updated = self._scoring.update_user_stats(stats, result, now=now)

        self._store.save_session(result.session)
        self._store.save_user_stats(updated)
        outcomes = self.build_outcomes(user_id, result.session, answers, now)
        self._store.save_card_outcomes(user_id, outcomes)

        logger.info(
            f"Recorded session {result.session.id} for {user_id}: "
            f"{result.points_earned} points, accuracy {result.accuracy:.0%}, "
            f"level {updated.level.value}"
        )
        return result

    def build_outcomes(
        self,
        user_id: str,
        session: Session,
        answers: Sequence[AnswerEvent],
        now: datetime,
    ) -> list[CardOutcome]:
        """
        One outcome per answer, carrying the card's running totals forward
        from its most recent stored outcome.
        """
        latest = {o.card_id: o for o in latest_per_card(self._store.load_card_outcomes(user_id))}

        outcomes = []
        for answer in answers:
            previous = latest.get(answer.card_id)
            prior_attempts = previous.attempts if previous else 0
            prior_correct = previous.correct_attempts if previous else 0
            prior_average = previous.average_response_time if previous else 0.0

            attempts = prior_attempts + 1
            outcome = CardOutcome(
                card_id=answer.card_id,
                set_id=session.set_id,
                last_reviewed=now,
                session_id=session.id,
                is_correct=answer.is_correct,
                response_seconds=answer.response_seconds,
                attempts=attempts,
                correct_attempts=prior_correct + (1 if answer.is_correct else 0),
                average_response_time=(
                    prior_average * prior_attempts + answer.response_seconds
                )
                / attempts,
            )
            latest[answer.card_id] = outcome
            outcomes.append(outcome)
        return outcomes

    def apply_retention(
        self, user_id: str, days: int | None = None, now: datetime | None = None
    ) -> int:
        """Delete card outcomes last reviewed more than `days` days ago."""
        days = days if days is not None else self.retention_days
        if days <= 0:
            raise ValueError(f"Retention must be a positive number of days, got {days}")

        cutoff = ensure_utc(now or utcnow()) - timedelta(days=days)
        removed = self._store.delete_card_outcomes_before(user_id, cutoff)
        logger.info(f"Pruned {removed} card outcomes for {user_id} older than {days} days")
        return removed
