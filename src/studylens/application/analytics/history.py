"""Views over raw study history shared by the analytics engines."""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from studylens.application.utils.timeutil import ensure_utc
from studylens.domain.models import CardOutcome, Session

logger = logging.getLogger(__name__)


def latest_per_card(outcomes: Iterable[CardOutcome]) -> list[CardOutcome]:
    """
    Collapse outcome history to the most recent record for each card.

    Counts on a CardOutcome are cumulative, so the newest record holds the
    card's current totals. Cards are returned in order of first appearance.
    Records that were never attempted are dropped.
    """
    latest: dict[str, CardOutcome] = {}
    for outcome in outcomes:
        if outcome.attempts <= 0:
            logger.debug(f"Skipping outcome for card {outcome.card_id} with no attempts")
            continue
        current = latest.get(outcome.card_id)
        if current is None or ensure_utc(outcome.last_reviewed) >= ensure_utc(
            current.last_reviewed
        ):
            latest[outcome.card_id] = outcome
    return list(latest.values())


def card_accuracy(outcome: CardOutcome) -> float:
    """Per-card accuracy, treating a never-attempted card as 0."""
    accuracy = outcome.accuracy
    return accuracy if accuracy is not None else 0.0


def completed_sessions(sessions: Iterable[Session]) -> list[Session]:
    return [s for s in sessions if s.is_completed]


def sessions_since(
    sessions: Iterable[Session], now: datetime, days: int
) -> list[Session]:
    """Sessions started within the trailing window of `days` days."""
    cutoff = ensure_utc(now) - timedelta(days=days)
    return [s for s in sessions if ensure_utc(s.started_at) > cutoff]


def difficult_cards(
    outcomes: Iterable[CardOutcome], accuracy_below: float
) -> list[CardOutcome]:
    return [o for o in latest_per_card(outcomes) if card_accuracy(o) < accuracy_below]


def total_study_minutes(sessions: Iterable[Session]) -> float:
    return sum(s.duration_minutes for s in sessions)
