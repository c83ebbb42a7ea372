from datetime import datetime, timezone

import pytest

from factories import NOW, make_outcome, make_session
from studylens.application.analytics.metrics import MetricsCalculator


@pytest.fixture
def calculator():
    return MetricsCalculator()


def test_accuracy_metrics(calculator):
    outcomes = [
        make_outcome("a", attempts=10, correct=8, set_id="s1"),
        make_outcome("b", attempts=10, correct=4, set_id="s1"),
        make_outcome("c", attempts=5, correct=5, set_id="s2"),
    ]
    metrics = calculator.accuracy([make_session(0)], outcomes, NOW)

    assert metrics.overall == pytest.approx((0.8 + 0.4 + 1.0) / 3)
    assert len(metrics.trend) == 30
    assert metrics.trend[-1] == pytest.approx(0.8)
    assert [(s.set_id, s.accuracy) for s in metrics.by_set] == [("s1", 0.6), ("s2", 1.0)]
    assert metrics.by_category == []


def test_overcounted_correct_attempts_are_clamped(calculator):
    outcomes = [make_outcome("a", attempts=4, correct=6)]
    metrics = calculator.accuracy([], outcomes, NOW)
    assert metrics.overall == 1.0
    assert metrics.by_set[0].accuracy == 1.0


def test_unattempted_cards_are_excluded(calculator):
    outcomes = [
        make_outcome("a", attempts=0, correct=0),
        make_outcome("b", attempts=2, correct=1),
    ]
    result = calculator.calculate([], outcomes, NOW)
    assert result.accuracy.overall == pytest.approx(0.5)
    assert result.retention.short_term == 1.0


def test_speed_metrics(calculator):
    sessions = [
        make_session(2, cards=20, minutes=10, session_id="a"),
        make_session(1, cards=30, minutes=10, session_id="b"),
        make_session(0, minutes=None, session_id="open"),
    ]
    outcomes = [make_outcome("a", avg_time=2.0), make_outcome("b", avg_time=4.0)]
    speed = calculator.speed(sessions, outcomes)

    assert speed.average_response_time == pytest.approx(3.0)
    assert speed.trend == [pytest.approx(2.0), pytest.approx(3.0)]


def test_retention(calculator):
    outcomes = [
        make_outcome("today", days_ago=0.5),
        make_outcome("week", days_ago=3),
        make_outcome("month", days_ago=20),
        make_outcome("old", days_ago=45),
    ]
    retention = calculator.retention(outcomes, NOW)

    assert retention.short_term == 0.25
    assert retention.medium_term == 0.5
    assert retention.long_term == 0.75
    assert len(retention.forgetting_curve) == 30
    assert retention.forgetting_curve[0].day == 1
    assert retention.forgetting_curve[3].retention == 0.5


def test_retention_without_cards(calculator):
    retention = calculator.retention([], NOW)
    assert retention.short_term == 0.0
    assert all(p.retention == 0.0 for p in retention.forgetting_curve)


def test_streak_days(calculator):
    sessions = [
        make_session(0, session_id="a"),
        make_session(0.1, session_id="a2"),
        make_session(1, session_id="b"),
        make_session(2, session_id="c"),
        make_session(4, session_id="gap"),
    ]
    assert calculator.streak_days(sessions) == 3


def test_streak_counts_back_from_latest_study_day(calculator):
    sessions = [make_session(5, session_id="a"), make_session(6, session_id="b")]
    assert calculator.streak_days(sessions) == 2
    assert calculator.streak_days([]) == 0


def test_engagement(calculator):
    sessions = [
        make_session(0, minutes=15, session_id="a"),
        make_session(1, minutes=20, session_id="b"),
        make_session(
            0, now=datetime(2024, 6, 15, 7, tzinfo=timezone.utc), minutes=None, session_id="c"
        ),
    ]
    engagement = calculator.engagement(sessions)

    assert engagement.study_sessions == 3
    assert engagement.total_study_time == 35
    assert engagement.streak_days == 2
    assert len(engagement.active_hours) == 24
    assert engagement.active_hours[12].sessions == 2
    assert engagement.active_hours[7].sessions == 1
