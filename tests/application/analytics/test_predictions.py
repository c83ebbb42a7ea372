from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from factories import NOW, make_outcome, make_session
from studylens.application.analytics.predictions import PredictiveModule
from studylens.domain.report import RiskLevel


@pytest.fixture
def module():
    return PredictiveModule()


def test_stale_weak_card_is_high_risk(module):
    outcome = make_outcome("c1", attempts=10, correct=3, days_ago=10)
    [risk] = module.assess_forgetting_risk([outcome], NOW)

    assert risk.risk_level == RiskLevel.HIGH
    assert risk.review_recommended is True
    assert risk.days_since_review == pytest.approx(10)
    assert risk.accuracy == pytest.approx(0.3)
    assert risk.estimated_forgetting_date == NOW + timedelta(days=0.3 * 14)


@pytest.mark.parametrize(
    "days,accuracy,expected",
    [
        (8, 0.69, RiskLevel.HIGH),
        (7, 0.5, RiskLevel.MEDIUM),
        (8, 0.7, RiskLevel.MEDIUM),
        (4, 0.79, RiskLevel.MEDIUM),
        (3, 0.5, RiskLevel.LOW),
        (30, 0.8, RiskLevel.LOW),
        (0, 0.0, RiskLevel.LOW),
    ],
)
def test_classify_risk(module, days, accuracy, expected):
    assert module.classify_risk(days, accuracy) == expected


def test_fresh_card_is_low_risk(module):
    [risk] = module.assess_forgetting_risk([make_outcome("c1", days_ago=0.5)], NOW)
    assert risk.risk_level == RiskLevel.LOW
    assert risk.review_recommended is False


def test_mastery_prediction(module):
    outcomes = [
        make_outcome("weak", attempts=10, correct=5),
        make_outcome("close", attempts=10, correct=7),
        make_outcome("known", attempts=10, correct=9),
    ]
    predictions = {p.card_id: p for p in module.predict_mastery(outcomes, NOW)}

    assert set(predictions) == {"weak", "close"}
    assert predictions["weak"].required_sessions == 3
    assert predictions["weak"].estimated_mastery_date == NOW + timedelta(days=3)
    assert predictions["weak"].confidence == pytest.approx(0.8)
    assert predictions["close"].required_sessions == 1
    assert predictions["close"].confidence == pytest.approx(0.9)


def test_mastery_skips_unattempted_cards(module):
    assert module.predict_mastery([make_outcome("new", attempts=0, correct=0)], NOW) == []


def test_improvement_rate_must_be_positive():
    with pytest.raises(ValueError):
        PredictiveModule(improvement_rate=0)


def test_best_study_hour(module):
    sessions = [
        make_session(1, accuracy=0.6, session_id="noon-1"),
        make_session(1.25, accuracy=0.95, session_id="six-1"),
        make_session(2.25, accuracy=0.85, session_id="six-2"),
    ]
    # 1.25 days before noon is 06:00
    assert module.best_study_hour(sessions) == 6


def test_best_study_hour_ignores_open_sessions(module):
    assert module.best_study_hour([make_session(1, minutes=None)]) is None


def test_schedule_without_history(module):
    schedule = module.optimal_schedule([], [], NOW)
    assert schedule.next_study_session == NOW
    assert schedule.recommended_cards == []
    assert schedule.recommended_duration == 20


def test_schedule_rolls_to_tomorrow(module):
    # Best hour is 06:00, already past at noon
    sessions = [make_session(1.25, accuracy=0.9, session_id="six")]
    outcomes = [
        make_outcome("stale", days_ago=3),
        make_outcome("weak", attempts=10, correct=5),
        make_outcome("fine", days_ago=1),
    ]
    schedule = module.optimal_schedule(sessions, outcomes, NOW)

    assert schedule.next_study_session == datetime(2024, 6, 16, 6, tzinfo=timezone.utc)
    assert schedule.recommended_cards == ["stale", "weak"]
    assert "6:00" in schedule.reasoning


def test_schedule_later_today():
    module = PredictiveModule()
    sessions = [make_session(0.75, accuracy=0.9, session_id="evening")]  # 18:00
    schedule = module.optimal_schedule(sessions, [], NOW)
    assert schedule.next_study_session == datetime(2024, 6, 15, 18, tzinfo=timezone.utc)


def test_schedule_in_local_timezone():
    module = PredictiveModule(tz=ZoneInfo("Europe/Berlin"))
    # 06:00 UTC is 08:00 in Berlin during summer time
    sessions = [make_session(1.25, accuracy=0.9, session_id="six")]
    schedule = module.optimal_schedule(sessions, [], NOW)

    assert module.best_study_hour(sessions) == 8
    assert schedule.next_study_session == datetime(2024, 6, 16, 6, tzinfo=timezone.utc)


def test_review_list_is_capped(module):
    outcomes = [make_outcome(f"c{i}", days_ago=5) for i in range(15)]
    assert len(module.cards_needing_review(outcomes, NOW)) == 10


def test_predict_combines_blocks(module):
    outcomes = [make_outcome("c1", attempts=10, correct=3, days_ago=10)]
    result = module.predict(outcomes, [], NOW)
    assert [p.card_id for p in result.mastery_prediction] == ["c1"]
    assert [r.card_id for r in result.forgetting_risk] == ["c1"]
    assert result.optimal_scheduling.recommended_cards == ["c1"]
