import pytest

from factories import NOW, make_session, make_stats
from studylens.application.analytics.comparisons import (
    ComparisonAnalyzer,
    average_speed,
    cards_per_minute,
)


@pytest.fixture
def analyzer():
    return ComparisonAnalyzer()


def history(accuracies, cards=10):
    """Completed sessions one day apart, oldest first."""
    n = len(accuracies)
    return [
        make_session(n - i, accuracy=acc, cards=cards, session_id=f"s{i}")
        for i, acc in enumerate(accuracies)
    ]


def test_accuracy_improvement_scenario(analyzer):
    sessions = history([0.5] * 5 + [0.9] * 5)
    assert analyzer.improvement(sessions, lambda s: s.accuracy) == pytest.approx(80.0)


def test_improvement_uses_first_and_last_ten(analyzer):
    sessions = history([0.5] * 10 + [0.7] * 5 + [1.0] * 10)
    assert analyzer.improvement(sessions, lambda s: s.accuracy) == pytest.approx(100.0)


def test_improvement_needs_ten_sessions(analyzer):
    sessions = history([0.2] * 4 + [0.9] * 5)
    assert analyzer.improvement(sessions, lambda s: s.accuracy) == 0.0


def test_improvement_with_zero_baseline(analyzer):
    sessions = history([0.0] * 5 + [0.9] * 5)
    assert analyzer.improvement(sessions, lambda s: s.accuracy) == 0.0


def test_improvement_orders_by_start_time(analyzer):
    sessions = list(reversed(history([0.5] * 5 + [0.9] * 5)))
    assert analyzer.improvement(sessions, lambda s: s.accuracy) == pytest.approx(80.0)


@pytest.mark.parametrize(
    "accuracy,percentile",
    [(0.75, 75), (0.0, 25), (0.5, 58), (1.0, 92), (1.5, 95)],
)
def test_peer_percentile(analyzer, accuracy, percentile):
    assert analyzer.peer_percentile(accuracy) == percentile


def test_percentile_never_below_floor():
    analyzer = ComparisonAnalyzer(peer_average_accuracy=0)
    assert analyzer.peer_percentile(0.4) == 5


def test_consistency(analyzer):
    assert analyzer.consistency(history([0.8] * 4)) == 0.0
    assert analyzer.consistency(history([0.8] * 5)) == pytest.approx(1.0)
    assert analyzer.consistency(history([0, 1, 0, 1, 0])) == pytest.approx(1 - 0.24**0.5)


def test_cards_per_minute():
    assert cards_per_minute(make_session(cards=30, minutes=10)) == pytest.approx(3.0)
    assert cards_per_minute(make_session(minutes=None)) is None
    assert cards_per_minute(make_session(minutes=0)) is None
    assert average_speed([]) == 0.0


def test_compare(analyzer):
    sessions = history([0.5] * 5 + [0.9] * 5)
    stats = make_stats(total_sessions=10, average_accuracy=0.9, current_streak=8)

    result = analyzer.compare(stats, sessions, NOW)

    assert result.peer.percentile == 85
    assert result.peer.average_accuracy == 0.75
    assert result.peer.average_speed == 3.5
    assert result.peer.strength_areas == ["Accuracy"]
    assert result.peer.improvement_areas == ["Speed"]
    assert result.historical.accuracy_improvement == pytest.approx(80.0)
    assert result.historical.speed_improvement == 0.0
    assert [m.achievement for m in result.historical.milestones] == [
        "Week-long Study Streak",
        "High Accuracy Achievement",
    ]
    assert result.historical.milestones[1].value == 90


def test_speed_improvement(analyzer):
    sessions = [
        make_session(20 - i, cards=10 if i < 5 else 20, session_id=f"s{i}") for i in range(10)
    ]
    assert analyzer.improvement(sessions, cards_per_minute) == pytest.approx(100.0)


def test_compare_without_history(analyzer):
    result = analyzer.compare(None, [], NOW)
    assert result.peer.percentile == 25
    assert result.peer.strength_areas == []
    assert result.peer.improvement_areas == ["Accuracy"]
    assert result.historical.accuracy_improvement == 0.0
    assert result.historical.consistency_score == 0.0
    assert result.historical.milestones == []
