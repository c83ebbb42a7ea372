from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from factories import NOW, make_session
from studylens.application.analytics.trends import (
    SeriesMetric,
    TrendAnalyzer,
    classify_trend,
    trend_significance,
)
from studylens.domain.report import TrendDirection, TrendPeriod


@pytest.fixture
def analyzer():
    return TrendAnalyzer()


def at(day: int, hour: int, **kwargs):
    """A session started on June `day` 2024 at `hour`:00 UTC."""
    started = datetime(2024, 6, day, hour, tzinfo=timezone.utc)
    return make_session(0, now=started, session_id=f"{day}-{hour}", **kwargs)


# --- classification ---


@pytest.mark.parametrize(
    "values,expected",
    [
        ([], TrendDirection.STABLE),
        ([0.9], TrendDirection.STABLE),
        ([1, 1, 2, 2], TrendDirection.IMPROVING),
        ([2, 2, 1, 1], TrendDirection.DECLINING),
        ([1.0, 1.0, 1.02, 1.02], TrendDirection.STABLE),
        ([0, 0, 1, 1], TrendDirection.IMPROVING),
        ([0, 0, 0, 0], TrendDirection.STABLE),
    ],
)
def test_classify_trend(values, expected):
    assert classify_trend(values) == expected


def test_classify_trend_uses_threshold():
    values = [1.0, 1.0, 1.08, 1.08]
    assert classify_trend(values, threshold=0.05) == TrendDirection.IMPROVING
    assert classify_trend(values, threshold=0.10) == TrendDirection.STABLE


def test_trend_significance():
    assert trend_significance([5, 5, 5]) == pytest.approx(1.0)
    assert trend_significance([1, 3]) == pytest.approx(0.5)
    assert trend_significance([]) == 0.0
    assert trend_significance([0, 0]) == 0.0
    assert trend_significance([0, 0, 0, 9]) == 0.0


# --- series ---


def test_daily_series_is_gap_filled(analyzer):
    sessions = [
        make_session(0, accuracy=0.8, session_id="a"),
        make_session(0.1, accuracy=0.6, session_id="b"),
        make_session(5, accuracy=0.5, session_id="c"),
    ]
    series = analyzer.daily_series(sessions, NOW)

    assert len(series) == 30
    assert series[-1].date == "2024-06-15"
    assert series[0].date == "2024-05-17"
    assert series[-1].value == pytest.approx(0.7)
    assert series[-6].value == pytest.approx(0.5)
    assert series[-2].value == 0
    assert series[0].change is None
    assert series[-1].change == pytest.approx(0.7)


def test_daily_accuracy_ignores_open_sessions(analyzer):
    sessions = [
        make_session(0, accuracy=0.9, session_id="done"),
        make_session(0, accuracy=0.0, minutes=None, session_id="open"),
    ]
    series = analyzer.daily_series(sessions, NOW, SeriesMetric.ACCURACY)
    assert series[-1].value == pytest.approx(0.9)

    counts = analyzer.daily_series(sessions, NOW, SeriesMetric.STUDY_SESSIONS)
    assert counts[-1].value == 2


def test_daily_cards_studied(analyzer):
    sessions = [
        make_session(1, cards=12, session_id="a"),
        make_session(1, cards=8, session_id="b"),
    ]
    series = analyzer.daily_series(sessions, NOW, SeriesMetric.CARDS_STUDIED, days=7)
    assert len(series) == 7
    assert series[-2].value == 20


def test_weekly_series_windows_end_today(analyzer):
    sessions = [
        make_session(0, session_id="a"),
        make_session(6, session_id="b"),
        make_session(7, session_id="c"),
    ]
    series = analyzer.weekly_series(sessions, NOW)

    assert len(series) == 12
    assert series[-1].date == "2024-06-09"
    assert series[-1].value == 2
    assert series[-2].date == "2024-06-02"
    assert series[-2].value == 1


def test_series_bucket_in_configured_timezone():
    analyzer = TrendAnalyzer(tz=ZoneInfo("America/New_York"))
    # 02:00 UTC on the 15th is 22:00 on the 14th in New York
    session = make_session(0, now=datetime(2024, 6, 15, 2, tzinfo=timezone.utc), accuracy=0.6)

    series = analyzer.daily_series([session], NOW)

    assert series[-1].date == "2024-06-15"
    assert series[-1].value == 0
    assert series[-2].date == "2024-06-14"
    assert series[-2].value == pytest.approx(0.6)


def test_calculate_trends(analyzer):
    sessions = [
        make_session(d, accuracy=0.5 if d > 15 else 0.9, session_id=str(d)) for d in range(30)
    ]
    trends = analyzer.calculate_trends(sessions, NOW)

    assert [(t.period, t.metric) for t in trends] == [
        (TrendPeriod.DAILY, "accuracy"),
        (TrendPeriod.DAILY, "cards_studied"),
        (TrendPeriod.WEEKLY, "study_sessions"),
    ]
    accuracy = trends[0]
    assert accuracy.trend == TrendDirection.IMPROVING
    assert len(accuracy.data) == 30
    assert 0 <= accuracy.significance <= 1


def test_calculate_trends_without_history(analyzer):
    trends = analyzer.calculate_trends([], NOW)
    assert all(t.trend == TrendDirection.STABLE for t in trends)
    assert all(t.significance == 0 for t in trends)


# --- patterns ---


def test_no_patterns_without_sessions(analyzer):
    assert analyzer.detect_patterns([]) == []


def test_preferred_study_time(analyzer):
    sessions = [
        at(10, 12, accuracy=0.9),
        at(11, 12, accuracy=0.9),
        at(12, 12, accuracy=0.6),
        at(11, 9, accuracy=0.5),
        at(12, 9, accuracy=0.5),
        at(13, 20, accuracy=0.3, cards=4),
    ]
    [pattern] = analyzer.detect_patterns(sessions)

    assert pattern.name == "Preferred Study Time"
    assert pattern.id.startswith("pattern_")
    assert pattern.pattern.time_of_day == [12, 9, 20]
    assert pattern.frequency == pytest.approx(0.5)
    assert pattern.pattern.session_duration == pytest.approx(10.0)
    assert pattern.pattern.cards_per_session == pytest.approx(9.0)
    assert pattern.effectiveness.accuracy_score == pytest.approx(3.7 / 6)
    assert pattern.effectiveness.retention_score == 0.8
    assert pattern.effectiveness.speed_score == 0.75
    assert len(pattern.suggestions) == 2


def test_preferred_days_break_ties_by_weekday(analyzer):
    # June 10 2024 is a Monday
    sessions = [at(12, 8), at(10, 8), at(12, 9), at(11, 8)]
    assert analyzer.preferred_days(sessions) == [2, 0, 1]
