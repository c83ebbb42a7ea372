"""
Service Factory
Centralizes the logic for selecting the EventStore adapter and wiring the
engines from an AppConfig.
"""

from studylens.application.analytics.comparisons import ComparisonAnalyzer
from studylens.application.analytics.insights import InsightGenerator
from studylens.application.analytics.predictions import PredictiveModule
from studylens.application.analytics.recommendations import RecommendationGenerator
from studylens.application.analytics.service import AnalyticsService
from studylens.application.analytics.trends import TrendAnalyzer
from studylens.application.config import AppConfig
from studylens.application.progress_service import ProgressService
from studylens.application.scoring import LevelThresholds, ScoreConfig, ScoringEngine
from studylens.domain.ports import EventStore
from studylens.infrastructure.adapters.file_store import FileEventStore
from studylens.infrastructure.adapters.memory_store import InMemoryEventStore


def get_event_store(config: AppConfig) -> EventStore:
    """
    Returns the EventStore implementation selected by config.backend.
    """
    if config.backend == "memory":
        return InMemoryEventStore()
    return FileEventStore(data_dir=config.data_dir)


def build_scoring_engine(config: AppConfig) -> ScoringEngine:
    return ScoringEngine(
        config=ScoreConfig(streak_every=config.streak_bonus_every),
        thresholds=LevelThresholds(
            beginner=config.level_beginner_max,
            intermediate=config.level_intermediate_max,
            advanced=config.level_advanced_max,
        ),
    )


def build_analytics_service(
    config: AppConfig, store: EventStore | None = None
) -> AnalyticsService:
    tz = config.tzinfo
    predictor = PredictiveModule(
        tz=tz,
        mastery_threshold=config.mastery_threshold,
        improvement_rate=config.improvement_rate,
    )
    return AnalyticsService(
        store=store or get_event_store(config),
        scoring=build_scoring_engine(config),
        trends=TrendAnalyzer(tz=tz),
        insights=InsightGenerator(
            accuracy_threshold=config.accuracy_threshold,
            difficult_limit=config.difficult_card_limit,
        ),
        predictions=predictor,
        recommendations=RecommendationGenerator(
            accuracy_threshold=config.accuracy_threshold, predictor=predictor
        ),
        comparisons=ComparisonAnalyzer(peer_average_accuracy=config.peer_average_accuracy),
    )


def build_progress_service(
    config: AppConfig, store: EventStore | None = None
) -> ProgressService:
    return ProgressService(
        store=store or get_event_store(config),
        scoring=build_scoring_engine(config),
        retention_days=config.retention_days,
    )
