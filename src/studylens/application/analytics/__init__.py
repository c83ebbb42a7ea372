# Analytics engines
from .service import AnalyticsService

__all__ = ["AnalyticsService"]
